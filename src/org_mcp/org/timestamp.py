"""Parser for org timestamps: <2025-01-01 Wed 10:00>, [2025-01-01], ranges and cookies."""

import re
from datetime import date, time

from org_mcp.org.models import Timestamp, TimestampEnd

# Opening bracket -> expected closing bracket
BRACKETS = {"<": ">", "[": "]"}

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

TIMESTAMP_PATTERN = re.compile(
    r"(?P<open>[<\[])"
    r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"(?P<rest>[^<>\[\]\n]*?)"
    r"(?P<close>[>\]])"
)

TIME_TOKEN = re.compile(r"^(\d{1,2}):(\d{2})(?:-(\d{1,2}):(\d{2}))?$")
DAY_TOKEN = re.compile(r"^[^\W\d_]+\.?$")
REPEATER_TOKEN = re.compile(r"^(?:\.\+|\+\+|\+)\d+[hdwmy]$")
DELAY_TOKEN = re.compile(r"^--?\d+[hdwmy]$")


class MalformedTimestamp(ValueError):
    """Raised when a bracketed timestamp is not a valid date/time."""

    pass


def _make_time(hour: str, minute: str, raw: str) -> time:
    try:
        return time(int(hour), int(minute))
    except ValueError as e:
        raise MalformedTimestamp(f"Invalid time in timestamp {raw!r}: {e}") from e


def read_timestamp(text: str, pos: int = 0, allow_range: bool = True) -> tuple[Timestamp, int]:
    """
    Read one timestamp starting exactly at text[pos].

    Recognizes `<YYYY-MM-DD [Day] [HH:MM[-HH:MM]] [cookies]>` and the inactive
    `[...]` form, plus `<a>--<b>` date ranges.

    Returns:
        Tuple of (Timestamp, index just past the timestamp)

    Raises:
        MalformedTimestamp: If the text at pos is not a valid timestamp.
    """
    match = TIMESTAMP_PATTERN.match(text, pos)
    if not match:
        snippet = text[pos : pos + 30]
        raise MalformedTimestamp(f"Not a timestamp: {snippet!r}")

    raw = match.group(0)
    opener = match.group("open")
    if BRACKETS[opener] != match.group("close"):
        raise MalformedTimestamp(f"Unmatched brackets in timestamp {raw!r}")

    try:
        day = date(int(match.group("year")), int(match.group("month")), int(match.group("day")))
    except ValueError as e:
        raise MalformedTimestamp(f"Invalid date in timestamp {raw!r}: {e}") from e

    start_time: time | None = None
    end_time: time | None = None
    repeater: str | None = None
    delay: str | None = None

    for token in match.group("rest").split():
        time_match = TIME_TOKEN.match(token)
        if time_match and start_time is None:
            start_time = _make_time(time_match.group(1), time_match.group(2), raw)
            if time_match.group(3):
                end_time = _make_time(time_match.group(3), time_match.group(4), raw)
        elif DAY_TOKEN.match(token):
            continue  # day name is informational only
        elif REPEATER_TOKEN.match(token) and repeater is None:
            repeater = token
        elif DELAY_TOKEN.match(token) and delay is None:
            delay = token
        else:
            raise MalformedTimestamp(f"Unexpected token {token!r} in timestamp {raw!r}")

    end = TimestampEnd(time=end_time) if end_time else None
    stop = match.end()

    if allow_range and text.startswith("--" + opener, stop):
        second, stop = read_timestamp(text, stop + 2, allow_range=False)
        end = TimestampEnd(date=second.date, time=second.time)

    timestamp = Timestamp(
        active=opener == "<",
        date=day,
        time=start_time,
        end=end,
        repeater=repeater,
        delay=delay,
    )
    return timestamp, stop


def parse_timestamp(text: str) -> Timestamp:
    """Parse a string holding exactly one timestamp (surrounding whitespace allowed)."""
    stripped = text.strip()
    timestamp, stop = read_timestamp(stripped)
    if stripped[stop:].strip():
        raise MalformedTimestamp(f"Trailing text after timestamp: {stripped[stop:]!r}")
    return timestamp


def _format_single(active: bool, day: date, start: time | None, end_time: time | None, cookies: list[str]) -> str:
    parts = [day.isoformat(), DAY_NAMES[day.weekday()]]
    if start is not None:
        clock = start.strftime("%H:%M")
        if end_time is not None:
            clock += "-" + end_time.strftime("%H:%M")
        parts.append(clock)
    parts.extend(cookies)
    body = " ".join(parts)
    return f"<{body}>" if active else f"[{body}]"


def format_timestamp(ts: Timestamp) -> str:
    """Render a timestamp back to org syntax."""
    cookies = [c for c in (ts.repeater, ts.delay) if c]
    if ts.end is not None and ts.end.date is not None:
        first = _format_single(ts.active, ts.date, ts.time, None, cookies)
        second = _format_single(ts.active, ts.end.date, ts.end.time, None, [])
        return f"{first}--{second}"
    end_time = ts.end.time if ts.end is not None else None
    return _format_single(ts.active, ts.date, ts.time, end_time, cookies)
