"""Reschedule policy for carried-forward tasks."""

import dataclasses
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from pathlib import Path

import yaml

from org_mcp.org.models import Planning, Timestamp

logger = logging.getLogger(__name__)


class RescheduleRule(Enum):
    NO_CHANGE = "no_change"
    SET_TO_TARGET = "set_to_target"
    TO_TARGET_IF_OVERDUE = "to_target_if_overdue"  # only when the date is before the target
    SHIFT_BY_DELTA_DAYS = "shift_by_delta_days"  # by (target - shift_from) days


@dataclass(frozen=True)
class ReschedulePolicy:
    """How SCHEDULED and DEADLINE are rewritten; CLOSED is never touched."""

    scheduled_rule: RescheduleRule = RescheduleRule.SET_TO_TARGET
    deadline_rule: RescheduleRule = RescheduleRule.TO_TARGET_IF_OVERDUE
    keep_time_of_day: bool = True
    default_time: time | None = None
    preserve_active: bool = True
    shift_from: date | None = None

    @classmethod
    def from_mapping(cls, data: dict | None) -> "ReschedulePolicy":
        """
        Build a policy from a plain mapping (e.g. loaded YAML).

        Accepted keys: scheduled, deadline (rule names), keep_time_of_day,
        default_time ("HH:MM"), preserve_active, shift_from ("YYYY-MM-DD").

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"Reschedule policy must be a mapping, got {type(data).__name__}")

        known = {"scheduled", "deadline", "keep_time_of_day", "default_time", "preserve_active", "shift_from"}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown reschedule policy keys: {', '.join(sorted(unknown))}")

        kwargs = {}
        if "scheduled" in data:
            kwargs["scheduled_rule"] = _parse_rule(data["scheduled"])
        if "deadline" in data:
            kwargs["deadline_rule"] = _parse_rule(data["deadline"])
        for flag in ("keep_time_of_day", "preserve_active"):
            if flag in data:
                if not isinstance(data[flag], bool):
                    raise ValueError(f"Invalid {flag} value {data[flag]!r}: expected true or false")
                kwargs[flag] = data[flag]
        if data.get("default_time") is not None:
            kwargs["default_time"] = _parse_time(data["default_time"])
        if data.get("shift_from") is not None:
            kwargs["shift_from"] = _parse_date(data["shift_from"])
        return cls(**kwargs)

    def with_shift_from(self, shift_from: date | None) -> "ReschedulePolicy":
        return dataclasses.replace(self, shift_from=shift_from)


def load_policy(path: Path) -> ReschedulePolicy:
    """Load a reschedule policy from a YAML file."""
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    logger.debug("Loaded reschedule policy from %s", path)
    return ReschedulePolicy.from_mapping(data)


def _parse_rule(value) -> RescheduleRule:
    try:
        return RescheduleRule(str(value).strip().lower().replace("-", "_"))
    except ValueError as e:
        choices = ", ".join(rule.value for rule in RescheduleRule)
        raise ValueError(f"Invalid reschedule rule {value!r}; expected one of: {choices}") from e


def _parse_time(value) -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, int):
        # YAML 1.1 reads an unquoted 09:30 as sexagesimal minutes
        return time(value // 60, value % 60)
    try:
        return datetime.strptime(str(value).strip(), "%H:%M").time()
    except ValueError as e:
        raise ValueError(f"Invalid default_time value {value!r}: expected HH:MM") from e


def _parse_date(value) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as e:
        raise ValueError(f"Invalid shift_from value {value!r}: expected YYYY-MM-DD") from e


def reschedule_planning(planning: Planning, target: date, policy: ReschedulePolicy) -> None:
    """Rewrite scheduled and deadline in place."""
    if planning.scheduled is not None:
        planning.scheduled = reschedule_timestamp(planning.scheduled, target, policy, policy.scheduled_rule)
    if planning.deadline is not None:
        planning.deadline = reschedule_timestamp(planning.deadline, target, policy, policy.deadline_rule)


def reschedule_timestamp(ts: Timestamp, target: date, policy: ReschedulePolicy, rule: RescheduleRule) -> Timestamp:
    if rule == RescheduleRule.NO_CHANGE:
        return ts
    if rule == RescheduleRule.SET_TO_TARGET:
        return _move(ts, target, policy)
    if rule == RescheduleRule.TO_TARGET_IF_OVERDUE:
        return _move(ts, target, policy) if ts.date < target else ts
    if policy.shift_from is None:
        return ts
    delta = (target - policy.shift_from).days
    if delta == 0:
        return ts
    return _move(ts, ts.date + timedelta(days=delta), policy)


def _move(ts: Timestamp, new_date: date, policy: ReschedulePolicy) -> Timestamp:
    """Move to new_date keeping any range length, then apply time and bracket policy."""
    moved = ts.moved_to(new_date)

    if policy.keep_time_of_day and moved.time is not None:
        new_time = moved.time
    else:
        new_time = policy.default_time

    end = moved.end
    if end is not None and end.date is None and new_time is None:
        # A same-day time range cannot survive losing its start time
        end = None

    return dataclasses.replace(
        moved,
        time=new_time,
        end=end,
        active=moved.active if policy.preserve_active else True,
    )
