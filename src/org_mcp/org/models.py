"""Data models for parsed org documents."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum

# Heading levels are clamped to this depth
MAX_LEVEL = 8

# Vocabulary used when a document declares no #+TODO line
DEFAULT_TODO_SEQUENCE = (
    "TODO",
    "NEXT",
    "WAIT",
    "WAITING",
    "HOLD",
    "STARTED",
    "|",
    "DONE",
    "CANCELLED",
    "CANCELED",
    "ABORTED",
    "VOID",
)

# Done words assumed when a document declares no vocabulary
DEFAULT_DONE_KEYWORDS = frozenset({"DONE", "CANCELLED", "CANCELED", "ABORTED", "VOID"})

DEFAULT_PRIORITIES = ("A", "B", "C")


def new_id() -> str:
    """Generate a fresh identity for a document or heading."""
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimestampEnd:
    """End of a range: another date, a time on the same date, or both."""

    date: date | None = None
    time: time | None = None


@dataclass(frozen=True)
class Timestamp:
    """An active <...> or inactive [...] org timestamp."""

    active: bool
    date: date
    time: time | None = None
    end: TimestampEnd | None = None
    repeater: str | None = None  # e.g. "+1w", "++1m", ".+2d"; not evaluated
    delay: str | None = None  # e.g. "-2d"; not evaluated

    @property
    def start(self) -> datetime:
        """Start of the timestamp, midnight when no time-of-day is set."""
        return datetime.combine(self.date, self.time or time(0, 0))

    @property
    def finish(self) -> datetime | None:
        """End of an explicit range, or None."""
        if self.end is None:
            return None
        end_date = self.end.date or self.date
        end_time = self.end.time or self.time or time(0, 0)
        return datetime.combine(end_date, end_time)

    @property
    def span_days(self) -> int:
        """Length in days of a date range (0 for single-day timestamps)."""
        if self.end is None or self.end.date is None:
            return 0
        return (self.end.date - self.date).days

    def moved_to(self, new_date: date) -> Timestamp:
        """Return a copy starting on new_date, keeping any range length."""
        end = self.end
        if end is not None and end.date is not None:
            end = TimestampEnd(date=new_date + timedelta(days=self.span_days), time=end.time)
        return Timestamp(
            active=self.active,
            date=new_date,
            time=self.time,
            end=end,
            repeater=self.repeater,
            delay=self.delay,
        )


@dataclass(frozen=True)
class TimeSpan:
    """A normalized start/end pair used by agenda views."""

    start: datetime
    end: datetime | None = None


# ---------------------------------------------------------------------------
# Inline rich text
# ---------------------------------------------------------------------------


class EmphasisKind(Enum):
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKE = "strike"


class LinkKind(Enum):
    WEB = "web"  # http:// or https://
    ID = "id"  # id:some-identifier
    PATH = "path"  # file:... or a bare path / internal target
    OTHER = "other"  # any other scheme, e.g. mailto:


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Emphasis:
    kind: EmphasisKind
    children: tuple = ()


@dataclass(frozen=True)
class Code:
    value: str


@dataclass(frozen=True)
class Verbatim:
    value: str


@dataclass(frozen=True)
class Link:
    """A bracketed link or bare autolink.

    `target` is the url, id, path or scheme-specific part depending on kind;
    `scheme` is only set for OTHER links and `search` only for file links
    using the `file:path::search` form.
    """

    kind: LinkKind
    target: str
    description: RichText | None = None
    scheme: str | None = None
    search: str | None = None

    @property
    def raw_target(self) -> str:
        """The link target as written in org text."""
        if self.kind == LinkKind.ID:
            return f"id:{self.target}"
        if self.kind == LinkKind.OTHER:
            return f"{self.scheme}:{self.target}"
        if self.kind == LinkKind.PATH and self.scheme == "file":
            if self.search:
                return f"file:{self.target}::{self.search}"
            return f"file:{self.target}"
        return self.target


@dataclass(frozen=True)
class Target:
    name: str


@dataclass(frozen=True)
class FootnoteRef:
    label: str


@dataclass(frozen=True)
class Entity:
    name: str  # without the leading backslash


Inline = Text | Emphasis | Code | Verbatim | Link | Target | FootnoteRef | Entity


def coalesce(nodes) -> tuple:
    """Merge adjacent Text nodes and drop empty ones."""
    out: list = []
    for node in nodes:
        if isinstance(node, Text):
            if not node.value:
                continue
            if out and isinstance(out[-1], Text):
                out[-1] = Text(out[-1].value + node.value)
                continue
        out.append(node)
    return tuple(out)


@dataclass(frozen=True)
class RichText:
    """Immutable sequence of inline nodes with adjacent text coalesced."""

    nodes: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "nodes", coalesce(self.nodes))

    @classmethod
    def plain(cls, value: str) -> RichText:
        return cls((Text(value),))

    @property
    def plain_text(self) -> str:
        return "".join(_plain(node) for node in self.nodes)

    def __bool__(self) -> bool:
        return bool(self.nodes)


def _plain(node) -> str:
    if isinstance(node, Text | Code | Verbatim):
        return node.value
    if isinstance(node, Emphasis):
        return "".join(_plain(child) for child in node.children)
    if isinstance(node, Link):
        if node.description:
            return node.description.plain_text
        return node.raw_target
    if isinstance(node, Target):
        return node.name
    if isinstance(node, FootnoteRef):
        return node.label
    if isinstance(node, Entity):
        return f"\\{node.name}"
    return ""


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


class ListKind(Enum):
    UNORDERED = "unordered"
    ORDERED = "ordered"


class Checkbox(Enum):
    EMPTY = " "
    PARTIAL = "-"
    CHECKED = "X"


@dataclass
class Paragraph:
    text: RichText


@dataclass
class ListItem:
    text: RichText
    bullet: str = "-"
    checkbox: Checkbox | None = None
    counter: int | None = None


@dataclass
class PlainList:
    kind: ListKind
    items: list[ListItem] = field(default_factory=list)


@dataclass
class Drawer:
    """A named drawer other than PROPERTIES/LOGBOOK, kept as raw lines."""

    name: str
    lines: list[str] = field(default_factory=list)


@dataclass
class HorizontalRule:
    pass


@dataclass
class Directive:
    key: str
    value: str


@dataclass
class RawBlock:
    """Opaque content the parser could not structure (e.g. an unterminated drawer)."""

    lines: list[str]
    reason: str = ""


Block = Paragraph | PlainList | Drawer | HorizontalRule | Directive | RawBlock


# ---------------------------------------------------------------------------
# Headings and documents
# ---------------------------------------------------------------------------


@dataclass
class TodoKeyword:
    text: str
    done: bool = False


@dataclass
class Planning:
    scheduled: Timestamp | None = None
    deadline: Timestamp | None = None
    closed: Timestamp | None = None

    def __bool__(self) -> bool:
        return any((self.scheduled, self.deadline, self.closed))


@dataclass
class ClockEntry:
    start: Timestamp
    end: Timestamp | None = None
    minutes: int | None = None


@dataclass
class Logbook:
    clocks: list[ClockEntry] = field(default_factory=list)
    raw: list[str] = field(default_factory=list)  # unrecognized lines, verbatim

    def __bool__(self) -> bool:
        return bool(self.clocks or self.raw)


@dataclass
class Heading:
    """One node of the outline tree."""

    level: int
    title: RichText = field(default_factory=RichText)
    todo: TodoKeyword | None = None
    priority: str | None = None
    tags: set[str] = field(default_factory=set)
    planning: Planning = field(default_factory=Planning)
    properties: dict[str, str] = field(default_factory=dict)
    logbook: Logbook = field(default_factory=Logbook)
    body: list = field(default_factory=list)
    children: list[Heading] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    @property
    def plain_title(self) -> str:
        return self.title.plain_text

    def walk(self):
        """Yield this heading and all descendants, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def shift_levels(self, delta: int) -> None:
        """Move this subtree up or down by delta levels."""
        for heading in self.walk():
            heading.level = max(1, min(MAX_LEVEL, heading.level + delta))


@dataclass
class TodoSequence:
    """One #+TODO line: open words, then done words after the `|` divider."""

    items: list[str]

    @property
    def open_keywords(self) -> list[str]:
        if "|" in self.items:
            return self.items[: self.items.index("|")]
        return self.items[:-1]

    @property
    def done_keywords(self) -> list[str]:
        if "|" in self.items:
            return self.items[self.items.index("|") + 1 :]
        return self.items[-1:]


@dataclass
class FileSettings:
    todo_sequences: list[TodoSequence] = field(default_factory=list)
    priorities: tuple[str, ...] = DEFAULT_PRIORITIES
    default_tz: str | None = None
    meta: dict[str, str] = field(default_factory=dict)

    @property
    def has_vocabulary(self) -> bool:
        return bool(self.todo_sequences)

    def keywords(self) -> set[str]:
        """All task keywords the document recognizes."""
        if not self.todo_sequences:
            return {word for word in DEFAULT_TODO_SEQUENCE if word != "|"}
        words: set[str] = set()
        for seq in self.todo_sequences:
            words.update(seq.open_keywords)
            words.update(seq.done_keywords)
        return words

    def done_keywords(self) -> frozenset[str]:
        """Keywords in the done partition, or the built-in fallback set."""
        words: set[str] = set()
        for seq in self.todo_sequences:
            words.update(seq.done_keywords)
        return frozenset(words) if words else DEFAULT_DONE_KEYWORDS

    def is_done(self, keyword: str) -> bool:
        return keyword in self.done_keywords()


@dataclass
class Document:
    """Root aggregate: one parsed org file."""

    title: str | None = None
    file_tags: set[str] = field(default_factory=set)
    settings: FileSettings = field(default_factory=FileSettings)
    preamble: list = field(default_factory=list)
    headings: list[Heading] = field(default_factory=list)
    path: str | None = None
    id: str = field(default_factory=new_id)

    def walk(self):
        """Yield every heading in document order."""
        for heading in self.headings:
            yield from heading.walk()
