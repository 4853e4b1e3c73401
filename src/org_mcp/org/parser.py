"""Structural parser: org document text to a Document tree."""

import logging
import re
from pathlib import Path

from org_mcp.org.inline import parse_inline
from org_mcp.org.models import (
    MAX_LEVEL,
    Checkbox,
    ClockEntry,
    Directive,
    Document,
    Drawer,
    Heading,
    HorizontalRule,
    ListItem,
    ListKind,
    Logbook,
    Paragraph,
    Planning,
    PlainList,
    RawBlock,
    TodoKeyword,
    TodoSequence,
)
from org_mcp.org.timestamp import MalformedTimestamp, read_timestamp

logger = logging.getLogger(__name__)


class DocumentError(ValueError):
    """Raised when the input cannot be a document at all (e.g. None)."""

    pass


class UnterminatedDrawer(ValueError):
    """A drawer reached the next heading or end of input without :END:."""

    pass


HEADING_PATTERN = re.compile(r"^(\*+)[ \t](.*)$")
DIRECTIVE_PATTERN = re.compile(r"^\s*#\+(\w[\w-]*):[ \t]*(.*?)\s*$")
PLANNING_LINE = re.compile(r"^\s*(?:SCHEDULED|DEADLINE|CLOSED):")
PLANNING_KEYWORD = re.compile(r"(SCHEDULED|DEADLINE|CLOSED):\s*")
DRAWER_START = re.compile(r"^\s*:([\w-]+):\s*$")
DRAWER_END = re.compile(r"^\s*:END:\s*$", re.IGNORECASE)
PROPERTY_LINE = re.compile(r"^\s*:([^:\s]+):(?:[ \t]+(.*?))?\s*$")
CLOCK_LINE = re.compile(r"^\s*CLOCK:\s*(.*?)\s*$")
CLOCK_DURATION = re.compile(r"^\s*=>\s*(\d+):(\d{2})\s*$")
RULE_PATTERN = re.compile(r"^\s*-{5,}\s*$")
LIST_ITEM = re.compile(
    r"^(?P<indent>[ \t]*)"
    r"(?P<bullet>[-+*]|\d+[.)])(?:[ \t]+|$)"
    r"(?:\[@(?P<counter>\d+)\][ \t]*)?"
    r"(?:\[(?P<box>[ Xx-])\](?:[ \t]+|$))?"
    r"(?P<text>.*?)\s*$"
)
PRIORITY_PATTERN = re.compile(r"^\[#([A-Za-z0-9])\](?:[ \t]+|$)")
TAGS_PATTERN = re.compile(r"(?:^|[ \t]+)(:(?:[\w@#%+-]+:)+)[ \t]*$")

TODO_DIRECTIVES = {"todo", "seq_todo", "typ_todo"}

CHECKBOXES = {
    " ": Checkbox.EMPTY,
    "-": Checkbox.PARTIAL,
    "X": Checkbox.CHECKED,
    "x": Checkbox.CHECKED,
}


def parse_document(text: str, path: str | None = None) -> Document:
    """
    Parse org text into a Document.

    Args:
        text: Full document text
        path: Optional source path recorded on the document

    Returns:
        The parsed Document. Empty text yields an empty document.

    Raises:
        DocumentError: If text is None or not a string.
    """
    if not isinstance(text, str):
        raise DocumentError(f"Document text must be a string, got {type(text).__name__}")

    lines = text.lstrip("\ufeff").splitlines()
    doc = Document(path=path)

    # Phase 1: preamble up to the first heading
    pos = _parse_section(lines, 0, doc, None, doc.preamble)

    # Phase 2: heading tree via a level-ordered stack with attach-on-pop
    stack: list[Heading] = []
    while pos < len(lines):
        match = HEADING_PATTERN.match(lines[pos])
        heading = _parse_headline(match, doc)
        while stack and stack[-1].level >= heading.level:
            _attach(stack.pop(), stack, doc)
        stack.append(heading)
        pos = _parse_section(lines, pos + 1, doc, heading, heading.body)

    while stack:
        _attach(stack.pop(), stack, doc)

    logger.debug("Parsed %s: %d top-level headings", path or "<text>", len(doc.headings))
    return doc


def parse_file(path: Path) -> Document:
    """Read and parse an org file as UTF-8."""
    return parse_document(path.read_text(encoding="utf-8"), path=str(path))


def _attach(node: Heading, stack: list[Heading], doc: Document) -> None:
    if stack:
        stack[-1].children.append(node)
    else:
        doc.headings.append(node)


def _parse_headline(match: re.Match, doc: Document) -> Heading:
    level = min(len(match.group(1)), MAX_LEVEL)
    rest = match.group(2).strip()
    heading = Heading(level=level)

    first, _, remainder = rest.partition(" ")
    if first and first in doc.settings.keywords():
        heading.todo = TodoKeyword(first, done=doc.settings.is_done(first))
        rest = remainder.strip()

    priority = PRIORITY_PATTERN.match(rest)
    if priority:
        heading.priority = priority.group(1)
        rest = rest[priority.end() :]

    tags = TAGS_PATTERN.search(rest)
    if tags:
        heading.tags = {tag for tag in tags.group(1).split(":") if tag}
        rest = rest[: tags.start()]

    heading.title = parse_inline(rest.strip())
    return heading


def _parse_section(lines: list[str], pos: int, doc: Document, heading: Heading | None, blocks: list) -> int:
    """
    Consume body lines until the next heading line.

    With heading=None this reads the preamble: directives update the
    document settings, and PROPERTIES/LOGBOOK drawers stay opaque.

    Returns:
        Index of the next heading line (or len(lines))
    """
    paragraph: list[str] = []

    def flush() -> None:
        if paragraph:
            blocks.append(Paragraph(parse_inline("\n".join(paragraph))))
            paragraph.clear()

    while pos < len(lines):
        line = lines[pos]
        if HEADING_PATTERN.match(line):
            break

        if not line.strip():
            flush()
            pos += 1
            continue

        if heading is not None and PLANNING_LINE.match(line):
            flush()
            _parse_planning(line, heading.planning)
            pos += 1
            continue

        drawer = DRAWER_START.match(line)
        if drawer and drawer.group(1).upper() != "END":
            flush()
            try:
                drawer_lines, pos = _read_drawer(lines, pos)
            except UnterminatedDrawer as e:
                logger.warning("%s; keeping the rest of the section as raw text", e)
                stop = _next_heading(lines, pos)
                blocks.append(RawBlock(lines[pos:stop], reason=str(e)))
                pos = stop
                continue
            _store_drawer(drawer.group(1), drawer_lines, heading, blocks)
            continue

        if RULE_PATTERN.match(line):
            flush()
            blocks.append(HorizontalRule())
            pos += 1
            continue

        if LIST_ITEM.match(line):
            flush()
            plain_list, pos = _read_list(lines, pos)
            blocks.append(plain_list)
            continue

        directive = DIRECTIVE_PATTERN.match(line)
        if directive:
            flush()
            key, value = directive.group(1), directive.group(2)
            blocks.append(Directive(key, value))
            if heading is None:
                _apply_directive(doc, key, value)
            pos += 1
            continue

        paragraph.append(line.strip())
        pos += 1

    flush()
    return pos


def _next_heading(lines: list[str], pos: int) -> int:
    while pos < len(lines) and not HEADING_PATTERN.match(lines[pos]):
        pos += 1
    return pos


def _read_drawer(lines: list[str], pos: int) -> tuple[list[str], int]:
    """Return the drawer's inner lines and the index after :END:."""
    name = DRAWER_START.match(lines[pos]).group(1)
    end = pos + 1
    while end < len(lines):
        if HEADING_PATTERN.match(lines[end]):
            break
        if DRAWER_END.match(lines[end]):
            return lines[pos + 1 : end], end + 1
        end += 1
    raise UnterminatedDrawer(f"Drawer :{name}: at line {pos + 1} has no :END:")


def _store_drawer(name: str, drawer_lines: list[str], heading: Heading | None, blocks: list) -> None:
    upper = name.upper()
    if heading is not None and upper == "PROPERTIES":
        for line in drawer_lines:
            prop = PROPERTY_LINE.match(line)
            if prop:
                heading.properties[prop.group(1)] = prop.group(2) or ""
            elif line.strip():
                logger.debug("Skipping malformed property line %r", line)
    elif heading is not None and upper == "LOGBOOK":
        _parse_logbook(drawer_lines, heading.logbook)
    else:
        blocks.append(Drawer(name, list(drawer_lines)))


def _parse_planning(line: str, planning: Planning) -> None:
    for match in PLANNING_KEYWORD.finditer(line):
        field_name = match.group(1).lower()
        try:
            timestamp, _ = read_timestamp(line, match.end())
        except MalformedTimestamp as e:
            logger.warning("Ignoring %s planning timestamp: %s", match.group(1), e)
            continue
        setattr(planning, field_name, timestamp)


def _parse_logbook(drawer_lines: list[str], logbook: Logbook) -> None:
    for line in drawer_lines:
        if not line.strip():
            continue
        clock = CLOCK_LINE.match(line)
        entry = _parse_clock(clock.group(1)) if clock else None
        if entry is not None:
            logbook.clocks.append(entry)
        else:
            logbook.raw.append(line.strip())


def _parse_clock(text: str) -> ClockEntry | None:
    try:
        start, pos = read_timestamp(text, 0, allow_range=False)
        end = None
        if text.startswith("--", pos):
            end, pos = read_timestamp(text, pos + 2, allow_range=False)
    except MalformedTimestamp:
        return None

    minutes = None
    rest = text[pos:]
    if rest.strip():
        duration = CLOCK_DURATION.match(rest)
        if not duration:
            return None
        minutes = int(duration.group(1)) * 60 + int(duration.group(2))
    return ClockEntry(start=start, end=end, minutes=minutes)


def _read_list(lines: list[str], pos: int) -> tuple[PlainList, int]:
    """Read contiguous items of one list kind."""
    kind = None
    entries: list[tuple[re.Match, list[str]]] = []

    while pos < len(lines):
        line = lines[pos]
        if HEADING_PATTERN.match(line) or RULE_PATTERN.match(line):
            break
        item = LIST_ITEM.match(line)
        if item:
            item_kind = ListKind.ORDERED if item.group("bullet")[0].isdigit() else ListKind.UNORDERED
            if kind is None:
                kind = item_kind
            elif item_kind != kind:
                break
            entries.append((item, [item.group("text")]))
            pos += 1
            continue
        # Indented continuation of the previous item's text
        indent = len(line) - len(line.lstrip())
        if line.strip() and entries and indent > len(entries[-1][0].group("indent")):
            entries[-1][1].append(line.strip())
            pos += 1
            continue
        break

    items = []
    for item, text_lines in entries:
        counter = item.group("counter")
        box = item.group("box")
        items.append(
            ListItem(
                text=parse_inline(" ".join(t for t in text_lines if t)),
                bullet=item.group("bullet"),
                checkbox=CHECKBOXES[box] if box else None,
                counter=int(counter) if counter else None,
            )
        )
    return PlainList(kind=kind, items=items), pos


def _apply_directive(doc: Document, key: str, value: str) -> None:
    lowered = key.lower()
    settings = doc.settings
    if lowered == "title":
        if value:
            doc.title = f"{doc.title} {value}" if doc.title else value
    elif lowered == "filetags":
        doc.file_tags.update(tag for tag in re.split(r"[:\s]+", value) if tag)
    elif lowered in TODO_DIRECTIVES:
        # Strip fast-access keys like TODO(t) or DONE(d!)
        words = [word.split("(")[0] for word in value.split()]
        words = [word for word in words if word]
        if words:
            settings.todo_sequences.append(TodoSequence(words))
    elif lowered == "priorities":
        _apply_priorities(doc, value)
    elif lowered == "timezone":
        settings.default_tz = value or None
    else:
        settings.meta[lowered] = value


def _apply_priorities(doc: Document, value: str) -> None:
    """#+PRIORITIES: <highest> <lowest> [default] -> letters from highest to lowest."""
    parts = value.split()
    if len(parts) < 2 or len(parts[0]) != 1 or len(parts[1]) != 1 or parts[0] > parts[1]:
        logger.warning("Ignoring invalid #+PRIORITIES value %r", value)
        return
    doc.settings.priorities = tuple(chr(code) for code in range(ord(parts[0]), ord(parts[1]) + 1))
