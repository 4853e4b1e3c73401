"""Render Document trees back to canonical org text."""

from org_mcp.org.models import (
    Code,
    Directive,
    Document,
    Drawer,
    Emphasis,
    EmphasisKind,
    Entity,
    FootnoteRef,
    Heading,
    HorizontalRule,
    Link,
    Logbook,
    Paragraph,
    PlainList,
    RawBlock,
    RichText,
    Target,
    Text,
    Verbatim,
)
from org_mcp.org.timestamp import format_timestamp

EMPHASIS_CHARS = {
    EmphasisKind.BOLD: "*",
    EmphasisKind.ITALIC: "/",
    EmphasisKind.UNDERLINE: "_",
    EmphasisKind.STRIKE: "+",
}


def format_document(doc: Document) -> str:
    """Render a whole document; parsing the result yields an equivalent tree."""
    lines: list[str] = []
    if doc.title:
        lines.append(f"#+TITLE: {doc.title}")
    preamble = [block for block in doc.preamble if not _is_title(block)]
    lines.extend(_format_blocks(preamble))
    for heading in doc.headings:
        lines.extend(_format_heading_lines(heading))
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def format_heading(heading: Heading) -> str:
    """Render one heading and its subtree."""
    return "\n".join(_format_heading_lines(heading)) + "\n"


def format_inline(text: RichText) -> str:
    return _format_nodes(text.nodes)


def _format_nodes(nodes) -> str:
    parts = []
    for index, node in enumerate(nodes):
        parts.append(_format_node(node))
        following = nodes[index + 1] if index + 1 < len(nodes) else None
        # \name{} keeps an entity from absorbing the letters after it
        if isinstance(node, Entity) and isinstance(following, Text) and following.value[:1].isalpha():
            parts.append("{}")
    return "".join(parts)


def format_headline(heading: Heading) -> str:
    parts = ["*" * heading.level]
    if heading.todo:
        parts.append(heading.todo.text)
    if heading.priority:
        parts.append(f"[#{heading.priority}]")
    title = format_inline(heading.title)
    if title:
        parts.append(title)
    if heading.tags:
        parts.append(":" + ":".join(sorted(heading.tags)) + ":")
    return " ".join(parts)


def _is_title(block) -> bool:
    return isinstance(block, Directive) and block.key.lower() == "title"


def _format_heading_lines(heading: Heading) -> list[str]:
    lines = [format_headline(heading)]

    planning = heading.planning
    stamps = [
        f"{label}: {format_timestamp(ts)}"
        for label, ts in (
            ("SCHEDULED", planning.scheduled),
            ("DEADLINE", planning.deadline),
            ("CLOSED", planning.closed),
        )
        if ts is not None
    ]
    if stamps:
        lines.append(" ".join(stamps))

    if heading.properties:
        lines.append(":PROPERTIES:")
        lines.extend(f":{key}: {value}".rstrip() for key, value in heading.properties.items())
        lines.append(":END:")

    if heading.logbook:
        lines.append(":LOGBOOK:")
        lines.extend(_format_logbook(heading.logbook))
        lines.append(":END:")

    lines.extend(_format_blocks(heading.body))
    for child in heading.children:
        lines.extend(_format_heading_lines(child))
    return lines


def _format_logbook(logbook: Logbook) -> list[str]:
    lines = []
    for clock in logbook.clocks:
        line = f"CLOCK: {format_timestamp(clock.start)}"
        if clock.end is not None:
            line += f"--{format_timestamp(clock.end)}"
        if clock.minutes is not None:
            line += f" => {clock.minutes // 60}:{clock.minutes % 60:02d}"
        lines.append(line)
    lines.extend(logbook.raw)
    return lines


def _format_blocks(blocks: list) -> list[str]:
    lines: list[str] = []
    previous = None
    for block in blocks:
        # Adjacent paragraphs or lists would merge on re-parse
        if previous is not None and type(previous) is type(block) and isinstance(block, Paragraph | PlainList):
            lines.append("")
        lines.extend(_format_block(block))
        previous = block
    return lines


def _format_block(block) -> list[str]:
    if isinstance(block, Paragraph):
        return format_inline(block.text).split("\n")
    if isinstance(block, PlainList):
        return [_format_item(item) for item in block.items]
    if isinstance(block, Drawer):
        return [f":{block.name}:", *block.lines, ":END:"]
    if isinstance(block, HorizontalRule):
        return ["-----"]
    if isinstance(block, Directive):
        return [f"#+{block.key}: {block.value}".rstrip()]
    if isinstance(block, RawBlock):
        return list(block.lines)
    raise TypeError(f"Unknown block type: {type(block).__name__}")


def _format_item(item) -> str:
    parts = [item.bullet]
    if item.counter is not None:
        parts.append(f"[@{item.counter}]")
    if item.checkbox is not None:
        parts.append(f"[{item.checkbox.value}]")
    text = format_inline(item.text)
    if text:
        parts.append(text)
    return " ".join(parts)


def _format_node(node) -> str:
    if isinstance(node, Text):
        return node.value
    if isinstance(node, Emphasis):
        marker = EMPHASIS_CHARS[node.kind]
        inner = _format_nodes(node.children)
        return f"{marker}{inner}{marker}"
    if isinstance(node, Code):
        return f"~{node.value}~"
    if isinstance(node, Verbatim):
        return f"={node.value}="
    if isinstance(node, Link):
        if node.description:
            return f"[[{node.raw_target}][{format_inline(node.description)}]]"
        return f"[[{node.raw_target}]]"
    if isinstance(node, Target):
        return f"<<{node.name}>>"
    if isinstance(node, FootnoteRef):
        return f"[fn:{node.label}]"
    if isinstance(node, Entity):
        return f"\\{node.name}"
    raise TypeError(f"Unknown inline node: {type(node).__name__}")
