"""JSON-ready dict views of parsed documents and agenda items."""

from org_mcp.org.format import format_inline
from org_mcp.org.models import (
    Directive,
    Document,
    Drawer,
    Heading,
    HorizontalRule,
    Paragraph,
    PlainList,
    RawBlock,
    Timestamp,
)


def timestamp_to_dict(ts: Timestamp | None) -> dict | None:
    if ts is None:
        return None
    return {
        "active": ts.active,
        "date": ts.date.isoformat(),
        "time": ts.time.strftime("%H:%M") if ts.time else None,
        "end_date": ts.end.date.isoformat() if ts.end and ts.end.date else None,
        "end_time": ts.end.time.strftime("%H:%M") if ts.end and ts.end.time else None,
        "repeater": ts.repeater,
        "delay": ts.delay,
    }


def block_to_dict(block) -> dict:
    if isinstance(block, Paragraph):
        return {"type": "paragraph", "text": format_inline(block.text)}
    if isinstance(block, PlainList):
        return {
            "type": "list",
            "kind": block.kind.value,
            "items": [
                {
                    "text": format_inline(item.text),
                    "bullet": item.bullet,
                    "checkbox": item.checkbox.name.lower() if item.checkbox else None,
                    "counter": item.counter,
                }
                for item in block.items
            ],
        }
    if isinstance(block, Drawer):
        return {"type": "drawer", "name": block.name, "lines": list(block.lines)}
    if isinstance(block, HorizontalRule):
        return {"type": "rule"}
    if isinstance(block, Directive):
        return {"type": "directive", "key": block.key, "value": block.value}
    if isinstance(block, RawBlock):
        return {"type": "raw", "lines": list(block.lines), "reason": block.reason}
    raise TypeError(f"Unknown block type: {type(block).__name__}")


def heading_to_dict(heading: Heading, include_children: bool = True) -> dict:
    """
    Serialize a heading.

    Args:
        heading: Heading to serialize
        include_children: Recurse into the subtree (otherwise children is [])

    Returns:
        Dict with plain and markup titles, planning, properties and body
    """
    return {
        "id": heading.id,
        "level": heading.level,
        "title": heading.plain_title,
        "title_markup": format_inline(heading.title),
        "todo": heading.todo.text if heading.todo else None,
        "done": heading.todo.done if heading.todo else False,
        "priority": heading.priority,
        "tags": sorted(heading.tags),
        "scheduled": timestamp_to_dict(heading.planning.scheduled),
        "deadline": timestamp_to_dict(heading.planning.deadline),
        "closed": timestamp_to_dict(heading.planning.closed),
        "properties": dict(heading.properties),
        "clocks": [
            {
                "start": timestamp_to_dict(clock.start),
                "end": timestamp_to_dict(clock.end),
                "minutes": clock.minutes,
            }
            for clock in heading.logbook.clocks
        ],
        "body": [block_to_dict(block) for block in heading.body],
        "children": [heading_to_dict(child) for child in heading.children] if include_children else [],
    }


def document_to_dict(doc: Document) -> dict:
    settings = doc.settings
    return {
        "id": doc.id,
        "path": doc.path,
        "title": doc.title,
        "file_tags": sorted(doc.file_tags),
        "settings": {
            "todo": [list(seq.items) for seq in settings.todo_sequences],
            "priorities": list(settings.priorities),
            "timezone": settings.default_tz,
            "meta": dict(settings.meta),
        },
        "preamble": [block_to_dict(block) for block in doc.preamble],
        "headings": [heading_to_dict(heading) for heading in doc.headings],
    }


def agenda_item_to_dict(item) -> dict:
    span = item.span
    return {
        "document_id": item.document_id,
        "document_path": item.document_path,
        "heading_id": item.heading_id,
        "when": item.when.value,
        "start": span.start.isoformat() if span else None,
        "end": span.end.isoformat() if span and span.end else None,
        "active": item.active,
        "title": item.title,
        "todo": item.todo,
        "priority": item.priority,
        "tags": list(item.tags),
        "path": list(item.path),
    }
