"""Agenda projector: one item per planning timestamp across documents."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from org_mcp.org.models import Document, Heading, Timestamp, TimeSpan


class AgendaWhen(Enum):
    SCHEDULED = "scheduled"
    DEADLINE = "deadline"
    CLOSED = "closed"
    TODO = "todo"  # open task without any planning timestamp


PLANNING_FIELDS = (AgendaWhen.SCHEDULED, AgendaWhen.DEADLINE, AgendaWhen.CLOSED)


@dataclass(frozen=True)
class AgendaItem:
    document_id: str
    document_path: str | None
    heading_id: str
    when: AgendaWhen
    span: TimeSpan | None
    active: bool
    title: str
    todo: str | None
    priority: str | None
    tags: tuple[str, ...]
    path: tuple[str, ...]  # breadcrumb, including the heading's own title


def timestamp_span(ts: Timestamp) -> TimeSpan:
    """Start is date plus time-or-midnight; end only for explicit ranges."""
    return TimeSpan(start=ts.start, end=ts.finish)


def project_document(doc: Document, include_todos: bool = False) -> list[AgendaItem]:
    """
    Walk one document depth-first and emit agenda items.

    Args:
        doc: Parsed document
        include_todos: Also emit open tasks that have no planning timestamp

    Returns:
        Items in document order; no other ordering is imposed.
    """
    items: list[AgendaItem] = []
    for heading in doc.headings:
        _visit(doc, heading, (), include_todos, items)
    return items


def project_documents(docs: Iterable[Document], include_todos: bool = False) -> list[AgendaItem]:
    items: list[AgendaItem] = []
    for doc in docs:
        items.extend(project_document(doc, include_todos=include_todos))
    return items


def _visit(doc: Document, heading: Heading, parents: tuple, include_todos: bool, items: list) -> None:
    path = parents + (heading.plain_title,)

    for when in PLANNING_FIELDS:
        ts = getattr(heading.planning, when.value)
        if ts is not None:
            items.append(_item(doc, heading, path, when, timestamp_span(ts), ts.active))

    if include_todos and not heading.planning and heading.todo and not heading.todo.done:
        items.append(_item(doc, heading, path, AgendaWhen.TODO, None, False))

    for child in heading.children:
        _visit(doc, child, path, include_todos, items)


def _item(doc, heading, path, when, span, active) -> AgendaItem:
    return AgendaItem(
        document_id=doc.id,
        document_path=doc.path,
        heading_id=heading.id,
        when=when,
        span=span,
        active=active,
        title=heading.plain_title,
        todo=heading.todo.text if heading.todo else None,
        priority=heading.priority,
        tags=tuple(sorted(heading.tags)),
        path=path,
    )


def filter_agenda(items: Iterable[AgendaItem], start: date | None = None, end: date | None = None) -> list[AgendaItem]:
    """Keep items starting within [start, end]; undated TODO items always pass."""
    result = []
    for item in items:
        if item.span is not None:
            day = item.span.start.date()
            if start is not None and day < start:
                continue
            if end is not None and day > end:
                continue
        result.append(item)
    return result


def sort_agenda(items: Iterable[AgendaItem]) -> list[AgendaItem]:
    """Order by start time, undated items last."""
    return sorted(items, key=lambda item: (item.span is None, item.span.start if item.span else datetime.max))
