"""
Journal projector: carry every open task from prior entries into a new one.

Open tasks are collected from the source documents, de-duplicated by
(normalized breadcrumb path, normalized title), rescheduled by a policy and
merged into a copy of the template document under matching grouping headings.
"""

import copy
import dataclasses
import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date

from org_mcp.org.models import (
    DEFAULT_TODO_SEQUENCE,
    MAX_LEVEL,
    Directive,
    Document,
    Heading,
    RichText,
    TodoSequence,
    new_id,
)
from org_mcp.projectors.reschedule import ReschedulePolicy, reschedule_planning

logger = logging.getLogger(__name__)

# Grouping heading used for tasks that have no breadcrumb
DEFAULT_GROUP = "Tasks"

# Top-level titles like "2025-01-03" or "2025-01-03 Friday" are per-day roots
DATE_HEADING_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")


def normalize(text: str) -> str:
    """Lowercase, collapse whitespace runs to one space, trim."""
    return " ".join(text.lower().split())


def looks_like_date_heading(title: str) -> bool:
    return bool(DATE_HEADING_PATTERN.match(title.strip()))


def is_open_task(heading: Heading, doc: Document) -> bool:
    """A task keyword that is neither flagged done nor in the document's done set."""
    if heading.todo is None or heading.todo.done:
        return False
    return heading.todo.text not in doc.settings.done_keywords()


@dataclass
class TaskBucket:
    """Collected tasks sharing one normalized breadcrumb path."""

    path: tuple[RichText, ...]  # display titles from the first occurrence
    tasks: list[Heading] = field(default_factory=list)


def collect_open_tasks(
    sources: Iterable[Document],
    target_date: date,
    policy: ReschedulePolicy | None = None,
) -> dict[tuple[str, ...], TaskBucket]:
    """
    Collect rescheduled, childless copies of every open task.

    Args:
        sources: Journal documents, in priority order (first occurrence wins)
        target_date: Date of the entry being built
        policy: Reschedule policy (default policy when None)

    Returns:
        Buckets keyed by normalized breadcrumb path, in first-seen order.
    """
    policy = policy or ReschedulePolicy()
    buckets: dict[tuple[str, ...], TaskBucket] = {}
    seen: set[tuple[tuple[str, ...], str]] = set()

    for doc in sources:
        logger.debug("Collecting open tasks from %s", doc.path or doc.id)
        for heading in doc.headings:
            _collect(doc, heading, (), buckets, seen, target_date, policy)
    return buckets


def _collect(doc, heading, parents, buckets, seen, target_date, policy) -> None:
    if is_open_task(heading, doc):
        key = tuple(normalize(title.plain_text) for title in parents)
        dedupe_key = (key, normalize(heading.plain_title))
        if dedupe_key not in seen:
            seen.add(dedupe_key)
            task = _detached_copy(heading)
            reschedule_planning(task.planning, target_date, policy)
            buckets.setdefault(key, TaskBucket(path=parents)).tasks.append(task)

    # Date-like top-level headings never become grouping keys
    if parents or not looks_like_date_heading(heading.plain_title):
        parents = parents + (heading.title,)
    for child in heading.children:
        _collect(doc, child, parents, buckets, seen, target_date, policy)


def _detached_copy(heading: Heading) -> Heading:
    task = copy.deepcopy(dataclasses.replace(heading, children=[]))
    task.id = new_id()
    return task


def build_journal_entry(
    template: Document,
    sources: Iterable[Document],
    target_date: date,
    policy: ReschedulePolicy | None = None,
) -> Document:
    """
    Build a new journal entry from a template and prior journal documents.

    Args:
        template: Skeleton document; its headings are kept as merge targets
        sources: Prior journal documents
        target_date: Date of the new entry
        policy: Reschedule policy (default: scheduled set to target,
            deadline moved only when overdue, times and brackets kept)

    Returns:
        A new Document with a fresh id and no path. The template is not modified.
    """
    entry = copy.deepcopy(template)
    entry.id = new_id()
    entry.path = None
    if not entry.title:
        entry.title = target_date.isoformat()
    for heading in entry.walk():
        heading.id = new_id()

    buckets = collect_open_tasks(sources, target_date, policy)
    carried = 0
    for bucket in buckets.values():
        for task in bucket.tasks:
            _ensure_keyword(entry, task.todo.text)
        parent = ensure_path(entry, bucket.path)
        merge_tasks(parent, bucket.tasks)
        carried += len(bucket.tasks)

    logger.info(
        "Built journal entry for %s: %d open tasks in %d groups",
        target_date.isoformat(),
        carried,
        len(buckets),
    )
    return entry


def ensure_path(doc: Document, path: Sequence[RichText | str]) -> Heading:
    """
    Find or create the grouping heading for a breadcrumb path.

    Each component is matched against existing headings by normalized title
    and created one level deeper when missing. An empty path means a single
    "Tasks" heading. Existing headings at the wrong level are shifted with
    their subtree.
    """
    components = [RichText.plain(c) if isinstance(c, str) else c for c in path]
    if not components:
        components = [RichText.plain(DEFAULT_GROUP)]

    siblings = doc.headings
    node = None
    for depth, title in enumerate(components, start=1):
        level = min(depth, MAX_LEVEL)
        key = normalize(title.plain_text)
        node = next((h for h in siblings if normalize(h.plain_title) == key), None)
        if node is None:
            node = Heading(level=level, title=title)
            siblings.append(node)
        elif node.level != level:
            node.shift_levels(level - node.level)
        siblings = node.children
    return node


def merge_tasks(parent: Heading, tasks: Iterable[Heading]) -> None:
    """Merge task headings into parent's children by normalized title."""
    for task in tasks:
        key = normalize(task.plain_title)
        existing = next((c for c in parent.children if normalize(c.plain_title) == key), None)
        if existing is None:
            task.shift_levels(min(parent.level + 1, MAX_LEVEL) - task.level)
            parent.children.append(task)
        else:
            merge_heading(existing, task)


def merge_heading(existing: Heading, incoming: Heading) -> None:
    """Complete existing with incoming's data; nothing on existing is overwritten."""
    if existing.todo is None:
        existing.todo = incoming.todo
    if existing.priority is None:
        existing.priority = incoming.priority
    existing.tags |= incoming.tags

    # CLOSED is never carried forward onto another heading
    if existing.planning.scheduled is None:
        existing.planning.scheduled = incoming.planning.scheduled
    if existing.planning.deadline is None:
        existing.planning.deadline = incoming.planning.deadline

    for block in incoming.body:
        if block not in existing.body:
            existing.body.append(block)
    for key, value in incoming.properties.items():
        existing.properties.setdefault(key, value)
    for clock in incoming.logbook.clocks:
        if clock not in existing.logbook.clocks:
            existing.logbook.clocks.append(clock)
    for line in incoming.logbook.raw:
        if line not in existing.logbook.raw:
            existing.logbook.raw.append(line)


def _ensure_keyword(doc: Document, keyword: str) -> None:
    """Declare keyword in doc's vocabulary so the rendered entry re-parses it."""
    settings = doc.settings
    if keyword in settings.keywords():
        return
    if not settings.has_vocabulary:
        # Declaring any vocabulary replaces the built-in one, so declare it too
        _declare_sequence(doc, list(DEFAULT_TODO_SEQUENCE))
    _declare_sequence(doc, [keyword, "|"])


def _declare_sequence(doc: Document, items: list[str]) -> None:
    doc.settings.todo_sequences.append(TodoSequence(items))
    doc.preamble.append(Directive("TODO", " ".join(items)))
