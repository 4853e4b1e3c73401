"""
Projectors for orgMCP.

Read models derived from parsed documents: the agenda (one item per planning
timestamp) and the journal entry that carries open tasks forward.
"""

from org_mcp.projectors.agenda import (
    AgendaItem,
    AgendaWhen,
    filter_agenda,
    project_document,
    project_documents,
    sort_agenda,
)
from org_mcp.projectors.journal import build_journal_entry, collect_open_tasks, normalize
from org_mcp.projectors.reschedule import ReschedulePolicy, RescheduleRule, load_policy

__all__ = [
    "AgendaItem",
    "AgendaWhen",
    "ReschedulePolicy",
    "RescheduleRule",
    "build_journal_entry",
    "collect_open_tasks",
    "filter_agenda",
    "load_policy",
    "normalize",
    "project_document",
    "project_documents",
    "sort_agenda",
]
