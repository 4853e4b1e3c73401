"""MCP tools for orgMCP server.

This module defines the tools exposed by the MCP server:
- parse_file: Parsed tree of one org file
- list_files: Org files under the root
- agenda: Scheduled/deadline/closed entries in a date range
- open_tasks: Every open task heading
- journal_new: Build (and optionally write) today's journal entry
- format_file: Canonical org rendering of a file
"""

import logging
from datetime import date, datetime
from pathlib import Path

from fastmcp import FastMCP

from org_mcp.auth import check_write_permission
from org_mcp.config import Config
from org_mcp.org import parser as org_parser
from org_mcp.org.format import format_document
from org_mcp.org.models import Document
from org_mcp.org.parser import parse_document
from org_mcp.org.serialize import agenda_item_to_dict, document_to_dict, heading_to_dict
from org_mcp.org.walker import expand_inputs
from org_mcp.org.workspace import Workspace
from org_mcp.projectors.agenda import filter_agenda, project_documents, sort_agenda
from org_mcp.projectors.journal import build_journal_entry, is_open_task
from org_mcp.projectors.reschedule import ReschedulePolicy, load_policy
from org_mcp.resources import resolve_org_file

logger = logging.getLogger(__name__)


def parse_date(value: str | None, name: str = "date") -> date | None:
    """Parse an optional YYYY-MM-DD argument."""
    if value is None or value == "":
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValueError(f"Invalid {name} '{value}': expected YYYY-MM-DD") from e


def load_template(path: Path | None) -> Document:
    """Parse the journal template, or return an empty document when unset."""
    if path is None:
        return parse_document("")
    return org_parser.parse_file(path)


def load_reschedule_policy(path: Path | None) -> ReschedulePolicy:
    if path is None:
        return ReschedulePolicy()
    return load_policy(path)


def journal_sources(config: Config, workspace: Workspace) -> list[Document]:
    """Documents in the journal directory, from the workspace when it lies under the root."""
    try:
        folder = config.journal_dir.resolve().relative_to(config.org_root.resolve())
    except ValueError:
        if not config.journal_dir.is_dir():
            return []
        return [org_parser.parse_file(path) for path in expand_inputs([config.journal_dir])]
    return workspace.documents(folder=folder.as_posix() if folder.parts else None)


def register_tools(mcp: FastMCP, workspace: Workspace, config: Config) -> None:
    """Register all tools with the FastMCP server.

    Args:
        mcp: FastMCP server instance
        workspace: Shared parsed-document workspace
        config: Configuration instance
    """

    @mcp.tool()
    def parse_file(path: str) -> dict:
        """Parse an org file and return its document tree.

        Args:
            path: File path relative to the org root (e.g., "journal/2025-01-03.org")

        Returns:
            Document with title, file tags, settings, preamble and nested headings
            (title, todo, priority, tags, scheduled/deadline/closed, properties,
            clocks, body and children), or an error message.
        """
        try:
            file_path = resolve_org_file(workspace.root, path)
        except ValueError as e:
            return {"path": path, "error": str(e)}

        relative = file_path.relative_to(workspace.root.resolve()).as_posix()
        doc = workspace.get(relative)
        if doc is None:
            doc = parse_document(file_path.read_text(encoding="utf-8"), path=relative)
        return document_to_dict(doc)

    @mcp.tool()
    def list_files(folder: str | None = None) -> list[dict]:
        """List org files under the root.

        Args:
            folder: Optional folder relative to the root (e.g., "journal")

        Returns:
            List of files with path, title, heading count and modification time.
        """
        results = []
        for info in workspace.files(folder):
            doc = workspace.get(info.relative_path)
            results.append(
                {
                    "path": info.relative_path,
                    "title": doc.title if doc else None,
                    "headings": sum(1 for _ in doc.walk()) if doc else 0,
                    "modified": datetime.fromtimestamp(info.mtime).isoformat(timespec="seconds"),
                }
            )
        return results

    @mcp.tool()
    def agenda(
        start: str | None = None,
        end: str | None = None,
        include_todos: bool = False,
        folder: str | None = None,
    ) -> list[dict]:
        """List agenda entries, sorted by start time.

        Args:
            start: First day to include (YYYY-MM-DD, inclusive)
            end: Last day to include (YYYY-MM-DD, inclusive)
            include_todos: Also list open tasks without any planning timestamp
            folder: Optional folder relative to the root

        Returns:
            One entry per scheduled/deadline/closed timestamp with when, start,
            end, active, title, todo, priority, tags, breadcrumb path and source file.
        """
        start_date = parse_date(start, "start")
        end_date = parse_date(end, "end")
        items = project_documents(workspace.documents(folder), include_todos=include_todos)
        items = sort_agenda(filter_agenda(items, start_date, end_date))
        return [agenda_item_to_dict(item) for item in items]

    @mcp.tool()
    def open_tasks(folder: str | None = None) -> list[dict]:
        """List every open task heading (keyword present and not done).

        Args:
            folder: Optional folder relative to the root

        Returns:
            Task headings (without children) with their file path.
        """
        tasks = []
        for doc in workspace.documents(folder):
            for heading in doc.walk():
                if is_open_task(heading, doc):
                    task = heading_to_dict(heading, include_children=False)
                    task["file"] = doc.path
                    tasks.append(task)
        return tasks

    @mcp.tool()
    def journal_new(date: str | None = None, write: bool = False) -> dict:
        """Build a journal entry carrying forward every open task.

        Open tasks from the journal directory are de-duplicated, rescheduled
        (ORG_POLICY_FILE) and merged into the template (ORG_TEMPLATE).

        Args:
            date: Entry date (YYYY-MM-DD, default: today)
            write: Write the entry to <journal dir>/<date>.org (refuses to overwrite)

        Returns:
            Entry with date, title, org content, carried task count and,
            when written, its path.
        """
        target = parse_date(date) or datetime.now().date()
        template = load_template(config.template_path)
        policy = load_reschedule_policy(config.policy_path)
        sources = journal_sources(config, workspace)

        entry = build_journal_entry(template, sources, target, policy)
        content = format_document(entry)
        result = {
            "date": target.isoformat(),
            "title": entry.title,
            "content": content,
            "tasks": sum(1 for h in entry.walk() if is_open_task(h, entry)),
            "sources": len(sources),
            "path": None,
            "written": False,
        }

        if write:
            check_write_permission(config)
            file_path = config.journal_dir / f"{target.isoformat()}.org"
            if file_path.exists():
                result["error"] = f"Journal entry already exists: {file_path.name}"
                return result
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")
            logger.info("Wrote journal entry %s", file_path)
            workspace.sync()
            result["path"] = str(file_path)
            result["written"] = True

        return result

    @mcp.tool()
    def format_file(path: str) -> dict:
        """Render an org file in canonical form (does not modify the file).

        Args:
            path: File path relative to the org root

        Returns:
            Dict with path and the canonical org content, or an error message.
        """
        try:
            file_path = resolve_org_file(workspace.root, path)
        except ValueError as e:
            return {"path": path, "error": str(e)}
        doc = parse_document(file_path.read_text(encoding="utf-8"), path=path)
        return {"path": path, "content": format_document(doc)}
