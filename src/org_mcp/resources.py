"""MCP Resources for orgMCP.

Resources expose the org workspace as read-only URIs.
"""

from datetime import date, datetime
from pathlib import Path
from urllib.parse import unquote

from org_mcp.org.walker import ORG_SUFFIX
from org_mcp.org.workspace import Workspace
from org_mcp.projectors.agenda import filter_agenda, project_documents, sort_agenda


def _validate_path(base_path: Path, requested_path: Path) -> Path:
    """Validate that requested_path is within base_path (prevent directory traversal).

    Args:
        base_path: The base directory that contains all valid paths
        requested_path: The path to validate

    Returns:
        The resolved absolute path

    Raises:
        ValueError: If the path is outside base_path
    """
    base_abs = base_path.resolve()
    requested_abs = requested_path.resolve()

    try:
        requested_abs.relative_to(base_abs)
    except ValueError as e:
        raise ValueError(f"Path '{requested_path}' is outside allowed directory") from e

    return requested_abs


def resolve_org_file(root: Path, path: str) -> Path:
    """
    Resolve a path relative to the org root to an existing .org file.

    Raises:
        ValueError: If the path escapes the root, is not an org file or does not exist
    """
    validated = _validate_path(root, root / path)
    if validated.suffix != ORG_SUFFIX:
        raise ValueError(f"Not an org file: {path}")
    if not validated.is_file():
        raise ValueError(f"File not found: {path}")
    return validated


def get_files_resource(workspace: Workspace) -> str:
    """Resource: org://files

    Lists every org file with its title and heading count.
    """
    files = workspace.files()
    lines = ["# Org Files\n", f"Total files: {len(files)}\n", "\n"]
    for info in files:
        doc = workspace.get(info.relative_path)
        title = doc.title if doc and doc.title else info.filename
        headings = sum(1 for _ in doc.walk()) if doc else 0
        modified = datetime.fromtimestamp(info.mtime).isoformat(timespec="seconds")
        lines.append(f"- `{info.relative_path}`: {title} ({headings} headings, modified {modified})\n")
    return "".join(lines)


def get_file_resource(workspace: Workspace, path: str) -> str:
    """Resource: org://files/{path}

    Raw text of one org file. Nested paths are passed URL-encoded
    (journal%2F2025-01-03.org).
    """
    file_path = resolve_org_file(workspace.root, unquote(path))
    try:
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ValueError(f"Error reading file: {e}") from e


def get_agenda_resource(workspace: Workspace, day: str) -> str:
    """Resource: org://agenda/{day}

    Agenda entries starting on one ISO date.
    """
    try:
        target = date.fromisoformat(day)
    except ValueError as e:
        raise ValueError(f"Invalid date '{day}': expected YYYY-MM-DD") from e

    items = sort_agenda(filter_agenda(project_documents(workspace.documents()), target, target))
    lines = [f"# Agenda for {target.isoformat()}\n", "\n"]
    if not items:
        lines.append("Nothing scheduled.\n")
    for item in items:
        clock = item.span.start.strftime("%H:%M") if item.span.start.time() != datetime.min.time() else "--:--"
        keyword = f"{item.todo} " if item.todo else ""
        crumbs = " / ".join(item.path[:-1])
        where = f" ({crumbs})" if crumbs else ""
        lines.append(f"- {clock} {item.when.value.upper()}: {keyword}{item.title}{where} [{item.document_path}]\n")
    return "".join(lines)


def register_resources(mcp, workspace: Workspace) -> None:
    """Register all resources with the FastMCP server.

    Args:
        mcp: FastMCP server instance
        workspace: Shared parsed-document workspace
    """

    @mcp.resource("org://files")
    def list_files():
        """List all org files with titles."""
        return get_files_resource(workspace)

    @mcp.resource("org://files/{path}")
    def read_file(path: str):
        """Read the raw text of an org file."""
        return get_file_resource(workspace, path)

    @mcp.resource("org://agenda/{day}")
    def agenda_day(day: str):
        """Agenda for a single day (YYYY-MM-DD)."""
        return get_agenda_resource(workspace, day)
