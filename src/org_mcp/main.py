"""Main entry point for orgMCP: the MCP server and the org-mcp command line."""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from fastmcp import FastMCP

from org_mcp.auth import get_auth_provider
from org_mcp.config import Config
from org_mcp.org.format import format_document
from org_mcp.org.parser import parse_file
from org_mcp.org.serialize import agenda_item_to_dict, document_to_dict
from org_mcp.org.walker import expand_inputs
from org_mcp.org.workspace import Workspace
from org_mcp.projectors.agenda import filter_agenda, project_documents, sort_agenda
from org_mcp.projectors.journal import build_journal_entry
from org_mcp.resources import register_resources
from org_mcp.sync import SyncManager
from org_mcp.tools import load_reschedule_policy, load_template, parse_date, register_tools

logger = logging.getLogger(__name__)


def create_server(config: Config, workspace: Workspace | None = None) -> FastMCP:
    """Create and configure the MCP server with all components.

    Args:
        config: Configuration instance with all settings.
        workspace: Optional pre-built workspace (defaults to one over ORG_ROOT).
    """
    auth_provider = get_auth_provider(config)

    mcp = FastMCP(
        name="orgMCP",
        instructions=(
            "orgMCP gives access to a directory of org-mode files: parsed heading "
            "trees, an agenda of scheduled/deadline/closed entries, open tasks, and "
            "new journal entries that carry open tasks forward. Use resources to "
            "browse files and the agenda for a day."
        ),
        auth=auth_provider,
    )

    if workspace is None:
        workspace = Workspace(config.org_root)
    logger.info("Loading org workspace at %s", config.org_root)
    doc_count = workspace.reload()
    logger.info("Workspace ready: %d documents", doc_count)

    logger.info("Registering resources...")
    register_resources(mcp, workspace)

    logger.info("Registering tools...")
    register_tools(mcp, workspace, config)

    logger.info("Server configured successfully")
    return mcp


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="org-mcp", description="orgMCP - MCP server and tools for org-mode files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the MCP server (default)")
    serve.add_argument(
        "--read-only",
        action="store_true",
        help="Run in read-only mode (journal_new cannot write)",
    )

    parse = subparsers.add_parser("parse", help="Print parsed documents as JSON")
    parse.add_argument("paths", nargs="+", help="Org files or directories")

    agenda = subparsers.add_parser("agenda", help="Print agenda entries as JSON")
    agenda.add_argument("paths", nargs="+", help="Org files or directories")
    agenda.add_argument("--from", dest="start", help="First day (YYYY-MM-DD)")
    agenda.add_argument("--to", dest="end", help="Last day (YYYY-MM-DD)")
    agenda.add_argument("--todos", action="store_true", help="Include open tasks without dates")

    journal = subparsers.add_parser("journal-new", help="Print a new journal entry")
    journal.add_argument("paths", nargs="+", help="Journal files or directories")
    journal.add_argument("--date", help="Entry date (YYYY-MM-DD, default: today)")
    journal.add_argument("--template", help="Template org file")
    journal.add_argument("--policy", help="YAML reschedule policy")
    journal.add_argument("--output", help="Write to this file instead of stdout")

    fmt = subparsers.add_parser("format", help="Print files in canonical org form")
    fmt.add_argument("paths", nargs="+", help="Org files or directories")
    fmt.add_argument("--in-place", action="store_true", help="Rewrite the files")

    return parser


def serve(config: Config) -> None:
    logger.info("=" * 50)
    logger.info("orgMCP starting...")
    logger.info("  ORG_ROOT:    %s", config.org_root)
    logger.info("  ORG_PORT:    %s", config.org_port)
    logger.info("  JOURNAL_DIR: %s", config.journal_dir)
    logger.info("  AUTH:        %s", "enabled" if config.auth_token else "disabled")
    logger.info("  READ_ONLY:   %s", config.read_only)
    logger.info("  SYNC:        %s", f"every {config.sync_interval}s" if config.sync_interval else "disabled")
    logger.info("=" * 50)

    workspace = Workspace(config.org_root)
    sync_manager = SyncManager(workspace, config.sync_interval) if config.sync_interval else None
    try:
        mcp = create_server(config, workspace)
        if sync_manager:
            sync_manager.start()
        logger.info("Starting MCP server on port %s...", config.org_port)
        mcp.run(transport="sse", host="0.0.0.0", port=config.org_port)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    finally:
        if sync_manager:
            sync_manager.stop()


def run_parse(args) -> None:
    docs = [document_to_dict(parse_file(path)) for path in expand_inputs(args.paths)]
    print(json.dumps(docs, indent=2, ensure_ascii=False))


def run_agenda(args) -> None:
    docs = [parse_file(path) for path in expand_inputs(args.paths)]
    items = project_documents(docs, include_todos=args.todos)
    items = sort_agenda(filter_agenda(items, parse_date(args.start, "--from"), parse_date(args.end, "--to")))
    print(json.dumps([agenda_item_to_dict(item) for item in items], indent=2, ensure_ascii=False))


def run_journal_new(args) -> None:
    target = parse_date(args.date) or datetime.now().date()
    template = load_template(Path(args.template).expanduser() if args.template else None)
    policy = load_reschedule_policy(Path(args.policy).expanduser() if args.policy else None)
    sources = [parse_file(path) for path in expand_inputs(args.paths)]

    content = format_document(build_journal_entry(template, sources, target, policy))
    if args.output:
        Path(args.output).expanduser().write_text(content, encoding="utf-8")
        logger.info("Wrote journal entry to %s", args.output)
    else:
        sys.stdout.write(content)


def run_format(args) -> None:
    for path in expand_inputs(args.paths):
        content = format_document(parse_file(path))
        if args.in_place:
            path.write_text(content, encoding="utf-8")
            logger.info("Formatted %s", path)
        else:
            sys.stdout.write(content)


COMMANDS = {
    "parse": run_parse,
    "agenda": run_agenda,
    "journal-new": run_journal_new,
    "format": run_format,
}


def main(argv: list[str] | None = None) -> int:
    """Main function - runs a subcommand, or the MCP server when none is given."""
    args = build_parser().parse_args(argv)

    # Configure logging here to avoid side effects on import
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        if args.command in COMMANDS:
            COMMANDS[args.command](args)
            return 0
        read_only = getattr(args, "read_only", False)
        # CLI flag overrides env var
        config = Config.from_env(read_only_override=True if read_only else None)
        serve(config)
        return 0
    except (ValueError, OSError) as e:
        logger.error("%s", e)
        return 1
    except Exception:
        logger.exception("Server error")
        return 1


if __name__ == "__main__":
    sys.exit(main())
