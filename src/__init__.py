"""
orgMCP - org-mode files as an MCP server.

Parses org-mode outlines into heading trees and exposes them to AI agents:
an agenda of scheduled/deadline/closed entries, every open task, and new
journal entries that carry open tasks forward from earlier ones.

Stack:
- Python + FastMCP (MCP server, bearer token auth)
- PyYAML (reschedule policy files)
- Org files (source of truth)
"""

__version__ = "0.1.0"
