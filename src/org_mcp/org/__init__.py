"""
Org module for orgMCP.

Parses org documents into heading trees: timestamps, inline markup and the
structural outline, plus rendering back to org text and file discovery.
"""

from org_mcp.org.format import format_document, format_heading, format_inline
from org_mcp.org.inline import make_link, parse_inline
from org_mcp.org.models import Document, Heading, RichText, Timestamp
from org_mcp.org.parser import DocumentError, UnterminatedDrawer, parse_document, parse_file
from org_mcp.org.timestamp import MalformedTimestamp, format_timestamp, parse_timestamp
from org_mcp.org.walker import OrgFileInfo, expand_inputs, walk_org_files
from org_mcp.org.workspace import Workspace

__all__ = [
    "Document",
    "DocumentError",
    "Heading",
    "MalformedTimestamp",
    "OrgFileInfo",
    "RichText",
    "Timestamp",
    "UnterminatedDrawer",
    "Workspace",
    "expand_inputs",
    "format_document",
    "format_heading",
    "format_inline",
    "format_timestamp",
    "make_link",
    "parse_document",
    "parse_file",
    "parse_inline",
    "parse_timestamp",
    "walk_org_files",
]
