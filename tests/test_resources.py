"""Tests for MCP resources."""

from pathlib import Path

import pytest
from fastmcp import FastMCP

from org_mcp.org.workspace import Workspace
from org_mcp.resources import (
    _validate_path,
    get_agenda_resource,
    get_file_resource,
    get_files_resource,
    register_resources,
    resolve_org_file,
)

DAY = """\
#+TITLE: Jan 1
* 2025-01-01
** Work
*** TODO Ship it
SCHEDULED: <2025-01-01 Wed 09:00>
*** DONE Review
CLOSED: [2025-01-01 Wed 17:00]
** Birthday
SCHEDULED: <2025-01-02 Thu>
"""


@pytest.fixture
def workspace(tmp_path) -> Workspace:
    (tmp_path / "journal").mkdir()
    (tmp_path / "journal" / "2025-01-01.org").write_text(DAY, encoding="utf-8")
    (tmp_path / "inbox.org").write_text("* TODO Buy milk\n", encoding="utf-8")
    (tmp_path / "notes.md").write_text("# not org\n", encoding="utf-8")
    workspace = Workspace(tmp_path)
    workspace.reload()
    return workspace


class TestPathValidation:
    def test_valid_path(self, tmp_path):
        assert _validate_path(tmp_path, tmp_path / "a.org") == (tmp_path / "a.org").resolve()

    def test_path_traversal(self, tmp_path):
        with pytest.raises(ValueError, match="outside allowed directory"):
            _validate_path(tmp_path / "org", tmp_path / "org" / ".." / "secret.org")

    def test_resolve_org_file(self, workspace):
        assert resolve_org_file(workspace.root, "inbox.org").name == "inbox.org"

    @pytest.mark.parametrize(
        "path,message",
        [
            ("notes.md", "Not an org file"),
            ("missing.org", "File not found"),
            ("journal", "Not an org file"),
            ("../../etc/passwd.org", "outside allowed directory"),
        ],
    )
    def test_resolve_org_file_errors(self, workspace, path, message):
        with pytest.raises(ValueError, match=message):
            resolve_org_file(workspace.root, path)


class TestFilesResource:
    def test_lists_files_with_titles(self, workspace):
        result = get_files_resource(workspace)
        assert "# Org Files" in result
        assert "Total files: 2" in result
        assert "- `journal/2025-01-01.org`: Jan 1 (5 headings" in result
        # Untitled files fall back to the filename
        assert "- `inbox.org`: inbox.org (1 headings" in result
        assert "notes.md" not in result

    def test_empty_root(self, tmp_path):
        result = get_files_resource(Workspace(tmp_path / "empty"))
        assert "Total files: 0" in result


class TestFileResource:
    def test_reads_raw_text(self, workspace):
        assert get_file_resource(workspace, "inbox.org") == "* TODO Buy milk\n"

    def test_url_encoded_nested_path(self, workspace):
        assert get_file_resource(workspace, "journal%2F2025-01-01.org") == DAY

    def test_not_found(self, workspace):
        with pytest.raises(ValueError, match="File not found"):
            get_file_resource(workspace, "nope.org")

    def test_traversal(self, workspace):
        with pytest.raises(ValueError, match="outside allowed directory"):
            get_file_resource(workspace, "..%2F..%2Fsecret.org")


class TestAgendaResource:
    def test_timed_entries(self, workspace):
        result = get_agenda_resource(workspace, "2025-01-01")
        assert result.startswith("# Agenda for 2025-01-01\n")
        assert "- 09:00 SCHEDULED: TODO Ship it (2025-01-01 / Work) [journal/2025-01-01.org]" in result
        assert "- 17:00 CLOSED: DONE Review (2025-01-01 / Work) [journal/2025-01-01.org]" in result
        assert result.index("Ship it") < result.index("Review")

    def test_all_day_entry(self, workspace):
        result = get_agenda_resource(workspace, "2025-01-02")
        assert "- --:-- SCHEDULED: Birthday (2025-01-01) [journal/2025-01-01.org]" in result

    def test_empty_day(self, workspace):
        assert "Nothing scheduled." in get_agenda_resource(workspace, "2025-02-01")

    def test_invalid_day(self, workspace):
        with pytest.raises(ValueError, match="Invalid date"):
            get_agenda_resource(workspace, "today")


class TestRegisterResources:
    @pytest.mark.asyncio
    async def test_registers_uris(self, workspace):
        mcp = FastMCP()
        register_resources(mcp, workspace)

        resources = await mcp.get_resources()
        templates = await mcp.get_resource_templates()
        assert "org://files" in resources
        assert "org://files/{path}" in templates
        assert "org://agenda/{day}" in templates


def test_workspace_root_is_used(tmp_path: Path):
    (tmp_path / "a.org").write_text("* A\n", encoding="utf-8")
    assert get_file_resource(Workspace(tmp_path), "a.org") == "* A\n"
