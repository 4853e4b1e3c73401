"""Tests for the parsed-document workspace."""

import os
from pathlib import Path

import pytest

from org_mcp.org.workspace import Workspace


def touch_later(path: Path, seconds: float = 10.0) -> None:
    stat = path.stat()
    os.utime(path, (stat.st_atime + seconds, stat.st_mtime + seconds))


@pytest.fixture
def org_root(tmp_path: Path) -> Path:
    (tmp_path / "journal").mkdir()
    (tmp_path / "journal" / "2025-01-01.org").write_text("* Plan\n** TODO Pay rent\n", encoding="utf-8")
    (tmp_path / "inbox.org").write_text("#+TITLE: Inbox\n* TODO Buy milk\n", encoding="utf-8")
    return tmp_path


class TestReload:
    def test_loads_every_file(self, org_root: Path):
        workspace = Workspace(org_root)
        assert workspace.reload() == 2
        assert [info.relative_path for info in workspace.files()] == ["inbox.org", "journal/2025-01-01.org"]

    def test_documents_record_relative_path(self, org_root: Path):
        workspace = Workspace(org_root)
        doc = workspace.get("inbox.org")
        assert doc is not None
        assert doc.path == "inbox.org"
        assert doc.title == "Inbox"

    def test_folder_filter(self, org_root: Path):
        workspace = Workspace(org_root)
        docs = workspace.documents("journal")
        assert [doc.path for doc in docs] == ["journal/2025-01-01.org"]
        assert workspace.documents("journal/") == docs

    def test_get_missing(self, org_root: Path):
        assert Workspace(org_root).get("missing.org") is None

    def test_invalid_utf8_is_skipped(self, org_root: Path, caplog):
        (org_root / "bad.org").write_bytes(b"* \xff\xfe broken\n")
        workspace = Workspace(org_root)
        assert workspace.reload() == 2
        assert workspace.get("bad.org") is None
        assert "invalid UTF-8" in caplog.text

    def test_unreadable_file_is_skipped(self, org_root: Path, monkeypatch, caplog):
        original = Path.read_bytes

        def read_bytes(self):
            if self.name == "inbox.org":
                raise PermissionError(13, "Permission denied")
            return original(self)

        monkeypatch.setattr(Path, "read_bytes", read_bytes)
        workspace = Workspace(org_root)
        assert workspace.reload() == 1
        assert workspace.get("inbox.org") is None
        assert "Cannot read inbox.org" in caplog.text

    def test_empty_root(self, tmp_path: Path):
        assert Workspace(tmp_path / "missing").reload() == 0


class TestSync:
    def test_first_sync_loads(self, org_root: Path):
        workspace = Workspace(org_root)
        assert workspace.sync() == (2, 0, 0)

    def test_no_changes(self, org_root: Path):
        workspace = Workspace(org_root)
        workspace.reload()
        assert workspace.sync() == (0, 0, 0)

    def test_added_updated_deleted(self, org_root: Path):
        workspace = Workspace(org_root)
        workspace.reload()

        (org_root / "new.org").write_text("* New\n", encoding="utf-8")
        inbox = org_root / "inbox.org"
        inbox.write_text("#+TITLE: Renamed\n", encoding="utf-8")
        touch_later(inbox)
        (org_root / "journal" / "2025-01-01.org").unlink()

        assert workspace.sync() == (1, 1, 1)
        assert workspace.get("inbox.org").title == "Renamed"
        assert workspace.get("new.org") is not None
        assert workspace.get("journal/2025-01-01.org") is None

    def test_touch_without_content_change(self, org_root: Path):
        workspace = Workspace(org_root)
        workspace.reload()
        before = workspace.get("inbox.org")

        touch_later(org_root / "inbox.org")

        assert workspace.sync() == (0, 0, 0)
        assert workspace.get("inbox.org") is before
