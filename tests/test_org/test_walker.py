"""Tests for the org file walker."""

from pathlib import Path

import pytest

from org_mcp.org.walker import OrgFileInfo, compute_hash, expand_inputs, walk_org_files


@pytest.fixture
def org_root(tmp_path: Path) -> Path:
    (tmp_path / "journal").mkdir()
    (tmp_path / "journal" / "2025-01-02.org").write_text("* TODO A\n", encoding="utf-8")
    (tmp_path / "journal" / "2025-01-01.org").write_text("* TODO B\n", encoding="utf-8")
    (tmp_path / "inbox.org").write_text("* Inbox\n", encoding="utf-8")
    (tmp_path / "readme.md").write_text("# not org\n", encoding="utf-8")
    (tmp_path / ".hidden").mkdir()
    (tmp_path / ".hidden" / "secret.org").write_text("* Hidden\n", encoding="utf-8")
    return tmp_path


class TestComputeHash:
    def test_computes_sha256(self):
        result = compute_hash(b"hello world")
        assert result == "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"

    def test_different_content_different_hash(self):
        assert compute_hash(b"foo") != compute_hash(b"bar")


class TestWalkOrgFiles:
    def test_discovers_org_files_sorted(self, org_root: Path):
        files = list(walk_org_files(org_root))
        assert [f.relative_path for f in files] == [
            "inbox.org",
            "journal/2025-01-01.org",
            "journal/2025-01-02.org",
        ]

    def test_skips_hidden_and_other_suffixes(self, org_root: Path):
        names = {f.filename for f in walk_org_files(org_root)}
        assert "secret.org" not in names
        assert "readme.md" not in names

    def test_file_info_fields(self, org_root: Path):
        info = next(f for f in walk_org_files(org_root) if f.filename == "inbox.org")
        assert isinstance(info, OrgFileInfo)
        assert info.path == org_root / "inbox.org"
        assert info.mtime > 0
        assert info.content_hash == compute_hash(b"* Inbox\n")

    def test_skips_symlinks(self, org_root: Path):
        (org_root / "link.org").symlink_to(org_root / "inbox.org")
        names = {f.filename for f in walk_org_files(org_root)}
        assert "link.org" not in names

    def test_missing_root_yields_nothing(self, tmp_path: Path):
        assert list(walk_org_files(tmp_path / "missing")) == []

    def test_unreadable_file_is_skipped(self, org_root: Path, monkeypatch, caplog):
        original = Path.read_bytes

        def read_bytes(self):
            if self.name == "inbox.org":
                raise PermissionError(13, "Permission denied")
            return original(self)

        monkeypatch.setattr(Path, "read_bytes", read_bytes)
        names = [f.filename for f in walk_org_files(org_root)]
        assert names == ["2025-01-01.org", "2025-01-02.org"]
        assert "Cannot read inbox.org" in caplog.text


class TestExpandInputs:
    def test_files_and_directories(self, org_root: Path):
        paths = expand_inputs([org_root / "inbox.org", org_root / "journal"])
        assert paths == [
            org_root / "inbox.org",
            org_root / "journal" / "2025-01-01.org",
            org_root / "journal" / "2025-01-02.org",
        ]

    def test_rejects_non_org_file(self, org_root: Path):
        with pytest.raises(ValueError, match="Not an org file"):
            expand_inputs([org_root / "readme.md"])

    def test_rejects_missing_path(self, org_root: Path):
        with pytest.raises(ValueError, match="No such file"):
            expand_inputs([str(org_root / "nope.org")])
