"""Workspace that keeps parsed documents for every org file under a root."""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from org_mcp.org.models import Document
from org_mcp.org.parser import parse_document
from org_mcp.org.walker import OrgFileInfo, walk_org_files

logger = logging.getLogger(__name__)


@dataclass
class WorkspaceEntry:
    info: OrgFileInfo
    document: Document


class Workspace:
    """
    Cache of parsed org documents, keyed by path relative to the root.

    The filesystem is always the source of truth; the cache can be rebuilt
    at any time with reload().

    Thread Safety:
        reload() and sync() hold a lock while they rebuild entries, and
        readers take a snapshot under the same lock, so the background
        sync thread and MCP tools can share one instance.
    """

    def __init__(self, root: Path):
        self.root = root
        self._entries: dict[str, WorkspaceEntry] = {}
        self._loaded = False
        self._write_lock = threading.Lock()

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.reload()

    def reload(self) -> int:
        """
        Reparse every org file under the root.

        Returns the number of documents loaded.
        """
        with self._write_lock:
            logger.info("Loading org files from %s", self.root)
            self._entries.clear()
            for info in walk_org_files(self.root):
                self._load(info)
            self._loaded = True
            logger.info("Loaded %d documents", len(self._entries))
            return len(self._entries)

    def sync(self) -> tuple[int, int, int]:
        """
        Reparse only files that changed since the last load.

        Uses mtime as fast-path and content hash to confirm a change.

        Returns:
            Tuple of (added, updated, deleted) counts.
        """
        if not self._loaded:
            return self.reload(), 0, 0

        with self._write_lock:
            logger.debug("Syncing workspace with filesystem")
            added = updated = deleted = 0
            seen: set[str] = set()

            for info in walk_org_files(self.root):
                seen.add(info.relative_path)
                existing = self._entries.get(info.relative_path)
                if existing is None:
                    if self._load(info):
                        added += 1
                elif abs(info.mtime - existing.info.mtime) > 0.001:
                    if info.content_hash != existing.info.content_hash:
                        if self._load(info):
                            updated += 1
                    else:
                        existing.info = info

            for path in list(self._entries):
                if path not in seen:
                    del self._entries[path]
                    deleted += 1

            logger.debug("Sync complete: %d added, %d updated, %d deleted", added, updated, deleted)
            return added, updated, deleted

    def _load(self, info: OrgFileInfo) -> bool:
        """Parse one file into the cache; returns False if it was skipped."""
        try:
            resolved = info.path.resolve()
            if not resolved.is_relative_to(self.root.resolve()):
                logger.warning("Skipping file outside org root: %s", info.relative_path)
                return False
            content = info.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            logger.warning("Skipping file with invalid UTF-8 encoding: %s (%s)", info.relative_path, e)
            return False
        except OSError as e:
            logger.warning("Cannot read %s: %s", info.relative_path, e)
            return False

        document = parse_document(content, path=info.relative_path)
        self._entries[info.relative_path] = WorkspaceEntry(info=info, document=document)
        logger.debug("Parsed %s", info.relative_path)
        return True

    # Query methods

    def files(self, folder: str | None = None) -> list[OrgFileInfo]:
        """List file infos, optionally limited to a folder relative to the root."""
        return [entry.info for entry in self._snapshot(folder)]

    def documents(self, folder: str | None = None) -> list[Document]:
        """List parsed documents sorted by path, optionally limited to a folder."""
        return [entry.document for entry in self._snapshot(folder)]

    def get(self, relative_path: str) -> Document | None:
        """Get a parsed document by its path relative to the root."""
        self._ensure_loaded()
        with self._write_lock:
            entry = self._entries.get(relative_path)
        return entry.document if entry else None

    def _snapshot(self, folder: str | None) -> list[WorkspaceEntry]:
        self._ensure_loaded()
        with self._write_lock:
            entries = sorted(self._entries.values(), key=lambda e: e.info.relative_path)
        if folder:
            prefix = folder.strip("/") + "/"
            entries = [e for e in entries if e.info.relative_path.startswith(prefix)]
        return entries
