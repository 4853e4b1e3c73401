"""File walker for discovering org files under a root directory."""

import hashlib
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

ORG_SUFFIX = ".org"


@dataclass
class OrgFileInfo:
    """Information about a discovered org file."""

    path: Path  # Absolute path
    relative_path: str  # Relative to the root, posix separators
    filename: str
    mtime: float
    content_hash: str


def compute_hash(content: bytes) -> str:
    """Compute SHA-256 hash of content."""
    return hashlib.sha256(content).hexdigest()


def walk_org_files(root: Path) -> Iterator[OrgFileInfo]:
    """
    Walk root and yield OrgFileInfo for each .org file, sorted by path.

    Hidden files and directories (leading dot) and symlinks are skipped;
    files that cannot be read are logged and skipped.
    """
    if not root.is_dir():
        return

    for file_path in sorted(root.rglob(f"*{ORG_SUFFIX}")):
        if file_path.is_symlink() or not file_path.is_file():
            continue

        relative = file_path.relative_to(root)
        if any(part.startswith(".") for part in relative.parts):
            continue

        try:
            content = file_path.read_bytes()
            mtime = file_path.stat().st_mtime
        except OSError as e:
            logger.warning("Cannot read %s: %s", relative.as_posix(), e)
            continue

        yield OrgFileInfo(
            path=file_path,
            relative_path=relative.as_posix(),
            filename=file_path.name,
            mtime=mtime,
            content_hash=compute_hash(content),
        )


def expand_inputs(paths: Iterable[str | Path]) -> list[Path]:
    """
    Expand command-line inputs: files are kept, directories are walked.

    Raises:
        ValueError: If a path does not exist or a file is not an org file.
    """
    result: list[Path] = []
    for raw in paths:
        path = Path(raw).expanduser()
        if path.is_dir():
            result.extend(info.path for info in walk_org_files(path))
        elif path.is_file():
            if path.suffix != ORG_SUFFIX:
                raise ValueError(f"Not an org file: {path}")
            result.append(path)
        else:
            raise ValueError(f"No such file or directory: {path}")
    return result
