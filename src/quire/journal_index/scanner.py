from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath
from typing import Optional

from quire.paths import AI_FREEFORM_DIRS, AI_SUBCATEGORY_DIRS, CATEGORY_AI_OUTPUT

from .models import ScannedFile, ScanResult

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"
_SYSTEM_NAMES = {"Thumbs.db", "desktop.ini", "$RECYCLE.BIN", "System Volume Information"}
_AI_DIRS = frozenset(AI_SUBCATEGORY_DIRS.values()) | frozenset(AI_FREEFORM_DIRS)


def _is_hidden(name: str) -> bool:
    return name.startswith(".") or name in _SYSTEM_NAMES


def is_indexable_path(relative_path: str, category: Optional[str] = None) -> bool:
    """Whether a full scan would pick up the file at ``relative_path``.

    ``relative_path`` is POSIX and relative to the category root. AI outputs
    must live under one of the known ai/ subdirectories.
    """
    parts = PurePosixPath(relative_path).parts
    if not parts or not parts[-1].endswith(MARKDOWN_SUFFIX):
        return False
    if any(_is_hidden(part) for part in parts):
        return False
    if category == CATEGORY_AI_OUTPUT:
        return len(parts) > 1 and parts[0] in _AI_DIRS
    return True


def scan_markdown_files(directory: Path) -> ScanResult:
    """Walk ``directory`` depth-first and collect markdown files.

    Hidden and OS-managed entries are ignored. Directories that cannot be
    listed are reported in ``skipped`` rather than aborting the walk.
    """
    files: list[ScannedFile] = []
    skipped: list[str] = []

    def _walk(current: Path, rel_parts: tuple[str, ...]) -> None:
        try:
            with os.scandir(current) as it:
                dir_entries = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            logger.warning(f"Skipping unreadable directory {current}: {exc}")
            skipped.append(str(current))
            return

        for entry in dir_entries:
            if _is_hidden(entry.name):
                continue
            try:
                if entry.is_dir(follow_symlinks=False):
                    _walk(Path(entry.path), rel_parts + (entry.name,))
                    continue
                rel_path = "/".join(rel_parts + (entry.name,))
                if not entry.is_file() or not is_indexable_path(rel_path):
                    continue
                st = entry.stat()
            except OSError as exc:
                logger.warning(f"Skipping unreadable entry {entry.path}: {exc}")
                skipped.append(entry.path)
                continue
            files.append(
                ScannedFile(
                    path=entry.path,
                    rel_path=rel_path,
                    mtime_ns=int(st.st_mtime_ns),
                    size_bytes=int(st.st_size),
                )
            )

    _walk(directory, ())
    return ScanResult(files=files, skipped=skipped)
