"""Pytest fixtures for Quire tests."""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pytest

from quire.config import QuireConfig
from quire.paths import JournalPaths


def set_mtime(path: Path, when: datetime) -> None:
    ts = when.timestamp()
    os.utime(path, (ts, ts))


@pytest.fixture
def journal_root(tmp_path):
    """Create a temporary journal folder with the standard layout.

    Args:
        tmp_path: pytest's built-in temporary directory fixture

    Returns:
        Path to temporary journal root
    """
    root = tmp_path / "journal"
    root.mkdir()
    JournalPaths(root).ensure_layout()
    return root


@pytest.fixture
def journal_config(journal_root):
    """QuireConfig pointing at the temporary journal."""
    return QuireConfig(journal_root=journal_root)


@pytest.fixture
def write_entry(journal_root):
    """Write entries/YYYY/MM/<date>.md; mtime defaults to noon UTC of that date."""

    def _write(date_str: str, content: str, *, mtime: Optional[datetime] = None) -> Path:
        path = JournalPaths(journal_root).entry_path(date_str)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        set_mtime(path, mtime or datetime.fromisoformat(f"{date_str}T12:00:00+00:00"))
        return path

    return _write


@pytest.fixture
def write_ai(journal_root):
    """Write a file under ai/ at the given relative path."""

    def _write(relative_path: str, content: str, *, mtime: Optional[datetime] = None) -> Path:
        path = journal_root / "ai" / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        if mtime is not None:
            set_mtime(path, mtime)
        return path

    return _write
