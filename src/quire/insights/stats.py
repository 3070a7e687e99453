from __future__ import annotations

from pathlib import Path
from typing import Optional

from quire.config import IndexSettings
from quire.journal_index.models import IndexStore
from quire.journal_index.scanner import scan_markdown_files
from quire.paths import JournalPaths

from .models import DataStats


def collect_data_stats(
    journal_root: Path,
    store: IndexStore,
    *,
    settings: Optional[IndexSettings] = None,
) -> DataStats:
    """Summarize the markdown files on disk alongside index counts."""
    paths = JournalPaths(journal_root, (settings or IndexSettings()).index_filename)

    total_files = 0
    total_size = 0
    for directory in (paths.entries, paths.ai):
        if not directory.is_dir():
            continue
        result = scan_markdown_files(directory)
        total_files += len(result.files)
        total_size += sum(f.size_bytes for f in result.files)

    entry_dates = sorted(e.date for e in store.entries())
    return DataStats(
        journal_path=str(journal_root),
        total_files=total_files,
        total_size_bytes=total_size,
        entry_count=len(entry_dates),
        ai_output_count=sum(1 for i in store.items if i.category == "ai-output"),
        oldest_entry=entry_dates[0] if entry_dates else None,
        newest_entry=entry_dates[-1] if entry_dates else None,
    )
