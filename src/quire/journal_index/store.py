from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from pydantic import ValidationError

from quire.config import IndexSettings
from quire.paths import AI_FREEFORM_DIRS, AI_SUBCATEGORY_DIRS, JournalPaths

from .models import (
    INDEX_VERSION,
    IndexAbsent,
    IndexBuildResult,
    IndexLoaded,
    IndexRecord,
    IndexStore,
    LoadResult,
)
from .parser import extract_record
from .scanner import scan_markdown_files

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]


def iso_utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def _subtrees(paths: JournalPaths) -> list[tuple[Path, str, str, Optional[str]]]:
    """(directory, id prefix, category, subcategory) in scan order."""
    trees: list[tuple[Path, str, str, Optional[str]]] = [(paths.entries, "", "entry", None)]
    for subcategory, dirname in AI_SUBCATEGORY_DIRS.items():
        trees.append((paths.ai / dirname, f"{dirname}/", "ai-output", subcategory))
    for dirname in AI_FREEFORM_DIRS:
        trees.append((paths.ai / dirname, f"{dirname}/", "ai-output", None))
    return trees


def scan_index(
    journal_root: Path,
    *,
    settings: Optional[IndexSettings] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> IndexBuildResult:
    """Build a fresh index by scanning the entries and AI-output subtrees.

    Subtrees that do not exist contribute nothing. Unreadable directories
    and files are reported in ``skipped``.
    """
    settings = settings or IndexSettings()
    paths = JournalPaths(journal_root, settings.index_filename)

    records: dict[str, IndexRecord] = {}
    skipped: list[str] = []
    scanned = 0

    for directory, prefix, category, subcategory in _subtrees(paths):
        if not directory.is_dir():
            continue
        result = scan_markdown_files(directory)
        skipped.extend(result.skipped)
        for f in result.files:
            scanned += 1
            record_id = prefix + f.rel_path
            record = extract_record(
                f,
                record_id=record_id,
                category=category,
                subcategory=subcategory,
                settings=settings,
            )
            if record is None:
                skipped.append(f.path)
            elif record_id not in records:
                records[record_id] = record
            else:
                logger.warning(f"Duplicate index id {record_id} from {f.path}; keeping first")
            if on_progress is not None:
                on_progress(scanned, record_id)

    store = IndexStore(version=INDEX_VERSION, last_built=iso_utc_now(), items=list(records.values()))
    logger.info(f"Built index for {journal_root}: {len(store.items)} records, {len(skipped)} skipped")
    return IndexBuildResult(store=store, scanned=scanned, skipped=skipped)


def build_index(journal_root: Path, *, settings: Optional[IndexSettings] = None) -> IndexStore:
    return scan_index(journal_root, settings=settings).store


def index_path(journal_root: Path, settings: Optional[IndexSettings] = None) -> Path:
    return JournalPaths(journal_root, (settings or IndexSettings()).index_filename).index_file


def write_index(journal_root: Path, store: IndexStore, *, settings: Optional[IndexSettings] = None) -> Path:
    """Persist the store as one JSON document, replacing the previous file whole."""
    path = index_path(journal_root, settings)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(json.dumps(store.to_document(), indent=2, ensure_ascii=False), encoding="utf-8")
    tmp_path.replace(path)
    return path


def load_index(journal_root: Path, *, settings: Optional[IndexSettings] = None) -> LoadResult:
    """Load the persisted index; any problem reads as IndexAbsent, never raises."""
    path = index_path(journal_root, settings)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return IndexAbsent(reason="missing")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning(f"Index unreadable, rebuild needed: {exc}")
        return IndexAbsent(reason="unreadable", detail=str(exc))

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning(f"Index unparsable, rebuild needed: {exc}")
        return IndexAbsent(reason="unparsable", detail=str(exc))

    if not isinstance(data, dict):
        return IndexAbsent(reason="unparsable", detail="index document is not an object")

    version = data.get("version")
    if version != INDEX_VERSION:
        logger.warning(f"Index version mismatch ({version!r} != {INDEX_VERSION}), rebuild needed")
        return IndexAbsent(reason="version-mismatch", detail=f"found {version!r}")

    try:
        store = IndexStore.model_validate(data)
    except ValidationError as exc:
        logger.warning(f"Index failed validation, rebuild needed: {exc.error_count()} errors")
        return IndexAbsent(reason="unparsable", detail=str(exc))

    if len(set(store.ids())) != len(store.items):
        return IndexAbsent(reason="unparsable", detail="duplicate record ids")

    return IndexLoaded(store=store)


def read_index(journal_root: Path, *, settings: Optional[IndexSettings] = None) -> Optional[IndexStore]:
    result = load_index(journal_root, settings=settings)
    if isinstance(result, IndexLoaded):
        return result.store
    return None


def load_or_build_index(
    journal_root: Path,
    *,
    settings: Optional[IndexSettings] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> tuple[IndexStore, bool]:
    """Return (store, rebuilt). Rebuilds and persists when the index is absent."""
    result = load_index(journal_root, settings=settings)
    if isinstance(result, IndexLoaded):
        return result.store, False

    logger.info(f"Index {result.reason}; rebuilding {journal_root}")
    store = scan_index(journal_root, settings=settings, on_progress=on_progress).store
    write_index(journal_root, store, settings=settings)
    return store, True
