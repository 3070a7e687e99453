from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Optional

from quire.config import IndexSettings
from quire.paths import AI_SUBCATEGORY_DIRS, CATEGORY_AI_OUTPUT, CATEGORY_ENTRY, JournalPaths, subcategory_for_ai_path

from .models import IndexLoaded, IndexUpdate
from .parser import extract_file
from .scanner import is_indexable_path
from .store import iso_utc_now, load_index, load_or_build_index, write_index

logger = logging.getLogger(__name__)


def _normalize_rel_path(relative_path: str) -> str:
    rel = PurePosixPath(relative_path.replace("\\", "/"))
    if rel.is_absolute() or ".." in rel.parts or not rel.parts:
        raise ValueError(f"Invalid relative path: {relative_path!r}")
    return rel.as_posix()


def _resolve_subcategory(relative_path: str, subcategory: Optional[str]) -> Optional[str]:
    inferred = subcategory_for_ai_path(relative_path)
    if subcategory is None:
        return inferred
    if subcategory not in AI_SUBCATEGORY_DIRS:
        raise ValueError(f"Unknown AI output subcategory: {subcategory}")
    if inferred != subcategory:
        raise ValueError(
            f"AI output {relative_path!r} is not under ai/{AI_SUBCATEGORY_DIRS[subcategory]}/"
        )
    return subcategory


def update_index_item(
    journal_root: Path,
    relative_path: str,
    category: str,
    subcategory: Optional[str] = None,
    *,
    settings: Optional[IndexSettings] = None,
) -> IndexUpdate:
    """Re-index one file after a save (or a delete) without rescanning.

    ``relative_path`` is relative to entries/ for entries and to ai/ for AI
    outputs. A missing index is rebuilt first. A file that can no longer be
    read, or that a full scan would not pick up, is removed from the index.
    """
    if category not in (CATEGORY_ENTRY, CATEGORY_AI_OUTPUT):
        raise ValueError(f"Unknown index category: {category}")
    record_id = _normalize_rel_path(relative_path)
    if category == CATEGORY_AI_OUTPUT:
        subcategory = _resolve_subcategory(record_id, subcategory)
    else:
        subcategory = None

    settings = settings or IndexSettings()
    store, rebuilt = load_or_build_index(journal_root, settings=settings)

    record = None
    if is_indexable_path(record_id, category):
        paths = JournalPaths(journal_root, settings.index_filename)
        record = extract_file(
            paths.category_root(category) / record_id,
            record_id=record_id,
            category=category,
            subcategory=subcategory,
            settings=settings,
        )
    else:
        logger.debug(f"{record_id} is not an indexable {category} path")

    if record is not None:
        previous = store.get(record_id)
        replaced = store.upsert(record)
        if not replaced:
            action = "added"
        elif previous is not None and previous.model_dump() == record.model_dump():
            action = "unchanged"
        else:
            action = "updated"
    else:
        action = "removed" if store.remove(record_id) else "unchanged"

    store.last_built = iso_utc_now()
    write_index(journal_root, store, settings=settings)
    logger.info(f"Index item {record_id}: {action}")
    return IndexUpdate(record_id=record_id, action=action, rebuilt=rebuilt)


def remove_index_item(
    journal_root: Path,
    relative_path: str,
    *,
    settings: Optional[IndexSettings] = None,
) -> IndexUpdate:
    """Drop one record by id. No-op when there is no usable index."""
    record_id = _normalize_rel_path(relative_path)
    result = load_index(journal_root, settings=settings)
    if not isinstance(result, IndexLoaded):
        return IndexUpdate(record_id=record_id, action="unchanged", rebuilt=False)

    store = result.store
    removed = store.remove(record_id)
    store.last_built = iso_utc_now()
    write_index(journal_root, store, settings=settings)
    return IndexUpdate(record_id=record_id, action="removed" if removed else "unchanged", rebuilt=False)
