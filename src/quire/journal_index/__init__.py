"""Journal index: scan, extract, persist and incrementally update."""

from .models import (
    INDEX_VERSION,
    IndexAbsent,
    IndexBuildResult,
    IndexLoaded,
    IndexRecord,
    IndexStore,
    IndexUpdate,
)
from .store import build_index, load_index, load_or_build_index, read_index, scan_index, write_index
from .updater import remove_index_item, update_index_item

__all__ = [
    "INDEX_VERSION",
    "IndexAbsent",
    "IndexBuildResult",
    "IndexLoaded",
    "IndexRecord",
    "IndexStore",
    "IndexUpdate",
    "build_index",
    "load_index",
    "load_or_build_index",
    "read_index",
    "remove_index_item",
    "scan_index",
    "update_index_item",
    "write_index",
]
