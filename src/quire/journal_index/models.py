"""Index records and the persisted index document."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

INDEX_VERSION = 1

Category = Literal["entry", "ai-output"]
Subcategory = Literal["daily-review", "weekly-summary", "highlights", "open-loops", "question"]


class IndexRecord(BaseModel):
    """Extracted metadata for one markdown file.

    ``id`` is the path relative to the category root (entries/ or ai/) and
    is unique across the store.
    """

    id: str
    category: Category
    subcategory: Optional[Subcategory] = None
    relative_path: str = Field(alias="relativePath")
    display_title: str = Field(alias="displayTitle")
    date: str = Field(description="YYYY-MM-DD", pattern=r"^\d{4}-\d{2}-\d{2}$")
    updated_at: str = Field(alias="updatedAt", description="ISO8601 UTC mtime")
    word_count: Optional[int] = Field(default=None, alias="wordCount")
    excerpt: Optional[str] = None
    searchable_text: Optional[str] = Field(default=None, alias="searchableText")
    sensitive: Optional[bool] = None

    model_config = {"populate_by_name": True, "frozen": True}


class IndexStore(BaseModel):
    """The single index document for a journal folder."""

    version: int = INDEX_VERSION
    last_built: str = Field(alias="lastBuilt")
    items: list[IndexRecord] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    def ids(self) -> list[str]:
        return [item.id for item in self.items]

    def get(self, record_id: str) -> Optional[IndexRecord]:
        for item in self.items:
            if item.id == record_id:
                return item
        return None

    def upsert(self, record: IndexRecord) -> bool:
        """Replace the record with the same id, or append. Returns True on replace."""
        for i, item in enumerate(self.items):
            if item.id == record.id:
                self.items[i] = record
                return True
        self.items.append(record)
        return False

    def remove(self, record_id: str) -> bool:
        kept = [item for item in self.items if item.id != record_id]
        removed = len(kept) != len(self.items)
        self.items = kept
        return removed

    def entries(self) -> list[IndexRecord]:
        return [item for item in self.items if item.category == "entry"]

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class ScannedFile:
    path: str  # absolute, POSIX or native
    rel_path: str  # POSIX, relative to the scanned directory
    mtime_ns: int
    size_bytes: int


@dataclass(frozen=True)
class ScanResult:
    files: list[ScannedFile]
    skipped: list[str]


@dataclass(frozen=True)
class IndexBuildResult:
    store: IndexStore
    scanned: int
    skipped: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class IndexLoaded:
    store: IndexStore


@dataclass(frozen=True)
class IndexAbsent:
    reason: Literal["missing", "unreadable", "unparsable", "version-mismatch"]
    detail: str = ""


LoadResult = Union[IndexLoaded, IndexAbsent]


@dataclass(frozen=True)
class IndexUpdate:
    record_id: str
    action: Literal["added", "updated", "removed", "unchanged"]
    rebuilt: bool
