from __future__ import annotations

import logging
import re
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

from quire.config import IndexSettings

from .models import IndexRecord, ScannedFile

logger = logging.getLogger(__name__)

_TITLE_RE = re.compile(r"^#[ \t]+(.+?)[ \t]*$", re.MULTILINE)
_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_TITLE_SUFFIXES = (".review", ".summary", ".highlights", ".question", ".ask")

_FRONTMATTER_RE = re.compile(r"\A---\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_SENSITIVE_RE = re.compile(r"^\s*sensitive\s*:\s*[\"']?true[\"']?\s*$", re.IGNORECASE | re.MULTILINE)

_HEADING_MARK_RE = re.compile(r"^[ \t]{0,3}#+[ \t]+", re.MULTILINE)
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_BOLD_UNDERSCORE_RE = re.compile(r"__(.+?)__")
_ITALIC_RE = re.compile(r"\*(.+?)\*")
_ITALIC_UNDERSCORE_RE = re.compile(r"(?<!\w)_(.+?)_(?!\w)")
_LINK_RE = re.compile(r"\[(.+?)\]\(.+?\)")


def display_title(file_name: str, content: str) -> str:
    m = _TITLE_RE.search(content)
    if m:
        return m.group(1).strip()

    stem = file_name[:-3] if file_name.endswith(".md") else file_name
    for suffix in _TITLE_SUFFIXES:
        if stem.endswith(suffix):
            return stem[: -len(suffix)]
    return stem


def date_from_filename(file_name: str) -> Optional[str]:
    for m in _DATE_RE.finditer(file_name):
        try:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3))).isoformat()
        except ValueError:
            continue
    return None


def count_words(text: str) -> int:
    return len(text.split())


def strip_frontmatter(content: str) -> str:
    m = _FRONTMATTER_RE.match(content)
    return content[m.end() :] if m else content


def is_sensitive(content: str) -> bool:
    m = _FRONTMATTER_RE.match(content)
    if not m:
        return False
    return _SENSITIVE_RE.search(m.group(1)) is not None


def make_excerpt(content: str, max_chars: int) -> str:
    cleaned = strip_frontmatter(content)
    cleaned = _HEADING_MARK_RE.sub("", cleaned)
    cleaned = _BOLD_RE.sub(r"\1", cleaned)
    cleaned = _BOLD_UNDERSCORE_RE.sub(r"\1", cleaned)
    cleaned = _ITALIC_RE.sub(r"\1", cleaned)
    cleaned = _ITALIC_UNDERSCORE_RE.sub(r"\1", cleaned)
    cleaned = _LINK_RE.sub(r"\1", cleaned)
    return cleaned.strip()[:max_chars]


def _iso_utc(mtime_ns: int) -> str:
    dt = datetime.fromtimestamp(mtime_ns / 1_000_000_000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds")


def _utc_date(mtime_ns: int) -> str:
    return datetime.fromtimestamp(mtime_ns / 1_000_000_000, tz=timezone.utc).date().isoformat()


def build_record(
    *,
    record_id: str,
    category: str,
    subcategory: Optional[str],
    file_name: str,
    content: str,
    mtime_ns: int,
    settings: IndexSettings,
) -> IndexRecord:
    """Turn decoded file content plus its stat data into an IndexRecord."""
    return IndexRecord(
        id=record_id,
        category=category,
        subcategory=subcategory if category == "ai-output" else None,
        relative_path=record_id,
        display_title=display_title(file_name, content),
        date=date_from_filename(file_name) or _utc_date(mtime_ns),
        updated_at=_iso_utc(mtime_ns),
        word_count=count_words(content),
        excerpt=make_excerpt(content, settings.excerpt_chars),
        searchable_text=content[: settings.searchable_chars].lower(),
        sensitive=True if is_sensitive(content) else None,
    )


def extract_record(
    scanned: ScannedFile,
    *,
    record_id: str,
    category: str,
    subcategory: Optional[str],
    settings: IndexSettings,
) -> Optional[IndexRecord]:
    """Read one file and extract its record; None when it cannot be read."""
    path = Path(scanned.path)
    try:
        content = path.read_bytes().decode("utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning(f"Could not index {path}: {exc}")
        return None

    logger.debug(f"Indexed {record_id} ({category})")
    return build_record(
        record_id=record_id,
        category=category,
        subcategory=subcategory,
        file_name=path.name,
        content=content,
        mtime_ns=scanned.mtime_ns,
        settings=settings,
    )


def extract_file(
    path: Path,
    *,
    record_id: str,
    category: str,
    subcategory: Optional[str],
    settings: IndexSettings,
) -> Optional[IndexRecord]:
    """Stat and extract a single file outside of a directory scan."""
    try:
        if not path.is_file():
            return None
        st = path.stat()
    except OSError as exc:
        logger.warning(f"Could not stat {path}: {exc}")
        return None
    scanned = ScannedFile(
        path=str(path),
        rel_path=record_id,
        mtime_ns=int(st.st_mtime_ns),
        size_bytes=int(st.st_size),
    )
    return extract_record(
        scanned,
        record_id=record_id,
        category=category,
        subcategory=subcategory,
        settings=settings,
    )
