from __future__ import annotations

from quire.journal_index.models import IndexRecord

SENSITIVE_PLACEHOLDER = "[Sensitive content - unlock to view]"


def make_snippet(record: IndexRecord, query: str, *, radius: int, fallback_chars: int = 150) -> str:
    if record.sensitive:
        return SENSITIVE_PLACEHOLDER

    text = record.searchable_text or record.excerpt or ""
    if not text:
        return ""

    q = query.strip().lower()
    idx = text.lower().find(q) if q else -1
    if idx == -1:
        return text[:fallback_chars]

    start = max(0, idx - radius)
    end = min(len(text), idx + len(q) + radius)
    snippet = text[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet = snippet + "..."
    return snippet
