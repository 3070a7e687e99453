from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from quire.config import RetrievalTuning
from quire.journal_index.models import IndexRecord


def tokenize_query(query: str, *, min_length: int) -> list[str]:
    return [t for t in query.lower().split() if len(t) >= min_length]


def parse_timestamp(value: str) -> Optional[datetime]:
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def recency_bonus(*, updated_at: str, now: datetime, tuning: RetrievalTuning) -> int:
    """Additive boost: both thresholds apply to a record younger than the shorter one."""
    dt = parse_timestamp(updated_at)
    if dt is None:
        return 0
    age_days = (now - dt).total_seconds() / 86400.0
    bonus = 0
    if age_days < tuning.recent_days:
        bonus += tuning.recent_bonus
    if age_days < tuning.month_days:
        bonus += tuning.month_bonus
    return bonus


def term_score(record: IndexRecord, tokens: list[str], *, tuning: RetrievalTuning) -> int:
    title = record.display_title.lower()
    text = record.searchable_text or ""
    score = 0
    for token in tokens:
        if token in title:
            score += tuning.title_match_weight
        score += tuning.body_match_weight * text.count(token)
    return score


def switch_score(record: IndexRecord, query: str) -> int:
    """Title-first score for quick navigation; ``query`` must be lowercased."""
    title = record.display_title.lower()
    if title == query:
        return 100
    if title.startswith(query):
        return 50
    if query in title:
        return 20
    if query in record.date:
        return 10
    return 1


def updated_sort_key(record: IndexRecord) -> float:
    dt = parse_timestamp(record.updated_at)
    return dt.timestamp() if dt is not None else 0.0
