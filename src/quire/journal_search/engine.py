from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Optional

from quire.config import QuireConfig, RetrievalTuning
from quire.journal_index.models import IndexRecord, IndexStore
from quire.journal_index.store import load_or_build_index
from quire.paths import JournalPaths

from .models import (
    AskContext,
    AskOutcome,
    AskSource,
    NoEntriesInRange,
    NoRelevantMatches,
    RankedRecord,
    Retrieved,
    RetrievalOutcome,
    SearchResult,
)
from .scoring import recency_bonus, switch_score, term_score, tokenize_query, updated_sort_key
from .snippets import make_snippet

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _check_date(value: Optional[str], *, name: str) -> Optional[str]:
    if value is None or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError:
        raise ValueError(f"Invalid {name}: expected YYYY-MM-DD, got {value!r}") from None


def _in_range(record: IndexRecord, date_start: Optional[str], date_end: Optional[str]) -> bool:
    if date_start is not None and record.date < date_start:
        return False
    if date_end is not None and record.date > date_end:
        return False
    return True


def retrieve(
    store: IndexStore,
    query: str,
    *,
    date_start: Optional[str] = None,
    date_end: Optional[str] = None,
    tuning: Optional[RetrievalTuning] = None,
    now: Optional[datetime] = None,
) -> RetrievalOutcome:
    """Rank journal entries against a free-text query.

    Only entries (never AI outputs) are candidates. Returns NoEntriesInRange
    when the date filter leaves nothing, NoRelevantMatches when nothing
    carries a query-term signal.
    """
    tuning = tuning or RetrievalTuning()
    now = now or _now_utc()
    date_start = _check_date(date_start, name="start date")
    date_end = _check_date(date_end, name="end date")

    pool = [r for r in store.entries() if _in_range(r, date_start, date_end)]
    if not pool:
        return NoEntriesInRange(date_start=date_start, date_end=date_end)

    tokens = tokenize_query(query, min_length=tuning.min_token_length)

    ranked: list[RankedRecord] = []
    for record in pool:
        terms = term_score(record, tokens, tuning=tuning)
        if terms <= 0:
            continue
        bonus = recency_bonus(updated_at=record.updated_at, now=now, tuning=tuning)
        ranked.append(RankedRecord(record=record, score=terms + bonus, term_score=terms, recency_bonus=bonus))

    # Tie-break order: score DESC, updatedAt DESC, id ASC
    ranked.sort(key=lambda r: (-r.score, -updated_sort_key(r.record), r.record.id))
    top = ranked[: tuning.top_k]

    if not top:
        return NoRelevantMatches(query=query, tokens=tokens, considered=len(pool))
    return Retrieved(query=query, tokens=tokens, candidates=top)


def quick_switch(
    store: IndexStore,
    query: str,
    *,
    tuning: Optional[RetrievalTuning] = None,
    now: Optional[datetime] = None,
) -> list[IndexRecord]:
    """Fast title/date navigation across all records."""
    tuning = tuning or RetrievalTuning()
    now = now or _now_utc()
    q = query.strip().lower()

    if not q:
        recent = sorted(store.items, key=lambda r: (-updated_sort_key(r), r.id))
        return recent[: tuning.switch_limit]

    scored: list[tuple[int, IndexRecord]] = []
    for record in store.items:
        if not (
            q in record.display_title.lower()
            or q in record.date
            or q in (record.searchable_text or "")
        ):
            continue
        score = switch_score(record, q) + recency_bonus(updated_at=record.updated_at, now=now, tuning=tuning)
        scored.append((score, record))

    scored.sort(key=lambda t: (-t[0], -updated_sort_key(t[1]), t[1].id))
    return [record for _, record in scored[: tuning.switch_limit]]


def search_index(
    store: IndexStore,
    query: str,
    *,
    category: Optional[str] = None,
    tuning: Optional[RetrievalTuning] = None,
) -> list[SearchResult]:
    """Substring search over titles, dates and searchable text with snippets."""
    tuning = tuning or RetrievalTuning()
    q = query.strip().lower()
    if not q:
        return []
    if category not in (None, "entry", "ai-output"):
        raise ValueError(f"Unknown index category: {category}")

    results: list[SearchResult] = []
    for record in store.items:
        if category is not None and record.category != category:
            continue
        if (
            q in record.display_title.lower()
            or q in record.date
            or q in (record.searchable_text or "")
        ):
            results.append(SearchResult(record=record, snippet=make_snippet(record, q, radius=tuning.snippet_radius)))
            if len(results) >= tuning.search_limit:
                break
    return results


def ask_journal(
    cfg: QuireConfig,
    query: str,
    *,
    date_start: Optional[str] = None,
    date_end: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AskOutcome:
    """Retrieve candidates and load their full content for summarization."""
    journal_root = cfg.require_journal_root()
    store, _ = load_or_build_index(journal_root, settings=cfg.index)

    outcome = retrieve(
        store,
        query,
        date_start=date_start,
        date_end=date_end,
        tuning=cfg.retrieval,
        now=now,
    )
    if not isinstance(outcome, Retrieved):
        return outcome

    paths = JournalPaths(journal_root, cfg.index.index_filename)
    sources: list[AskSource] = []
    missing: list[str] = []
    for ranked in outcome.candidates:
        path = paths.entries / ranked.record.relative_path
        try:
            content = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"Candidate {ranked.record.id} could not be loaded: {exc}")
            missing.append(ranked.record.id)
            continue
        sources.append(AskSource(record=ranked.record, score=ranked.score, content=content))

    return AskContext(
        query=query,
        date_start=_check_date(date_start, name="start date"),
        date_end=_check_date(date_end, name="end date"),
        sources=sources,
        missing=missing,
    )
