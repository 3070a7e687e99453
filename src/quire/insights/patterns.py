"""Recurring-theme detection over a trailing window of entries."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from quire.config import InsightTuning
from quire.journal_index.models import IndexRecord, IndexStore
from quire.journal_search.snippets import SENSITIVE_PLACEHOLDER

from .models import DateRange, PatternReport, RecurringTheme, ThemeEvidence
from .themes import PATTERN_STOP_WORDS, theme_text, theme_tokens


@dataclass
class _ThemeAccumulator:
    first_half: int = 0
    second_half: int = 0
    entries: list[IndexRecord] = field(default_factory=list)

    @property
    def occurrences(self) -> int:
        return self.first_half + self.second_half


def _today_utc() -> date:
    return datetime.now(timezone.utc).date()


def _quote(record: IndexRecord, max_chars: int) -> str:
    if record.sensitive:
        return SENSITIVE_PLACEHOLDER
    text = record.excerpt or record.display_title
    return text[:max_chars] + "..." if len(text) > max_chars else text


def half_trend(first_half: int, second_half: int, tuning: InsightTuning) -> str:
    if second_half > first_half * tuning.pattern_increase_ratio:
        return "increasing"
    if second_half < first_half * tuning.pattern_decrease_ratio:
        return "decreasing"
    return "stable"


def detect_recurring_themes(
    store: IndexStore,
    window_days: Optional[int] = None,
    *,
    tuning: Optional[InsightTuning] = None,
    today: Optional[date] = None,
) -> list[RecurringTheme]:
    """Keywords appearing in several entries of the trailing window.

    The window is split at its midpoint date; the trend compares keyword
    occurrences in the later half against the earlier half.
    """
    tuning = tuning or InsightTuning()
    window_days = window_days if window_days is not None else tuning.pattern_window_days
    if window_days <= 0:
        raise ValueError("window_days must be > 0")
    today = today or _today_utc()

    cutoff = (today - timedelta(days=window_days)).isoformat()
    midpoint = (today - timedelta(days=window_days / 2)).isoformat()

    recent = sorted(
        (e for e in store.entries() if e.date >= cutoff),
        key=lambda e: (e.date, e.id),
    )

    themes: dict[str, _ThemeAccumulator] = {}
    for entry in recent:
        words = Counter(theme_tokens(theme_text(entry), stop_words=PATTERN_STOP_WORDS))
        late = entry.date >= midpoint
        for word, n in words.items():
            acc = themes.setdefault(word, _ThemeAccumulator())
            if late:
                acc.second_half += n
            else:
                acc.first_half += n
            acc.entries.append(entry)

    recurring: list[RecurringTheme] = []
    for word, acc in themes.items():
        if len(acc.entries) < tuning.pattern_min_entries:
            continue
        recurring.append(
            RecurringTheme(
                theme=word,
                occurrences=acc.occurrences,
                entry_count=len(acc.entries),
                first_seen=acc.entries[0].date,
                last_seen=acc.entries[-1].date,
                trend=half_trend(acc.first_half, acc.second_half, tuning),
                related_entries=[
                    ThemeEvidence(
                        date=e.date,
                        relative_path=e.relative_path,
                        quote=_quote(e, tuning.pattern_quote_chars),
                    )
                    for e in acc.entries[: tuning.pattern_evidence_limit]
                ],
            )
        )

    recurring.sort(key=lambda t: (-t.occurrences, t.theme))
    return recurring[: tuning.pattern_theme_limit]


def generate_pattern_report(
    store: IndexStore,
    window_days: Optional[int] = None,
    *,
    tuning: Optional[InsightTuning] = None,
    today: Optional[date] = None,
) -> PatternReport:
    tuning = tuning or InsightTuning()
    window_days = window_days if window_days is not None else tuning.pattern_window_days
    today = today or _today_utc()
    return PatternReport(
        date_range=DateRange(start=(today - timedelta(days=window_days)).isoformat(), end=today.isoformat()),
        days_analyzed=window_days,
        recurring_themes=detect_recurring_themes(store, window_days, tuning=tuning, today=today),
        generated_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
    )
