"""Monthly statistics and theme frequency, computed from the index only (no file reads)."""

from __future__ import annotations

import calendar
import re
from collections import Counter
from typing import Optional

from quire.config import InsightTuning
from quire.journal_index.models import IndexRecord, IndexStore

from .models import AiCoverage, MonthlyInsights, MonthlyStats, ThemeFrequency, TopEntry
from .themes import MONTHLY_STOP_WORDS, theme_text, theme_tokens

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")

_SUBCATEGORY_FIELDS = {
    "daily-review": "daily_reviews",
    "weekly-summary": "weekly_summaries",
    "highlights": "highlights",
    "open-loops": "open_loops",
    "question": "questions",
}


def parse_month(month: str) -> tuple[int, int]:
    m = _MONTH_RE.match(month.strip())
    if not m or not 1 <= int(m.group(2)) <= 12:
        raise ValueError(f"Invalid month: expected YYYY-MM, got {month!r}")
    return int(m.group(1)), int(m.group(2))


def previous_month(month: str) -> str:
    year, mon = parse_month(month)
    if mon == 1:
        return f"{year - 1:04d}-12"
    return f"{year:04d}-{mon - 1:02d}"


def _ai_coverage(ai_outputs: list[IndexRecord]) -> AiCoverage:
    counts: Counter[str] = Counter()
    for item in ai_outputs:
        if item.subcategory is not None:
            counts[_SUBCATEGORY_FIELDS[item.subcategory]] += 1
        elif item.relative_path.startswith("monthly/"):
            counts["monthly_summaries"] += 1
        elif item.relative_path.startswith("ask/"):
            counts["asks"] += 1
    return AiCoverage(**counts)


def _monthly_stats(month: str, entries: list[IndexRecord], ai_outputs: list[IndexRecord]) -> MonthlyStats:
    year, mon = parse_month(month)
    total_entries = len(entries)
    total_words = sum(e.word_count or 0 for e in entries)
    return MonthlyStats(
        total_entries=total_entries,
        days_active=len({e.date for e in entries}),
        days_in_month=calendar.monthrange(year, mon)[1],
        total_words=total_words,
        avg_words_per_entry=round(total_words / total_entries) if total_entries else 0,
        ai_coverage=_ai_coverage(ai_outputs),
    )


def extract_themes(entries: list[IndexRecord], tuning: InsightTuning) -> list[ThemeFrequency]:
    counts: Counter[str] = Counter()
    entry_ids: dict[str, set[str]] = {}
    dates: dict[str, list[str]] = {}

    for entry in sorted(entries, key=lambda e: (e.date, e.id)):
        for word in theme_tokens(theme_text(entry), stop_words=MONTHLY_STOP_WORDS):
            counts[word] += 1
            entry_ids.setdefault(word, set()).add(entry.id)
            seen = dates.setdefault(word, [])
            if entry.date not in seen:
                seen.append(entry.date)

    themes = [
        ThemeFrequency(
            theme=word,
            count=count,
            entry_count=len(entry_ids[word]),
            percentage=round(len(entry_ids[word]) / len(entries) * 100) if entries else 0,
            sample_entries=dates[word][: tuning.monthly_sample_dates],
        )
        for word, count in counts.items()
        if len(entry_ids[word]) >= tuning.monthly_min_entries
    ]
    themes.sort(key=lambda t: (-t.count, t.theme))
    return themes[: tuning.monthly_theme_limit]


def build_monthly_insights(
    month: str,
    store: IndexStore,
    *,
    tuning: Optional[InsightTuning] = None,
) -> MonthlyInsights:
    tuning = tuning or InsightTuning()
    parse_month(month)

    entries = [i for i in store.items if i.category == "entry" and i.date.startswith(month)]
    ai_outputs = [i for i in store.items if i.category == "ai-output" and i.date.startswith(month)]

    ranked = sorted(
        (e for e in entries if e.word_count),
        key=lambda e: (-(e.word_count or 0), e.date, e.id),
    )
    top_entries = [
        TopEntry(date=e.date, title=e.display_title, word_count=e.word_count or 0)
        for e in ranked[: tuning.top_entries_limit]
    ]

    return MonthlyInsights(
        month=month,
        stats=_monthly_stats(month, entries, ai_outputs),
        themes=extract_themes(entries, tuning),
        top_entries=top_entries,
    )


def build_multi_month_insights(
    months: list[str],
    store: IndexStore,
    *,
    tuning: Optional[InsightTuning] = None,
) -> dict[str, MonthlyInsights]:
    return {month: build_monthly_insights(month, store, tuning=tuning) for month in months}


def theme_trend(current_count: int, previous_count: int, tuning: InsightTuning) -> str:
    if previous_count == 0:
        return "up"
    if current_count > previous_count * tuning.trend_up_ratio:
        return "up"
    if current_count < previous_count * tuning.trend_down_ratio:
        return "down"
    return "flat"


def calculate_theme_trends(
    current: MonthlyInsights,
    previous: Optional[MonthlyInsights],
    *,
    tuning: Optional[InsightTuning] = None,
) -> list[ThemeFrequency]:
    """Annotate the current period's themes with up/down/flat against the previous period."""
    if previous is None:
        return list(current.themes)

    tuning = tuning or InsightTuning()
    prev_counts = {t.theme: t.count for t in previous.themes}
    return [
        theme.model_copy(update={"trend": theme_trend(theme.count, prev_counts.get(theme.theme, 0), tuning)})
        for theme in current.themes
    ]
