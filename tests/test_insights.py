from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from quire.config import InsightTuning
from quire.insights import (
    MonthlyInsights,
    build_monthly_insights,
    build_multi_month_insights,
    calculate_theme_trends,
    collect_data_stats,
    detect_recurring_themes,
    generate_pattern_report,
    previous_month,
)
from quire.insights.models import AiCoverage, MonthlyStats, ThemeFrequency
from quire.insights.monthly import theme_trend
from quire.insights.patterns import half_trend
from quire.journal_index import IndexStore, scan_index
from quire.journal_search.snippets import SENSITIVE_PLACEHOLDER


def _insights(month: str, counts: dict[str, int]) -> MonthlyInsights:
    stats = MonthlyStats(
        total_entries=0,
        days_active=0,
        days_in_month=30,
        total_words=0,
        avg_words_per_entry=0,
        ai_coverage=AiCoverage(),
    )
    themes = [
        ThemeFrequency(theme=t, count=c, entry_count=2, percentage=50) for t, c in counts.items()
    ]
    return MonthlyInsights(month=month, stats=stats, themes=themes)


def test_theme_trend_bands():
    tuning = InsightTuning()
    assert theme_trend(11, 10, tuning) == "flat"
    assert theme_trend(13, 10, tuning) == "up"
    assert theme_trend(7, 10, tuning) == "down"
    assert theme_trend(3, 0, tuning) == "up"


def test_calculate_theme_trends_against_previous_period():
    previous = _insights("2024-02", {"work": 10, "sleep": 10, "family": 10})
    current = _insights("2024-03", {"work": 11, "sleep": 13, "family": 7, "garden": 2})

    trends = {t.theme: t.trend for t in calculate_theme_trends(current, previous)}

    assert trends == {"work": "flat", "sleep": "up", "family": "down", "garden": "up"}


def test_calculate_theme_trends_without_previous_leaves_trend_unset():
    current = _insights("2024-03", {"work": 11})
    assert [t.trend for t in calculate_theme_trends(current, None)] == [None]


def test_previous_month_and_invalid_month():
    assert previous_month("2024-01") == "2023-12"
    assert previous_month("2024-10") == "2024-09"
    with pytest.raises(ValueError):
        previous_month("2024-13")
    with pytest.raises(ValueError):
        build_monthly_insights("March", IndexStore(last_built="2024-03-01T00:00:00.000+00:00"))


def test_monthly_insights_stats_themes_and_top_entries(journal_root: Path, write_entry, write_ai):
    write_entry("2024-03-01", "# Garden work\nPlanted tomatoes in the garden.\n")
    write_entry("2024-03-05", "# Rainy\nThe garden needs weeding.\n")
    write_entry("2024-03-09", "# Reading\nFinished a novel.\n")
    write_entry("2024-02-10", "# Garden plans\ngarden garden garden")
    write_ai("daily/2024-03-01.review.md", "review")
    write_ai("weekly/2024-03-04.summary.md", "summary")
    write_ai("monthly/2024-03.summary.md", "month", mtime=datetime(2024, 3, 31, 12, tzinfo=timezone.utc))

    insights = build_monthly_insights("2024-03", scan_index(journal_root).store)

    stats = insights.stats
    assert stats.total_entries == 3
    assert stats.days_active == 3
    assert stats.days_in_month == 31
    assert stats.total_words == 19
    assert stats.avg_words_per_entry == 6
    assert stats.ai_coverage.daily_reviews == 1
    assert stats.ai_coverage.weekly_summaries == 1
    assert stats.ai_coverage.monthly_summaries == 1
    assert stats.ai_coverage.highlights == 0

    assert [t.theme for t in insights.themes] == ["garden"]
    garden = insights.themes[0]
    assert garden.count == 4  # title is counted again through the excerpt
    assert garden.entry_count == 2
    assert garden.percentage == 67
    assert garden.sample_entries == ["2024-03-01", "2024-03-05"]

    assert [(e.date, e.word_count) for e in insights.top_entries] == [
        ("2024-03-01", 8),
        ("2024-03-05", 6),
        ("2024-03-09", 5),
    ]


def test_monthly_insights_for_empty_month(journal_root: Path):
    insights = build_monthly_insights("2024-02", scan_index(journal_root).store)

    assert insights.stats.total_entries == 0
    assert insights.stats.avg_words_per_entry == 0
    assert insights.stats.days_in_month == 29
    assert insights.themes == []
    assert insights.top_entries == []


def test_half_trend_bands():
    tuning = InsightTuning()
    assert half_trend(10, 14, tuning) == "increasing"
    assert half_trend(10, 6, tuning) == "decreasing"
    assert half_trend(10, 12, tuning) == "stable"
    assert half_trend(0, 0, tuning) == "stable"


def test_detect_recurring_themes(journal_root: Path, write_entry):
    write_entry("2023-12-01", "# Deadline\ndeadline deadline")
    write_entry("2024-01-10", "# Work stress\nDeadline pressure again.")
    write_entry("2024-02-20", "---\nsensitive: true\n---\n# Evening\nMore deadline pressure at the office.")
    write_entry("2024-03-15", "# Deadline\nDeadline moved, deadline still looming.")

    themes = detect_recurring_themes(scan_index(journal_root).store, 90, today=date(2024, 4, 1))

    assert [t.theme for t in themes] == ["deadline"]
    deadline = themes[0]
    assert deadline.entry_count == 3
    assert deadline.occurrences == 6
    assert deadline.first_seen == "2024-01-10"
    assert deadline.last_seen == "2024-03-15"
    assert deadline.trend == "increasing"

    evidence = deadline.related_entries
    assert [e.date for e in evidence] == ["2024-01-10", "2024-02-20", "2024-03-15"]
    assert evidence[0].relative_path == "2024/01/2024-01-10.md"
    assert evidence[0].quote == "Work stress\nDeadline pressure again."
    assert evidence[1].quote == SENSITIVE_PLACEHOLDER


def test_recurring_theme_quotes_are_truncated(journal_root: Path, write_entry):
    for day in ("01", "02", "03"):
        write_entry(f"2024-03-{day}", "# Focus\n" + "focus " * 40)

    tuning = InsightTuning(pattern_quote_chars=20)
    themes = detect_recurring_themes(scan_index(journal_root).store, 30, tuning=tuning, today=date(2024, 3, 10))

    quote = themes[0].related_entries[0].quote
    assert quote.endswith("...")
    assert len(quote) == 23


def test_detect_recurring_themes_rejects_empty_window(journal_root: Path):
    with pytest.raises(ValueError):
        detect_recurring_themes(scan_index(journal_root).store, 0)


def test_pattern_report_wraps_themes(journal_root: Path, write_entry):
    write_entry("2024-03-01", "# Walk\nwalk")

    report = generate_pattern_report(scan_index(journal_root).store, 30, today=date(2024, 3, 10))

    assert report.date_range.start == "2024-02-09"
    assert report.date_range.end == "2024-03-10"
    assert report.days_analyzed == 30
    assert report.recurring_themes == []


def test_collect_data_stats(journal_root: Path, write_entry, write_ai):
    a = write_entry("2024-01-05", "# A\none")
    b = write_entry("2024-03-01", "# B\ntwo words")
    c = write_ai("daily/2024-03-01.review.md", "review")
    store = scan_index(journal_root).store

    stats = collect_data_stats(journal_root, store)

    assert stats.journal_path == str(journal_root)
    assert stats.total_files == 3
    assert stats.total_size_bytes == sum(p.stat().st_size for p in (a, b, c))
    assert stats.entry_count == 2
    assert stats.ai_output_count == 1
    assert stats.oldest_entry == "2024-01-05"
    assert stats.newest_entry == "2024-03-01"


def test_multi_month_insights_keyed_by_month(journal_root: Path, write_entry):
    write_entry("2024-01-05", "# A\none")
    write_entry("2024-02-05", "# B\ntwo")

    by_month = build_multi_month_insights(["2024-01", "2024-02", "2024-03"], scan_index(journal_root).store)

    assert list(by_month) == ["2024-01", "2024-02", "2024-03"]
    assert [m.stats.total_entries for m in by_month.values()] == [1, 1, 0]
