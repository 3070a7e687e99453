"""Pydantic models for monthly insights and recurring-pattern reports."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class ThemeFrequency(BaseModel):
    """A keyword recurring across a month's entries."""

    theme: str
    count: int = Field(description="Total occurrences across the month's entries")
    entry_count: int = Field(description="Number of distinct entries mentioning the theme")
    percentage: int = Field(description="Share of the month's entries mentioning the theme (0-100)")
    trend: Optional[Literal["up", "down", "flat"]] = None
    sample_entries: list[str] = Field(default_factory=list, description="Entry dates (evidence)")


class AiCoverage(BaseModel):
    daily_reviews: int = 0
    weekly_summaries: int = 0
    highlights: int = 0
    open_loops: int = 0
    questions: int = 0
    monthly_summaries: int = 0
    asks: int = 0


class MonthlyStats(BaseModel):
    total_entries: int
    days_active: int
    days_in_month: int
    total_words: int
    avg_words_per_entry: int
    ai_coverage: AiCoverage


class TopEntry(BaseModel):
    date: str
    title: str
    word_count: int


class MonthlyInsights(BaseModel):
    """Everything the monthly review screen shows, computed from the index only."""

    month: str = Field(description="YYYY-MM")
    stats: MonthlyStats
    themes: list[ThemeFrequency] = Field(default_factory=list)
    top_entries: list[TopEntry] = Field(default_factory=list)


class ThemeEvidence(BaseModel):
    date: str
    relative_path: str
    quote: str


class RecurringTheme(BaseModel):
    theme: str
    occurrences: int = Field(description="Total keyword occurrences inside the window")
    entry_count: int = Field(description="Distinct entries mentioning the theme")
    first_seen: str
    last_seen: str
    trend: Literal["increasing", "decreasing", "stable"]
    related_entries: list[ThemeEvidence] = Field(default_factory=list)


class DateRange(BaseModel):
    start: str
    end: str


class PatternReport(BaseModel):
    date_range: DateRange
    days_analyzed: int
    recurring_themes: list[RecurringTheme] = Field(default_factory=list)
    generated_at: str


class DataStats(BaseModel):
    """What is stored on disk for a journal, for data-transparency views."""

    journal_path: str
    total_files: int
    total_size_bytes: int
    entry_count: int
    ai_output_count: int
    oldest_entry: Optional[str] = None
    newest_entry: Optional[str] = None
