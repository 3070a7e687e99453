from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from quire.journal_index.models import IndexRecord


@dataclass(frozen=True)
class RankedRecord:
    record: IndexRecord
    score: int
    term_score: int
    recency_bonus: int


@dataclass(frozen=True)
class Retrieved:
    query: str
    tokens: list[str]
    candidates: list[RankedRecord]


@dataclass(frozen=True)
class NoEntriesInRange:
    date_start: Optional[str]
    date_end: Optional[str]

    def message(self) -> str:
        if self.date_start is None and self.date_end is None:
            return "No journal entries found. Write an entry first."
        return f"No journal entries between {self.date_start or 'the beginning'} and {self.date_end or 'today'}."


@dataclass(frozen=True)
class NoRelevantMatches:
    query: str
    tokens: list[str]
    considered: int

    def message(self) -> str:
        return (
            f"None of {self.considered} entries matched {self.query!r}. "
            "Try different keywords or a wider date range."
        )


RetrievalOutcome = Union[Retrieved, NoEntriesInRange, NoRelevantMatches]


@dataclass(frozen=True)
class SearchResult:
    record: IndexRecord
    snippet: str


@dataclass(frozen=True)
class AskSource:
    record: IndexRecord
    score: int
    content: str


@dataclass(frozen=True)
class AskContext:
    """Candidates with full file content, ready for a downstream summarizer."""

    query: str
    date_start: Optional[str]
    date_end: Optional[str]
    sources: list[AskSource]
    missing: list[str]


AskOutcome = Union[AskContext, NoEntriesInRange, NoRelevantMatches]
