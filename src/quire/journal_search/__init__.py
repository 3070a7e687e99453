"""Keyword retrieval, quick switching and snippet search over the index."""

from .engine import ask_journal, quick_switch, retrieve, search_index
from .models import AskContext, NoEntriesInRange, NoRelevantMatches, RankedRecord, Retrieved, SearchResult

__all__ = [
    "AskContext",
    "NoEntriesInRange",
    "NoRelevantMatches",
    "RankedRecord",
    "Retrieved",
    "SearchResult",
    "ask_journal",
    "quick_switch",
    "retrieve",
    "search_index",
]
