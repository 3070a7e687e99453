from __future__ import annotations

import re

from quire.journal_index.models import IndexRecord

_NON_WORD_RE = re.compile(r"[^\w]|_")

# Monthly review and pattern detection are tuned separately; keep the lists apart.
MONTHLY_STOP_WORDS = frozenset(
    {
        "the", "and", "for", "with", "that", "this", "from", "have", "been",
        "were", "they", "what", "about", "which", "when", "where", "there",
        "their", "would", "could", "should", "just", "like", "more", "some",
        "into", "than", "time", "very", "after", "before", "today", "entry",
        "journal", "wrote", "writing", "think", "thought", "feeling", "felt",
    }
)

PATTERN_STOP_WORDS = frozenset(
    {
        "the", "be", "to", "of", "and", "a", "in", "that", "have", "i",
        "it", "for", "not", "on", "with", "he", "as", "you", "do", "at",
        "this", "but", "his", "by", "from", "they", "we", "say", "her", "she",
        "or", "an", "will", "my", "one", "all", "would", "there", "their",
        "was", "were", "been", "has", "had", "are", "is", "am", "can", "could",
        "today", "yesterday", "tomorrow", "day", "week", "month", "year",
    }
)


def theme_text(record: IndexRecord) -> str:
    return f"{record.display_title} {record.excerpt or ''}".lower()


def theme_tokens(text: str, *, stop_words: frozenset[str], min_length: int = 4) -> list[str]:
    """Lowercased words of at least ``min_length`` characters, punctuation removed."""
    tokens: list[str] = []
    for raw in text.lower().split():
        word = _NON_WORD_RE.sub("", raw)
        if len(word) < min_length or word in stop_words:
            continue
        tokens.append(word)
    return tokens
