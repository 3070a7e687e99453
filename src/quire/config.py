"""Configuration management for Quire."""

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field


class NoJournalSelectedError(FileNotFoundError):
    """Raised when an operation needs a journal root and none is configured."""


def _find_repo_root(start_dir: Path) -> Path:
    """Find repository root by walking upward looking for .git or pyproject.toml."""
    current_dir = start_dir

    while True:
        if (current_dir / ".git").exists() or (current_dir / "pyproject.toml").exists():
            return current_dir

        parent_dir = current_dir.parent

        # Stop if we reach filesystem root
        if parent_dir == current_dir:
            return start_dir

        current_dir = parent_dir


def _load_repo_config_data(repo_root: Path) -> Optional[dict]:
    """Load repo config data from .quire/config.toml if it exists."""
    config_file = repo_root / ".quire" / "config.toml"

    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        # If config file is malformed, ignore it
        return None


def _section(data: Optional[dict], name: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        return {}
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def resolve_journal_root(cli_journal_path: Optional[str] = None) -> Optional[Path]:
    """Resolve the journal root with the following precedence:

    1. CLI --journal option (if provided)
    2. repo-local .quire/config.toml ``journal_root`` (walk upward from CWD)
    3. QUIRE_JOURNAL environment variable

    Returns None when nothing is configured. Callers that need a root go
    through ``QuireConfig.require_journal_root``.

    Raises:
        FileNotFoundError: If a configured path does not exist or is not a directory
    """
    candidate: Optional[Path] = None
    source = ""

    if cli_journal_path:
        candidate = Path(cli_journal_path).expanduser().resolve()
        source = "--journal"
    else:
        data = _load_repo_config_data(_find_repo_root(Path.cwd()))
        repo_value = data.get("journal_root") if isinstance(data, dict) else None
        if isinstance(repo_value, str) and repo_value.strip():
            candidate = Path(repo_value).expanduser().resolve()
            source = ".quire/config.toml"
        else:
            env_value = os.environ.get("QUIRE_JOURNAL")
            if env_value:
                candidate = Path(env_value).expanduser().resolve()
                source = "QUIRE_JOURNAL"

    if candidate is None:
        return None
    if not candidate.exists():
        raise FileNotFoundError(f"Journal path from {source} does not exist: {candidate}")
    if not candidate.is_dir():
        raise FileNotFoundError(f"Journal path from {source} is not a directory: {candidate}")
    return candidate


class IndexSettings(BaseModel):
    """Bounds applied while extracting index records."""

    excerpt_chars: int = Field(default=200, gt=0)
    searchable_chars: int = Field(default=1000, gt=0)
    index_filename: str = Field(default="index.json")


class RetrievalTuning(BaseModel):
    """Weights and thresholds for keyword ranking and quick switching."""

    top_k: int = Field(default=8, gt=0)
    title_match_weight: int = Field(default=10)
    body_match_weight: int = Field(default=2)
    min_token_length: int = Field(default=3, description="Query tokens shorter than this are dropped")

    recent_days: int = Field(default=7)
    recent_bonus: int = Field(default=3)
    month_days: int = Field(default=30)
    month_bonus: int = Field(default=1)

    switch_limit: int = Field(default=20, gt=0)
    search_limit: int = Field(default=50, gt=0)
    snippet_radius: int = Field(default=60, ge=0)


class InsightTuning(BaseModel):
    """Thresholds for monthly themes and recurring-pattern detection."""

    monthly_min_entries: int = Field(default=2)
    monthly_theme_limit: int = Field(default=10)
    monthly_sample_dates: int = Field(default=3)
    top_entries_limit: int = Field(default=5)
    trend_up_ratio: float = Field(default=1.2)
    trend_down_ratio: float = Field(default=0.8)

    pattern_window_days: int = Field(default=90, gt=0)
    pattern_min_entries: int = Field(default=3)
    pattern_theme_limit: int = Field(default=10)
    pattern_evidence_limit: int = Field(default=5)
    pattern_quote_chars: int = Field(default=100)
    pattern_increase_ratio: float = Field(default=1.3)
    pattern_decrease_ratio: float = Field(default=0.7)


class QuireConfig(BaseModel):
    """Configuration threaded into every index, retrieval and insight call."""

    journal_root: Optional[Path] = Field(default=None)
    index: IndexSettings = Field(default_factory=IndexSettings)
    retrieval: RetrievalTuning = Field(default_factory=RetrievalTuning)
    insights: InsightTuning = Field(default_factory=InsightTuning)

    @classmethod
    def from_env(cls, cli_journal_path: Optional[str] = None) -> "QuireConfig":
        """Load configuration from CLI option, repo config and environment.

        Args:
            cli_journal_path: Journal path from CLI --journal option (highest precedence)
        """
        journal_root = resolve_journal_root(cli_journal_path)
        data = _load_repo_config_data(_find_repo_root(Path.cwd()))

        return cls(
            journal_root=journal_root,
            index=IndexSettings(**_section(data, "index")),
            retrieval=RetrievalTuning(**_section(data, "retrieval")),
            insights=InsightTuning(**_section(data, "insights")),
        )

    def require_journal_root(self) -> Path:
        """Return the journal root or fail with a clear "no journal selected" error."""
        if self.journal_root is None:
            raise NoJournalSelectedError(
                "No journal selected. Try one of:\n"
                "  • quire --journal \"/path/to/journal\" <command>\n"
                "  • set journal_root in .quire/config.toml\n"
                "  • export QUIRE_JOURNAL=\"/path/to/journal\""
            )
        return self.journal_root
