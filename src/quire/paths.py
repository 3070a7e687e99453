"""Path management and journal folder structure for Quire."""

from pathlib import Path
from typing import Optional

from .config import QuireConfig

CATEGORY_ENTRY = "entry"
CATEGORY_AI_OUTPUT = "ai-output"

# Subcategory -> directory under ai/
AI_SUBCATEGORY_DIRS: dict[str, str] = {
    "daily-review": "daily",
    "weekly-summary": "weekly",
    "highlights": "highlights",
    "open-loops": "loops",
    "question": "questions",
}

# Free-form AI outputs carry no subcategory.
AI_FREEFORM_DIRS: tuple[str, ...] = ("ask", "monthly")


class JournalPaths:
    """Manages paths within a journal folder."""

    def __init__(self, journal_root: Path, index_filename: str = "index.json"):
        """Initialize journal paths from root directory.

        Args:
            journal_root: Root directory of the journal
            index_filename: File name of the persisted index document
        """
        self.root = journal_root

        self.entries = journal_root / "entries"
        self.ai = journal_root / "ai"
        self.index_file = journal_root / index_filename

    @classmethod
    def from_config(cls, config: QuireConfig) -> "JournalPaths":
        """Create JournalPaths from a QuireConfig (requires a selected journal)."""
        return cls(config.require_journal_root(), config.index.index_filename)

    def ai_subcategory_dir(self, subcategory: str) -> Path:
        """Directory holding AI outputs of one subcategory."""
        try:
            return self.ai / AI_SUBCATEGORY_DIRS[subcategory]
        except KeyError:
            raise ValueError(f"Unknown AI output subcategory: {subcategory}") from None

    def category_root(self, category: str) -> Path:
        """Directory that record ids of ``category`` are relative to."""
        if category == CATEGORY_ENTRY:
            return self.entries
        if category == CATEGORY_AI_OUTPUT:
            return self.ai
        raise ValueError(f"Unknown index category: {category}")

    def get_all_directories(self) -> list[Path]:
        """Get list of all directories that should exist in the journal."""
        dirs = [self.entries, self.ai]
        dirs.extend(self.ai / name for name in AI_SUBCATEGORY_DIRS.values())
        dirs.extend(self.ai / name for name in AI_FREEFORM_DIRS)
        return dirs

    def ensure_layout(self) -> list[Path]:
        """Create missing journal directories; returns the ones created."""
        created = []
        for directory in self.get_all_directories():
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                created.append(directory)
        return created

    def entry_path(self, date_str: str) -> Path:
        """Get path to the entry file for a specific date.

        Args:
            date_str: Date in YYYY-MM-DD format

        Returns:
            Path to entries/YYYY/MM/YYYY-MM-DD.md
        """
        year, month = date_str.split("-")[:2]
        return self.entries / year / month / f"{date_str}.md"


def subcategory_for_ai_path(relative_path: str) -> Optional[str]:
    """Infer the subcategory of an AI output from its path relative to ai/."""
    head = relative_path.replace("\\", "/").split("/", 1)[0]
    for subcategory, dirname in AI_SUBCATEGORY_DIRS.items():
        if head == dirname:
            return subcategory
    return None
