from pathlib import Path

import pytest

from quire.config import NoJournalSelectedError, QuireConfig, resolve_journal_root
from quire.paths import JournalPaths


def _repo(tmp_path: Path, config_toml: str = "") -> Path:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "pyproject.toml").write_text("[project]\nname = 'x'\n", encoding="utf-8")
    if config_toml:
        (repo / ".quire").mkdir()
        (repo / ".quire" / "config.toml").write_text(config_toml, encoding="utf-8")
    return repo


class TestJournalResolution:
    """Journal root precedence: --journal, .quire/config.toml, QUIRE_JOURNAL."""

    def test_cli_option_wins(self, tmp_path, monkeypatch):
        cli_dir = tmp_path / "cli"
        cli_dir.mkdir()
        env_dir = tmp_path / "env"
        env_dir.mkdir()
        repo = _repo(tmp_path, f'journal_root = "{tmp_path / "env"}"\n')
        monkeypatch.chdir(repo)
        monkeypatch.setenv("QUIRE_JOURNAL", str(env_dir))

        assert resolve_journal_root(str(cli_dir)) == cli_dir.resolve()

    def test_repo_config_beats_env(self, tmp_path, monkeypatch):
        repo_journal = tmp_path / "repo_journal"
        repo_journal.mkdir()
        env_dir = tmp_path / "env"
        env_dir.mkdir()
        repo = _repo(tmp_path, f'journal_root = "{repo_journal}"\n')
        (repo / "sub").mkdir()
        monkeypatch.chdir(repo / "sub")
        monkeypatch.setenv("QUIRE_JOURNAL", str(env_dir))

        assert resolve_journal_root(None) == repo_journal.resolve()

    def test_env_used_when_nothing_else(self, tmp_path, monkeypatch):
        env_dir = tmp_path / "env"
        env_dir.mkdir()
        monkeypatch.chdir(_repo(tmp_path))
        monkeypatch.setenv("QUIRE_JOURNAL", str(env_dir))

        assert resolve_journal_root(None) == env_dir.resolve()

    def test_nothing_configured_requires_selection(self, tmp_path, monkeypatch):
        monkeypatch.chdir(_repo(tmp_path))
        monkeypatch.delenv("QUIRE_JOURNAL", raising=False)

        config = QuireConfig.from_env()
        assert config.journal_root is None
        with pytest.raises(NoJournalSelectedError):
            config.require_journal_root()
        with pytest.raises(FileNotFoundError):
            JournalPaths.from_config(config)

    def test_missing_directory_is_an_error(self, tmp_path, monkeypatch):
        monkeypatch.chdir(_repo(tmp_path))
        with pytest.raises(FileNotFoundError):
            resolve_journal_root(str(tmp_path / "nope"))

    def test_malformed_repo_config_is_ignored(self, tmp_path, monkeypatch):
        env_dir = tmp_path / "env"
        env_dir.mkdir()
        monkeypatch.chdir(_repo(tmp_path, "journal_root = [unterminated\n"))
        monkeypatch.setenv("QUIRE_JOURNAL", str(env_dir))

        assert resolve_journal_root(None) == env_dir.resolve()


def test_tuning_sections_override_defaults(tmp_path, monkeypatch):
    journal = tmp_path / "journal"
    journal.mkdir()
    repo = _repo(
        tmp_path,
        f'journal_root = "{journal}"\n'
        "[index]\nexcerpt_chars = 80\n"
        "[retrieval]\ntop_k = 3\nrecent_bonus = 5\n"
        "[insights]\npattern_window_days = 30\n",
    )
    monkeypatch.chdir(repo)
    monkeypatch.delenv("QUIRE_JOURNAL", raising=False)

    config = QuireConfig.from_env()

    assert config.require_journal_root() == journal.resolve()
    assert config.index.excerpt_chars == 80
    assert config.index.searchable_chars == 1000
    assert config.retrieval.top_k == 3
    assert config.retrieval.recent_bonus == 5
    assert config.retrieval.title_match_weight == 10
    assert config.insights.pattern_window_days == 30


def test_journal_paths_layout(tmp_path):
    paths = JournalPaths(tmp_path)

    created = paths.ensure_layout()

    assert paths.entries in created
    assert (tmp_path / "ai" / "loops").is_dir()
    assert (tmp_path / "ai" / "monthly").is_dir()
    assert paths.ensure_layout() == []
    assert paths.entry_path("2024-01-31") == tmp_path / "entries" / "2024" / "01" / "2024-01-31.md"
    assert paths.category_root("ai-output") == tmp_path / "ai"
    with pytest.raises(ValueError):
        paths.category_root("notes")


def test_config_fields_can_be_reassigned(tmp_path):
    config = QuireConfig()
    config.journal_root = tmp_path

    assert config.require_journal_root() == tmp_path
