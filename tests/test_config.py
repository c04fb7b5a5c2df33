"""Tests for configuration loading."""

import os

import pytest

from git_provenance.config import DEFAULT_CONFIG, MiningConfig, RefactoringThresholds, load_config
from git_provenance.exceptions import InvalidConfigError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """No global or project config files, no GITPROV_* variables."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    for key in list(os.environ):
        if key.startswith("GITPROV_"):
            monkeypatch.delenv(key)
    return home, work


class TestDefaults:
    def test_default_values(self):
        config = MiningConfig()
        assert config.git_timeout_seconds == 30
        assert config.default_commit_limit == 10
        assert config.source_extensions == (".ex", ".exs")
        assert config.thresholds == RefactoringThresholds()

    def test_load_without_sources(self, isolated):
        assert load_config() == DEFAULT_CONFIG

    @pytest.mark.parametrize(
        "overrides",
        [
            {"git_timeout_seconds": 0},
            {"max_commits": 0},
            {"workers": 0},
            {"diff_context_lines": -1},
            {"source_extensions": ()},
            {"verbosity": "loud"},
            {"git_binary": ""},
            {"jira_url": "jira.example.com"},
            {"gitlab_url": "gitlab.internal"},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(InvalidConfigError):
            MiningConfig(**overrides)

    def test_invalid_thresholds(self):
        with pytest.raises(InvalidConfigError):
            RefactoringThresholds(rename_similarity=1.5)
        with pytest.raises(InvalidConfigError):
            RefactoringThresholds(rename_similarity=0.8, identical_similarity=0.5)

    def test_cap_limit(self):
        config = MiningConfig(max_commits=100)
        assert config.cap_limit(10) == 10
        assert config.cap_limit(1000) == 100
        assert config.cap_limit(None) == 100
        assert config.cap_limit(0) == 100


class TestMerging:
    def test_project_file_overrides_global(self, isolated):
        home, work = isolated
        (home / ".git-provenance.toml").write_text("git_timeout_seconds = 5\nmax_commits = 50\n")
        (work / "git-provenance.toml").write_text("git_timeout_seconds = 7\n")
        config = load_config()
        assert config.git_timeout_seconds == 7
        assert config.max_commits == 50

    def test_explicit_file(self, isolated, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text(
            'source_extensions = [".ex"]\n'
            "\n"
            "[thresholds]\n"
            "rename_similarity = 0.6\n"
        )
        config = load_config(path)
        assert config.source_extensions == (".ex",)
        assert config.thresholds.rename_similarity == 0.6
        assert config.thresholds.identical_similarity == 0.9

    def test_missing_explicit_file(self, isolated, tmp_path):
        with pytest.raises(InvalidConfigError):
            load_config(tmp_path / "nope.toml")

    def test_malformed_toml(self, isolated, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("git_timeout_seconds = \n")
        with pytest.raises(InvalidConfigError):
            load_config(path)

    def test_unknown_key(self, isolated, tmp_path):
        path = tmp_path / "extra.toml"
        path.write_text("colour = 'blue'\n")
        with pytest.raises(InvalidConfigError):
            load_config(path)

    def test_environment_beats_files(self, isolated, monkeypatch):
        _, work = isolated
        (work / "git-provenance.toml").write_text("workers = 2\n")
        monkeypatch.setenv("GITPROV_WORKERS", "4")
        monkeypatch.setenv("GITPROV_ANONYMIZE_EMAILS", "yes")
        config = load_config()
        assert config.workers == 4
        assert config.anonymize_emails is True

    def test_bad_environment_value(self, isolated, monkeypatch):
        monkeypatch.setenv("GITPROV_DETECT_LLM", "maybe")
        with pytest.raises(InvalidConfigError):
            load_config()

    def test_overrides_win(self, isolated, monkeypatch):
        monkeypatch.setenv("GITPROV_GIT_TIMEOUT_SECONDS", "9")
        assert load_config(git_timeout_seconds=60).git_timeout_seconds == 60

    def test_verbosity_flags(self, isolated):
        assert load_config(verbose=True).verbosity == "verbose"
        assert load_config(quiet=True).verbosity == "quiet"
        assert load_config(verbose=False).verbosity == "normal"

    def test_issue_trackers_from_environment(self, isolated, monkeypatch):
        monkeypatch.setenv("GITPROV_GITHUB_REPO", "owner/repo")
        monkeypatch.setenv("GITPROV_JIRA_URL", "https://jira.example.com")
        config = load_config()
        assert config.github_repo == "owner/repo"
        assert config.jira_url == "https://jira.example.com"
        assert config.gitlab_url == "https://gitlab.com"
