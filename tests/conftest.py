"""Shared test fixtures for git-provenance tests."""

import os
import shutil
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not found")


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


class GitRepo:
    """A throwaway repository with deterministic commit dates."""

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        self._commits = 0
        self.git("init", "-q")
        self.git("config", "user.email", "test@test.com")
        self.git("config", "user.name", "Test")
        self.git("config", "commit.gpgsign", "false")
        self.git("config", "tag.gpgsign", "false")

    def git(self, *args: str, env: dict | None = None) -> str:
        full_env = dict(os.environ)
        full_env.update({"GIT_CONFIG_NOSYSTEM": "1", "LC_ALL": "C"})
        if env:
            full_env.update(env)
        result = subprocess.run(
            ["git", "-C", str(self.root), *args],
            capture_output=True,
            text=True,
            env=full_env,
            check=True,
        )
        return result.stdout

    def write(self, path: str, content: str) -> None:
        target = self.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)

    def commit(
        self,
        message: str,
        author: str = "Test",
        email: str = "test@test.com",
        committer: str | None = None,
        committer_email: str | None = None,
    ) -> str:
        """Stage everything and commit; each commit is one hour after the last."""
        self._commits += 1
        when = (BASE_TIME + timedelta(hours=self._commits)).isoformat()
        self.git("add", "-A")
        self.git(
            "commit",
            "-q",
            "--allow-empty",
            "-m",
            message,
            env={
                "GIT_AUTHOR_NAME": author,
                "GIT_AUTHOR_EMAIL": email,
                "GIT_AUTHOR_DATE": when,
                "GIT_COMMITTER_NAME": committer or author,
                "GIT_COMMITTER_EMAIL": committer_email or email,
                "GIT_COMMITTER_DATE": when,
            },
        )
        return self.head()

    def head(self) -> str:
        return self.git("rev-parse", "HEAD").strip()

    def mv(self, old: str, new: str) -> None:
        (self.root / new).parent.mkdir(parents=True, exist_ok=True)
        self.git("mv", old, new)

    def rm(self, path: str) -> None:
        self.git("rm", "-q", path)

    def tag(self, name: str, annotated: bool = False) -> None:
        if annotated:
            self.git("tag", "-a", name, "-m", name)
        else:
            self.git("tag", name)


@pytest.fixture
def git_repo(tmp_path):
    """Empty repository in a temp dir; skipped when git is unavailable."""
    if shutil.which("git") is None:
        pytest.skip("git not found")
    return GitRepo(tmp_path / "repo")


@pytest.fixture
def not_a_repo(tmp_path):
    """A plain directory outside any repository."""
    path = tmp_path / "plain"
    path.mkdir()
    return path

