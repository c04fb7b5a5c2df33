"""Tests for per-file history and rename chains."""

import pytest

from git_provenance.exceptions import FileNotTrackedError
from git_provenance.history import (
    extract_file_history,
    extract_renames,
    file_exists_in_history,
    path_at_commit,
    rename_count,
    renamed,
)
from git_provenance.history.file_history import parse_rename_log
from git_provenance.history.models import FileHistory, Rename

CONTENT = "\n".join(f"line {i}" for i in range(20)) + "\n"


class TestParseRenameLog:
    def test_rename_entries(self):
        sha = "a" * 40
        output = f"{sha}\n\nR095\tlib/old.ex\tlib/new.ex\n"
        renames = parse_rename_log(output)
        assert renames == [Rename("lib/old.ex", "lib/new.ex", sha, 95)]

    def test_ignores_non_rename_status(self):
        sha = "a" * 40
        output = f"{sha}\n\nM\tlib/a.ex\n"
        assert parse_rename_log(output) == []


class TestExtractFileHistory:
    def test_commits_newest_first(self, git_repo):
        git_repo.write("lib/a.ex", "one\n")
        first = git_repo.commit("First")
        git_repo.write("lib/other.ex", "x\n")
        git_repo.commit("Unrelated")
        git_repo.write("lib/a.ex", "two\n")
        third = git_repo.commit("Third")

        history = extract_file_history(git_repo.root, "lib/a.ex")

        assert history.commits == (third, first)
        assert history.first_commit == first
        assert history.last_commit == third
        assert history.commit_count == 2
        assert not renamed(history)
        assert history.original_path is None
        assert file_exists_in_history(history, first)

    def test_limit(self, git_repo):
        for i in range(3):
            git_repo.write("lib/a.ex", f"{i}\n")
            git_repo.commit(f"Commit {i}")
        history = extract_file_history(git_repo.root, "lib/a.ex", limit=2)
        assert history.commit_count == 2

    def test_follows_rename(self, git_repo):
        git_repo.write("lib/old.ex", CONTENT)
        first = git_repo.commit("Create")
        git_repo.mv("lib/old.ex", "lib/new.ex")
        moved = git_repo.commit("Rename")
        git_repo.write("lib/new.ex", CONTENT + "extra\n")
        edited = git_repo.commit("Edit")

        history = extract_file_history(git_repo.root, "lib/new.ex")

        assert history.commits == (edited, moved, first)
        assert renamed(history)
        assert rename_count(history) == 1
        assert history.original_path == "lib/old.ex"
        assert history.renames[0].commit_sha == moved
        assert path_at_commit(history, first) == "lib/old.ex"
        assert path_at_commit(history, moved) == "lib/new.ex"
        assert path_at_commit(history, edited) == "lib/new.ex"

    def test_extract_renames(self, git_repo):
        git_repo.write("lib/old.ex", CONTENT)
        git_repo.commit("Create")
        git_repo.mv("lib/old.ex", "lib/new.ex")
        moved = git_repo.commit("Rename")

        (rename,) = extract_renames(git_repo.root, "lib/new.ex")
        assert (rename.from_path, rename.to_path, rename.commit_sha) == ("lib/old.ex", "lib/new.ex", moved)

    def test_without_follow(self, git_repo):
        git_repo.write("lib/old.ex", CONTENT)
        git_repo.commit("Create")
        git_repo.mv("lib/old.ex", "lib/new.ex")
        moved = git_repo.commit("Rename")

        history = extract_file_history(git_repo.root, "lib/new.ex", follow=False)
        assert history.commits == (moved,)
        assert history.renames == ()

    def test_untracked_path(self, git_repo):
        git_repo.write("lib/a.ex", "a\n")
        git_repo.commit("Initial")
        with pytest.raises(FileNotTrackedError):
            extract_file_history(git_repo.root, "lib/never.ex")


class TestPathAtCommit:
    def test_two_renames(self):
        history = FileHistory(
            path="lib/c.ex",
            original_path="lib/a.ex",
            commits=("5" * 40, "4" * 40, "3" * 40, "2" * 40, "1" * 40),
            renames=(
                Rename("lib/a.ex", "lib/b.ex", "2" * 40),
                Rename("lib/b.ex", "lib/c.ex", "4" * 40),
            ),
        )
        assert path_at_commit(history, "5" * 40) == "lib/c.ex"
        assert path_at_commit(history, "4" * 40) == "lib/c.ex"
        assert path_at_commit(history, "3" * 40) == "lib/b.ex"
        assert path_at_commit(history, "2" * 40) == "lib/b.ex"
        assert path_at_commit(history, "1" * 40) == "lib/a.ex"

    def test_unknown_commit_gets_current_path(self):
        history = FileHistory(path="lib/c.ex", original_path=None, commits=("1" * 40,))
        assert path_at_commit(history, "9" * 40) == "lib/c.ex"
