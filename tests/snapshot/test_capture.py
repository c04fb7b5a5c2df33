"""Tests for codebase snapshot extraction."""

from datetime import datetime, timezone

import pytest

from git_provenance.exceptions import InvalidRefError
from git_provenance.snapshot import (
    SnapshotStats,
    count_definitions,
    extract_current_snapshot,
    extract_snapshot,
    is_library_file,
    list_source_files,
)

MY_APP = """\
defmodule MyApp do
  @callback run(term) :: term
  def a, do: 1
  defp b, do: 2
  defmacro m(x), do: x
  defmodule Inner do
    def c, do: 3
  end
end
"""

PROTO = """\
defprotocol MyApp.Proto do
  def size(data)
end
"""

MIX_EXS = 'defmodule MyApp.MixProject do\n  def project, do: [app: :my_app, version: "0.1.0"]\nend\n'


@pytest.fixture
def project_repo(git_repo):
    git_repo.write("lib/my_app.ex", MY_APP)
    first = git_repo.commit("Initial")
    git_repo.write("lib/my_app/proto.ex", PROTO)
    git_repo.write("apps/web/lib/web.ex", "defmodule Web do\nend\n")
    git_repo.write("test/my_app_test.exs", "defmodule MyAppTest do\n  def t, do: 1\nend\n")
    git_repo.write("mix.exs", MIX_EXS)
    second = git_repo.commit("Grow")
    return git_repo, first, second


class TestLibraryFiles:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("lib/a.ex", True),
            ("apps/web/lib/web.ex", True),
            ("test/a_test.exs", False),
            ("mix.exs", False),
            ("deps/x/lib/x.ex", False),
        ],
    )
    def test_is_library_file(self, path, expected):
        assert is_library_file(path) is expected

    def test_list_source_files(self, project_repo):
        repo, _, _ = project_repo
        assert list_source_files(repo.root) == [
            "apps/web/lib/web.ex",
            "lib/my_app.ex",
            "lib/my_app/proto.ex",
        ]


class TestCountDefinitions:
    def test_counts(self):
        counts = count_definitions(MY_APP)
        assert counts.modules == ("MyApp", "MyApp.Inner")
        assert counts.functions == 3
        assert counts.macros == 1
        assert counts.protocols == 0
        assert counts.behaviours == 1
        assert counts.lines == 9

    def test_protocol(self):
        counts = count_definitions(PROTO)
        assert counts.modules == ()
        assert counts.protocols == 1
        assert counts.functions == 1


class TestExtractSnapshot:
    def test_current(self, project_repo):
        repo, _, second = project_repo
        snapshot = extract_current_snapshot(repo.root)
        assert snapshot.snapshot_id == "snapshot:" + second[:7]
        assert snapshot.commit_sha == second
        assert snapshot.timestamp == datetime(2024, 1, 1, 14, tzinfo=timezone.utc)
        assert (snapshot.project_name, snapshot.project_version) == ("my_app", "0.1.0")
        assert snapshot.modules == ("MyApp", "MyApp.Inner", "Web")
        assert snapshot.stats == SnapshotStats(
            module_count=3,
            function_count=4,
            macro_count=1,
            protocol_count=1,
            behaviour_count=1,
            line_count=14,
            file_count=3,
        )

    def test_older_revision_without_project_file(self, project_repo):
        repo, first, _ = project_repo
        snapshot = extract_snapshot(repo.root, first)
        assert snapshot.files == ("lib/my_app.ex",)
        assert snapshot.project_name is None
        assert snapshot.project_version is None
        assert snapshot.stats.function_count == 3

    def test_empty_tree(self, git_repo):
        git_repo.write("README.md", "x\n")
        git_repo.commit("Initial")
        snapshot = extract_current_snapshot(git_repo.root)
        assert snapshot.modules == ()
        assert snapshot.stats == SnapshotStats()

    def test_unknown_ref(self, project_repo):
        repo, _, _ = project_repo
        with pytest.raises(InvalidRefError):
            extract_snapshot(repo.root, "no-such-branch")
