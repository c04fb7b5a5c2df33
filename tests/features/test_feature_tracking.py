"""Tests for feature, bug-fix and issue-reference tracking."""

from datetime import datetime, timezone

import pytest

from git_provenance.activity import classify_commit
from git_provenance.config import MiningConfig
from git_provenance.features import (
    IssueAction,
    IssueReference,
    IssueTracker,
    bugfix_description,
    bugfix_from_activity,
    build_issue_url,
    changed_functions,
    closing_issues,
    detect_all,
    detect_bugfixes,
    detect_features,
    feature_from_activity,
    feature_name,
    has_issues,
    parse_issue_references,
    with_urls,
)
from git_provenance.history import Commit
from git_provenance.refactoring import DiffHunk, DiffLine, FunctionRef, HunkStatus


def make_commit(subject, body=None, sha="d" * 40):
    when = datetime(2024, 1, 1, tzinfo=timezone.utc)
    message = subject if body is None else f"{subject}\n\n{body}"
    return Commit(
        sha=sha,
        short_sha=sha[:7],
        message=message,
        subject=subject,
        body=body,
        author_name="Alice",
        author_email="alice@example.com",
        author_date=when,
        committer_name="Alice",
        committer_email="alice@example.com",
        commit_date=when,
    )


def make_hunk(file, body):
    """Build a modified-file hunk from lines prefixed with ' ', '-' or '+'."""
    lines = []
    old_line = new_line = 1
    for raw in body:
        kind, text = raw[0], raw[1:]
        if kind == "+":
            lines.append(DiffLine(None, new_line, text, "+"))
            new_line += 1
        elif kind == "-":
            lines.append(DiffLine(old_line, None, text, "-"))
            old_line += 1
        else:
            lines.append(DiffLine(old_line, new_line, text, " "))
            old_line += 1
            new_line += 1
    return DiffHunk(
        file=file,
        old_file=None,
        status=HunkStatus.MODIFIED,
        additions=tuple((d.new_line, d.text) for d in lines if d.kind == "+"),
        deletions=tuple((d.old_line, d.text) for d in lines if d.kind == "-"),
        lines=tuple(lines),
    )


def ref(tracker, number, action=IssueAction.MENTIONS, project=None):
    return IssueReference(tracker, number, action, project)


class TestParseIssueReferences:
    def test_closing_keyword(self):
        assert parse_issue_references("Fix crash\n\nFixes #12") == [
            ref(IssueTracker.GENERIC, 12, IssueAction.FIXES)
        ]

    def test_trackers_and_actions(self):
        assert parse_issue_references("Closes GH-3 and mentions #4") == [
            ref(IssueTracker.GITHUB, 3, IssueAction.CLOSES),
            ref(IssueTracker.GENERIC, 4),
        ]
        assert parse_issue_references("resolved PROJ-42") == [
            ref(IssueTracker.JIRA, 42, IssueAction.RESOLVES, "PROJ")
        ]
        assert parse_issue_references("See GL-7") == [
            ref(IssueTracker.GITLAB, 7, IssueAction.RELATES)
        ]
        assert parse_issue_references("fixed #10") == [
            ref(IssueTracker.GENERIC, 10, IssueAction.FIXES)
        ]

    def test_each_issue_once(self):
        refs = parse_issue_references("fixes #5, follow-up to #5")
        assert refs == [ref(IssueTracker.GENERIC, 5, IssueAction.FIXES)]

    def test_closing_references_first(self):
        refs = parse_issue_references("Mentions #9 and fixes #2")
        assert [r.number for r in refs] == [2, 9]
        assert [r.closes for r in refs] == [True, False]

    def test_github_and_gitlab_keys_are_not_jira(self):
        assert parse_issue_references("GH-1 GL-2") == [
            ref(IssueTracker.GITHUB, 1),
            ref(IssueTracker.GITLAB, 2),
        ]

    @pytest.mark.parametrize("message", [None, "", "no references here", "entity &#123;"])
    def test_nothing_found(self, message):
        assert parse_issue_references(message) == []

    def test_str(self):
        assert [str(r) for r in parse_issue_references("#1 GH-2 GL-3 ABC-4")] == [
            "#1",
            "GH-2",
            "GL-3",
            "ABC-4",
        ]


class TestBuildIssueUrl:
    def test_github(self):
        config = MiningConfig(github_repo="owner/repo")
        assert (
            build_issue_url(ref(IssueTracker.GITHUB, 123), config)
            == "https://github.com/owner/repo/issues/123"
        )
        assert (
            build_issue_url(ref(IssueTracker.GENERIC, 5), config)
            == "https://github.com/owner/repo/issues/5"
        )

    def test_gitlab(self):
        issue = ref(IssueTracker.GITLAB, 7)
        assert (
            build_issue_url(issue, MiningConfig(gitlab_repo="group/proj"))
            == "https://gitlab.com/group/proj/-/issues/7"
        )
        custom = MiningConfig(gitlab_repo="group/proj", gitlab_url="https://git.example.com/")
        assert build_issue_url(issue, custom) == "https://git.example.com/group/proj/-/issues/7"

    def test_jira(self):
        config = MiningConfig(jira_url="https://jira.example.com")
        issue = ref(IssueTracker.JIRA, 42, project="PROJ")
        assert build_issue_url(issue, config) == "https://jira.example.com/browse/PROJ-42"

    @pytest.mark.parametrize("tracker", list(IssueTracker))
    def test_unconfigured(self, tracker):
        assert build_issue_url(ref(tracker, 1, project="PROJ")) is None

    def test_with_urls(self):
        refs = with_urls(parse_issue_references("fixes #3"), MiningConfig(github_repo="o/r"))
        assert refs[0].url == "https://github.com/o/r/issues/3"
        assert refs[0].action is IssueAction.FIXES


class TestSummaries:
    @pytest.mark.parametrize(
        "subject, name",
        [
            ("feat(api): user search", "user search"),
            ("feature: dark mode", "dark mode"),
            ("Add user search", "user search"),
            ("Implementing caching layer", "caching layer"),
            ("introduces rate limits", "rate limits"),
            ("Something else entirely", "Something else entirely"),
        ],
    )
    def test_feature_name(self, subject, name):
        assert feature_name(subject) == name

    @pytest.mark.parametrize(
        "subject, description",
        [
            ("fix: handle nil input", "handle nil input"),
            ("hotfix!: urgent patch", "urgent patch"),
            ("Fixed crash on start", "crash on start"),
            ("Resolves race in cache", "race in cache"),
            ("Nil input crashed the parser", "Nil input crashed the parser"),
        ],
    )
    def test_bugfix_description(self, subject, description):
        assert bugfix_description(subject) == description


class TestChangedFunctions:
    def test_edited_and_added(self):
        hunk = make_hunk(
            "lib/my_app/util.ex",
            [
                " defmodule MyApp.Util do",
                "   def untouched(x), do: x",
                "   def edited(a) do",
                "-    a",
                "+    a * 2",
                "   end",
                "+",
                "+  def added(a, b), do: a + b",
                " end",
            ],
        )
        assert changed_functions([hunk]) == (FunctionRef("edited", 1), FunctionRef("added", 2))

    def test_deleted_private_function(self):
        hunk = make_hunk("lib/my_app/util.ex", ["-  defp gone(x), do: x", "   def kept(x), do: x"])
        assert changed_functions([hunk]) == (FunctionRef("gone", 1),)

    def test_non_source_files_ignored(self):
        hunk = make_hunk("README.md", ["+def added(a), do: a"])
        assert changed_functions([hunk]) == ()


class TestFromActivity:
    def test_feature(self):
        commit = make_commit("feat(search): user search", "Closes #12")
        activity = classify_commit(None, commit, include_scope=False)
        hunk = make_hunk("lib/my_app/search.ex", ["+  def search(q), do: q"])

        feature = feature_from_activity(activity, [hunk], MiningConfig(github_repo="o/r"))

        assert feature.name == "user search"
        assert feature.description == "Closes #12"
        assert feature.functions == (FunctionRef("search", 1),)
        assert feature.modules == ()
        assert feature.classification == activity.classification
        assert has_issues(feature)
        [closing] = closing_issues(feature)
        assert closing.url == "https://github.com/o/r/issues/12"

    def test_bugfix_mentioning_issue(self):
        commit = make_commit("fix: crash on nil (PROJ-7)")
        activity = classify_commit(None, commit, include_scope=False)

        bugfix = bugfix_from_activity(activity, config=MiningConfig(jira_url="https://jira.example.com"))

        assert bugfix.description == "crash on nil (PROJ-7)"
        assert bugfix.affected_functions == ()
        assert [r.url for r in bugfix.issue_refs] == ["https://jira.example.com/browse/PROJ-7"]
        assert has_issues(bugfix)
        assert closing_issues(bugfix) == []


GREETER = """\
defmodule MyApp.Greeter do
  def hello(name) do
    "Hello " <> name
  end
end
"""

GREETER_FIXED = """\
defmodule MyApp.Greeter do
  def hello(name) do
    "Hello " <> String.trim(name)
  end
end
"""


@pytest.fixture
def changes(git_repo):
    git_repo.write("lib/my_app/greeter.ex", GREETER)
    feature = git_repo.commit("feat: add greeter\n\nCloses #1")
    git_repo.write("lib/my_app/greeter.ex", GREETER_FIXED)
    bugfix = git_repo.commit("fix(greeter): trim names\n\nFixes GH-2")
    git_repo.write("README.md", "# Greeter\n")
    docs = git_repo.commit("docs: readme")
    return git_repo, feature, bugfix, docs


class TestDetectInRepository:
    def test_detect_features(self, changes):
        repo, feature_sha, bugfix_sha, _ = changes
        [feature] = detect_features(repo.root, feature_sha)
        assert feature.name == "add greeter"
        assert feature.commit.sha == feature_sha
        assert feature.modules == ("MyApp.Greeter",)
        assert feature.functions == (FunctionRef("hello", 1),)
        assert feature.scope.lines_added == 5
        assert closing_issues(feature) == [ref(IssueTracker.GENERIC, 1, IssueAction.CLOSES)]
        assert detect_features(repo.root, bugfix_sha) == []

    def test_detect_bugfixes(self, changes):
        repo, feature_sha, bugfix_sha, _ = changes
        [bugfix] = detect_bugfixes(repo.root, bugfix_sha)
        assert bugfix.description == "trim names"
        assert bugfix.affected_modules == ("MyApp.Greeter",)
        assert bugfix.affected_functions == (FunctionRef("hello", 1),)
        assert bugfix.issue_refs == (ref(IssueTracker.GITHUB, 2, IssueAction.FIXES),)
        assert detect_bugfixes(repo.root, feature_sha) == []

    def test_urls_from_config(self, changes):
        repo, feature_sha, _, _ = changes
        config = MiningConfig(github_repo="acme/greeter")
        [feature] = detect_features(repo.root, feature_sha, config=config)
        assert feature.issue_refs[0].url == "https://github.com/acme/greeter/issues/1"

    def test_detect_all(self, changes):
        repo, feature_sha, bugfix_sha, docs_sha = changes
        tracked = detect_all(repo.root, [feature_sha, bugfix_sha, docs_sha, "no-such-ref"])
        assert [f.commit.sha for f in tracked.features] == [feature_sha]
        assert [b.commit.sha for b in tracked.bugfixes] == [bugfix_sha]
        assert list(tracked.failures) == ["no-such-ref"]
