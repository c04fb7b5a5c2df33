"""Commit classification into development activities."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Sequence

from ..concurrency import map_ordered
from ..config import MiningConfig
from ..history.models import Commit
from ..ids import activity_id
from ..logging_config import get_logger
from ..refactoring.diff import get_commit_diff
from ..refactoring.models import DiffHunk
from ..source.naming import module_from_path
from ..vcs import RepoLike, open_repo
from .conventional import parse_conventional_commit, type_from_string
from .models import (
    Activity,
    ActivityType,
    Classification,
    ClassificationMethod,
    Confidence,
    Scope,
)

logger = get_logger(__name__)

# Ordered: the first matching rule wins, so specific topics ("Add tests",
# "Add caching", "Add documentation") precede the generic feature verbs.
KEYWORD_RULES: Sequence[tuple[ActivityType, re.Pattern[str]]] = (
    (ActivityType.REVERT, re.compile(r"^revert\b", re.I)),
    (
        ActivityType.DOCS,
        re.compile(
            r"\b(doc|docs|documentation|readme|comment|comments|javadoc|typedoc|moduledoc)\b",
            re.I,
        ),
    ),
    (ActivityType.TEST, re.compile(r"\b(test|tests|testing|spec|specs|coverage)\b", re.I)),
    (
        ActivityType.PERF,
        re.compile(
            r"\b(perf|performance|optimi[sz]e|optimi[sz]ed|optimi[sz]ation|speed|faster|cache|caching)\b",
            re.I,
        ),
    ),
    (
        ActivityType.BUGFIX,
        re.compile(
            r"\b(fix|fixed|fixes|fixing|bug|bugfix|repair|resolve|resolved|resolves|closes?|closed)\b",
            re.I,
        ),
    ),
    (
        ActivityType.REFACTOR,
        re.compile(
            r"\b(refactor|refactored|refactoring|restructure|reorganize|cleanup|clean up|simplify)\b",
            re.I,
        ),
    ),
    (ActivityType.CHORE, re.compile(r"\b(chore|build|tooling|config|configure|setup|maintenance)\b", re.I)),
    (ActivityType.STYLE, re.compile(r"\b(style|format|formatting|lint|linting|prettier|credo)\b", re.I)),
    (ActivityType.CI, re.compile(r"\b(ci|cd|pipeline|github actions|travis|circle|jenkins|workflow)\b", re.I)),
    (
        ActivityType.DEPS,
        re.compile(
            r"\b(deps|dependency|dependencies|upgrade|update|bump|version)\s+(mix\.exs|package\.json|gemfile)",
            re.I,
        ),
    ),
    (
        ActivityType.RELEASE,
        re.compile(r"\b(release|version|v?\d+\.\d+\.\d+|bump version|prepare release)\b", re.I),
    ),
    (ActivityType.WIP, re.compile(r"\b(wip|work in progress|todo|fixme|hack)\b", re.I)),
    (
        ActivityType.FEATURE,
        re.compile(
            r"\b(add|added|adding|implement|implemented|implementing|new|create|created|introduce|introduced)\b",
            re.I,
        ),
    ),
)

_BREAKING_FOOTER_RE = re.compile(r"^BREAKING[ -]CHANGE:", re.M)
_BREAKING_WORD_RE = re.compile(r"\bbreaking\b", re.I)

_TEST_SUFFIXES = ("_test.exs", "_test.ex", ".test.js", ".spec.js")
_DOC_SUFFIXES = (".md", ".txt", ".rst")
_DEPS_FILESETS = (("mix.exs",), ("mix.exs", "mix.lock"))


def classify_message(message: Optional[str]) -> tuple[ActivityType, Classification]:
    """Classify by the subject line alone (conventional grammar, then keywords)."""
    subject = message.split("\n", 1)[0] if message else None
    parsed = parse_conventional_commit(subject)
    if parsed is not None:
        breaking = parsed.breaking or bool(message and _BREAKING_FOOTER_RE.search(message))
        return type_from_string(parsed.type), Classification(
            method=ClassificationMethod.CONVENTIONAL_COMMIT,
            confidence=Confidence.HIGH,
            raw_type=parsed.type,
            breaking=breaking,
            scope_hint=parsed.scope,
        )
    return classify_by_keywords(subject)


def classify_by_keywords(subject: Optional[str]) -> tuple[ActivityType, Classification]:
    if subject:
        for activity_type, pattern in KEYWORD_RULES:
            if pattern.search(subject):
                return activity_type, Classification(
                    method=ClassificationMethod.KEYWORD,
                    confidence=Confidence.MEDIUM,
                    breaking=_mentions_breaking(subject),
                )
    return ActivityType.UNKNOWN, Classification(
        method=ClassificationMethod.KEYWORD, confidence=Confidence.LOW
    )


def classify_by_files(files: Sequence[str]) -> tuple[ActivityType, Classification]:
    """Fallback classification from the set of changed paths."""
    if files:
        if all(_is_test_file(f) for f in files):
            return ActivityType.TEST, _file_based(Confidence.MEDIUM)
        if all(_is_doc_file(f) for f in files):
            return ActivityType.DOCS, _file_based(Confidence.MEDIUM)
        if tuple(sorted(files)) in _DEPS_FILESETS:
            return ActivityType.DEPS, _file_based(Confidence.LOW)
        if all(_is_ci_file(f) for f in files):
            return ActivityType.CI, _file_based(Confidence.MEDIUM)
    return ActivityType.UNKNOWN, _file_based(Confidence.LOW)


def classify_commit(
    repo: Optional[RepoLike],
    commit: Commit,
    include_scope: bool = True,
    config: Optional[MiningConfig] = None,
) -> Activity:
    """Classify one commit.

    With ``include_scope`` the commit's diff is read to compute a Scope, and
    an otherwise unknown commit is classified from its changed files.
    ``repo`` may be None when ``include_scope`` is False.
    """
    activity_type, classification = classify_message(commit.message or commit.subject)

    scope = None
    if include_scope:
        if repo is None:
            raise ValueError("a repository is required when include_scope is set")
        scope = extract_scope(repo, commit, config=config)
        if activity_type is ActivityType.UNKNOWN:
            file_type, file_classification = classify_by_files(scope.files_changed)
            if file_type is not ActivityType.UNKNOWN:
                activity_type, classification = file_type, file_classification

    return Activity(
        activity_id=activity_id(commit.sha),
        type=activity_type,
        commit=commit,
        classification=classification,
        scope=scope,
    )


def classify_commits(
    repo: Optional[RepoLike],
    commits: Iterable[Commit],
    include_scope: bool = True,
    max_workers: Optional[int] = None,
    config: Optional[MiningConfig] = None,
) -> list[Activity]:
    """Classify commits, preserving input order."""
    commits = list(commits)
    if not include_scope:
        return [classify_commit(None, commit, include_scope=False) for commit in commits]
    gateway = open_repo(repo, config)  # type: ignore[arg-type]
    return map_ordered(
        lambda commit: classify_commit(gateway, commit, include_scope=True),
        commits,
        max_workers or gateway.config.workers,
    )


def extract_scope(
    repo: RepoLike, commit: Commit, config: Optional[MiningConfig] = None
) -> Scope:
    """Changed files, affected modules and line deltas of a commit."""
    return scope_from_hunks(get_commit_diff(repo, commit, context_lines=0, config=config))


def scope_from_hunks(hunks: Sequence[DiffHunk]) -> Scope:
    files = tuple(dict.fromkeys(h.file for h in hunks))
    modules = tuple(
        dict.fromkeys(
            module_from_path(path)
            for path in files
            if path.startswith("lib/") and path.endswith(".ex")
        )
    )
    return Scope(
        files_changed=files,
        modules_affected=modules,
        lines_added=sum(len(h.additions) for h in hunks),
        lines_deleted=sum(len(h.deletions) for h in hunks),
    )


def breaking_change(activity: Activity) -> bool:
    return activity.classification.breaking


def _mentions_breaking(subject: str) -> bool:
    return (
        "BREAKING CHANGE" in subject
        or "BREAKING:" in subject
        or bool(_BREAKING_WORD_RE.search(subject))
    )


def _file_based(confidence: Confidence) -> Classification:
    return Classification(method=ClassificationMethod.FILE_BASED, confidence=confidence)


def _is_test_file(path: str) -> bool:
    return path.startswith("test/") or "/test/" in path or path.endswith(_TEST_SUFFIXES)


def _is_doc_file(path: str) -> bool:
    return (
        path.endswith(_DOC_SUFFIXES)
        or path.startswith("docs/")
        or path in ("README", "CHANGELOG", "LICENSE")
    )


def _is_ci_file(path: str) -> bool:
    return (
        path.startswith((".github/", ".circleci/", ".travis"))
        or path in (".gitlab-ci.yml", "Jenkinsfile", "azure-pipelines.yml")
    )
