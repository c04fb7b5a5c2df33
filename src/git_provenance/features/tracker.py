"""Feature additions and bug fixes with the issues they reference."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Union

from ..activity import Activity, ActivityType, classify_commit, parse_conventional_commit
from ..concurrency import map_isolated
from ..config import MiningConfig
from ..history import Commit, extract_commit
from ..logging_config import get_logger
from ..refactoring.diff import get_commit_diff
from ..refactoring.models import DiffHunk, FunctionRef
from ..source.elixir import FUNCTION_KINDS, MACRO_KINDS, scan_definitions
from ..source.naming import DEFAULT_SOURCE_EXTENSIONS, is_source_file
from ..vcs import GitGateway, RepoLike, open_repo
from .issues import parse_issue_references, with_urls
from .models import CLOSING_ACTIONS, BugFix, FeatureAddition, IssueReference, TrackedChanges

logger = get_logger(__name__)

FEATURE_TYPES = frozenset({"feat", "feature"})
BUGFIX_TYPES = frozenset({"fix", "bugfix", "bug-fix", "hotfix"})

_FEATURE_VERB_RE = re.compile(
    r"^(?:add(?:ed|s|ing)?|implement(?:ed|s|ing)?|creat(?:e|ed|es|ing)|introduc(?:e|ed|es|ing))\s+(.+)",
    re.I,
)
_BUGFIX_VERB_RE = re.compile(
    r"^(?:fix(?:ed|es|ing)?|resolv(?:e|ed|es|ing)|repair(?:ed|s|ing)?|correct(?:ed|s|ing)?)\s+(.+)",
    re.I,
)

Tracked = tuple[Optional[FeatureAddition], Optional[BugFix]]


def feature_name(subject: str) -> str:
    """``feat(api): user search`` -> ``user search``; ``Add user search`` likewise."""
    return _summary(subject, FEATURE_TYPES, _FEATURE_VERB_RE)


def bugfix_description(subject: str) -> str:
    return _summary(subject, BUGFIX_TYPES, _BUGFIX_VERB_RE)


def changed_functions(
    hunks: Iterable[DiffHunk], extensions: Iterable[str] = DEFAULT_SOURCE_EXTENSIONS
) -> tuple[FunctionRef, ...]:
    """Functions and macros whose definitions contain a changed line.

    Both sides of each hunk are scanned, so added, edited and deleted
    definitions all count. A definition whose header lies outside the diff
    context is not seen.
    """
    extensions = tuple(extensions)
    found: dict[FunctionRef, None] = {}
    for hunk in hunks:
        if not hunk.lines or not is_source_file(hunk.file, extensions):
            continue
        sides = (
            (hunk.new_side(), {number for number, _ in hunk.additions}),
            (hunk.old_side(), {number for number, _ in hunk.deletions}),
        )
        for side, changed in sides:
            if not changed:
                continue
            numbers = [number for number, _ in side]
            for definition in scan_definitions("\n".join(text for _, text in side)):
                if definition.kind not in FUNCTION_KINDS and definition.kind not in MACRO_KINDS:
                    continue
                start, end = definition.line_range
                if any(numbers[i] in changed for i in range(start - 1, min(end, len(numbers)))):
                    found.setdefault(FunctionRef(definition.name, definition.arity), None)
    return tuple(found)


def feature_from_activity(
    activity: Activity,
    hunks: Iterable[DiffHunk] = (),
    config: Optional[MiningConfig] = None,
) -> FeatureAddition:
    commit = activity.commit
    subject = commit.subject or commit.message or ""
    extensions = config.source_extensions if config else DEFAULT_SOURCE_EXTENSIONS
    return FeatureAddition(
        name=feature_name(subject),
        commit=commit,
        description=commit.body,
        modules=activity.scope.modules_affected if activity.scope else (),
        functions=changed_functions(hunks, extensions),
        issue_refs=tuple(with_urls(_references(commit), config)),
        scope=activity.scope,
        classification=activity.classification,
    )


def bugfix_from_activity(
    activity: Activity,
    hunks: Iterable[DiffHunk] = (),
    config: Optional[MiningConfig] = None,
) -> BugFix:
    commit = activity.commit
    subject = commit.subject or commit.message or ""
    extensions = config.source_extensions if config else DEFAULT_SOURCE_EXTENSIONS
    return BugFix(
        description=bugfix_description(subject),
        commit=commit,
        affected_modules=activity.scope.modules_affected if activity.scope else (),
        affected_functions=changed_functions(hunks, extensions),
        issue_refs=tuple(with_urls(_references(commit), config)),
        scope=activity.scope,
        classification=activity.classification,
    )


def detect_features(
    repo: RepoLike, commit: Union[Commit, str], config: Optional[MiningConfig] = None
) -> list[FeatureAddition]:
    """The feature ``commit`` adds, as a one-element list, or an empty list.

    Raises:
        InvalidRefError: ``commit`` is malformed or unknown
    """
    feature, _ = _track(open_repo(repo, config), commit)
    return [feature] if feature else []


def detect_bugfixes(
    repo: RepoLike, commit: Union[Commit, str], config: Optional[MiningConfig] = None
) -> list[BugFix]:
    """The bug fix ``commit`` makes, as a one-element list, or an empty list."""
    _, bugfix = _track(open_repo(repo, config), commit)
    return [bugfix] if bugfix else []


def detect_all(
    repo: RepoLike, commits: Iterable[Union[Commit, str]], config: Optional[MiningConfig] = None
) -> TrackedChanges:
    """Features and bug fixes across ``commits``.

    Commits that cannot be read are recorded in ``failures`` keyed by the
    commit's SHA (or the ref given) and do not abort the batch.
    """
    gateway = open_repo(repo, config)
    features: list[FeatureAddition] = []
    bugfixes: list[BugFix] = []
    failures: dict[str, str] = {}
    for outcome in map_isolated(lambda c: _track(gateway, c), commits, gateway.config.workers):
        if not outcome.ok:
            item = outcome.item
            failures[item.sha if isinstance(item, Commit) else item] = str(outcome.error)
            continue
        feature, bugfix = outcome.value  # type: ignore[misc]
        if feature:
            features.append(feature)
        if bugfix:
            bugfixes.append(bugfix)
    logger.debug("Found %d features and %d bug fixes", len(features), len(bugfixes))
    return TrackedChanges(features=tuple(features), bugfixes=tuple(bugfixes), failures=failures)


def has_issues(item: Union[FeatureAddition, BugFix]) -> bool:
    return item.has_issues


def closing_issues(item: Union[FeatureAddition, BugFix]) -> list[IssueReference]:
    """References the change fixes, closes or resolves."""
    return [ref for ref in item.issue_refs if ref.action in CLOSING_ACTIONS]


def _track(gateway: GitGateway, commit: Union[Commit, str]) -> Tracked:
    if not isinstance(commit, Commit):
        commit = extract_commit(gateway, commit)
    activity = classify_commit(gateway, commit, include_scope=True)
    if activity.type not in (ActivityType.FEATURE, ActivityType.BUGFIX):
        return None, None
    hunks = get_commit_diff(gateway, commit)
    if activity.type is ActivityType.FEATURE:
        return feature_from_activity(activity, hunks, gateway.config), None
    return None, bugfix_from_activity(activity, hunks, gateway.config)


def _references(commit: Commit) -> list[IssueReference]:
    return parse_issue_references(f"{commit.subject or commit.message or ''} {commit.body or ''}")


def _summary(subject: str, types: frozenset[str], verb_re: re.Pattern) -> str:
    first_line = subject.split("\n", 1)[0].strip()
    conventional = parse_conventional_commit(first_line)
    if conventional is not None and conventional.type in types:
        return conventional.description
    match = verb_re.match(first_line)
    return match.group(1).strip() if match else first_line
