"""Data models for feature and bug-fix tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..activity.models import Classification, Scope
from ..history.models import Commit
from ..refactoring.models import FunctionRef


class IssueTracker(Enum):
    GITHUB = "github"
    GITLAB = "gitlab"
    JIRA = "jira"
    GENERIC = "generic"


class IssueAction(Enum):
    MENTIONS = "mentions"
    FIXES = "fixes"
    CLOSES = "closes"
    RESOLVES = "resolves"
    RELATES = "relates"


CLOSING_ACTIONS = frozenset({IssueAction.FIXES, IssueAction.CLOSES, IssueAction.RESOLVES})


@dataclass(frozen=True)
class IssueReference:
    """An issue named in a commit message (``#12``, ``GH-12``, ``GL-12``, ``PROJ-12``)."""

    tracker: IssueTracker
    number: int
    action: IssueAction = IssueAction.MENTIONS
    project: Optional[str] = None  # Jira project key
    url: Optional[str] = None

    @property
    def closes(self) -> bool:
        return self.action in CLOSING_ACTIONS

    @property
    def key(self) -> tuple[IssueTracker, int, Optional[str]]:
        return self.tracker, self.number, self.project

    def __str__(self) -> str:
        if self.tracker is IssueTracker.GITHUB:
            return f"GH-{self.number}"
        if self.tracker is IssueTracker.GITLAB:
            return f"GL-{self.number}"
        if self.tracker is IssueTracker.JIRA:
            return f"{self.project}-{self.number}"
        return f"#{self.number}"


@dataclass(frozen=True)
class FeatureAddition:
    name: str
    commit: Commit
    description: Optional[str] = None  # commit body
    modules: tuple[str, ...] = ()
    functions: tuple[FunctionRef, ...] = ()
    issue_refs: tuple[IssueReference, ...] = ()
    scope: Optional[Scope] = None
    classification: Optional[Classification] = None

    @property
    def has_issues(self) -> bool:
        return bool(self.issue_refs)


@dataclass(frozen=True)
class BugFix:
    description: str
    commit: Commit
    affected_modules: tuple[str, ...] = ()
    affected_functions: tuple[FunctionRef, ...] = ()
    issue_refs: tuple[IssueReference, ...] = ()
    scope: Optional[Scope] = None
    classification: Optional[Classification] = None

    @property
    def has_issues(self) -> bool:
        return bool(self.issue_refs)


@dataclass(frozen=True)
class TrackedChanges:
    """Features and bug fixes found in a batch of commits, in input order."""

    features: tuple[FeatureAddition, ...] = ()
    bugfixes: tuple[BugFix, ...] = ()
    failures: dict[str, str] = field(default_factory=dict, compare=False)
