"""Data models for classified commits."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..history.models import Commit


class ActivityType(Enum):
    FEATURE = "feature"
    BUGFIX = "bugfix"
    DOCS = "docs"
    TEST = "test"
    REFACTOR = "refactor"
    CHORE = "chore"
    STYLE = "style"
    PERF = "perf"
    CI = "ci"
    REVERT = "revert"
    DEPS = "deps"
    RELEASE = "release"
    WIP = "wip"
    UNKNOWN = "unknown"


class ClassificationMethod(Enum):
    CONVENTIONAL_COMMIT = "conventional_commit"
    KEYWORD = "keyword"
    FILE_BASED = "file_based"


class Confidence(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 2, "medium": 1, "low": 0}[self.value]


@dataclass(frozen=True)
class ConventionalCommit:
    type: str  # raw, lower-cased token
    scope: Optional[str]
    breaking: bool
    description: str


@dataclass(frozen=True)
class Classification:
    method: ClassificationMethod
    confidence: Confidence
    raw_type: Optional[str] = None
    breaking: bool = False
    scope_hint: Optional[str] = None


@dataclass(frozen=True)
class Scope:
    files_changed: tuple[str, ...]
    modules_affected: tuple[str, ...]
    lines_added: int
    lines_deleted: int

    @property
    def file_count(self) -> int:
        return len(self.files_changed)


@dataclass(frozen=True)
class Activity:
    activity_id: str
    type: ActivityType
    commit: Commit
    classification: Classification
    scope: Optional[Scope] = None

    @property
    def breaking(self) -> bool:
        return self.classification.breaking
