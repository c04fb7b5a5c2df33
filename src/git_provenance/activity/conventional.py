"""Conventional-commit grammar and the activity synonym table."""

from __future__ import annotations

import re
from typing import Optional

from .models import ActivityType, ConventionalCommit

# type(scope)!: description, first line only
_CONVENTIONAL_RE = re.compile(r"^(\w+(?:-\w+)*)(?:\(([^)]*)\))?(!)?\s*:\s*(.+)$")

TYPE_SYNONYMS: dict[str, ActivityType] = {
    "feat": ActivityType.FEATURE,
    "feature": ActivityType.FEATURE,
    "fix": ActivityType.BUGFIX,
    "bugfix": ActivityType.BUGFIX,
    "bug-fix": ActivityType.BUGFIX,
    "hotfix": ActivityType.BUGFIX,
    "docs": ActivityType.DOCS,
    "doc": ActivityType.DOCS,
    "test": ActivityType.TEST,
    "tests": ActivityType.TEST,
    "refactor": ActivityType.REFACTOR,
    "chore": ActivityType.CHORE,
    "build": ActivityType.CHORE,
    "style": ActivityType.STYLE,
    "perf": ActivityType.PERF,
    "performance": ActivityType.PERF,
    "ci": ActivityType.CI,
    "revert": ActivityType.REVERT,
    "deps": ActivityType.DEPS,
    "dependency": ActivityType.DEPS,
    "dependencies": ActivityType.DEPS,
    "release": ActivityType.RELEASE,
    "version": ActivityType.RELEASE,
    "wip": ActivityType.WIP,
}


def parse_conventional_commit(subject: Optional[str]) -> Optional[ConventionalCommit]:
    """Parse the first line of a message; None when it is not conventional."""
    if not subject:
        return None
    first_line = subject.split("\n", 1)[0].strip()
    match = _CONVENTIONAL_RE.match(first_line)
    if not match:
        return None
    raw_type, scope, bang, description = match.groups()
    scope = scope.strip() if scope is not None else None
    return ConventionalCommit(
        type=raw_type.lower(),
        scope=scope or None,
        breaking=bang is not None,
        description=description.strip(),
    )


def conventional_commit(subject: Optional[str]) -> bool:
    return parse_conventional_commit(subject) is not None


def type_from_string(raw: Optional[str]) -> ActivityType:
    """Map a raw type token to the activity enum, case-insensitively."""
    if not raw:
        return ActivityType.UNKNOWN
    return TYPE_SYNONYMS.get(raw.strip().lower(), ActivityType.UNKNOWN)
