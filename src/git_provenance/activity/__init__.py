"""Commit classification into typed development activities."""

from .classifier import (
    KEYWORD_RULES,
    breaking_change,
    classify_by_files,
    classify_by_keywords,
    classify_commit,
    classify_commits,
    classify_message,
    extract_scope,
    scope_from_hunks,
)
from .conventional import (
    TYPE_SYNONYMS,
    conventional_commit,
    parse_conventional_commit,
    type_from_string,
)
from .models import (
    Activity,
    ActivityType,
    Classification,
    ClassificationMethod,
    Confidence,
    ConventionalCommit,
    Scope,
)

__all__ = [
    "KEYWORD_RULES",
    "TYPE_SYNONYMS",
    "Activity",
    "ActivityType",
    "Classification",
    "ClassificationMethod",
    "Confidence",
    "ConventionalCommit",
    "Scope",
    "breaking_change",
    "classify_by_files",
    "classify_by_keywords",
    "classify_commit",
    "classify_commits",
    "classify_message",
    "conventional_commit",
    "extract_scope",
    "parse_conventional_commit",
    "scope_from_hunks",
    "type_from_string",
]
