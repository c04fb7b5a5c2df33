"""Deprecated elements: when they were deprecated, replaced and removed."""

from .detector import (
    DEFAULT_MESSAGE,
    deprecations_in_hunks,
    detect_deprecations,
    detect_removals,
    element_at,
    find_deprecation_commits,
    find_following_element,
    has_replacement,
    link_removals,
    parse_deprecated_attribute,
    parse_replacement,
    removals_in_hunks,
    removed,
    track_deprecations,
)
from .models import (
    Deprecation,
    DeprecationEvent,
    ElementType,
    RemovalEvent,
    Replacement,
)

__all__ = [
    "DEFAULT_MESSAGE",
    "Deprecation",
    "DeprecationEvent",
    "ElementType",
    "RemovalEvent",
    "Replacement",
    "deprecations_in_hunks",
    "detect_deprecations",
    "detect_removals",
    "element_at",
    "find_deprecation_commits",
    "find_following_element",
    "has_replacement",
    "link_removals",
    "parse_deprecated_attribute",
    "parse_replacement",
    "removals_in_hunks",
    "removed",
    "track_deprecations",
]
