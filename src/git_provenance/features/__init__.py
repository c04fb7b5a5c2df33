"""Feature additions, bug fixes and the issues commits reference."""

from .issues import build_issue_url, parse_issue_references, with_urls
from .models import (
    CLOSING_ACTIONS,
    BugFix,
    FeatureAddition,
    IssueAction,
    IssueReference,
    IssueTracker,
    TrackedChanges,
)
from .tracker import (
    bugfix_description,
    bugfix_from_activity,
    changed_functions,
    closing_issues,
    detect_all,
    detect_bugfixes,
    detect_features,
    feature_from_activity,
    feature_name,
    has_issues,
)

__all__ = [
    "CLOSING_ACTIONS",
    "BugFix",
    "FeatureAddition",
    "IssueAction",
    "IssueReference",
    "IssueTracker",
    "TrackedChanges",
    "bugfix_description",
    "bugfix_from_activity",
    "build_issue_url",
    "changed_functions",
    "closing_issues",
    "detect_all",
    "detect_bugfixes",
    "detect_features",
    "feature_from_activity",
    "feature_name",
    "has_issues",
    "parse_issue_references",
    "with_urls",
]
