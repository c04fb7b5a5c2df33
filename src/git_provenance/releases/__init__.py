"""Releases, semantic versions and project versions."""

from .models import ProjectInfo, Release, TagInfo
from .semver import (
    Ordering,
    Semver,
    compare_semver,
    compare_versions,
    parse_semver,
    try_parse_semver,
)
from .tracker import (
    extract_current_version,
    extract_project_info,
    extract_release,
    extract_releases,
    extract_tag_info,
    extract_version_at_commit,
    is_version_tag,
    link_previous_releases,
    list_tags,
    list_version_tags,
    parse_project_file,
    release_progression,
    sort_releases,
    version_from_tag,
)

__all__ = [
    "Ordering",
    "ProjectInfo",
    "Release",
    "Semver",
    "TagInfo",
    "compare_semver",
    "compare_versions",
    "extract_current_version",
    "extract_project_info",
    "extract_release",
    "extract_releases",
    "extract_tag_info",
    "extract_version_at_commit",
    "is_version_tag",
    "link_previous_releases",
    "list_tags",
    "list_version_tags",
    "parse_project_file",
    "parse_semver",
    "release_progression",
    "sort_releases",
    "try_parse_semver",
    "version_from_tag",
]
