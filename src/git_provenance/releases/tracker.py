"""Releases from version tags, and project versions from ``mix.exs``."""

from __future__ import annotations

import re
from dataclasses import replace
from functools import cmp_to_key
from typing import Optional

from ..concurrency import map_isolated
from ..config import MiningConfig
from ..exceptions import InvalidFormatError, ProvenanceError
from ..history.commits import extract_commit
from ..ids import release_id
from ..logging_config import get_logger
from ..vcs import GitGateway, RepoLike, open_repo, require_ref
from .models import ProjectInfo, Release, TagInfo
from .semver import Ordering, compare_versions, try_parse_semver

logger = get_logger(__name__)

PROJECT_FILE = "mix.exs"

_VERSION_TAG_RES = (re.compile(r"^v?\d+\.\d+"), re.compile(r"^release[_-]?\d+", re.I))
_TAG_PREFIXES = ("v", "release-", "release_")

_VERSION_KEYWORD_RE = re.compile(r"\bversion:\s*\"([^\"]+)\"")
_VERSION_ATTR_RE = re.compile(r"^\s*@version\s+\"([^\"]+)\"", re.M)
_APP_RE = re.compile(r"\bapp:\s*:([a-z_][a-zA-Z0-9_]*)")


def is_version_tag(tag: str) -> bool:
    return any(pattern.match(tag) for pattern in _VERSION_TAG_RES)


def version_from_tag(tag: str) -> str:
    """``v1.2.3`` -> ``1.2.3``; ``release-2`` -> ``2``."""
    for prefix in _TAG_PREFIXES:
        if tag.startswith(prefix):
            return tag[len(prefix) :]
    return tag


def list_tags(repo: RepoLike, config: Optional[MiningConfig] = None) -> list[str]:
    gateway = open_repo(repo, config)
    output = gateway.run(["tag", "--list"])
    return [line.strip() for line in output.splitlines() if line.strip()]


def list_version_tags(repo: RepoLike, config: Optional[MiningConfig] = None) -> list[str]:
    return [tag for tag in list_tags(repo, config) if is_version_tag(tag)]


def extract_tag_info(repo: RepoLike, tag: str, config: Optional[MiningConfig] = None) -> TagInfo:
    """Commit a tag points at (annotated tags are peeled).

    Raises:
        InvalidRefError: The tag name is malformed or unknown
    """
    require_ref(tag)
    gateway = open_repo(repo, config)
    sha = gateway.resolve_commit(tag)
    commit = extract_commit(gateway, sha)
    return TagInfo(tag=tag, commit_sha=commit.sha, short_sha=commit.short_sha, timestamp=commit.commit_date)


def parse_project_file(content: str) -> ProjectInfo:
    """App name and version from ``mix.exs`` source.

    Accepts a literal ``version: "x"`` keyword or ``version: @version`` with a
    ``@version "x"`` attribute.

    Raises:
        InvalidFormatError: No literal version can be found
    """
    keyword = _VERSION_KEYWORD_RE.search(content)
    attribute = _VERSION_ATTR_RE.search(content)
    if keyword:
        version = keyword.group(1)
    elif attribute:
        version = attribute.group(1)
    else:
        raise InvalidFormatError(PROJECT_FILE, "no literal version found")
    app = _APP_RE.search(content)
    return ProjectInfo(name=app.group(1) if app else None, version=version)


def extract_project_info(
    repo: RepoLike, ref: str = "HEAD", config: Optional[MiningConfig] = None
) -> ProjectInfo:
    """Project declared in ``mix.exs`` at ``ref``.

    Raises:
        FileNotFoundAtRevisionError: No ``mix.exs`` at ``ref``
        InvalidFormatError: ``mix.exs`` declares no literal version
    """
    gateway = open_repo(repo, config)
    return parse_project_file(gateway.show_file(ref, PROJECT_FILE))


def extract_version_at_commit(
    repo: RepoLike, ref: str = "HEAD", config: Optional[MiningConfig] = None
) -> str:
    return extract_project_info(repo, ref, config).version


def extract_current_version(repo: RepoLike, config: Optional[MiningConfig] = None) -> str:
    return extract_version_at_commit(repo, "HEAD", config)


def _project_name(gateway: GitGateway, sha: str) -> Optional[str]:
    try:
        return extract_project_info(gateway, sha).name
    except ProvenanceError as e:
        logger.debug("No project info at %s: %s", sha[:7], e.message)
        return None


def extract_release(repo: RepoLike, tag: str, config: Optional[MiningConfig] = None) -> Release:
    """Release for one tag; ``previous_version`` is left unset."""
    gateway = open_repo(repo, config)
    info = extract_tag_info(gateway, tag)
    version = version_from_tag(tag)
    return Release(
        release_id=release_id(tag),
        version=version,
        tag=tag,
        commit_sha=info.commit_sha,
        short_sha=info.short_sha,
        timestamp=info.timestamp,
        semver=try_parse_semver(version),
        project_name=_project_name(gateway, info.commit_sha),
    )


def sort_releases(releases: list[Release], gateway: Optional[GitGateway] = None) -> list[Release]:
    """Newest first by version.

    Equal versions are ordered by ancestry when a gateway is given (a
    descendant commit is newer), then by commit time, then by tag name.
    Ancestry is resolved once per tied pair before sorting; a pair git
    cannot relate falls through to the time and tag order.
    """
    descends = _tie_ancestry(releases, gateway) if gateway is not None else set()

    def compare(a: Release, b: Release) -> int:
        ordering = compare_versions(a.version, b.version)
        if ordering is not Ordering.EQ:
            return 1 if ordering is Ordering.GT else -1
        if (b.commit_sha, a.commit_sha) in descends:
            return 1
        if (a.commit_sha, b.commit_sha) in descends:
            return -1
        if a.timestamp and b.timestamp and a.timestamp != b.timestamp:
            return 1 if a.timestamp > b.timestamp else -1
        a_tag, b_tag = a.tag or "", b.tag or ""
        return (a_tag > b_tag) - (a_tag < b_tag)

    return sorted(releases, key=cmp_to_key(compare), reverse=True)


def _tie_ancestry(releases: list[Release], gateway: GitGateway) -> set[tuple[str, str]]:
    """``(ancestor, descendant)`` commit pairs among releases of equal version."""
    pairs: set[tuple[str, str]] = set()
    checked: set[frozenset[str]] = set()
    for i, a in enumerate(releases):
        for b in releases[i + 1 :]:
            key = frozenset((a.commit_sha, b.commit_sha))
            if len(key) < 2 or key in checked:
                continue
            if compare_versions(a.version, b.version) is not Ordering.EQ:
                continue
            checked.add(key)
            try:
                if gateway.is_ancestor(a.commit_sha, b.commit_sha):
                    pairs.add((a.commit_sha, b.commit_sha))
                elif gateway.is_ancestor(b.commit_sha, a.commit_sha):
                    pairs.add((b.commit_sha, a.commit_sha))
            except ProvenanceError as e:
                logger.warning("Cannot order %s and %s by ancestry: %s", a.tag, b.tag, e)
    return pairs


def link_previous_releases(releases: list[Release]) -> list[Release]:
    """Point each release (newest first) at the version of the next-older one."""
    return [
        replace(release, previous_version=releases[i + 1].version if i + 1 < len(releases) else None)
        for i, release in enumerate(releases)
    ]


def extract_releases(
    repo: RepoLike, include_all_tags: bool = False, config: Optional[MiningConfig] = None
) -> list[Release]:
    """All releases, newest first, linked by ``previous_version``.

    Tags that cannot be resolved are skipped.
    """
    gateway = open_repo(repo, config)
    tags = list_tags(gateway) if include_all_tags else list_version_tags(gateway)
    outcomes = map_isolated(lambda tag: extract_release(gateway, tag), tags, gateway.config.workers)
    releases = [o.value for o in outcomes if o.ok]
    return link_previous_releases(sort_releases(releases, gateway))  # type: ignore[arg-type]


def release_progression(
    repo: RepoLike, config: Optional[MiningConfig] = None
) -> list[Release]:
    """Same as extract_releases, oldest first."""
    return list(reversed(extract_releases(repo, config=config)))
