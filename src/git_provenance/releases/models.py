"""Release records built from version tags."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .semver import Semver


@dataclass(frozen=True)
class TagInfo:
    tag: str
    commit_sha: str
    short_sha: str
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class Release:
    """A tagged release.

    ``version`` is the tag with its ``v``/``release-`` prefix removed;
    ``semver`` is None when that text is not a semantic version.
    ``previous_version`` names the next-older release.
    """

    release_id: str
    version: str
    commit_sha: str
    short_sha: str
    tag: Optional[str] = None
    timestamp: Optional[datetime] = None
    semver: Optional[Semver] = None
    previous_version: Optional[str] = None
    project_name: Optional[str] = None


@dataclass(frozen=True)
class ProjectInfo:
    """Name and version declared in ``mix.exs``."""

    name: Optional[str]
    version: str
