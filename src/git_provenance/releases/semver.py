"""Semantic version parsing and ordering."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..exceptions import InvalidVersionError

_IDENT = r"(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
_SEMVER_RE = re.compile(
    r"(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    rf"(?:-(?P<prerelease>{_IDENT}(?:\.{_IDENT})*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
)


class Ordering(Enum):
    LT = "lt"
    EQ = "eq"
    GT = "gt"

    @classmethod
    def of(cls, a, b) -> "Ordering":
        if a < b:
            return cls.LT
        if a > b:
            return cls.GT
        return cls.EQ


@dataclass(frozen=True)
class Semver:
    major: int
    minor: int
    patch: int
    prerelease: Optional[str] = None
    build: Optional[str] = None

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text


def parse_semver(text: str) -> Semver:
    """Parse ``[v]MAJOR.MINOR.PATCH[-prerelease][+build]``.

    Raises:
        InvalidVersionError: Anything else, including two-component versions
            and numeric components with leading zeros
    """
    if not isinstance(text, str):
        raise InvalidVersionError(repr(text))
    body = text[1:] if text.startswith("v") else text
    match = _SEMVER_RE.fullmatch(body)
    if not match:
        raise InvalidVersionError(text)
    return Semver(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        patch=int(match.group("patch")),
        prerelease=match.group("prerelease") or None,
        build=match.group("build") or None,
    )


def try_parse_semver(text: str) -> Optional[Semver]:
    try:
        return parse_semver(text)
    except InvalidVersionError:
        return None


def compare_semver(a: Semver, b: Semver) -> Ordering:
    """Precedence order; build metadata is ignored."""
    core = Ordering.of((a.major, a.minor, a.patch), (b.major, b.minor, b.patch))
    if core is not Ordering.EQ:
        return core
    if a.prerelease is None and b.prerelease is None:
        return Ordering.EQ
    if a.prerelease is None:
        return Ordering.GT
    if b.prerelease is None:
        return Ordering.LT
    return Ordering.of(a.prerelease, b.prerelease)


def compare_versions(a: str, b: str) -> Ordering:
    """Compare two version strings.

    When either side is not a valid semantic version the raw strings are
    compared lexicographically, which can misorder malformed tags
    (``"10.0"`` sorts before ``"9.0"``).
    """
    first, second = try_parse_semver(a), try_parse_semver(b)
    if first is None or second is None:
        return Ordering.of(a, b)
    return compare_semver(first, second)
