"""Developer identities: projection from commits and email-keyed merging.

Identities are keyed by lower-cased email only; one person using several
emails stays several developers.
"""

from __future__ import annotations

from datetime import datetime
from functools import reduce
from typing import Iterable, Optional

from ..history.models import Commit
from ..ids import short_sha
from .models import Developer


def placeholder_email(sha: str) -> str:
    """Per-commit stand-in so unrelated commits never share a fabricated identity."""
    return f"unknown-{short_sha(sha)}@unknown"


def normalize_email(email: Optional[str], sha: str) -> str:
    if email and email.strip():
        return email.strip().lower()
    return placeholder_email(sha)


def author_from_commit(commit: Commit) -> Developer:
    email = normalize_email(commit.author_email, commit.sha)
    names = frozenset({commit.author_name}) if commit.author_name else frozenset()
    return Developer(
        email=email,
        name=commit.author_name,
        names=names,
        authored_commits=frozenset({commit.sha}),
        first_authored=commit.author_date,
        last_authored=commit.author_date,
    )


def committer_from_commit(commit: Commit) -> Developer:
    email = normalize_email(commit.committer_email, commit.sha)
    names = frozenset({commit.committer_name}) if commit.committer_name else frozenset()
    return Developer(
        email=email,
        name=commit.committer_name,
        names=names,
        committed_commits=frozenset({commit.sha}),
        first_committed=commit.commit_date,
        last_committed=commit.commit_date,
    )


def from_commit(commit: Commit) -> list[Developer]:
    """Author and committer; a single merged entry when they share an email."""
    author = author_from_commit(commit)
    committer = committer_from_commit(commit)
    if author.email == committer.email:
        return [merge_developers(author, committer)]
    return [author, committer]


def from_commits(commits: Iterable[Commit]) -> list[Developer]:
    """Deduplicated developers across commits, most active first.

    Ties on commit count are ordered by email.
    """
    by_email: dict[str, Developer] = {}
    for commit in commits:
        for developer in from_commit(commit):
            existing = by_email.get(developer.email)
            by_email[developer.email] = (
                developer if existing is None else merge_developers(existing, developer)
            )
    return sorted(by_email.values(), key=lambda d: (-d.commit_count, d.email))


def merge_developers(a: Developer, b: Developer) -> Developer:
    """Union of two records for the same email.

    Commutative and idempotent: commit and name sets are unioned, first/last
    dates take min/max, and the display name is the one used most recently
    (ties broken by the lexically greatest name).
    """
    if a.email != b.email:
        raise ValueError(f"cannot merge developers with different emails: {a.email} != {b.email}")
    return Developer(
        email=a.email,
        name=_latest_name(a, b),
        names=a.names | b.names,
        authored_commits=a.authored_commits | b.authored_commits,
        committed_commits=a.committed_commits | b.committed_commits,
        first_authored=_min(a.first_authored, b.first_authored),
        last_authored=_max(a.last_authored, b.last_authored),
        first_committed=_min(a.first_committed, b.first_committed),
        last_committed=_max(a.last_committed, b.last_committed),
    )


def merge_all(developers: Iterable[Developer]) -> Developer:
    return reduce(merge_developers, developers)


def is_author(developer: Developer) -> bool:
    return bool(developer.authored_commits)


def is_committer(developer: Developer) -> bool:
    return bool(developer.committed_commits)


def authored_count(developer: Developer) -> int:
    return len(developer.authored_commits)


def committed_count(developer: Developer) -> int:
    return len(developer.committed_commits)


def has_name_variations(developer: Developer) -> bool:
    return len(developer.names) > 1


def _latest_name(a: Developer, b: Developer) -> Optional[str]:
    candidates = [d for d in (a, b) if d.name]
    if not candidates:
        return None
    return max(candidates, key=_name_recency).name


def _name_recency(developer: Developer) -> tuple[bool, float, str]:
    last_seen = developer.last_seen
    return (last_seen is not None, last_seen.timestamp() if last_seen else 0.0, developer.name or "")


def _min(x: Optional[datetime], y: Optional[datetime]) -> Optional[datetime]:
    if x is None:
        return y
    if y is None:
        return x
    return min(x, y)


def _max(x: Optional[datetime], y: Optional[datetime]) -> Optional[datetime]:
    if x is None:
        return y
    if y is None:
        return x
    return max(x, y)
