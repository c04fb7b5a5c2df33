"""Commit metadata extraction via formatted ``git log`` queries."""

from __future__ import annotations

import re
from typing import Optional

from ..config import MiningConfig
from ..exceptions import GitParseError, InvalidDatetimeError
from ..logging_config import get_logger
from ..vcs import RepoLike, open_repo, parse_iso8601, require_ref, valid_sha
from .models import Commit

logger = get_logger(__name__)

FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"

# sha, short sha, author triple, committer triple, parents, tree, raw message (last,
# since it may contain anything except the separators)
_FIELDS = ("%H", "%h", "%an", "%ae", "%aI", "%cn", "%ce", "%cI", "%P", "%T", "%B")
COMMIT_FORMAT = FIELD_SEP.join(_FIELDS)
_FIELD_COUNT = len(_FIELDS)

_BLANK_LINE_RE = re.compile(r"\n\s*\n")


def extract_commit(
    repo: RepoLike, ref: str = "HEAD", config: Optional[MiningConfig] = None
) -> Commit:
    """Metadata of the commit ``ref`` resolves to.

    Raises:
        InvalidRefError: ``ref`` is malformed or unknown
        RepoNotFoundError: ``repo`` is not a git work tree
    """
    require_ref(ref)
    gateway = open_repo(repo, config)
    output = gateway.run_at_ref(["log", "-1", f"--format={COMMIT_FORMAT}", ref, "--"], ref)
    return parse_commit_record(output)


def extract_commits(
    repo: RepoLike,
    limit: Optional[int] = None,
    from_ref: str = "HEAD",
    offset: int = 0,
    config: Optional[MiningConfig] = None,
) -> list[Commit]:
    """Up to ``limit`` commits reachable from ``from_ref``, newest first.

    ``limit`` defaults to ``config.default_commit_limit`` and is capped at
    ``config.max_commits``; ``offset`` skips that many commits first.
    Malformed records are skipped.
    """
    require_ref(from_ref)
    gateway = open_repo(repo, config)
    effective = gateway.config.cap_limit(limit or gateway.config.default_commit_limit)
    args = [
        "log",
        f"--format={COMMIT_FORMAT}{RECORD_SEP}",
        "-n",
        str(effective),
    ]
    if offset > 0:
        args.append(f"--skip={offset}")
    args.extend([from_ref, "--"])
    output = gateway.run_at_ref(args, from_ref)

    commits = []
    for record in output.split(RECORD_SEP):
        record = record.lstrip("\n")
        if not record.strip():
            continue
        try:
            commits.append(parse_commit_record(record))
        except (GitParseError, InvalidDatetimeError) as e:
            logger.debug("Skipping malformed commit record: %s", e)
    return commits


def changed_files(
    repo: RepoLike, sha: str, config: Optional[MiningConfig] = None
) -> list[str]:
    """Paths touched by commit ``sha`` against its first parent (all files for a root commit)."""
    require_ref(sha)
    gateway = open_repo(repo, config)
    output = gateway.run_at_ref(
        ["diff-tree", "--no-commit-id", "--name-only", "-r", "--root", sha], sha
    )
    return [line for line in output.splitlines() if line]


def parse_commit_record(record: str) -> Commit:
    """Build a Commit from one ``COMMIT_FORMAT`` record."""
    parts = record.split(FIELD_SEP, _FIELD_COUNT - 1)
    if len(parts) != _FIELD_COUNT:
        raise GitParseError("commit record", f"expected {_FIELD_COUNT} fields, got {len(parts)}")

    (sha, short, a_name, a_email, a_date, c_name, c_email, c_date, parents, tree, message) = parts
    sha = sha.strip()
    if not valid_sha(sha):
        raise GitParseError("commit record", f"invalid sha {sha!r}")

    message = message.rstrip("\n")
    return Commit(
        sha=sha,
        short_sha=short.strip() or sha[:7],
        message=message,
        subject=parse_subject(message),
        body=parse_body(message),
        author_name=_empty_to_none(a_name),
        author_email=_empty_to_none(a_email),
        author_date=parse_iso8601(a_date) if a_date.strip() else None,
        committer_name=_empty_to_none(c_name),
        committer_email=_empty_to_none(c_email),
        commit_date=parse_iso8601(c_date) if c_date.strip() else None,
        parents=tuple(p for p in parents.split() if valid_sha(p)),
        tree_sha=_empty_to_none(tree),
    )


def parse_subject(message: Optional[str]) -> Optional[str]:
    if not message:
        return None
    subject = message.split("\n", 1)[0].strip()
    return subject or None


def parse_body(message: Optional[str]) -> Optional[str]:
    if not message:
        return None
    parts = _BLANK_LINE_RE.split(message, maxsplit=1)
    if len(parts) < 2:
        return None
    body = parts[1].strip()
    return body or None


def _empty_to_none(value: str) -> Optional[str]:
    value = value.strip()
    return value or None
