"""Per-line authorship from ``git blame --porcelain``."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..concurrency import map_isolated
from ..config import MiningConfig
from ..exceptions import (
    CommandFailedError,
    CommandTimeoutError,
    FileNotFoundAtRevisionError,
    FileNotTrackedError,
    InvalidRefError,
    InvalidTimestampError,
)
from ..logging_config import get_logger
from ..vcs import (
    UNCOMMITTED_SHA,
    GitGateway,
    RepoLike,
    anonymize_email,
    normalize_file_path,
    open_repo,
    parse_unix_timestamp,
    require_ref,
)
from ..vcs.gateway import is_unknown_revision
from .models import BlameLine, FileBlame

logger = get_logger(__name__)

_HEADER_RE = re.compile(r"^([0-9a-f]{40}) (\d+) (\d+)(?: (\d+))?$")


def extract_blame(
    repo: RepoLike,
    path: str,
    revision: Optional[str] = None,
    line_range: Optional[tuple[int, int]] = None,
    anonymize_emails: Optional[bool] = None,
    config: Optional[MiningConfig] = None,
) -> FileBlame:
    """Blame ``path`` at ``revision`` (working tree when None).

    Args:
        repo: Repository path or gateway
        path: File path, relative or absolute under the repository root
        revision: Commit-ish to blame at
        line_range: Optional inclusive 1-based ``(start, end)``
        anonymize_emails: Replace emails with their sha256 digest
            (defaults to ``config.anonymize_emails``)

    Raises:
        InvalidPathError / OutsideRepoError: Unsafe path
        InvalidRefError: Malformed or unknown revision
        FileNotFoundAtRevisionError: The path does not exist at ``revision``
        FileNotTrackedError: The file exists but git does not track it
    """
    if revision is not None:
        require_ref(revision)
    if line_range is not None:
        start, end = line_range
        if start < 1 or end < start:
            raise ValueError(f"invalid line range {line_range!r}")

    gateway = open_repo(repo, config)
    relative = normalize_file_path(path, gateway.repo_root)
    if anonymize_emails is None:
        anonymize_emails = gateway.config.anonymize_emails

    if revision is None:
        if not (gateway.repo_root / relative).is_file():
            raise FileNotFoundAtRevisionError(relative)
    elif not gateway.file_exists_at(revision, relative):
        if not gateway.try_run(["cat-file", "-e", f"{revision}^{{commit}}"]).ok:
            raise InvalidRefError(revision, "unknown revision")
        raise FileNotFoundAtRevisionError(relative, revision)

    args = ["blame", "--porcelain"]
    if line_range is not None:
        args.extend(["-L", f"{line_range[0]},{line_range[1]}"])
    if revision is not None:
        args.append(revision)
    args.extend(["--", relative])

    result = gateway.try_run(args)
    if not result.ok:
        if "no such path" in result.error.lower():
            raise FileNotTrackedError(relative)
        if revision is not None and is_unknown_revision(result.error):
            raise InvalidRefError(revision, "unknown revision")
        raise CommandFailedError(args, result.returncode, result.error)

    reference_time = _revision_timestamp(gateway, revision)
    lines = parse_porcelain(result.output, reference_time, anonymize_emails)
    return FileBlame.from_lines(relative, revision, lines)


def extract_blames(
    repo: RepoLike,
    paths: Iterable[str],
    revision: Optional[str] = None,
    max_workers: Optional[int] = None,
    config: Optional[MiningConfig] = None,
) -> dict[str, FileBlame]:
    """Blame several files concurrently, best effort.

    Files that fail are logged and omitted; the result preserves input order.
    """
    gateway = open_repo(repo, config)
    workers = max_workers or gateway.config.workers
    outcomes = map_isolated(
        lambda p: extract_blame(gateway, p, revision=revision), list(paths), workers
    )
    return {outcome.item: outcome.value for outcome in outcomes if outcome.ok}


def parse_porcelain(
    output: str,
    reference_time: Optional[datetime] = None,
    anonymize_emails: bool = False,
) -> list[BlameLine]:
    """Parse ``git blame --porcelain`` output into BlameLines.

    Commit headers are emitted once per commit; the info collected the first
    time a SHA appears is reused for every later line from that commit.
    """
    commit_info: dict[str, dict[str, str]] = {}
    lines: list[BlameLine] = []
    current_sha: Optional[str] = None
    original_line: Optional[int] = None
    final_line: Optional[int] = None

    for raw in output.split("\n"):
        if raw.startswith("\t"):
            if current_sha is None or final_line is None:
                continue
            info = commit_info.get(current_sha, {})
            lines.append(
                _build_line(
                    current_sha,
                    final_line,
                    original_line,
                    raw[1:],
                    info,
                    reference_time,
                    anonymize_emails,
                )
            )
            current_sha = None
            continue

        header = _HEADER_RE.match(raw)
        if header:
            current_sha = header.group(1)
            original_line = int(header.group(2))
            final_line = int(header.group(3))
            commit_info.setdefault(current_sha, {})
            continue

        if current_sha is None or not raw:
            continue
        key, _, value = raw.partition(" ")
        commit_info[current_sha].setdefault(key, value)

    return lines


def _build_line(
    sha: str,
    final_line: int,
    original_line: Optional[int],
    content: str,
    info: dict[str, str],
    reference_time: Optional[datetime],
    anonymize_emails: bool,
) -> BlameLine:
    if sha == UNCOMMITTED_SHA:
        return BlameLine(
            line_number=final_line,
            commit_sha=sha,
            content=content,
            original_line=original_line,
            is_uncommitted=True,
        )

    author_email = _strip_angles(info.get("author-mail"))
    committer_email = _strip_angles(info.get("committer-mail"))
    if anonymize_emails:
        author_email = anonymize_email(author_email)
        committer_email = anonymize_email(committer_email)

    author_time = _parse_time(info.get("author-time"))
    age = None
    if author_time is not None and reference_time is not None:
        age = int((reference_time - author_time).total_seconds())

    return BlameLine(
        line_number=final_line,
        commit_sha=sha,
        content=content,
        author_name=info.get("author") or None,
        author_email=author_email,
        author_time=author_time,
        committer_name=info.get("committer") or None,
        committer_email=committer_email,
        commit_time=_parse_time(info.get("committer-time")),
        summary=info.get("summary") or None,
        original_line=original_line,
        original_path=info.get("filename") or None,
        line_age_seconds=age,
    )


def _revision_timestamp(gateway: GitGateway, revision: Optional[str]) -> datetime:
    """Commit time of ``revision``; HEAD for the working tree, now without commits."""
    try:
        return gateway.commit_timestamp(revision or "HEAD")
    except CommandTimeoutError:
        raise
    except (InvalidRefError, CommandFailedError):
        if revision is not None:
            raise
        return datetime.now(timezone.utc)


def _strip_angles(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    if value.startswith("<") and value.endswith(">"):
        value = value[1:-1]
    return value or None


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return parse_unix_timestamp(value)
    except InvalidTimestampError:
        logger.debug("Ignoring malformed blame timestamp %r", value)
        return None
