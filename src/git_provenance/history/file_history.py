"""Per-file commit history with rename-chain reconstruction."""

from __future__ import annotations

import re
from typing import Optional

from ..config import MiningConfig
from ..exceptions import FileNotTrackedError
from ..logging_config import get_logger
from ..vcs import RepoLike, normalize_file_path, open_repo, valid_sha
from .models import FileHistory, Rename

logger = get_logger(__name__)

_RENAME_STATUS_RE = re.compile(r"^R(\d{0,3})$")


def extract_file_history(
    repo: RepoLike,
    path: str,
    limit: Optional[int] = None,
    follow: bool = True,
    config: Optional[MiningConfig] = None,
) -> FileHistory:
    """Commits touching ``path``, newest first, with renames when following.

    Raises:
        InvalidPathError / OutsideRepoError: Unsafe path
        FileNotTrackedError: The path never appears in history
    """
    gateway = open_repo(repo, config)
    relative = normalize_file_path(path, gateway.repo_root)

    args = ["log", "--format=%H"]
    if follow:
        args.append("--follow")
    args.extend(["-n", str(gateway.config.cap_limit(limit)), "--", relative])
    output = gateway.try_run(args)
    commits = tuple(line.strip() for line in output.output.splitlines() if valid_sha(line.strip()))

    if not output.ok or not commits:
        if not output.ok:
            logger.debug("git log for %s failed: %s", relative, output.error.strip())
        raise FileNotTrackedError(relative)

    renames: tuple[Rename, ...] = ()
    if follow:
        renames = tuple(extract_renames(gateway, relative))

    return FileHistory(
        path=relative,
        original_path=renames[0].from_path if renames else None,
        commits=commits,
        renames=renames,
    )


def extract_renames(
    repo: RepoLike, path: str, config: Optional[MiningConfig] = None
) -> list[Rename]:
    """Renames along ``path``'s history, oldest first."""
    gateway = open_repo(repo, config)
    relative = normalize_file_path(path, gateway.repo_root)
    output = gateway.run(
        [
            "log",
            "--format=%H",
            "--name-status",
            "--follow",
            "-M",
            "--diff-filter=R",
            "-n",
            str(gateway.config.max_commits),
            "--",
            relative,
        ]
    )
    renames = parse_rename_log(output)
    renames.reverse()
    return renames


def parse_rename_log(output: str) -> list[Rename]:
    """Parse ``log --format=%H --name-status`` output, newest first.

    Status lines look like ``R<similarity>\\t<old>\\t<new>``.
    """
    renames = []
    current_sha: Optional[str] = None
    for raw in output.splitlines():
        line = raw.strip()
        if not line:
            continue
        if valid_sha(line):
            current_sha = line
            continue
        parts = raw.split("\t")
        if len(parts) < 3 or current_sha is None:
            continue
        match = _RENAME_STATUS_RE.match(parts[0].strip())
        if not match:
            continue
        similarity = int(match.group(1)) if match.group(1) else None
        renames.append(
            Rename(
                from_path=parts[1],
                to_path=parts[2],
                commit_sha=current_sha,
                similarity=similarity,
            )
        )
    return renames


def renamed(history: FileHistory) -> bool:
    return bool(history.renames)


def rename_count(history: FileHistory) -> int:
    return len(history.renames)


def file_exists_in_history(history: FileHistory, sha: str) -> bool:
    return sha in history.commits


def path_at_commit(history: FileHistory, sha: str) -> str:
    """Name the file had at ``sha``.

    A commit older than a rename sees that rename's ``from_path``; the
    rename commit itself and anything newer see ``to_path``.
    """
    if sha not in history.commits:
        return history.path
    position = history.commits.index(sha)
    path = history.path
    # renames are oldest first; walk newest to oldest, stepping back a name
    # each time the commit predates the rename
    for rename in reversed(history.renames):
        if rename.commit_sha not in history.commits:
            continue
        if position > history.commits.index(rename.commit_sha):
            path = rename.from_path
        else:
            break
    return path
