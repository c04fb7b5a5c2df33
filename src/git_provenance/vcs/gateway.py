"""Allow-listed git subprocess execution against one repository root."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, Union

from ..config import DEFAULT_CONFIG, MiningConfig
from ..exceptions import (
    CommandFailedError,
    CommandTimeoutError,
    FileNotFoundAtRevisionError,
    InvalidRefError,
    RepoNotFoundError,
)
from ..logging_config import get_logger
from .parsing import parse_unix_timestamp
from .validation import require_ref, require_safe_path

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30
MAX_COMMITS = 10_000

ALLOWED_SUBCOMMANDS = frozenset(
    {
        "blame",
        "cat-file",
        "diff-tree",
        "log",
        "ls-tree",
        "merge-base",
        "rev-parse",
        "show",
        "tag",
    }
)

# stderr fragments git prints when a revision does not resolve
_UNKNOWN_REVISION_MARKERS = (
    "unknown revision",
    "bad revision",
    "bad object",
    "ambiguous argument",
    "not a valid object name",
    "invalid object name",
    "does not have any commits yet",
    "needed a single revision",
)

RepoLike = Union[str, Path, "GitGateway"]


@dataclass(frozen=True)
class CommandResult:
    """Captured output of one git invocation."""

    output: str
    error: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class GitGateway:
    """Runs git subcommands for a single repository.

    The gateway holds no mutable state beyond its configuration; it is safe
    to share between threads.
    """

    def __init__(self, repo_root: Union[str, Path], config: MiningConfig = DEFAULT_CONFIG):
        self.repo_root = Path(repo_root)
        self.config = config

    @classmethod
    def open(
        cls, path: Union[str, Path], config: Optional[MiningConfig] = None
    ) -> "GitGateway":
        """Resolve the work-tree root containing ``path``.

        Raises:
            RepoNotFoundError: ``path`` is missing or not inside a git work tree
        """
        config = config or DEFAULT_CONFIG
        candidate = Path(path).expanduser()
        if not candidate.is_dir():
            raise RepoNotFoundError(candidate, "directory does not exist")

        unresolved = cls(candidate.resolve(), config)
        result = unresolved.try_run(["rev-parse", "--show-toplevel"])
        root = result.output.strip()
        if not result.ok or not root:
            raise RepoNotFoundError(candidate, result.error.strip() or "not a git repository")
        return cls(Path(root), config)

    @property
    def timeout(self) -> int:
        return self.config.git_timeout_seconds

    def _command(self, args: Sequence[str]) -> list[str]:
        if not args or args[0] not in ALLOWED_SUBCOMMANDS:
            raise CommandFailedError(
                list(args), None, reason="subcommand is not allow-listed"
            )
        return [
            self.config.git_binary,
            "-C",
            str(self.repo_root),
            "-c",
            "core.quotepath=off",
            "--no-pager",
            *args,
        ]

    def try_run(self, args: Sequence[str]) -> CommandResult:
        """Run git and return its output without raising on non-zero exit.

        Raises:
            CommandFailedError: The subcommand is not allow-listed or git
                cannot be executed
            CommandTimeoutError: The process exceeded the timeout (it is killed)
        """
        cmd = self._command(args)
        logger.debug("git %s", " ".join(args))
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0", "LC_ALL": "C"}
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                env=env,
            )
        except subprocess.TimeoutExpired:
            # subprocess.run kills the child before re-raising
            logger.warning("git %s timed out after %ss", args[0], self.timeout)
            raise CommandTimeoutError(list(args), self.timeout) from None
        except OSError as e:
            raise CommandFailedError(list(args), None, reason=str(e)) from None
        return CommandResult(output=proc.stdout, error=proc.stderr, returncode=proc.returncode)

    def run(self, args: Sequence[str], ok_codes: Sequence[int] = (0,)) -> str:
        """Run git and return stdout.

        Raises:
            CommandFailedError: Non-zero exit not listed in ``ok_codes``
            CommandTimeoutError: The process exceeded the timeout
        """
        result = self.try_run(args)
        if result.returncode not in ok_codes:
            raise CommandFailedError(list(args), result.returncode, result.error)
        return result.output

    def run_at_ref(self, args: Sequence[str], ref: str) -> str:
        """Run a query whose failure most likely means ``ref`` does not resolve.

        Raises:
            InvalidRefError: git reports an unknown revision
            CommandFailedError: Any other failure
        """
        try:
            return self.run(args)
        except CommandTimeoutError:
            raise
        except CommandFailedError as e:
            if is_unknown_revision(e.output):
                raise InvalidRefError(ref, "unknown revision") from e
            raise

    def resolve_commit(self, ref: str) -> str:
        """Full SHA of the commit ``ref`` points at."""
        require_ref(ref)
        return self.run_at_ref(["rev-parse", "--verify", f"{ref}^{{commit}}"], ref).strip()

    def commit_timestamp(self, ref: str) -> datetime:
        """Committer timestamp of ``ref``."""
        require_ref(ref)
        output = self.run_at_ref(["show", "-s", "--format=%ct", ref], ref)
        return parse_unix_timestamp(output.strip())

    def file_exists_at(self, ref: str, path: str) -> bool:
        require_ref(ref)
        require_safe_path(path)
        return self.try_run(["cat-file", "-e", f"{ref}:{path}"]).ok

    def show_file(self, ref: str, path: str) -> str:
        """Content of ``path`` at ``ref``.

        Raises:
            FileNotFoundAtRevisionError: The path does not exist at ``ref``
        """
        require_ref(ref)
        require_safe_path(path)
        result = self.try_run(["show", f"{ref}:{path}"])
        if not result.ok:
            if is_unknown_revision(result.error) and not self.try_run(["cat-file", "-e", ref]).ok:
                raise InvalidRefError(ref, "unknown revision")
            raise FileNotFoundAtRevisionError(path, ref)
        return result.output

    def list_files(self, ref: str) -> list[str]:
        """Every tracked file path at ``ref``."""
        require_ref(ref)
        output = self.run_at_ref(["ls-tree", "-r", "--name-only", ref], ref)
        return [line for line in output.splitlines() if line]

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        require_ref(ancestor)
        require_ref(descendant)
        result = self.try_run(["merge-base", "--is-ancestor", ancestor, descendant])
        if result.returncode not in (0, 1):
            raise CommandFailedError(
                ["merge-base", "--is-ancestor", ancestor, descendant],
                result.returncode,
                result.error,
            )
        return result.returncode == 0

    def __repr__(self) -> str:
        return f"GitGateway({str(self.repo_root)!r})"


def is_unknown_revision(stderr: str) -> bool:
    lowered = stderr.lower()
    return any(marker in lowered for marker in _UNKNOWN_REVISION_MARKERS)


def open_repo(repo: RepoLike, config: Optional[MiningConfig] = None) -> GitGateway:
    """Accept either a path or an already opened gateway."""
    if isinstance(repo, GitGateway):
        return repo
    return GitGateway.open(repo, config)


def run(
    repo: RepoLike, args: Sequence[str], config: Optional[MiningConfig] = None
) -> str:
    """Run an allow-listed git subcommand in ``repo`` and return stdout."""
    return open_repo(repo, config).run(args)


def try_run(
    repo: RepoLike, args: Sequence[str], config: Optional[MiningConfig] = None
) -> tuple[str, str]:
    """Run git in ``repo`` and return ``(output, error)`` without raising on exit status.

    ``error`` is empty on success and holds git's stderr otherwise.
    """
    result = open_repo(repo, config).try_run(args)
    return result.output, "" if result.ok else (result.error.strip() or f"exit {result.returncode}")


def detect_repo(path: Union[str, Path]) -> Path:
    """Root of the git work tree containing ``path``."""
    return GitGateway.open(path).repo_root
