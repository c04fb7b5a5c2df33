"""Version-control errors: validation, repository lookup, subprocess failures."""

from pathlib import Path
from typing import Optional, Sequence, Union

from .base import ProvenanceError
from .taxonomy import ErrorKind

PathLike = Union[str, Path]


class VcsError(ProvenanceError):
    """Base class for errors raised while talking to git."""

    pass


class InvalidPathError(VcsError):
    """Raised when a path is unsafe or malformed."""

    kind = ErrorKind.INVALID_PATH

    def __init__(self, path: PathLike, reason: str):
        super().__init__(f"Invalid path: {path!r}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason


class OutsideRepoError(VcsError):
    """Raised when an absolute path does not live under the repository root."""

    kind = ErrorKind.OUTSIDE_REPO

    def __init__(self, path: PathLike, repo_root: PathLike):
        super().__init__(
            f"Path is outside the repository: {path}",
            details={"path": str(path), "repo_root": str(repo_root)},
        )
        self.path = path
        self.repo_root = repo_root


class InvalidRefError(VcsError):
    """Raised when a ref is malformed, unsafe, or unknown to the repository."""

    kind = ErrorKind.INVALID_REF

    def __init__(self, ref: object, reason: str = "malformed reference"):
        super().__init__(f"Invalid ref: {ref!r}", details={"ref": str(ref), "reason": reason})
        self.ref = ref
        self.reason = reason


class InvalidTimestampError(VcsError):
    """Raised when a Unix timestamp cannot be parsed."""

    kind = ErrorKind.INVALID_TIMESTAMP

    def __init__(self, value: object, reason: str = "not a unix timestamp"):
        super().__init__(
            f"Invalid timestamp: {value!r}", details={"value": str(value), "reason": reason}
        )
        self.value = value
        self.reason = reason


class InvalidDatetimeError(InvalidTimestampError):
    """Raised when an ISO-8601 datetime cannot be parsed."""

    kind = ErrorKind.INVALID_DATETIME


class RepoNotFoundError(VcsError):
    """Raised when a path does not resolve to a git work tree."""

    kind = ErrorKind.REPO_NOT_FOUND

    def __init__(self, path: PathLike, reason: str = "not a git repository"):
        super().__init__(
            f"Repository not found: {path}", details={"path": str(path), "reason": reason}
        )
        self.path = path
        self.reason = reason


class CommandFailedError(VcsError):
    """Raised when a git subprocess exits with a non-zero status."""

    kind = ErrorKind.COMMAND_FAILED

    def __init__(
        self,
        args: Sequence[str],
        returncode: Optional[int],
        output: str = "",
        reason: Optional[str] = None,
    ):
        command = " ".join(args)
        details = {"command": command, "returncode": str(returncode)}
        if reason:
            details["reason"] = reason
        if output.strip():
            details["output"] = output.strip()[:500]
        super().__init__(f"git command failed: {command}", details=details)
        self.command = list(args)
        self.returncode = returncode
        self.output = output


class CommandTimeoutError(CommandFailedError):
    """Raised after a git subprocess exceeded its deadline and was killed."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, args: Sequence[str], timeout: float):
        super().__init__(args, None, reason=f"timed out after {timeout}s")
        self.timeout = timeout


class FileNotFoundAtRevisionError(VcsError):
    """Raised when a path does not exist at the requested revision."""

    kind = ErrorKind.FILE_NOT_FOUND

    def __init__(self, path: PathLike, revision: Optional[str] = None):
        details = {"path": str(path)}
        if revision:
            details["revision"] = revision
        super().__init__(f"File not found: {path}", details=details)
        self.path = path
        self.revision = revision


class FileNotTrackedError(VcsError):
    """Raised when a path never appears in the repository history."""

    kind = ErrorKind.FILE_NOT_TRACKED

    def __init__(self, path: PathLike):
        super().__init__(f"File is not tracked: {path}", details={"path": str(path)})
        self.path = path


class GitParseError(VcsError):
    """Raised when git output does not have the expected shape."""

    kind = ErrorKind.PARSE_ERROR

    def __init__(self, what: str, reason: str):
        super().__init__(f"Cannot parse {what}", details={"reason": reason})
        self.what = what
        self.reason = reason
