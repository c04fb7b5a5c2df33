"""Exception hierarchy for git-provenance."""

from .analysis import (
    AnalysisError,
    FunctionNotFoundError,
    InvalidFormatError,
    InvalidVersionError,
    ModuleNotFoundAtRevisionError,
    NoMatchError,
)
from .base import ProvenanceError
from .config import InvalidConfigError
from .taxonomy import ErrorKind
from .vcs import (
    CommandFailedError,
    CommandTimeoutError,
    FileNotFoundAtRevisionError,
    FileNotTrackedError,
    GitParseError,
    InvalidDatetimeError,
    InvalidPathError,
    InvalidRefError,
    InvalidTimestampError,
    OutsideRepoError,
    RepoNotFoundError,
    VcsError,
)

__all__ = [
    "ErrorKind",
    "ProvenanceError",
    "VcsError",
    "InvalidPathError",
    "OutsideRepoError",
    "InvalidRefError",
    "InvalidTimestampError",
    "InvalidDatetimeError",
    "RepoNotFoundError",
    "CommandFailedError",
    "CommandTimeoutError",
    "FileNotFoundAtRevisionError",
    "FileNotTrackedError",
    "GitParseError",
    "AnalysisError",
    "InvalidVersionError",
    "ModuleNotFoundAtRevisionError",
    "FunctionNotFoundError",
    "NoMatchError",
    "InvalidFormatError",
    "InvalidConfigError",
]
