"""Closed set of error kinds raised by the mining engine.

Every ``ProvenanceError`` carries exactly one ``ErrorKind`` so callers can
branch on the kind without importing every exception class.
"""

from enum import Enum


class ErrorKind(Enum):
    """Error kinds surfaced to callers."""

    # Validation (raised before any subprocess is spawned)
    INVALID_PATH = "invalid_path"
    INVALID_REF = "invalid_ref"
    OUTSIDE_REPO = "outside_repo"
    INVALID_TIMESTAMP = "invalid_timestamp"
    INVALID_DATETIME = "invalid_datetime"

    # Repository / subprocess
    REPO_NOT_FOUND = "repo_not_found"
    COMMAND_FAILED = "command_failed"
    TIMEOUT = "timeout"
    FILE_NOT_FOUND = "file_not_found"
    FILE_NOT_TRACKED = "file_not_tracked"
    PARSE_ERROR = "parse_error"

    # Analysis
    INVALID_VERSION = "invalid_version"
    MODULE_NOT_FOUND = "module_not_found"
    FUNCTION_NOT_FOUND = "function_not_found"
    NO_MATCH = "no_match"
    INVALID_FORMAT = "invalid_format"

    # Configuration
    INVALID_CONFIG = "invalid_config"

    @property
    def is_validation(self) -> bool:
        """True for kinds that are detected without running git."""
        return self in _VALIDATION_KINDS


_VALIDATION_KINDS = frozenset(
    {
        ErrorKind.INVALID_PATH,
        ErrorKind.INVALID_REF,
        ErrorKind.OUTSIDE_REPO,
        ErrorKind.INVALID_TIMESTAMP,
        ErrorKind.INVALID_DATETIME,
    }
)
