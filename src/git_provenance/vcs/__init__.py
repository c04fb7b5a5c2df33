"""Safe access to git: validation, subprocess execution, timestamp parsing."""

from .gateway import (
    ALLOWED_SUBCOMMANDS,
    DEFAULT_TIMEOUT,
    MAX_COMMITS,
    CommandResult,
    GitGateway,
    RepoLike,
    detect_repo,
    open_repo,
    run,
    try_run,
)
from .parsing import anonymize_email, parse_iso8601, parse_unix_timestamp
from .validation import (
    UNCOMMITTED_SHA,
    normalize_file_path,
    require_ref,
    require_safe_path,
    require_sha,
    safe_path,
    valid_ref,
    valid_sha,
    valid_short_sha,
)

__all__ = [
    "ALLOWED_SUBCOMMANDS",
    "DEFAULT_TIMEOUT",
    "MAX_COMMITS",
    "UNCOMMITTED_SHA",
    "CommandResult",
    "GitGateway",
    "RepoLike",
    "anonymize_email",
    "detect_repo",
    "normalize_file_path",
    "open_repo",
    "parse_iso8601",
    "parse_unix_timestamp",
    "require_ref",
    "require_safe_path",
    "require_sha",
    "run",
    "safe_path",
    "try_run",
    "valid_ref",
    "valid_sha",
    "valid_short_sha",
]
