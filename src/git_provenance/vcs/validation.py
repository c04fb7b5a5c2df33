"""Input validation for anything interpolated into a git argument vector.

Git is always invoked with an argument list (never a shell string), but refs
and paths still reach git's own option parser and revision syntax. Every
public query validates its inputs here before a subprocess is spawned.
"""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath
from typing import Union

from ..exceptions import InvalidPathError, InvalidRefError, OutsideRepoError

UNCOMMITTED_SHA = "0" * 40

_SHA_RE = re.compile(r"^[0-9a-fA-F]{40}$")
_SHORT_SHA_RE = re.compile(r"^[0-9a-fA-F]{7,40}$")

_SHELL_METACHARACTERS = frozenset(";&|$`()<>\\\"'*?[]{}!#~^ \t\r\n\x00")

_REF_PATTERNS = (
    re.compile(r"^HEAD$"),
    re.compile(r"^HEAD~\d+$"),
    re.compile(r"^HEAD\^\d*$"),
    re.compile(r"^[0-9a-fA-F]{7,40}$"),
    re.compile(r"^refs/(heads|tags|remotes)/[A-Za-z0-9_\-./]+$"),
    re.compile(r"^[A-Za-z0-9_\-/.]+$"),
)


def valid_sha(value: object) -> bool:
    """True for a full 40-hex commit id."""
    return isinstance(value, str) and bool(_SHA_RE.fullmatch(value))


def valid_short_sha(value: object) -> bool:
    """True for an abbreviated commit id of 7 to 40 hex characters."""
    return isinstance(value, str) and bool(_SHORT_SHA_RE.fullmatch(value))


def valid_ref(value: object) -> bool:
    """True when ``value`` is a revision git may safely receive.

    Accepts HEAD, HEAD~N, HEAD^N, (short) SHAs, refs/ paths and branch or
    tag names. Rejects shell metacharacters, a leading ``-`` (option
    injection), ``..`` ranges and reflog syntax.
    """
    if not isinstance(value, str) or not value:
        return False
    if value.startswith("-") or ".." in value or "@{" in value:
        return False
    if value.endswith((".", "/", ".lock")) or "//" in value:
        return False
    if value.startswith(("HEAD~", "HEAD^")):
        return any(pattern.fullmatch(value) for pattern in _REF_PATTERNS[:3])
    if any(ch in _SHELL_METACHARACTERS for ch in value):
        return False
    return any(pattern.fullmatch(value) for pattern in _REF_PATTERNS)


def require_sha(value: object) -> str:
    if not valid_sha(value):
        raise InvalidRefError(value, "expected a 40 character hex SHA")
    return value  # type: ignore[return-value]


def require_ref(value: object) -> str:
    if not valid_ref(value):
        raise InvalidRefError(value)
    return value  # type: ignore[return-value]


def safe_path(value: object) -> bool:
    """True for a relative, traversal-free repository path."""
    if not isinstance(value, str) or not value:
        return False
    if "\x00" in value or value.startswith("/") or value.startswith("-"):
        return False
    if "//" in value:
        return False
    return ".." not in value.split("/")


def require_safe_path(value: object) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidPathError(str(value), "path must be a non-empty string")
    if "\x00" in value:
        raise InvalidPathError(value, "path contains a NUL byte")
    if value.startswith("/"):
        raise InvalidPathError(value, "path must be relative to the repository root")
    if value.startswith("-"):
        raise InvalidPathError(value, "path must not start with '-'")
    if "//" in value:
        raise InvalidPathError(value, "path contains a doubled separator")
    if ".." in value.split("/"):
        raise InvalidPathError(value, "path contains a '..' segment")
    return value


def normalize_file_path(path: Union[str, Path], repo_root: Union[str, Path]) -> str:
    """Return ``path`` relative to ``repo_root`` as a posix string.

    Relative paths are validated as-is. Absolute paths must resolve under
    the repository root.

    Raises:
        OutsideRepoError: Absolute path outside ``repo_root``
        InvalidPathError: Unsafe relative path
    """
    text = str(path)
    if "\x00" in text:
        raise InvalidPathError(text, "path contains a NUL byte")

    candidate = Path(text)
    if candidate.is_absolute():
        root = Path(repo_root).resolve()
        resolved = candidate.resolve()
        try:
            relative = resolved.relative_to(root)
        except ValueError:
            raise OutsideRepoError(text, root) from None
        text = relative.as_posix()
        if text in ("", "."):
            raise InvalidPathError(str(path), "path is the repository root")
        return require_safe_path(text)

    posix = PurePosixPath(text.replace("\\", "/")).as_posix() if "\\" in text else text
    if posix.startswith("./"):
        posix = posix[2:]
    return require_safe_path(posix)
