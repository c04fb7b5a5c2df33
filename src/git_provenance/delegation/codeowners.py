"""CODEOWNERS parsing and gitignore-style pattern matching."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Optional, Sequence

from ..config import MiningConfig
from ..exceptions import FileNotFoundAtRevisionError, NoMatchError
from ..logging_config import get_logger
from ..vcs import RepoLike, open_repo, require_ref, safe_path
from .models import CodeOwner

logger = get_logger(__name__)


def parse_codeowners_content(content: str, source: Optional[str] = None) -> list[CodeOwner]:
    """Rules in file order; blank lines, comments and owner-less patterns are skipped."""
    rules = []
    for line_number, raw in enumerate(content.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        line = re.split(r"\s+#", line, maxsplit=1)[0]
        parts = line.split()
        if len(parts) < 2:
            logger.debug("CODEOWNERS %s:%d has no owners", source or "<text>", line_number)
            continue
        rules.append(
            CodeOwner(
                pattern=parts[0],
                owners=tuple(parts[1:]),
                source=source,
                line_number=line_number,
            )
        )
    return rules


def parse_codeowners(
    repo: RepoLike,
    ref: Optional[str] = None,
    config: Optional[MiningConfig] = None,
) -> list[CodeOwner]:
    """Rules from the first CODEOWNERS file found at the standard locations.

    Reads the working tree when ``ref`` is None, otherwise the file as of
    ``ref``.

    Raises:
        FileNotFoundAtRevisionError: No CODEOWNERS file exists
    """
    gateway = open_repo(repo, config)
    if ref is not None:
        require_ref(ref)
    for path in gateway.config.codeowners_paths:
        if not safe_path(path):
            continue
        if ref is None:
            full = gateway.repo_root / path
            if full.is_file():
                return parse_codeowners_content(full.read_text(encoding="utf-8", errors="replace"), path)
        elif gateway.file_exists_at(ref, path):
            return parse_codeowners_content(gateway.show_file(ref, path), path)
    raise FileNotFoundAtRevisionError("CODEOWNERS", ref)


def pattern_matches(pattern: str, path: str) -> bool:
    return _compile(pattern).fullmatch(path.lstrip("/")) is not None


def find_owners(owners: Sequence[CodeOwner], path: str) -> CodeOwner:
    """The rule governing ``path``: the last matching pattern wins.

    Raises:
        NoMatchError: No pattern matches
    """
    for rule in reversed(owners):
        if pattern_matches(rule.pattern, path):
            return rule
    raise NoMatchError(path)


def find_owners_for_files(
    owners: Sequence[CodeOwner], paths: Iterable[str]
) -> dict[str, CodeOwner]:
    """Governing rule per path; unmatched paths are omitted."""
    result = {}
    for path in paths:
        try:
            result[path] = find_owners(owners, path)
        except NoMatchError:
            continue
    return result


@lru_cache(maxsize=1024)
def _compile(pattern: str) -> re.Pattern[str]:
    """Translate a CODEOWNERS pattern into a full-path regex.

    A pattern containing a non-trailing ``/`` is anchored at the repository
    root; otherwise it may match at any depth. A pattern matching a
    directory also matches everything beneath it.
    """
    directory_only = pattern.endswith("/")
    body = pattern.strip("/") if pattern != "/" else ""
    anchored = pattern.startswith("/") or "/" in body

    regex = _translate(body)
    prefix = "" if anchored else "(?:.*/)?"
    suffix = "/.*" if directory_only else "(?:/.*)?"
    return re.compile(prefix + regex + suffix)


def _translate(glob: str) -> str:
    out = []
    i = 0
    while i < len(glob):
        if glob.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif glob.startswith("/**", i) and i + 3 == len(glob):
            out.append("/.*")
            i += 3
        elif glob.startswith("**", i):
            out.append(".*")
            i += 2
        elif glob[i] == "*":
            out.append("[^/]*")
            i += 1
        elif glob[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(glob[i]))
            i += 1
    return "".join(out)
