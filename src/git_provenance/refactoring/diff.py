"""Unified diff parsing for a single commit."""

from __future__ import annotations

import re
from typing import Optional, Union

from ..config import MiningConfig
from ..history.models import Commit
from ..logging_config import get_logger
from ..vcs import RepoLike, open_repo, require_ref
from .models import DiffHunk, DiffLine, HunkStatus

logger = get_logger(__name__)

_SECTION_RE = re.compile(r"^diff --git ", re.M)
_HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
_GIT_HEADER_RE = re.compile(r"^diff --git a/(.+?) b/(.+)$")
_SIMILARITY_RE = re.compile(r"^similarity index (\d+)%")

_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}


def get_commit_diff(
    repo: RepoLike,
    commit: Union[Commit, str],
    context_lines: Optional[int] = None,
    config: Optional[MiningConfig] = None,
) -> list[DiffHunk]:
    """Per-file hunks of ``commit`` against its first parent (or the empty tree).

    Merge commits produce no hunks.
    """
    sha = commit.sha if isinstance(commit, Commit) else commit
    require_ref(sha)
    gateway = open_repo(repo, config)
    if context_lines is None:
        context_lines = gateway.config.diff_context_lines
    output = gateway.run_at_ref(
        ["diff-tree", "-p", "-M", "-r", "--root", "--no-commit-id", f"-U{context_lines}", sha],
        sha,
    )
    return parse_unified_diff(output)


def parse_unified_diff(output: str) -> list[DiffHunk]:
    """Split ``git diff`` output into one DiffHunk per file section."""
    hunks = []
    for section in _SECTION_RE.split(output):
        if not section.strip():
            continue
        hunk = _parse_section("diff --git " + section)
        if hunk is not None:
            hunks.append(hunk)
    return hunks


def _parse_section(section: str) -> Optional[DiffHunk]:
    lines = section.split("\n")
    header = _GIT_HEADER_RE.match(lines[0])
    old_path = new_path = None
    if header:
        old_path, new_path = header.group(1), header.group(2)

    status = HunkStatus.MODIFIED
    similarity = None
    rename_from = rename_to = None
    minus_path = plus_path = None
    body_start = len(lines)

    for index, line in enumerate(lines[1:], start=1):
        if line.startswith("@@"):
            body_start = index
            break
        if line.startswith("new file mode"):
            status = HunkStatus.ADDED
        elif line.startswith("deleted file mode"):
            status = HunkStatus.DELETED
        elif line.startswith("rename from "):
            rename_from = _unquote(line[len("rename from ") :])
        elif line.startswith("rename to "):
            rename_to = _unquote(line[len("rename to ") :])
        elif line.startswith("--- "):
            minus_path = _strip_prefix(_unquote(line[4:]), "a/")
        elif line.startswith("+++ "):
            plus_path = _strip_prefix(_unquote(line[4:]), "b/")
        else:
            match = _SIMILARITY_RE.match(line)
            if match:
                similarity = int(match.group(1))

    old_path = rename_from or (minus_path if minus_path != "/dev/null" else None) or old_path
    new_path = rename_to or (plus_path if plus_path != "/dev/null" else None) or new_path
    if new_path is None and old_path is None:
        logger.debug("Skipping diff section without paths")
        return None

    if status is HunkStatus.DELETED:
        file, old_file = old_path or new_path, None
    elif status is HunkStatus.ADDED:
        file, old_file = new_path or old_path, None
    elif old_path and new_path and old_path != new_path:
        status = HunkStatus.RENAMED
        file, old_file = new_path, old_path
    else:
        file, old_file = new_path or old_path, None

    if status is not HunkStatus.RENAMED:
        similarity = None

    diff_lines = _parse_body(lines[body_start:])
    return DiffHunk(
        file=file,  # type: ignore[arg-type]
        old_file=old_file,
        status=status,
        additions=tuple((d.new_line, d.text) for d in diff_lines if d.kind == "+"),  # type: ignore[misc]
        deletions=tuple((d.old_line, d.text) for d in diff_lines if d.kind == "-"),  # type: ignore[misc]
        similarity=similarity,
        lines=tuple(diff_lines),
    )


def _parse_body(lines: list[str]) -> list[DiffLine]:
    result: list[DiffLine] = []
    old_line = new_line = 0
    in_hunk = False
    for line in lines:
        header = _HUNK_HEADER_RE.match(line)
        if header:
            old_line = int(header.group(1))
            new_line = int(header.group(3))
            in_hunk = True
            continue
        if not in_hunk or not line or line.startswith("\\"):
            continue
        marker, text = line[0], line[1:]
        if marker == "+":
            result.append(DiffLine(None, new_line, text, "+"))
            new_line += 1
        elif marker == "-":
            result.append(DiffLine(old_line, None, text, "-"))
            old_line += 1
        elif marker == " ":
            result.append(DiffLine(old_line, new_line, text, " "))
            old_line += 1
            new_line += 1
    return result


def _strip_prefix(path: str, prefix: str) -> str:
    return path[len(prefix) :] if path.startswith(prefix) else path


def _unquote(path: str) -> str:
    """Undo git's C-style quoting of unusual paths."""
    path = path.rstrip("\t")
    if not (len(path) >= 2 and path.startswith('"') and path.endswith('"')):
        return path
    inner = path[1:-1]
    out = bytearray()
    i = 0
    while i < len(inner):
        ch = inner[i]
        if ch == "\\" and i + 1 < len(inner):
            nxt = inner[i + 1]
            if nxt in _ESCAPES:
                out += _ESCAPES[nxt].encode()
                i += 2
                continue
            octal = inner[i + 1 : i + 4]
            if len(octal) == 3 and all(c in "01234567" for c in octal):
                # octal escapes are raw UTF-8 bytes
                out.append(int(octal, 8))
                i += 4
                continue
        out += ch.encode("utf-8")
        i += 1
    return out.decode("utf-8", errors="replace")
