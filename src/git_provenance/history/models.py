"""Data models for raw history facts: commits, blame, file histories."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Commit:
    sha: str  # 40 hex
    short_sha: str
    message: str
    subject: Optional[str]  # first line, trimmed
    body: Optional[str]  # text after the first blank line, trimmed
    author_name: Optional[str]
    author_email: Optional[str]
    author_date: Optional[datetime]
    committer_name: Optional[str]
    committer_email: Optional[str]
    commit_date: Optional[datetime]
    parents: tuple[str, ...] = ()
    tree_sha: Optional[str] = None

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def is_initial(self) -> bool:
        return not self.parents


@dataclass(frozen=True)
class BlameLine:
    line_number: int  # 1-based
    commit_sha: str
    content: str
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    author_time: Optional[datetime] = None
    committer_name: Optional[str] = None
    committer_email: Optional[str] = None
    commit_time: Optional[datetime] = None
    summary: Optional[str] = None
    original_line: Optional[int] = None
    original_path: Optional[str] = None
    is_uncommitted: bool = False
    line_age_seconds: Optional[int] = None  # None for uncommitted lines


@dataclass(frozen=True)
class FileBlame:
    """Blame of one file at one revision with aggregates fixed at construction."""

    path: str
    revision: Optional[str]
    lines: tuple[BlameLine, ...]
    line_count: int
    commit_count: int
    author_count: int
    oldest_line: Optional[BlameLine]
    newest_line: Optional[BlameLine]
    has_uncommitted: bool

    @classmethod
    def from_lines(
        cls, path: str, revision: Optional[str], lines: list[BlameLine]
    ) -> "FileBlame":
        committed = [line for line in lines if not line.is_uncommitted]
        dated = [line for line in committed if line.author_time is not None]
        return cls(
            path=path,
            revision=revision,
            lines=tuple(lines),
            line_count=len(lines),
            commit_count=len({line.commit_sha for line in committed}),
            author_count=len({line.author_email for line in committed if line.author_email}),
            oldest_line=min(dated, key=lambda line: line.author_time) if dated else None,
            newest_line=max(dated, key=lambda line: line.author_time) if dated else None,
            has_uncommitted=len(committed) != len(lines),
        )

    def commits_in_blame(self) -> list[str]:
        """Distinct committed SHAs in first-appearance order."""
        seen: dict[str, None] = {}
        for line in self.lines:
            if not line.is_uncommitted:
                seen.setdefault(line.commit_sha, None)
        return list(seen)

    def authors_in_blame(self) -> list[str]:
        seen: dict[str, None] = {}
        for line in self.lines:
            if line.author_email and not line.is_uncommitted:
                seen.setdefault(line.author_email, None)
        return list(seen)

    def lines_by_commit(self) -> dict[str, list[BlameLine]]:
        grouped: dict[str, list[BlameLine]] = {}
        for line in self.lines:
            grouped.setdefault(line.commit_sha, []).append(line)
        return grouped

    def lines_by_author(self) -> dict[str, list[BlameLine]]:
        grouped: dict[str, list[BlameLine]] = {}
        for line in self.lines:
            if line.author_email:
                grouped.setdefault(line.author_email, []).append(line)
        return grouped

    def line_count_for_commit(self, sha: str) -> int:
        return sum(1 for line in self.lines if line.commit_sha == sha)

    def line_count_for_author(self, email: str) -> int:
        counts = Counter(line.author_email for line in self.lines)
        return counts.get(email, 0)


@dataclass(frozen=True)
class Rename:
    from_path: str
    to_path: str
    commit_sha: str
    similarity: Optional[int] = None  # git similarity index, 0-100


@dataclass(frozen=True)
class FileHistory:
    path: str
    original_path: Optional[str]  # path at creation when the file was renamed
    commits: tuple[str, ...]  # newest first
    renames: tuple[Rename, ...] = field(default_factory=tuple)  # oldest first

    @property
    def commit_count(self) -> int:
        return len(self.commits)

    @property
    def first_commit(self) -> Optional[str]:
        return self.commits[-1] if self.commits else None

    @property
    def last_commit(self) -> Optional[str]:
        return self.commits[0] if self.commits else None
