"""Data models for diffs and detected refactorings."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..activity.models import Confidence


class HunkStatus(Enum):
    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"
    RENAMED = "renamed"


class RefactoringType(Enum):
    EXTRACT_FUNCTION = "extract_function"
    EXTRACT_MODULE = "extract_module"
    RENAME_FUNCTION = "rename_function"
    RENAME_MODULE = "rename_module"
    RENAME_VARIABLE = "rename_variable"
    INLINE_FUNCTION = "inline_function"
    MOVE_FUNCTION = "move_function"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DiffLine:
    old_line: Optional[int]  # None for additions
    new_line: Optional[int]  # None for deletions
    text: str
    kind: str  # "+", "-" or " "


@dataclass(frozen=True)
class DiffHunk:
    """All changes to one file in one commit.

    ``additions``/``deletions`` carry ``(line number, text)`` pairs numbered
    on the new and old side respectively. ``lines`` keeps every diff line
    (context included) in order, so either side can be reconstructed.
    """

    file: str
    old_file: Optional[str]  # set only when the path changed
    status: HunkStatus
    additions: tuple[tuple[int, str], ...] = ()
    deletions: tuple[tuple[int, str], ...] = ()
    similarity: Optional[int] = None
    lines: tuple[DiffLine, ...] = ()

    @property
    def source_path(self) -> str:
        return self.old_file or self.file

    def old_side(self) -> list[tuple[int, str]]:
        return [(d.old_line, d.text) for d in self.lines if d.kind != "+" and d.old_line is not None]

    def new_side(self) -> list[tuple[int, str]]:
        return [(d.new_line, d.text) for d in self.lines if d.kind != "-" and d.new_line is not None]


@dataclass(frozen=True)
class FunctionRef:
    name: str
    arity: int


@dataclass(frozen=True)
class CodeLocation:
    file: Optional[str] = None
    module: Optional[str] = None
    function: Optional[FunctionRef] = None
    line_range: Optional[tuple[int, int]] = None
    code: Optional[str] = None


@dataclass(frozen=True)
class Refactoring:
    type: RefactoringType
    source: CodeLocation
    target: CodeLocation
    confidence: Confidence
    commit: str  # sha
    metadata: dict[str, str] = field(default_factory=dict, compare=False, hash=False)
