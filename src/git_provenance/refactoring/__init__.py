"""Commit diffs and the refactorings they contain."""

from .detectors import (
    DETECTORS,
    detect_extract_function,
    detect_extract_module,
    detect_function_renames,
    detect_inline_function,
    detect_module_renames,
    detect_move_function,
    detect_refactorings,
    detect_refactorings_in_commits,
    detect_refactorings_in_hunks,
    detect_variable_renames,
)
from .diff import get_commit_diff, parse_unified_diff
from .models import (
    CodeLocation,
    DiffHunk,
    DiffLine,
    FunctionRef,
    HunkStatus,
    Refactoring,
    RefactoringType,
)

__all__ = [
    "DETECTORS",
    "CodeLocation",
    "DiffHunk",
    "DiffLine",
    "FunctionRef",
    "HunkStatus",
    "Refactoring",
    "RefactoringType",
    "detect_extract_function",
    "detect_extract_module",
    "detect_function_renames",
    "detect_inline_function",
    "detect_module_renames",
    "detect_move_function",
    "detect_refactorings",
    "detect_refactorings_in_commits",
    "detect_refactorings_in_hunks",
    "detect_variable_renames",
    "get_commit_diff",
    "parse_unified_diff",
]
