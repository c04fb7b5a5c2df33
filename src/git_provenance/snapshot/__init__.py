"""Point-in-time codebase snapshots."""

from .capture import (
    count_definitions,
    extract_current_snapshot,
    extract_snapshot,
    is_library_file,
    list_source_files,
)
from .models import CodebaseSnapshot, SnapshotStats

__all__ = [
    "CodebaseSnapshot",
    "SnapshotStats",
    "count_definitions",
    "extract_current_snapshot",
    "extract_snapshot",
    "is_library_file",
    "list_source_files",
]
