"""Point-in-time aggregates of a codebase."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class SnapshotStats:
    module_count: int = 0
    function_count: int = 0  # def/defp clauses
    macro_count: int = 0
    protocol_count: int = 0
    behaviour_count: int = 0
    line_count: int = 0
    file_count: int = 0


@dataclass(frozen=True)
class CodebaseSnapshot:
    """The library sources of a project as of one commit."""

    snapshot_id: str
    commit_sha: str
    short_sha: str
    timestamp: Optional[datetime] = None
    project_name: Optional[str] = None
    project_version: Optional[str] = None
    modules: tuple[str, ...] = ()
    files: tuple[str, ...] = ()
    stats: SnapshotStats = field(default_factory=SnapshotStats)
