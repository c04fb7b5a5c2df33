"""Snapshot extraction from the source tree at a revision."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from ..concurrency import map_ordered
from ..config import MiningConfig
from ..exceptions import ProvenanceError
from ..history.commits import extract_commit
from ..ids import snapshot_id
from ..logging_config import get_logger
from ..releases.tracker import extract_project_info
from ..source.elixir import (
    FUNCTION_KINDS,
    MACRO_KINDS,
    DefinitionExtractor,
    behaviour_modules,
    scan_definitions,
)
from ..source.naming import is_source_file
from ..vcs import GitGateway, RepoLike, open_repo, require_ref
from .models import CodebaseSnapshot, SnapshotStats

logger = get_logger(__name__)

_LIBRARY_PATH_RE = re.compile(r"^(?:apps/[^/]+/)?lib/")


@dataclass(frozen=True)
class _FileCounts:
    modules: tuple[str, ...]
    functions: int
    macros: int
    protocols: int
    behaviours: int
    lines: int


def is_library_file(path: str) -> bool:
    """Sources under ``lib/``, or ``apps/<app>/lib/`` in an umbrella project."""
    return bool(_LIBRARY_PATH_RE.match(path))


def list_source_files(
    repo: RepoLike, ref: str = "HEAD", config: Optional[MiningConfig] = None
) -> list[str]:
    gateway = open_repo(repo, config)
    return sorted(
        path
        for path in gateway.list_files(ref)
        if is_source_file(path, gateway.config.source_extensions) and is_library_file(path)
    )


def count_definitions(source: str, extractor: DefinitionExtractor = scan_definitions) -> _FileCounts:
    definitions = extractor(source)
    return _FileCounts(
        modules=tuple(d.name for d in definitions if d.kind == "defmodule"),
        functions=sum(1 for d in definitions if d.kind in FUNCTION_KINDS),
        macros=sum(1 for d in definitions if d.kind in MACRO_KINDS),
        protocols=sum(1 for d in definitions if d.kind == "defprotocol"),
        behaviours=len(behaviour_modules(source, extractor)),
        lines=len(source.splitlines()),
    )


def extract_snapshot(
    repo: RepoLike,
    ref: str = "HEAD",
    extractor: DefinitionExtractor = scan_definitions,
    config: Optional[MiningConfig] = None,
) -> CodebaseSnapshot:
    """Snapshot of the library sources at ``ref``.

    Raises:
        InvalidRefError: ``ref`` is malformed or unknown
    """
    require_ref(ref)
    gateway = open_repo(repo, config)
    commit = extract_commit(gateway, ref)
    files = list_source_files(gateway, commit.sha)

    counts = map_ordered(
        lambda path: count_definitions(gateway.show_file(commit.sha, path), extractor),
        files,
        gateway.config.workers,
    )
    modules = sorted({m for c in counts for m in c.modules})
    name, version = _project(gateway, commit.sha)

    return CodebaseSnapshot(
        snapshot_id=snapshot_id(commit.sha),
        commit_sha=commit.sha,
        short_sha=commit.short_sha,
        timestamp=commit.commit_date,
        project_name=name,
        project_version=version,
        modules=tuple(modules),
        files=tuple(files),
        stats=SnapshotStats(
            module_count=len(modules),
            function_count=sum(c.functions for c in counts),
            macro_count=sum(c.macros for c in counts),
            protocol_count=sum(c.protocols for c in counts),
            behaviour_count=sum(c.behaviours for c in counts),
            line_count=sum(c.lines for c in counts),
            file_count=len(files),
        ),
    )


def _project(gateway: GitGateway, sha: str) -> tuple[Optional[str], Optional[str]]:
    try:
        info = extract_project_info(gateway, sha)
    except ProvenanceError as e:
        logger.debug("Snapshot at %s has no project info: %s", sha[:7], e.message)
        return None, None
    return info.name, info.version


def extract_current_snapshot(repo: RepoLike, config: Optional[MiningConfig] = None) -> CodebaseSnapshot:
    return extract_snapshot(repo, "HEAD", config=config)
