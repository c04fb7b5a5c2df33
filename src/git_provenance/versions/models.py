"""Versioned entities and the derivations between them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class DerivationType(Enum):
    REVISION = "revision"
    QUOTATION = "quotation"
    PRIMARY_SOURCE = "primary_source"


@dataclass(frozen=True)
class ModuleVersion:
    """A module's source as of one commit.

    ``version_id`` is ``<Module>@<short sha>``; ``content_hash`` covers only
    the module's own text, so unrelated edits to the same file leave it
    unchanged.
    """

    module_name: str
    version_id: str
    commit_sha: str
    short_sha: str
    file_path: str
    content_hash: str
    previous_version: Optional[str] = None
    functions: tuple[str, ...] = ()
    line_count: int = 0
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class FunctionVersion:
    """All clauses of ``Module.name/arity`` as of one commit."""

    module_name: str
    function_name: str
    arity: int
    version_id: str
    commit_sha: str
    short_sha: str
    content_hash: str
    previous_version: Optional[str] = None
    line_range: Optional[tuple[int, int]] = None
    clause_count: int = 1
    timestamp: Optional[datetime] = None


EntityVersion = Union[ModuleVersion, FunctionVersion]


@dataclass(frozen=True)
class Derivation:
    """``derived_entity`` was derived from ``source_entity``."""

    derived_entity: str
    source_entity: str
    derivation_type: DerivationType = DerivationType.REVISION
    activity: Optional[str] = None  # sha of the commit producing the derived entity
    timestamp: Optional[datetime] = None
    metadata: dict[str, str] = field(default_factory=dict, compare=False, hash=False)
