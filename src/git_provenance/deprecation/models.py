"""Data models for deprecation tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..history.models import Commit
from ..refactoring.models import FunctionRef


class ElementType(Enum):
    FUNCTION = "function"
    MACRO = "macro"
    CALLBACK = "callback"
    TYPE = "type"
    MODULE = "module"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Replacement:
    """Suggested successor parsed from a deprecation message.

    ``text`` is always the raw message; ``module``/``function`` are set when
    the message names a callable.
    """

    text: str
    module: Optional[str] = None
    function: Optional[FunctionRef] = None


@dataclass(frozen=True)
class DeprecationEvent:
    commit: Commit
    file: str
    line: int  # 1-based, on the new side


@dataclass(frozen=True)
class RemovalEvent:
    commit: Commit
    file: str


@dataclass(frozen=True)
class Deprecation:
    element_type: ElementType
    element_name: str
    message: str
    module: Optional[str] = None
    function: Optional[FunctionRef] = None
    deprecated_in: Optional[DeprecationEvent] = None
    removed_in: Optional[RemovalEvent] = None
    replacement: Optional[Replacement] = None
    metadata: dict[str, str] = field(default_factory=dict, compare=False)

    @property
    def has_replacement(self) -> bool:
        return self.replacement is not None

    @property
    def removed(self) -> bool:
        return self.removed_in is not None

    @property
    def qualified_name(self) -> str:
        if self.function is not None and self.module:
            return f"{self.module}.{self.function.name}/{self.function.arity}"
        return self.element_name
