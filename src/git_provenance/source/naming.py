"""Conversions between Elixir module names and repository paths."""

from __future__ import annotations

import re
from typing import Iterable

DEFAULT_SOURCE_EXTENSIONS = (".ex", ".exs")

_ACRONYM_BOUNDARY_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")
_LIB_PREFIX_RE = re.compile(r"^(?:apps/[^/]+/)?(?:lib|test)/")


def is_source_file(path: str, extensions: Iterable[str] = DEFAULT_SOURCE_EXTENSIONS) -> bool:
    return path.endswith(tuple(extensions))


def camelize(segment: str) -> str:
    """``user_controller`` -> ``UserController``."""
    return "".join(part[:1].upper() + part[1:] for part in segment.split("_") if part)


def underscore(module: str) -> str:
    """``MyApp.HTTPClient`` -> ``my_app/http_client``."""
    parts = []
    for segment in module.split("."):
        snake = _ACRONYM_BOUNDARY_RE.sub(r"\1_\2", segment)
        snake = _WORD_BOUNDARY_RE.sub(r"\1_\2", snake)
        parts.append(snake.lower())
    return "/".join(parts)


def module_from_path(path: str) -> str:
    """Conventional module name for a source path.

    ``lib/my_app/user_controller.ex`` -> ``MyApp.UserController``.
    Test files keep their ``Test`` suffix (``test/foo_test.exs`` -> ``FooTest``).
    """
    stripped = _LIB_PREFIX_RE.sub("", path)
    for ext in DEFAULT_SOURCE_EXTENSIONS:
        if stripped.endswith(ext):
            stripped = stripped[: -len(ext)]
            break
    return ".".join(camelize(segment) for segment in stripped.split("/") if segment)


def module_path_candidates(module: str) -> list[str]:
    """Paths where the naming convention would put ``module``."""
    base = underscore(module)
    return [f"lib/{base}.ex", f"lib/{base}.exs", f"test/{base}_test.exs"]
