"""Configuration loading and management for git-provenance.

Configuration sources are merged in priority order:
    1. Defaults (defined in MiningConfig)
    2. Global config (~/.git-provenance.toml)
    3. Project config (./git-provenance.toml)
    4. Explicit config file
    5. Environment variables (GITPROV_* prefix)
    6. Keyword overrides

Example:
    >>> config = load_config(git_timeout_seconds=60)
    >>> config.git_timeout_seconds
    60
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "GITPROV_"


@dataclass(frozen=True)
class RefactoringThresholds:
    """Similarity thresholds used by the refactoring heuristics.

    Attributes:
        rename_similarity: Minimum body similarity (Jaccard over identifier
            tokens, 0.0-1.0) for a rename or move to be reported at all.
        identical_similarity: Similarity at or above which two bodies count
            as identical, promoting rename/move confidence to high.
        extract_containment: Fraction of an extracted function's body tokens
            that must appear in a deleted block.
        inline_coverage: Fraction of a removed private function's body tokens
            that must reappear among the additions.
        module_rename_high_similarity: git similarity index (0-100) at or
            above which a file rename is reported with high confidence.
    """

    rename_similarity: float = 0.7
    identical_similarity: float = 0.9
    extract_containment: float = 0.5
    inline_coverage: float = 0.6
    module_rename_high_similarity: int = 90

    def __post_init__(self) -> None:
        """Validate threshold configuration."""
        for field_name in (
            "rename_similarity",
            "identical_similarity",
            "extract_containment",
            "inline_coverage",
        ):
            value = getattr(self, field_name)
            if not 0.0 <= value <= 1.0:
                raise InvalidConfigError(field_name, value, "must be between 0.0 and 1.0")
        if self.identical_similarity < self.rename_similarity:
            raise InvalidConfigError(
                "identical_similarity",
                self.identical_similarity,
                "must not be lower than rename_similarity",
            )
        if not 0 <= self.module_rename_high_similarity <= 100:
            raise InvalidConfigError(
                "module_rename_high_similarity",
                self.module_rename_high_similarity,
                "must be between 0 and 100",
            )


DEFAULT_THRESHOLDS = RefactoringThresholds()


@dataclass(frozen=True)
class MiningConfig:
    """Configuration for history mining.

    Attributes:
        Git access:
            git_binary: Executable used for every subprocess call
            git_timeout_seconds: Deadline for a single git invocation
            max_commits: Hard ceiling on any history walk

        Query defaults:
            default_commit_limit: Commits returned by extract_commits
            version_history_limit: Commits walked by version tracking

        Performance tuning:
            workers: Thread pool size for batch queries (None = auto-detect)

        Identity:
            anonymize_emails: Replace blame emails with their sha256 digest
            detect_llm: Promote agents to llm from commit-message trailers

        Source recognition:
            source_extensions: Suffixes treated as analyzed-language sources
            diff_context_lines: Unified-diff context used by refactoring detection

        Ownership:
            codeowners_paths: Candidate CODEOWNERS locations, first hit wins

        Issue trackers:
            github_repo: ``owner/repo`` for GitHub and bare ``#N`` issue links
            gitlab_repo: ``group/project`` for ``GL-N`` issue links
            gitlab_url: GitLab base URL
            jira_url: Jira base URL for ``PROJ-N`` issue links

        Output control:
            verbosity: Logging verbosity level
    """

    git_binary: str = "git"
    git_timeout_seconds: int = 30
    max_commits: int = 10_000

    default_commit_limit: int = 10
    version_history_limit: int = 100

    workers: Optional[int] = None

    anonymize_emails: bool = False
    detect_llm: bool = True

    source_extensions: tuple[str, ...] = (".ex", ".exs")
    diff_context_lines: int = 8

    codeowners_paths: tuple[str, ...] = (".github/CODEOWNERS", "CODEOWNERS", "docs/CODEOWNERS")

    github_repo: Optional[str] = None
    gitlab_repo: Optional[str] = None
    gitlab_url: str = "https://gitlab.com"
    jira_url: Optional[str] = None

    verbosity: Verbosity = "normal"

    thresholds: RefactoringThresholds = field(default_factory=RefactoringThresholds)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.git_binary:
            raise InvalidConfigError("git_binary", self.git_binary, "must not be empty")
        if self.git_timeout_seconds < 1:
            raise InvalidConfigError(
                "git_timeout_seconds", self.git_timeout_seconds, "must be at least 1"
            )
        if self.max_commits < 1:
            raise InvalidConfigError("max_commits", self.max_commits, "must be at least 1")
        if self.default_commit_limit < 1:
            raise InvalidConfigError(
                "default_commit_limit", self.default_commit_limit, "must be at least 1"
            )
        if self.version_history_limit < 1:
            raise InvalidConfigError(
                "version_history_limit", self.version_history_limit, "must be at least 1"
            )
        if self.workers is not None and self.workers < 1:
            raise InvalidConfigError("workers", self.workers, "must be at least 1")
        if self.diff_context_lines < 0:
            raise InvalidConfigError(
                "diff_context_lines", self.diff_context_lines, "must be non-negative"
            )
        if not self.source_extensions:
            raise InvalidConfigError("source_extensions", self.source_extensions, "must not be empty")
        for name in ("gitlab_url", "jira_url"):
            url = getattr(self, name)
            if url is not None and not url.startswith(("http://", "https://")):
                raise InvalidConfigError(name, url, "must be an http(s) URL")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError(
                "verbosity", self.verbosity, "expected quiet, normal or verbose"
            )

    def cap_limit(self, limit: Optional[int]) -> int:
        """Clamp a caller-supplied history limit to ``max_commits``."""
        if limit is None or limit <= 0:
            return self.max_commits
        return min(limit, self.max_commits)


DEFAULT_CONFIG = MiningConfig()


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> MiningConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (highest priority)

    Returns:
        Validated MiningConfig instance

    Raises:
        InvalidConfigError: If a config file is missing or invalid, or a
            value fails validation
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / ".git-provenance.toml"
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = Path.cwd() / "git-provenance.toml"
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        config_file = Path(config_file)
        if not config_file.exists():
            raise InvalidConfigError("config_file", config_file, "file not found")
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())

    if "verbose" in overrides:
        if overrides.pop("verbose"):
            overrides["verbosity"] = "verbose"
    if "quiet" in overrides:
        if overrides.pop("quiet"):
            overrides["verbosity"] = "quiet"

    merged.update(overrides)

    thresholds = merged.pop("thresholds", None)
    if isinstance(thresholds, dict):
        try:
            merged["thresholds"] = RefactoringThresholds(**thresholds)
        except TypeError as e:
            raise InvalidConfigError("thresholds", thresholds, str(e))
    elif isinstance(thresholds, RefactoringThresholds):
        merged["thresholds"] = thresholds
    elif thresholds is not None:
        raise InvalidConfigError("thresholds", thresholds, "expected a table")

    for key in ("source_extensions", "codeowners_paths"):
        if isinstance(merged.get(key), list):
            merged[key] = tuple(merged[key])

    try:
        return MiningConfig(**merged)
    except TypeError as e:
        raise InvalidConfigError("config", merged, str(e))


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from GITPROV_* environment variables.

    Scalar fields only; tuple fields and the nested thresholds table must be
    set from a TOML file.

    Returns:
        Dict of field_name -> parsed_value for any GITPROV_* vars found.
    """
    type_hints = get_type_hints(MiningConfig)

    result: dict[str, Any] = {}

    for field_name in MiningConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Returns:
        Parsed value, or None if the type is not settable from the environment

    Raises:
        ValueError: If value can't be parsed to the expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if origin is tuple or type_hint is tuple:
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML file and return the parsed dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise InvalidConfigError("config_file", path, str(e))
