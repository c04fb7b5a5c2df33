"""Versioned module and function entities with derivation chains."""

from .models import Derivation, DerivationType, EntityVersion, FunctionVersion, ModuleVersion
from .tracker import (
    build_derivation,
    build_derivation_chain,
    deduplicate_versions,
    extract_function_version,
    extract_generations,
    extract_module_version,
    find_change_introducing_version,
    find_module_file,
    link_previous_versions,
    same_content,
    track_function_versions,
    track_module_versions,
    version_chain,
)

__all__ = [
    "Derivation",
    "DerivationType",
    "EntityVersion",
    "FunctionVersion",
    "ModuleVersion",
    "build_derivation",
    "build_derivation_chain",
    "deduplicate_versions",
    "extract_function_version",
    "extract_generations",
    "extract_module_version",
    "find_change_introducing_version",
    "find_module_file",
    "link_previous_versions",
    "same_content",
    "track_function_versions",
    "track_module_versions",
    "version_chain",
]
