"""Module and function versions across a file's history."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence, TypeVar

from ..concurrency import map_isolated
from ..config import MiningConfig
from ..exceptions import FileNotFoundAtRevisionError, GitParseError, ModuleNotFoundAtRevisionError
from ..history.commits import changed_files
from ..history.file_history import extract_file_history, path_at_commit
from ..ids import content_hash, short_sha, version_id
from ..logging_config import get_logger
from ..source.elixir import (
    DefinitionExtractor,
    function_clauses,
    module_names,
    module_source,
    scan_definitions,
)
from ..source.naming import is_source_file, module_path_candidates
from ..vcs import GitGateway, RepoLike, open_repo, parse_iso8601, require_ref, require_safe_path
from .models import Derivation, DerivationType, EntityVersion, FunctionVersion, ModuleVersion

logger = get_logger(__name__)

V = TypeVar("V", ModuleVersion, FunctionVersion)


def find_module_file(
    repo: RepoLike,
    module: str,
    ref: str = "HEAD",
    extractor: DefinitionExtractor = scan_definitions,
    config: Optional[MiningConfig] = None,
) -> str:
    """Path of the file defining ``module`` at ``ref``.

    Conventional locations are tried first, then every source file in the
    tree is scanned.

    Raises:
        ModuleNotFoundAtRevisionError: No file at ``ref`` defines the module
    """
    require_ref(ref)
    gateway = open_repo(repo, config)
    for candidate in module_path_candidates(module):
        if gateway.file_exists_at(ref, candidate) and _defines(
            gateway.show_file(ref, candidate), module, extractor
        ):
            return candidate

    for path in gateway.list_files(ref):
        if not is_source_file(path, gateway.config.source_extensions):
            continue
        content = gateway.show_file(ref, path)
        if module.rsplit(".", 1)[-1] in content and _defines(content, module, extractor):
            return path
    logger.debug("%s not found in any source file at %s", module, ref)
    raise ModuleNotFoundAtRevisionError(module, ref)


def _defines(content: str, module: str, extractor: DefinitionExtractor) -> bool:
    return module in module_names(content, extractor)


def _commit_info(gateway: GitGateway, ref: str) -> tuple[str, Optional[datetime]]:
    output = gateway.run_at_ref(["show", "-s", "--format=%H%n%aI", ref], ref)
    lines = output.strip().splitlines()
    if not lines:
        raise GitParseError("commit info", f"no output for {ref}")
    timestamp = parse_iso8601(lines[1]) if len(lines) > 1 and lines[1].strip() else None
    return lines[0].strip(), timestamp


def extract_module_version(
    repo: RepoLike,
    module: str,
    ref: str = "HEAD",
    include_functions: bool = False,
    path: Optional[str] = None,
    extractor: DefinitionExtractor = scan_definitions,
    config: Optional[MiningConfig] = None,
) -> ModuleVersion:
    """Version of ``module`` at ``ref``.

    Args:
        repo: Repository path or gateway
        module: Fully qualified module name
        ref: Revision to read
        include_functions: Record the module's function names
        path: Known file path at ``ref``; located by convention when omitted
        extractor: Definition extractor for the analyzed language
        config: Mining configuration

    Raises:
        InvalidRefError: ``ref`` is malformed or unknown
        ModuleNotFoundAtRevisionError: The module cannot be located at ``ref``
    """
    require_ref(ref)
    gateway = open_repo(repo, config)
    if path is None:
        path = find_module_file(gateway, module, ref, extractor)
    else:
        require_safe_path(path)

    try:
        content = gateway.show_file(ref, path)
    except FileNotFoundAtRevisionError as e:
        raise ModuleNotFoundAtRevisionError(module, ref) from e
    try:
        source, _ = module_source(content, module, extractor)
    except ModuleNotFoundAtRevisionError:
        raise ModuleNotFoundAtRevisionError(module, ref) from None

    sha, timestamp = _commit_info(gateway, ref)
    functions: tuple[str, ...] = ()
    if include_functions:
        names = [d.name for d in extractor(source) if d.is_function and d.module == module]
        functions = tuple(dict.fromkeys(names))

    return ModuleVersion(
        module_name=module,
        version_id=version_id(module, sha),
        commit_sha=sha,
        short_sha=short_sha(sha),
        file_path=path,
        content_hash=content_hash(source),
        functions=functions,
        line_count=len(source.split("\n")),
        timestamp=timestamp,
    )


def track_module_versions(
    repo: RepoLike,
    module: str,
    limit: Optional[int] = None,
    include_functions: bool = False,
    extractor: DefinitionExtractor = scan_definitions,
    config: Optional[MiningConfig] = None,
) -> list[ModuleVersion]:
    """Distinct versions of ``module``, newest first, linked by ``previous_version``.

    Walks the history of the module's current file (following renames). A
    commit that leaves the module text unchanged yields no version: of a run
    of identical versions only the oldest, which introduced the content, is
    kept. Commits where the module cannot be read are skipped.
    """
    gateway = open_repo(repo, config)
    path = find_module_file(gateway, module, "HEAD", extractor)
    history = extract_file_history(
        gateway, path, limit=limit or gateway.config.version_history_limit
    )

    outcomes = map_isolated(
        lambda sha: extract_module_version(
            gateway,
            module,
            sha,
            include_functions=include_functions,
            path=path_at_commit(history, sha),
            extractor=extractor,
        ),
        history.commits,
        gateway.config.workers,
    )
    versions = [o.value for o in outcomes if o.ok]
    return link_previous_versions(deduplicate_versions(versions))  # type: ignore[arg-type]


def extract_function_version(
    repo: RepoLike,
    module: str,
    function: str,
    arity: int,
    ref: str = "HEAD",
    path: Optional[str] = None,
    extractor: DefinitionExtractor = scan_definitions,
    config: Optional[MiningConfig] = None,
) -> FunctionVersion:
    """Version of ``module.function/arity`` at ``ref``, covering all its clauses.

    Raises:
        ModuleNotFoundAtRevisionError: The module cannot be located at ``ref``
        FunctionNotFoundError: The module does not define the function
    """
    require_ref(ref)
    gateway = open_repo(repo, config)
    if path is None:
        path = find_module_file(gateway, module, ref, extractor)
    else:
        require_safe_path(path)
    try:
        content = gateway.show_file(ref, path)
    except FileNotFoundAtRevisionError as e:
        raise ModuleNotFoundAtRevisionError(module, ref) from e

    clauses = function_clauses(content, module, function, arity, extractor)
    lines = content.splitlines()
    text = "\n".join(
        "\n".join(lines[start - 1 : end]) for start, end in (c.line_range for c in clauses)
    )
    sha, timestamp = _commit_info(gateway, ref)
    return FunctionVersion(
        module_name=module,
        function_name=function,
        arity=arity,
        version_id=version_id(f"{module}.{function}/{arity}", sha),
        commit_sha=sha,
        short_sha=short_sha(sha),
        content_hash=content_hash(text),
        line_range=(clauses[0].line_range[0], clauses[-1].line_range[1]),
        clause_count=len(clauses),
        timestamp=timestamp,
    )


def track_function_versions(
    repo: RepoLike,
    module: str,
    function: str,
    arity: int,
    limit: Optional[int] = None,
    extractor: DefinitionExtractor = scan_definitions,
    config: Optional[MiningConfig] = None,
) -> list[FunctionVersion]:
    """Distinct versions of one function, newest first; see track_module_versions."""
    gateway = open_repo(repo, config)
    path = find_module_file(gateway, module, "HEAD", extractor)
    history = extract_file_history(
        gateway, path, limit=limit or gateway.config.version_history_limit
    )
    outcomes = map_isolated(
        lambda sha: extract_function_version(
            gateway,
            module,
            function,
            arity,
            sha,
            path=path_at_commit(history, sha),
            extractor=extractor,
        ),
        history.commits,
        gateway.config.workers,
    )
    versions = [o.value for o in outcomes if o.ok]
    return link_previous_versions(deduplicate_versions(versions))  # type: ignore[arg-type]


def deduplicate_versions(versions: Sequence[V]) -> list[V]:
    """Collapse runs of equal content hashes (newest-first input) to their oldest member."""
    kept: list[V] = []
    for version in reversed(versions):
        if kept and kept[-1].content_hash == version.content_hash:
            continue
        kept.append(version)
    kept.reverse()
    return kept


def link_previous_versions(versions: Sequence[V]) -> list[V]:
    """Point each version's ``previous_version`` at the next (older) entry."""
    linked = []
    for index, version in enumerate(versions):
        previous = versions[index + 1].version_id if index + 1 < len(versions) else None
        linked.append(replace(version, previous_version=previous))
    return linked


def build_derivation(
    derived: str,
    source: str,
    derivation_type: DerivationType = DerivationType.REVISION,
    activity: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> Derivation:
    return Derivation(
        derived_entity=derived,
        source_entity=source,
        derivation_type=derivation_type,
        activity=activity,
        timestamp=timestamp,
    )


def build_derivation_chain(versions: Sequence[EntityVersion]) -> list[Derivation]:
    """N-1 revision edges for N versions ordered newest to oldest."""
    return [
        build_derivation(
            newer.version_id,
            older.version_id,
            activity=newer.commit_sha,
            timestamp=newer.timestamp,
        )
        for newer, older in zip(versions, versions[1:])
    ]


def same_content(first: EntityVersion, second: EntityVersion) -> bool:
    return first.content_hash == second.content_hash


def version_chain(versions: Sequence[EntityVersion]) -> list[str]:
    return [v.version_id for v in versions]


def find_change_introducing_version(
    versions: Sequence[EntityVersion],
) -> Optional[EntityVersion]:
    """Newest version whose content differs from every older one.

    Returns the newest version when all versions share one content hash,
    and None for an empty sequence.
    """
    if not versions:
        return None
    for index, version in enumerate(versions[:-1]):
        older = {v.content_hash for v in versions[index + 1 :]}
        if version.content_hash not in older:
            return version
    return versions[0]


def extract_generations(
    repo: RepoLike, sha: str, config: Optional[MiningConfig] = None
) -> list[str]:
    """Version ids of the modules defined in source files changed by ``sha``.

    Files deleted by the commit generate nothing.
    """
    gateway = open_repo(repo, config)
    generated: list[str] = []
    for path in changed_files(gateway, sha):
        if not is_source_file(path, gateway.config.source_extensions):
            continue
        try:
            content = gateway.show_file(sha, path)
        except FileNotFoundAtRevisionError:
            continue
        for module in module_names(content):
            entity = version_id(module, sha)
            if entity not in generated:
                generated.append(entity)
    return generated
