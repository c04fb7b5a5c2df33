"""Deprecation and removal detection from commit diffs.

A deprecation is an ``@deprecated`` attribute added in a commit, bound to
the first definition that follows it on the new side of the file. A removal
is a definition carrying ``@deprecated`` on the old side whose definition
lines were deleted and which is no longer defined on the new side.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Iterable, Optional, Sequence, Union

from ..concurrency import map_isolated
from ..config import MiningConfig
from ..history import Commit, extract_commit, extract_file_history, path_at_commit
from ..logging_config import get_logger
from ..refactoring.diff import get_commit_diff
from ..refactoring.models import DiffHunk, FunctionRef, HunkStatus
from ..source.elixir import (
    GUARD_KINDS,
    MACRO_KINDS,
    balanced_args,
    code_lines,
    count_args,
    parse_header,
)
from ..source.naming import DEFAULT_SOURCE_EXTENSIONS, camelize, is_source_file, module_from_path
from ..vcs import GitGateway, RepoLike, open_repo, valid_sha
from .models import (
    Deprecation,
    DeprecationEvent,
    ElementType,
    RemovalEvent,
    Replacement,
)

logger = get_logger(__name__)

DEFAULT_MESSAGE = "Deprecated"

_ATTRIBUTE_RE = re.compile(r"^\s*@deprecated\b\s*(.*)$")
_MESSAGE_RES = (
    re.compile(r'^"((?:\\.|[^"\\])*)"'),
    re.compile(r"^'((?:\\.|[^'\\])*)'"),
    re.compile(r"^~[sS]\[([^\]]*)\]"),
    re.compile(r"^~[sS]/([^/]*)/"),
    re.compile(r"^~[sS]\(([^)]*)\)"),
    re.compile(r"^~[sS]\{([^}]*)\}"),
)
_HEREDOC_OPEN_RE = re.compile(r'^(?:"""|\'\'\')\s*$')
_HEREDOC_CLOSE_RE = re.compile(r'^\s*(?:"""|\'\'\')')

_MODULE_RE = re.compile(r"^\s*defmodule\s+([A-Z][A-Za-z0-9_.]*)")
_CALLBACK_RE = re.compile(r"^\s*@(?:macro)?callback\s+([a-z_][A-Za-z0-9_]*[!?]?)\s*(\()?")
_TYPE_RE = re.compile(r"^\s*@(?:type|typep|opaque)\s+([a-z_][A-Za-z0-9_]*)")

# (pattern, has module, has function, has arity), most specific first
_REPLACEMENT_RULES = (
    (re.compile(r"\b([A-Z]\w*(?:\.[A-Z]\w*)*)\.([a-z_]\w*[!?]?)/(\d+)"), True, True, True),
    (re.compile(r"\b([A-Z]\w*(?:\.[A-Z]\w*)*)\.([a-z_]\w*[!?]?)"), True, True, False),
    (re.compile(r"(?<![\w.])([a-z_]\w*[!?]?)/(\d+)"), False, True, True),
    (re.compile(r"(?<![\w:]):([a-z_]\w*)"), True, False, False),
)

_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "'": "'", "\\": "\\"}

Element = tuple[ElementType, str, Optional[FunctionRef]]


def parse_replacement(message: Optional[str]) -> Optional[Replacement]:
    """Successor named by a deprecation message.

    Recognizes ``Module.fun/arity``, ``Module.fun`` (arity 0), ``fun/arity``
    and ``:module`` atoms. A message naming none of them is kept as text.
    """
    if not message:
        return None
    for pattern, has_module, has_function, has_arity in _REPLACEMENT_RULES:
        match = pattern.search(message)
        if not match:
            continue
        groups = list(match.groups())
        module = groups.pop(0) if has_module else None
        if has_module and not has_function:
            module = camelize(module)
        function = None
        if has_function:
            name = groups.pop(0)
            arity = int(groups.pop(0)) if has_arity else 0
            function = FunctionRef(name, arity)
        return Replacement(text=message, module=module, function=function)
    return Replacement(text=message)


def parse_deprecated_attribute(lines: Sequence[str], index: int) -> Optional[str]:
    """Message of the ``@deprecated`` attribute at ``lines[index]``.

    ``@deprecated true`` gives the default message; ``false`` and lines that
    are not the attribute give None.
    """
    match = _ATTRIBUTE_RE.match(lines[index])
    if not match:
        return None
    value = match.group(1).strip()
    if value == "true":
        return DEFAULT_MESSAGE
    if value == "false" or not value:
        return None
    if _HEREDOC_OPEN_RE.match(value):
        body = []
        for line in lines[index + 1 :]:
            if _HEREDOC_CLOSE_RE.match(line):
                return " ".join(body) or DEFAULT_MESSAGE
            body.append(line.strip())
        return " ".join(body) or DEFAULT_MESSAGE
    for pattern in _MESSAGE_RES:
        found = pattern.match(value)
        if found:
            return _unescape(found.group(1))
    return DEFAULT_MESSAGE


def find_following_element(code: Sequence[str], index: int) -> Optional[Element]:
    """First definition after ``code[index]``, stopping at the next ``@deprecated``."""
    found = _next_element(code, index)
    return found[1] if found else None


def element_at(code: Sequence[str], index: int) -> Optional[Element]:
    """The module, function, macro, callback or type defined on ``code[index]``."""
    line = code[index]
    module = _MODULE_RE.match(line)
    if module:
        return ElementType.MODULE, module.group(1), None
    header = parse_header(code, index)  # type: ignore[arg-type]
    if header is not None:
        kind, name, arity = header
        if kind in GUARD_KINDS or kind in MACRO_KINDS:
            return ElementType.MACRO, name, FunctionRef(name, arity)
        return ElementType.FUNCTION, name, FunctionRef(name, arity)
    callback = _CALLBACK_RE.match(line)
    if callback:
        name = callback.group(1)
        args = balanced_args(line[callback.end() - 1 :]) if callback.group(2) else None
        return ElementType.CALLBACK, name, FunctionRef(name, count_args(args) if args else 0)
    type_match = _TYPE_RE.match(line)
    if type_match:
        return ElementType.TYPE, type_match.group(1), None
    return None


def deprecations_in_hunks(
    hunks: Iterable[DiffHunk],
    commit: Commit,
    extensions: Iterable[str] = DEFAULT_SOURCE_EXTENSIONS,
) -> list[Deprecation]:
    """Deprecation attributes added by ``commit`` in source files.

    The attribute line must be an addition; the definition it binds to may be
    unchanged context, so deprecating an existing function is detected as
    long as the diff carries enough context lines.
    """
    extensions = tuple(extensions)
    found = []
    for hunk in hunks:
        if hunk.status is HunkStatus.DELETED or not is_source_file(hunk.file, extensions):
            continue
        side = hunk.new_side() if hunk.lines else list(hunk.additions)
        added = {number for number, _ in hunk.additions}
        texts = [text for _, text in side]
        code = code_lines(texts)
        for i, (number, _) in enumerate(side):
            if number not in added or not _ATTRIBUTE_RE.match(code[i]):
                continue
            message = parse_deprecated_attribute(texts, i)
            if message is None:
                continue
            found.append(
                _build(
                    find_following_element(code, i),
                    message,
                    hunk.file,
                    deprecated_in=DeprecationEvent(commit=commit, file=hunk.file, line=number),
                )
            )
    return found


def removals_in_hunks(
    hunks: Iterable[DiffHunk],
    commit: Commit,
    extensions: Iterable[str] = DEFAULT_SOURCE_EXTENSIONS,
) -> list[Deprecation]:
    """Deprecated definitions that ``commit`` deleted.

    Dropping only the attribute, or rewriting a deprecated definition that
    still exists afterwards, is not a removal.
    """
    extensions = tuple(extensions)
    found = []
    for hunk in hunks:
        path = hunk.source_path
        if not is_source_file(path, extensions):
            continue
        side = hunk.old_side() if hunk.lines else list(hunk.deletions)
        deleted = {number for number, _ in hunk.deletions}
        texts = [text for _, text in side]
        code = code_lines(texts)
        remaining: Optional[set[tuple]] = None
        for i in range(len(side)):
            if not _ATTRIBUTE_RE.match(code[i]):
                continue
            message = parse_deprecated_attribute(texts, i)
            if message is None:
                continue
            following = _next_element(code, i)
            if following is None or side[following[0]][0] not in deleted:
                continue
            if remaining is None:
                remaining = _defined_elements(hunk)
            element = following[1]
            if _element_key(element) in remaining:
                continue
            found.append(
                _build(
                    element,
                    message,
                    path,
                    removed_in=RemovalEvent(commit=commit, file=path),
                    metadata={"previously_deprecated": "true"},
                )
            )
    return found


def detect_deprecations(
    repo: RepoLike, commit: Union[Commit, str], config: Optional[MiningConfig] = None
) -> list[Deprecation]:
    """Deprecations introduced by ``commit``.

    Raises:
        InvalidRefError: ``commit`` is malformed or unknown
    """
    gateway = open_repo(repo, config)
    commit = _resolve(gateway, commit)
    hunks = get_commit_diff(gateway, commit)
    return deprecations_in_hunks(hunks, commit, gateway.config.source_extensions)


def detect_removals(
    repo: RepoLike, commit: Union[Commit, str], config: Optional[MiningConfig] = None
) -> list[Deprecation]:
    gateway = open_repo(repo, config)
    commit = _resolve(gateway, commit)
    hunks = get_commit_diff(gateway, commit)
    return removals_in_hunks(hunks, commit, gateway.config.source_extensions)


def track_deprecations(
    repo: RepoLike, path: str, limit: Optional[int] = None, config: Optional[MiningConfig] = None
) -> list[Deprecation]:
    """Deprecation lifecycle of the elements in one file, oldest first.

    Walks the file's history (following renames). Each deprecation is linked
    to the later commit that removed the element, when there is one; removals
    of elements deprecated before the walked window are returned on their own.
    Commits whose diff cannot be read are skipped.

    Raises:
        FileNotTrackedError: ``path`` never appears in history
    """
    gateway = open_repo(repo, config)
    history = extract_file_history(
        gateway, path, limit=limit or gateway.config.version_history_limit
    )
    extensions = gateway.config.source_extensions

    def scan(sha: str) -> tuple[list[Deprecation], list[Deprecation]]:
        at = path_at_commit(history, sha)
        commit = extract_commit(gateway, sha)
        hunks = [h for h in get_commit_diff(gateway, commit) if at in (h.file, h.source_path)]
        return (
            deprecations_in_hunks(hunks, commit, extensions),
            removals_in_hunks(hunks, commit, extensions),
        )

    outcomes = map_isolated(scan, list(reversed(history.commits)), gateway.config.workers)
    tracked = link_removals([o.value for o in outcomes if o.ok])  # type: ignore[misc]
    logger.debug(
        "Tracked %d deprecations across %d commits of %s", len(tracked), len(outcomes), history.path
    )
    return tracked


def link_removals(
    per_commit: Sequence[tuple[list[Deprecation], list[Deprecation]]]
) -> list[Deprecation]:
    """Pair each removal with the latest open deprecation of the same element.

    ``per_commit`` holds ``(deprecations, removals)`` per commit, oldest first.
    """
    tracked: list[Deprecation] = []
    open_at: dict[tuple, int] = {}
    for deprecations, removals in per_commit:
        for removal in removals:
            index = open_at.pop(_deprecation_key(removal), None)
            if index is None:
                tracked.append(removal)
                continue
            previous = tracked[index]
            tracked[index] = replace(
                previous,
                removed_in=removal.removed_in,
                metadata={**previous.metadata, **removal.metadata},
            )
        for deprecation in deprecations:
            open_at[_deprecation_key(deprecation)] = len(tracked)
            tracked.append(deprecation)
    return tracked


def find_deprecation_commits(
    repo: RepoLike, limit: Optional[int] = None, config: Optional[MiningConfig] = None
) -> list[str]:
    """SHAs of commits that change the number of ``@deprecated`` occurrences, newest first."""
    gateway = open_repo(repo, config)
    effective = gateway.config.cap_limit(limit or gateway.config.version_history_limit)
    output = gateway.run(["log", "-S@deprecated", "--format=%H", "-n", str(effective), "--"])
    return [line.strip() for line in output.splitlines() if valid_sha(line.strip())]


def has_replacement(deprecation: Deprecation) -> bool:
    return deprecation.has_replacement


def removed(deprecation: Deprecation) -> bool:
    return deprecation.removed


def _resolve(gateway: GitGateway, commit: Union[Commit, str]) -> Commit:
    if isinstance(commit, Commit):
        return commit
    return extract_commit(gateway, commit)


def _next_element(code: Sequence[str], index: int) -> Optional[tuple[int, Element]]:
    for i in range(index + 1, len(code)):
        if _ATTRIBUTE_RE.match(code[i]):
            return None
        element = element_at(code, i)
        if element is not None:
            return i, element
    return None


def _build(
    element: Optional[Element],
    message: str,
    path: str,
    deprecated_in: Optional[DeprecationEvent] = None,
    removed_in: Optional[RemovalEvent] = None,
    metadata: Optional[dict[str, str]] = None,
) -> Deprecation:
    if element is None:
        element_type, name, function = ElementType.UNKNOWN, "unknown", None
    else:
        element_type, name, function = element
    return Deprecation(
        element_type=element_type,
        element_name=name,
        message=message,
        module=name if element_type is ElementType.MODULE else module_from_path(path),
        function=function,
        deprecated_in=deprecated_in,
        removed_in=removed_in,
        replacement=parse_replacement(message) if message != DEFAULT_MESSAGE else None,
        metadata=metadata or {},
    )


def _element_key(element: Element) -> tuple:
    element_type, name, function = element
    return element_type, name, function.arity if function else None


def _defined_elements(hunk: DiffHunk) -> set[tuple]:
    """Keys of every definition on the new side of ``hunk``."""
    if hunk.status is HunkStatus.DELETED:
        return set()
    code = code_lines([text for _, text in hunk.new_side()])
    keys = set()
    for i in range(len(code)):
        element = element_at(code, i)
        if element is not None:
            keys.add(_element_key(element))
    return keys


def _deprecation_key(deprecation: Deprecation) -> tuple:
    arity = deprecation.function.arity if deprecation.function else None
    return deprecation.element_type, deprecation.module, deprecation.element_name, arity


def _unescape(text: str) -> str:
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(0)), text)
