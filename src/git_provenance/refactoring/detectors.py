"""Heuristic refactoring detection over a commit's diff.

Each detector takes the parsed hunks of one commit and returns the
refactorings it recognizes. Function bodies are rebuilt from the old and new
side of every hunk (context lines included), scanned for definitions, and
compared as identifier-token sets with the function's own name removed, so a
rename with an unchanged body compares as identical.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence, Union

from ..activity.models import Confidence
from ..config import DEFAULT_CONFIG, MiningConfig
from ..concurrency import map_isolated
from ..exceptions import GitParseError, ProvenanceError
from ..history.models import Commit
from ..logging_config import get_logger
from ..source.elixir import FUNCTION_KINDS, jaccard, scan_definitions, tokenize
from ..source.naming import is_source_file, module_from_path
from ..vcs import GitGateway, RepoLike, open_repo
from .diff import get_commit_diff
from .models import (
    CodeLocation,
    DiffHunk,
    FunctionRef,
    HunkStatus,
    Refactoring,
    RefactoringType,
)

logger = get_logger(__name__)

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*[!?]?|\S")
_VARIABLE_RE = re.compile(r"^[a-z_][a-z0-9_]*$")
_MIN_VARIABLE_OCCURRENCES = 2


@dataclass(frozen=True)
class _SideFunction:
    """A function clause found on one side of a hunk."""

    file: str
    module: str
    name: str
    kind: str
    arity: int
    line_range: tuple[int, int]
    code: str
    tokens: frozenset[str]
    body_tokens: frozenset[str]  # header line excluded
    changed: bool
    fully_changed: bool

    @property
    def key(self) -> tuple[str, int]:
        return self.name, self.arity

    @property
    def is_private(self) -> bool:
        return self.kind == "defp"

    def ref(self) -> FunctionRef:
        return FunctionRef(self.name, self.arity)

    def location(self, with_code: bool = False) -> CodeLocation:
        return CodeLocation(
            file=self.file,
            module=self.module,
            function=self.ref(),
            line_range=self.line_range,
            code=self.code if with_code else None,
        )


def _side_functions(
    file: str, side: Sequence[tuple[int, str]], changed: set[int]
) -> list[_SideFunction]:
    if not side:
        return []
    texts = [text for _, text in side]
    numbers = [number for number, _ in side]
    default_module = module_from_path(file)
    functions = []
    for definition in scan_definitions("\n".join(texts)):
        if definition.kind not in FUNCTION_KINDS:
            continue
        start, end = definition.line_range
        body = texts[start - 1 : end]
        body_numbers = numbers[start - 1 : end]
        touched = [number in changed for number in body_numbers]
        functions.append(
            _SideFunction(
                file=file,
                module=definition.module or default_module,
                name=definition.name,
                kind=definition.kind,
                arity=definition.arity,
                line_range=(body_numbers[0], body_numbers[-1]),
                code="\n".join(body),
                tokens=frozenset(tokenize("\n".join(body)) - {definition.name}),
                body_tokens=frozenset(tokenize("\n".join(body[1:])) - {definition.name}),
                changed=any(touched),
                fully_changed=all(touched),
            )
        )
    return functions


@dataclass(frozen=True)
class _HunkFunctions:
    hunk: DiffHunk
    old: list[_SideFunction]
    new: list[_SideFunction]

    @property
    def removed(self) -> list[_SideFunction]:
        """Changed old-side functions whose name/arity is gone on the new side."""
        new_keys = {f.key for f in self.new}
        return [f for f in self.old if f.changed and f.key not in new_keys]

    @property
    def added(self) -> list[_SideFunction]:
        """Changed new-side functions whose name/arity did not exist before."""
        old_keys = {f.key for f in self.old}
        return [f for f in self.new if f.changed and f.key not in old_keys]


def _analyze(hunk: DiffHunk) -> _HunkFunctions:
    deleted = {number for number, _ in hunk.deletions}
    added = {number for number, _ in hunk.additions}
    old = _side_functions(hunk.source_path, hunk.old_side(), deleted)
    new = _side_functions(hunk.file, hunk.new_side(), added)
    return _HunkFunctions(hunk, old, new)


def _source_hunks(hunks: Iterable[DiffHunk], config: MiningConfig) -> list[DiffHunk]:
    return [h for h in hunks if is_source_file(h.file, config.source_extensions)]


def _sha(commit: Union[Commit, str]) -> str:
    return commit.sha if isinstance(commit, Commit) else commit


def _similarity_confidence(similarity: float, config: MiningConfig) -> Optional[Confidence]:
    thresholds = config.thresholds
    if similarity >= thresholds.identical_similarity:
        return Confidence.HIGH
    if similarity > thresholds.rename_similarity:
        return Confidence.MEDIUM
    return None


def _containment(part: frozenset[str], whole: set[str]) -> float:
    if not part:
        return 0.0
    return len(part & whole) / len(part)


def _calls(name: str) -> re.Pattern[str]:
    return re.compile(r"(?<![\w!?])" + re.escape(name) + r"\s*\(")


def detect_function_renames(
    hunks: Iterable[DiffHunk],
    commit: Union[Commit, str],
    config: Optional[MiningConfig] = None,
) -> list[Refactoring]:
    """A removed and an added function in one file with the same arity and body.

    Each removed function pairs with at most one added function (the most
    similar one); ties go to the earlier definition.
    """
    config = config or DEFAULT_CONFIG
    sha = _sha(commit)
    results = []
    for hunk in _source_hunks(hunks, config):
        if hunk.status not in (HunkStatus.MODIFIED, HunkStatus.RENAMED):
            continue
        functions = _analyze(hunk)
        candidates = functions.added
        claimed: set[tuple[str, int]] = set()
        for old in functions.removed:
            best: Optional[tuple[float, _SideFunction]] = None
            for new in candidates:
                if new.key in claimed or new.arity != old.arity or new.name == old.name:
                    continue
                similarity = jaccard(set(old.tokens), set(new.tokens))
                if best is None or similarity > best[0]:
                    best = (similarity, new)
            if best is None:
                continue
            similarity, new = best
            confidence = _similarity_confidence(similarity, config)
            if confidence is None:
                continue
            claimed.add(new.key)
            results.append(
                Refactoring(
                    type=RefactoringType.RENAME_FUNCTION,
                    source=old.location(),
                    target=new.location(),
                    confidence=confidence,
                    commit=sha,
                    metadata={"similarity": f"{similarity:.2f}"},
                )
            )
    return results


def detect_extract_function(
    hunks: Iterable[DiffHunk],
    commit: Union[Commit, str],
    config: Optional[MiningConfig] = None,
) -> list[Refactoring]:
    """A newly written function whose body came out of deleted code.

    High confidence when the new name is called from a changed spot that
    also lost code; medium when only the body matches the deletions.
    """
    config = config or DEFAULT_CONFIG
    sha = _sha(commit)
    analyzed = [_analyze(h) for h in _source_hunks(hunks, config)]

    deleted_by_hunk = []
    for functions in analyzed:
        headers = {f.line_range[0] for f in functions.old}
        tokens: set[str] = set()
        for number, text in functions.hunk.deletions:
            if number not in headers:
                tokens |= tokenize(text)
        deleted_by_hunk.append((functions.hunk, tokens))

    results = []
    for functions in analyzed:
        for new in functions.added:
            if not new.fully_changed:
                continue
            call = _calls(new.name)
            call_sites = [
                (hunk.file, number)
                for hunk, deleted in deleted_by_hunk
                if deleted
                for number, text in hunk.additions
                if call.search(text)
                and not (hunk.file == new.file and new.line_range[0] <= number <= new.line_range[1])
            ]
            best_hunk, best_score = None, 0.0
            for hunk, deleted in deleted_by_hunk:
                score = _containment(new.body_tokens, deleted)
                if score > best_score:
                    best_hunk, best_score = hunk, score
            body_matches = best_score >= config.thresholds.extract_containment

            if call_sites:
                confidence = Confidence.HIGH
            elif body_matches:
                confidence = Confidence.MEDIUM
            else:
                continue

            source_hunk = best_hunk or functions.hunk
            deleted_code = "\n".join(text for _, text in source_hunk.deletions) or None
            metadata = {"calls_found": str(len(call_sites))}
            if best_hunk is not None:
                metadata["containment"] = f"{best_score:.2f}"
            results.append(
                Refactoring(
                    type=RefactoringType.EXTRACT_FUNCTION,
                    source=CodeLocation(
                        file=source_hunk.file,
                        module=module_from_path(source_hunk.file),
                        code=deleted_code,
                    ),
                    target=new.location(with_code=True),
                    confidence=confidence,
                    commit=sha,
                    metadata=metadata,
                )
            )
    return results


def detect_extract_module(
    hunks: Iterable[DiffHunk],
    commit: Union[Commit, str],
    config: Optional[MiningConfig] = None,
) -> list[Refactoring]:
    """A new file defining a module that received functions removed elsewhere."""
    config = config or DEFAULT_CONFIG
    sha = _sha(commit)
    analyzed = [_analyze(h) for h in _source_hunks(hunks, config)]
    removed = [
        old
        for functions in analyzed
        if functions.hunk.status is not HunkStatus.ADDED
        for old in functions.removed
    ]

    results = []
    for functions in analyzed:
        hunk = functions.hunk
        if hunk.status is not HunkStatus.ADDED:
            continue
        text = "\n".join(t for _, t in hunk.additions)
        modules = [d.name for d in scan_definitions(text) if d.kind == "defmodule"]
        if not modules:
            continue
        matched = [
            old
            for old in removed
            if old.file != hunk.file
            and any(
                new.arity == old.arity
                and jaccard(set(old.tokens), set(new.tokens)) > config.thresholds.rename_similarity
                for new in functions.new
            )
        ]
        if not matched:
            continue
        source = matched[0]
        results.append(
            Refactoring(
                type=RefactoringType.EXTRACT_MODULE,
                source=CodeLocation(file=source.file, module=source.module),
                target=CodeLocation(file=hunk.file, module=modules[0]),
                confidence=Confidence.HIGH,
                commit=sha,
                metadata={
                    "functions_moved": str(len(matched)),
                    "function_names": ",".join(f"{f.name}/{f.arity}" for f in matched),
                },
            )
        )
    return results


def detect_module_renames(
    hunks: Iterable[DiffHunk],
    commit: Union[Commit, str],
    config: Optional[MiningConfig] = None,
) -> list[Refactoring]:
    """File renames reported by git's similarity detection."""
    config = config or DEFAULT_CONFIG
    sha = _sha(commit)
    results = []
    for hunk in _source_hunks(hunks, config):
        if hunk.status is not HunkStatus.RENAMED or hunk.old_file is None:
            continue
        high = (
            hunk.similarity is not None
            and hunk.similarity >= config.thresholds.module_rename_high_similarity
        )
        results.append(
            Refactoring(
                type=RefactoringType.RENAME_MODULE,
                source=CodeLocation(file=hunk.old_file, module=module_from_path(hunk.old_file)),
                target=CodeLocation(file=hunk.file, module=module_from_path(hunk.file)),
                confidence=Confidence.HIGH if high else Confidence.MEDIUM,
                commit=sha,
                metadata={"similarity": str(hunk.similarity) if hunk.similarity is not None else ""},
            )
        )
    return results


def detect_inline_function(
    hunks: Iterable[DiffHunk],
    commit: Union[Commit, str],
    config: Optional[MiningConfig] = None,
) -> list[Refactoring]:
    """A removed private function whose body now appears in other code.

    Additions that form new functions do not count as inline sites, and a
    remaining call to the removed name rules the candidate out.
    """
    config = config or DEFAULT_CONFIG
    sha = _sha(commit)
    results = []
    for hunk in _source_hunks(hunks, config):
        if hunk.status is not HunkStatus.MODIFIED:
            continue
        functions = _analyze(hunk)
        new_function_lines = set()
        for new in functions.added:
            new_function_lines.update(range(new.line_range[0], new.line_range[1] + 1))
        inline_sites = [
            (number, text) for number, text in hunk.additions if number not in new_function_lines
        ]
        site_tokens: set[str] = set()
        for _, text in inline_sites:
            site_tokens |= tokenize(text)

        for old in functions.removed:
            if not old.is_private:
                continue
            call = _calls(old.name)
            if any(call.search(text) for _, text in hunk.new_side()):
                continue
            coverage = _containment(old.body_tokens, site_tokens)
            if coverage <= config.thresholds.inline_coverage:
                continue
            lines = [number for number, text in inline_sites if tokenize(text) & old.body_tokens]
            target_range = (min(lines), max(lines)) if lines else None
            results.append(
                Refactoring(
                    type=RefactoringType.INLINE_FUNCTION,
                    source=old.location(with_code=True),
                    target=CodeLocation(
                        file=hunk.file, module=old.module, line_range=target_range
                    ),
                    confidence=Confidence.MEDIUM,
                    commit=sha,
                    metadata={"coverage": f"{coverage:.2f}"},
                )
            )
    return results


def detect_move_function(
    hunks: Iterable[DiffHunk],
    commit: Union[Commit, str],
    config: Optional[MiningConfig] = None,
) -> list[Refactoring]:
    """The same function removed from one file and added to a different one."""
    config = config or DEFAULT_CONFIG
    sha = _sha(commit)
    analyzed = [_analyze(h) for h in _source_hunks(hunks, config)]
    removed = [old for functions in analyzed for old in functions.removed]
    added = [new for functions in analyzed for new in functions.added]

    results = []
    claimed: set[tuple[str, str, int]] = set()
    for old in removed:
        for new in added:
            if new.file == old.file or new.key != old.key:
                continue
            if (new.file, new.name, new.arity) in claimed:
                continue
            similarity = jaccard(set(old.tokens), set(new.tokens))
            confidence = _similarity_confidence(similarity, config)
            if confidence is None:
                continue
            claimed.add((new.file, new.name, new.arity))
            results.append(
                Refactoring(
                    type=RefactoringType.MOVE_FUNCTION,
                    source=old.location(),
                    target=new.location(),
                    confidence=confidence,
                    commit=sha,
                    metadata={"similarity": f"{similarity:.2f}"},
                )
            )
            break
    return results


def detect_variable_renames(
    hunks: Iterable[DiffHunk],
    commit: Union[Commit, str],
    config: Optional[MiningConfig] = None,
) -> list[Refactoring]:
    """One identifier consistently replaced by another across changed lines.

    Replaced lines are paired within each run of deletions followed by the
    same number of additions. A pair counts when the token sequences differ
    only by one lower-case identifier substitution; the substitution must be
    seen at least twice inside one function.
    """
    config = config or DEFAULT_CONFIG
    sha = _sha(commit)
    results = []
    for hunk in _source_hunks(hunks, config):
        if hunk.status not in (HunkStatus.MODIFIED, HunkStatus.RENAMED):
            continue
        functions = _analyze(hunk)
        function_names = {f.name for f in functions.old} | {f.name for f in functions.new}
        counts: dict[tuple[Optional[_SideFunction], str, str], list[int]] = {}

        for old_text, new_line, new_text in _replaced_pairs(hunk):
            substitution = _substitution(old_text, new_text)
            if substitution is None:
                continue
            before, after = substitution
            if before in function_names or after in function_names:
                continue
            owner = _enclosing(functions.new, new_line)
            counts.setdefault((owner, before, after), []).append(new_line)

        for (owner, before, after), lines in counts.items():
            occurrences = sum(
                _substitution_count(old_text, new_text, before, after)
                for old_text, new_line, new_text in _replaced_pairs(hunk)
                if new_line in lines
            )
            if occurrences < _MIN_VARIABLE_OCCURRENCES:
                continue
            function = owner.ref() if owner else None
            module = owner.module if owner else module_from_path(hunk.file)
            line_range = (min(lines), max(lines))
            results.append(
                Refactoring(
                    type=RefactoringType.RENAME_VARIABLE,
                    source=CodeLocation(
                        file=hunk.source_path, module=module, function=function, code=before
                    ),
                    target=CodeLocation(
                        file=hunk.file,
                        module=module,
                        function=function,
                        line_range=line_range,
                        code=after,
                    ),
                    confidence=Confidence.MEDIUM,
                    commit=sha,
                    metadata={"from": before, "to": after, "occurrences": str(occurrences)},
                )
            )
    return results


def _replaced_pairs(hunk: DiffHunk) -> list[tuple[str, int, str]]:
    """``(old text, new line, new text)`` for each line replaced one-for-one."""
    pairs = []
    deleted: list[str] = []
    added: list[tuple[int, str]] = []

    def flush() -> None:
        if deleted and len(deleted) == len(added):
            pairs.extend((d, n, t) for d, (n, t) in zip(deleted, added))
        deleted.clear()
        added.clear()

    for line in hunk.lines:
        if line.kind == "-":
            if added:
                flush()
            deleted.append(line.text)
        elif line.kind == "+":
            added.append((line.new_line, line.text))  # type: ignore[arg-type]
        else:
            flush()
    flush()
    return pairs


def _substitution(old_text: str, new_text: str) -> Optional[tuple[str, str]]:
    old_tokens = _IDENTIFIER_RE.findall(old_text)
    new_tokens = _IDENTIFIER_RE.findall(new_text)
    if len(old_tokens) != len(new_tokens):
        return None
    found: Optional[tuple[str, str]] = None
    for before, after in zip(old_tokens, new_tokens):
        if before == after:
            continue
        if not (_VARIABLE_RE.match(before) and _VARIABLE_RE.match(after)):
            return None
        if found is None:
            found = (before, after)
        elif found != (before, after):
            return None
    return found


def _substitution_count(old_text: str, new_text: str, before: str, after: str) -> int:
    return sum(
        1
        for a, b in zip(_IDENTIFIER_RE.findall(old_text), _IDENTIFIER_RE.findall(new_text))
        if a == before and b == after
    )


def _enclosing(functions: list[_SideFunction], line: int) -> Optional[_SideFunction]:
    for function in functions:
        if function.line_range[0] <= line <= function.line_range[1]:
            return function
    return None


Detector = Callable[[Iterable[DiffHunk], Union[Commit, str], Optional[MiningConfig]], list[Refactoring]]

DETECTORS: dict[RefactoringType, Detector] = {
    RefactoringType.EXTRACT_FUNCTION: detect_extract_function,
    RefactoringType.EXTRACT_MODULE: detect_extract_module,
    RefactoringType.RENAME_FUNCTION: detect_function_renames,
    RefactoringType.RENAME_MODULE: detect_module_renames,
    RefactoringType.RENAME_VARIABLE: detect_variable_renames,
    RefactoringType.INLINE_FUNCTION: detect_inline_function,
    RefactoringType.MOVE_FUNCTION: detect_move_function,
}


def detect_refactorings_in_hunks(
    hunks: Sequence[DiffHunk],
    commit: Union[Commit, str],
    types: Optional[Iterable[RefactoringType]] = None,
    config: Optional[MiningConfig] = None,
) -> list[Refactoring]:
    """Run the selected detectors (all by default), highest confidence first.

    An extracted-function candidate that is also the target of a detected
    rename or move is dropped in favour of the rename or move.
    """
    selected = list(types) if types is not None else list(DETECTORS)
    results: list[Refactoring] = []
    for refactoring_type in selected:
        detector = DETECTORS.get(refactoring_type)
        if detector is None:
            continue
        results.extend(detector(hunks, commit, config))

    relocated = {
        (r.target.file, r.target.function)
        for r in results
        if r.type in (RefactoringType.RENAME_FUNCTION, RefactoringType.MOVE_FUNCTION)
    }
    results = [
        r
        for r in results
        if not (
            r.type is RefactoringType.EXTRACT_FUNCTION
            and (r.target.file, r.target.function) in relocated
        )
    ]
    return sorted(results, key=lambda r: -r.confidence.rank)


def detect_refactorings(
    repo: RepoLike,
    commit: Union[Commit, str],
    types: Optional[Iterable[RefactoringType]] = None,
    config: Optional[MiningConfig] = None,
) -> list[Refactoring]:
    """Refactorings introduced by ``commit``."""
    gateway = open_repo(repo, config)
    hunks = get_commit_diff(gateway, commit)
    return detect_refactorings_in_hunks(hunks, commit, types, gateway.config)


def detect_refactorings_in_commits(
    repo: RepoLike,
    commits: Iterable[Union[Commit, str]],
    types: Optional[Iterable[RefactoringType]] = None,
    config: Optional[MiningConfig] = None,
) -> list[tuple[Union[Commit, str], list[Refactoring]]]:
    """Pair each commit with its refactorings, in input order.

    A commit whose diff cannot be read or analyzed is paired with an empty
    list; the rest of the batch still runs.
    """
    gateway = open_repo(repo, config)
    types = list(types) if types is not None else None
    outcomes = map_isolated(
        lambda c: _detect_isolated(gateway, c, types),
        commits,
        gateway.config.workers,
    )
    return [(o.item, o.value if o.ok else []) for o in outcomes]  # type: ignore[misc]


def _detect_isolated(
    gateway: GitGateway, commit: Union[Commit, str], types: Optional[list[RefactoringType]]
) -> list[Refactoring]:
    try:
        return detect_refactorings(gateway, commit, types)
    except ProvenanceError:
        raise
    except Exception as e:
        sha = commit.sha if isinstance(commit, Commit) else commit
        logger.debug("Refactoring scan of %s failed", sha, exc_info=True)
        raise GitParseError(f"refactorings of {sha}", f"{type(e).__name__}: {e}") from e
