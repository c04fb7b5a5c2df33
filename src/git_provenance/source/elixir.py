"""Line scanner for Elixir definitions.

This is the default definition extractor: a pure function from source text
to ``Definition`` records. It understands enough of the surface syntax
(``do``/``end`` blocks, ``fn`` closures, keyword ``do:`` one-liners,
heredocs, strings and comments) to find where each module and function
starts and ends. Callers with a real parser can pass their own extractor
with the same signature wherever one is accepted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional

from ..exceptions import FunctionNotFoundError, ModuleNotFoundAtRevisionError

FUNCTION_KINDS = frozenset({"def", "defp"})
MACRO_KINDS = frozenset({"defmacro", "defmacrop"})
GUARD_KINDS = frozenset({"defguard", "defguardp"})

_MODULE_RE = re.compile(r"^\s*(defmodule|defprotocol)\s+([A-Z][A-Za-z0-9_.]*)")
_IMPL_RE = re.compile(r"^\s*defimpl\s+([A-Z][A-Za-z0-9_.]*)\s*,\s*for:\s*([A-Z][A-Za-z0-9_.]*)")
_DEF_RE = re.compile(
    r"^\s*(defmacrop?|defguardp?|defdelegate|defp?)\s+([a-z_][A-Za-z0-9_]*[!?]?)(\s*\()?"
)
_CALLBACK_RE = re.compile(r"^\s*@(?:macro)?callback\b")

_STRING_RE = re.compile(r'"(?:\\.|[^"\\])*"|\'(?:\\.|[^\'\\])*\'')
_OPEN_RE = re.compile(r"(?<![\w:.@])(?:do|fn)\b(?![:?!\w])")
_CLOSE_RE = re.compile(r"(?<![\w:.@])end\b(?![:?!\w])")
_DO_KEYWORD_RE = re.compile(r"(?<![\w:.@])do:")
_HEREDOC_RE = re.compile(r'"""|\'\'\'')
_TOKEN_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*[!?]?|\d+")

_HEADER_LOOKAHEAD = 10

KEYWORDS = frozenset(
    {"def", "defp", "do", "end", "fn", "if", "else", "case", "cond", "with", "when", "unless"}
)


@dataclass(frozen=True)
class Definition:
    """A module, function or macro located in source text.

    ``line_range`` is 1-based and inclusive. ``module`` is the fully
    qualified enclosing module for functions (None at top level).
    """

    name: str
    kind: str
    arity: int
    line_range: tuple[int, int]
    module: Optional[str] = None

    @property
    def is_module(self) -> bool:
        return self.kind in ("defmodule", "defprotocol", "defimpl")

    @property
    def is_function(self) -> bool:
        return self.kind in FUNCTION_KINDS

    @property
    def is_private(self) -> bool:
        return self.kind.endswith("p") and not self.is_module


DefinitionExtractor = Callable[[str], list[Definition]]


def code_lines(lines: list[str]) -> list[str]:
    """Lines with strings, heredoc bodies and comments blanked out."""
    result = []
    in_heredoc = False
    for line in lines:
        if in_heredoc:
            if _HEREDOC_RE.search(line):
                in_heredoc = False
            result.append("")
            continue
        if len(_HEREDOC_RE.findall(line)) % 2 == 1:
            in_heredoc = True
            line = _HEREDOC_RE.split(line, maxsplit=1)[0]
        code = _STRING_RE.sub('""', line)
        hash_at = code.find("#")
        if hash_at >= 0:
            code = code[:hash_at]
        result.append(code)
    return result


def block_delta(code: str) -> int:
    """Net block depth change of one comment/string-free line."""
    return len(_OPEN_RE.findall(code)) - len(_CLOSE_RE.findall(code))


def find_block_end(code: list[str], start: int) -> int:
    """Index of the last line of the definition starting at ``start``.

    Follows ``do``/``end`` nesting; a keyword ``do:`` form or a bodiless
    function head ends on its own line. Unterminated blocks end at the last
    available line.
    """
    depth = 0
    opened = False
    parens = 0
    for i in range(start, len(code)):
        line = code[i]
        parens += line.count("(") - line.count(")")
        depth += block_delta(line)
        if depth > 0:
            opened = True
        if opened and depth <= 0:
            return i
        if not opened:
            if _DO_KEYWORD_RE.search(line):
                return i
            stripped = line.rstrip()
            continues = parens > 0 or stripped.endswith((",", "\\", "when", "->", "=", "("))
            if not continues or i - start >= _HEADER_LOOKAHEAD:
                return i
    return len(code) - 1


def count_args(args: str) -> int:
    """Number of top-level comma separated arguments in ``args``."""
    if not args.strip():
        return 0
    depth = 0
    count = 1
    for ch in args:
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == "," and depth == 0:
            count += 1
    return count


def balanced_args(text: str) -> Optional[str]:
    """Text inside the parenthesis opening at ``text[0]``, or None if unbalanced."""
    depth = 0
    for i, ch in enumerate(text):
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
            if depth == 0:
                return text[1:i]
    return None


def parse_header(code: list[str], index: int) -> Optional[tuple[str, str, int]]:
    """``(kind, name, arity)`` when ``code[index]`` starts a def-style clause."""
    match = _DEF_RE.match(code[index])
    if not match:
        return None
    kind, name, paren = match.group(1), match.group(2), match.group(3)
    if not paren:
        return kind, name, 0
    tail = code[index][match.end() - 1 :]
    joined = tail
    args = balanced_args(joined)
    j = index
    while args is None and j + 1 < len(code) and j - index < _HEADER_LOOKAHEAD:
        j += 1
        joined += " " + code[j]
        args = balanced_args(joined)
    if args is None:
        return kind, name, 0
    return kind, name, count_args(args)


def scan_definitions(source: str) -> list[Definition]:
    """Extract module and function definitions from Elixir source."""
    lines = source.splitlines()
    code = code_lines(lines)
    definitions: list[Definition] = []
    # (qualified module name, last line index) of enclosing modules
    stack: list[tuple[str, int]] = []

    for i, line in enumerate(code):
        while stack and i > stack[-1][1]:
            stack.pop()
        enclosing = stack[-1][0] if stack else None

        module_match = _MODULE_RE.match(line)
        impl_match = _IMPL_RE.match(line) if not module_match else None
        if module_match or impl_match:
            if module_match:
                kind, name = module_match.group(1), module_match.group(2)
                if enclosing and kind == "defmodule":
                    name = f"{enclosing}.{name}"
            else:
                kind, name = "defimpl", f"{impl_match.group(1)}.{impl_match.group(2)}"
            end = find_block_end(code, i)
            definitions.append(
                Definition(name=name, kind=kind, arity=0, line_range=(i + 1, end + 1), module=enclosing)
            )
            stack.append((name, end))
            continue

        header = parse_header(code, i)
        if header is None:
            continue
        kind, name, arity = header
        end = find_block_end(code, i)
        definitions.append(
            Definition(name=name, kind=kind, arity=arity, line_range=(i + 1, end + 1), module=enclosing)
        )

    return definitions


def module_names(source: str, extractor: DefinitionExtractor = scan_definitions) -> list[str]:
    return [d.name for d in extractor(source) if d.is_module]


def module_source(
    source: str,
    module: str,
    extractor: DefinitionExtractor = scan_definitions,
) -> tuple[str, tuple[int, int]]:
    """Source text and line range of ``module`` within a file.

    Raises:
        ModuleNotFoundAtRevisionError: No such module is defined in ``source``
    """
    for definition in extractor(source):
        if definition.is_module and definition.name == module:
            start, end = definition.line_range
            lines = source.splitlines()
            return "\n".join(lines[start - 1 : end]), definition.line_range
    raise ModuleNotFoundAtRevisionError(module)


def function_clauses(
    source: str,
    module: str,
    name: str,
    arity: int,
    extractor: DefinitionExtractor = scan_definitions,
) -> list[Definition]:
    """All clauses of ``module.name/arity`` in file order.

    Raises:
        FunctionNotFoundError: The module defines no such function
    """
    clauses = [
        d
        for d in extractor(source)
        if not d.is_module and d.module == module and d.name == name and d.arity == arity
    ]
    if not clauses:
        raise FunctionNotFoundError(module, name, arity)
    return clauses


def behaviour_modules(source: str, extractor: DefinitionExtractor = scan_definitions) -> list[str]:
    """Modules that declare at least one ``@callback``/``@macrocallback``."""
    lines = source.splitlines()
    result = []
    for definition in extractor(source):
        if definition.kind != "defmodule":
            continue
        start, end = definition.line_range
        if any(_CALLBACK_RE.match(line) for line in lines[start - 1 : end]):
            result.append(definition.name)
    return result


def tokenize(text: str) -> set[str]:
    """Identifier and number tokens of ``text`` minus block keywords."""
    return {token for token in _TOKEN_RE.findall(text) if token not in KEYWORDS}


def jaccard(a: set[str], b: set[str]) -> float:
    if not a and not b:
        return 1.0
    union = a | b
    return len(a & b) / len(union)
