"""Tests for refactoring detection heuristics."""

from git_provenance.activity import Confidence
from git_provenance.refactoring import (
    DiffHunk,
    DiffLine,
    FunctionRef,
    HunkStatus,
    RefactoringType,
    detect_extract_function,
    detect_extract_module,
    detect_function_renames,
    detect_inline_function,
    detect_module_renames,
    detect_move_function,
    detect_refactorings,
    detect_refactorings_in_commits,
    detect_refactorings_in_hunks,
    detect_variable_renames,
)
from git_provenance.refactoring.detectors import DETECTORS

SHA = "c" * 40


def make_hunk(file, body, status=HunkStatus.MODIFIED, old_file=None, similarity=None):
    """Build a hunk from diff-style lines prefixed with ' ', '-' or '+'."""
    lines = []
    old_line = new_line = 1
    for raw in body:
        kind, text = raw[0], raw[1:]
        if kind == "+":
            lines.append(DiffLine(None, new_line, text, "+"))
            new_line += 1
        elif kind == "-":
            lines.append(DiffLine(old_line, None, text, "-"))
            old_line += 1
        else:
            lines.append(DiffLine(old_line, new_line, text, " "))
            old_line += 1
            new_line += 1
    return DiffHunk(
        file=file,
        old_file=old_file,
        status=status,
        additions=tuple((d.new_line, d.text) for d in lines if d.kind == "+"),
        deletions=tuple((d.old_line, d.text) for d in lines if d.kind == "-"),
        similarity=similarity,
        lines=tuple(lines),
    )


RENAME = make_hunk(
    "lib/my_app/math.ex",
    [
        " defmodule MyApp.Math do",
        "-  def total(items) do",
        "+  def sum_all(items) do",
        "     Enum.reduce(items, 0, fn item, acc -> item + acc end)",
        "   end",
        " end",
    ],
)

EXTRACT = make_hunk(
    "lib/my_app/orders.ex",
    [
        " defmodule MyApp.Orders do",
        "   def total(order) do",
        "-    subtotal = Enum.sum(order.items)",
        "-    subtotal * (1 + order.tax_rate)",
        "+    order |> compute_total()",
        "   end",
        "+",
        "+  defp compute_total(order) do",
        "+    subtotal = Enum.sum(order.items)",
        "+    subtotal * (1 + order.tax_rate)",
        "+  end",
        " end",
    ],
)

INLINE = make_hunk(
    "lib/my_app/greeter.ex",
    [
        " defmodule MyApp.Greeter do",
        "   def greet(name) do",
        "-    format_greeting(name)",
        '+    "Hello, " <> String.capitalize(name)',
        "   end",
        "-",
        "-  defp format_greeting(name) do",
        '-    "Hello, " <> String.capitalize(name)',
        "-  end",
        " end",
    ],
)

VARIABLE = make_hunk(
    "lib/my_app/cart.ex",
    [
        " defmodule MyApp.Cart do",
        "   def total(items) do",
        "-    sum = Enum.sum(items)",
        "-    sum * 2",
        "+    amount = Enum.sum(items)",
        "+    amount * 2",
        "   end",
        " end",
    ],
)

MOVE_FROM = make_hunk(
    "lib/a.ex",
    [
        " defmodule A do",
        "-  def shared(x) do",
        "-    x * 2 + offset()",
        "-  end",
        " end",
    ],
)

MOVE_TO = make_hunk(
    "lib/b.ex",
    [
        " defmodule B do",
        "+  def shared(x) do",
        "+    x * 2 + offset()",
        "+  end",
        " end",
    ],
)

EXTRACT_MODULE_FROM = make_hunk(
    "lib/my_app/accounts.ex",
    [
        " defmodule MyApp.Accounts do",
        "-  def hash_password(password) do",
        "-    Bcrypt.hash_pwd_salt(password)",
        "-  end",
        " end",
    ],
)

EXTRACT_MODULE_TO = make_hunk(
    "lib/my_app/password.ex",
    [
        "+defmodule MyApp.Password do",
        "+  def hash_password(password) do",
        "+    Bcrypt.hash_pwd_salt(password)",
        "+  end",
        "+end",
    ],
    status=HunkStatus.ADDED,
)


class TestFunctionRenames:
    def test_identical_body_is_high(self):
        (refactoring,) = detect_function_renames([RENAME], SHA)
        assert refactoring.type is RefactoringType.RENAME_FUNCTION
        assert refactoring.confidence is Confidence.HIGH
        assert refactoring.source.function == FunctionRef("total", 1)
        assert refactoring.target.function == FunctionRef("sum_all", 1)
        assert refactoring.source.module == "MyApp.Math"
        assert refactoring.target.line_range == (2, 4)
        assert refactoring.commit == SHA
        assert refactoring.metadata["similarity"] == "1.00"

    def test_similar_body_is_medium(self):
        hunk = make_hunk(
            "lib/x.ex",
            [
                " defmodule X do",
                "-  def first(alpha, beta), do: gamma(alpha, beta, delta, epsilon, zeta, eta)",
                "+  def second(alpha, beta), do: gamma(alpha, beta, delta, epsilon, zeta, theta)",
                " end",
            ],
        )
        (refactoring,) = detect_function_renames([hunk], SHA)
        assert refactoring.confidence is Confidence.MEDIUM
        assert refactoring.metadata["similarity"] == "0.75"

    def test_different_body_is_not_a_rename(self):
        hunk = make_hunk(
            "lib/x.ex",
            [
                " defmodule X do",
                "-  def total(items), do: Enum.sum(items)",
                "+  def render(conn), do: Phoenix.view(conn)",
                " end",
            ],
        )
        assert detect_function_renames([hunk], SHA) == []

    def test_arity_must_match(self):
        hunk = make_hunk(
            "lib/x.ex",
            [
                " defmodule X do",
                "-  def total(items), do: Enum.sum(items)",
                "+  def sum_all(items, acc), do: Enum.sum(items)",
                " end",
            ],
        )
        assert detect_function_renames([hunk], SHA) == []

    def test_non_source_files_ignored(self):
        hunk = make_hunk(
            "notes.md",
            [
                " defmodule MyApp.Math do",
                "-  def total(items), do: items",
                "+  def sum_all(items), do: items",
                " end",
            ],
        )
        assert detect_function_renames([hunk], SHA) == []


class TestExtractFunction:
    def test_called_from_changed_site_is_high(self):
        (refactoring,) = detect_extract_function([EXTRACT], SHA)
        assert refactoring.type is RefactoringType.EXTRACT_FUNCTION
        assert refactoring.confidence is Confidence.HIGH
        assert refactoring.target.function == FunctionRef("compute_total", 1)
        assert refactoring.target.code.startswith("  defp compute_total(order) do")
        assert refactoring.source.file == "lib/my_app/orders.ex"
        assert refactoring.source.module == "MyApp.Orders"
        assert refactoring.metadata == {"calls_found": "1", "containment": "1.00"}

    def test_body_match_without_call_is_medium(self):
        hunk = make_hunk(
            "lib/my_app/orders.ex",
            [
                " defmodule MyApp.Orders do",
                "   def total(order) do",
                "-    subtotal = Enum.sum(order.items)",
                "-    subtotal * (1 + order.tax_rate)",
                "+    :ok",
                "   end",
                "+",
                "+  defp compute_total(order) do",
                "+    subtotal = Enum.sum(order.items)",
                "+    subtotal * (1 + order.tax_rate)",
                "+  end",
                " end",
            ],
        )
        (refactoring,) = detect_extract_function([hunk], SHA)
        assert refactoring.confidence is Confidence.MEDIUM
        assert refactoring.metadata["calls_found"] == "0"

    def test_partially_changed_function_is_not_extracted(self):
        assert detect_extract_function([RENAME], SHA) == []


class TestExtractModule:
    def test_new_module_receiving_functions(self):
        hunks = [EXTRACT_MODULE_FROM, EXTRACT_MODULE_TO]
        (refactoring,) = detect_extract_module(hunks, SHA)
        assert refactoring.type is RefactoringType.EXTRACT_MODULE
        assert refactoring.confidence is Confidence.HIGH
        assert refactoring.source.module == "MyApp.Accounts"
        assert refactoring.target.file == "lib/my_app/password.ex"
        assert refactoring.target.module == "MyApp.Password"
        assert refactoring.metadata == {"functions_moved": "1", "function_names": "hash_password/1"}

    def test_new_file_without_removed_functions(self):
        assert detect_extract_module([EXTRACT_MODULE_TO], SHA) == []


class TestModuleRenames:
    def test_high_similarity(self):
        hunk = make_hunk(
            "lib/my_app/new_name.ex",
            [],
            status=HunkStatus.RENAMED,
            old_file="lib/my_app/old_name.ex",
            similarity=95,
        )
        (refactoring,) = detect_module_renames([hunk], SHA)
        assert refactoring.confidence is Confidence.HIGH
        assert refactoring.source.module == "MyApp.OldName"
        assert refactoring.target.module == "MyApp.NewName"
        assert refactoring.metadata == {"similarity": "95"}

    def test_lower_similarity_is_medium(self):
        hunk = make_hunk("lib/b.ex", [], status=HunkStatus.RENAMED, old_file="lib/a.ex", similarity=60)
        (refactoring,) = detect_module_renames([hunk], SHA)
        assert refactoring.confidence is Confidence.MEDIUM

    def test_modified_file_is_not_a_rename(self):
        assert detect_module_renames([RENAME], SHA) == []


class TestInlineFunction:
    def test_private_body_moved_into_caller(self):
        (refactoring,) = detect_inline_function([INLINE], SHA)
        assert refactoring.type is RefactoringType.INLINE_FUNCTION
        assert refactoring.confidence is Confidence.MEDIUM
        assert refactoring.source.function == FunctionRef("format_greeting", 1)
        assert "defp format_greeting" in refactoring.source.code
        assert refactoring.target.line_range == (3, 3)
        assert refactoring.metadata == {"coverage": "1.00"}

    def test_public_functions_are_not_inlined(self):
        body = [line.replace("defp", "def") for line in _raw(INLINE)]
        assert detect_inline_function([make_hunk(INLINE.file, body)], SHA) == []

    def test_remaining_call_rules_out_inline(self):
        body = _raw(INLINE)
        body.insert(4, "+    format_greeting(name)")
        assert detect_inline_function([make_hunk(INLINE.file, body)], SHA) == []


class TestMoveFunction:
    def test_function_moved_between_files(self):
        (refactoring,) = detect_move_function([MOVE_FROM, MOVE_TO], SHA)
        assert refactoring.type is RefactoringType.MOVE_FUNCTION
        assert refactoring.confidence is Confidence.HIGH
        assert (refactoring.source.file, refactoring.source.module) == ("lib/a.ex", "A")
        assert (refactoring.target.file, refactoring.target.module) == ("lib/b.ex", "B")
        assert refactoring.target.function == FunctionRef("shared", 1)

    def test_same_file_is_not_a_move(self):
        assert detect_move_function([RENAME], SHA) == []


class TestVariableRenames:
    def test_consistent_substitution(self):
        (refactoring,) = detect_variable_renames([VARIABLE], SHA)
        assert refactoring.type is RefactoringType.RENAME_VARIABLE
        assert refactoring.confidence is Confidence.MEDIUM
        assert refactoring.metadata == {"from": "sum", "to": "amount", "occurrences": "2"}
        assert refactoring.target.function == FunctionRef("total", 1)
        assert refactoring.target.module == "MyApp.Cart"
        assert refactoring.target.line_range == (3, 4)
        assert (refactoring.source.code, refactoring.target.code) == ("sum", "amount")

    def test_single_occurrence_is_ignored(self):
        hunk = make_hunk(
            "lib/my_app/cart.ex",
            [
                " defmodule MyApp.Cart do",
                "   def total(items) do",
                "-    sum = Enum.sum(items)",
                "+    amount = Enum.sum(items)",
                "   end",
                " end",
            ],
        )
        assert detect_variable_renames([hunk], SHA) == []

    def test_function_names_are_not_variables(self):
        assert detect_variable_renames([RENAME], SHA) == []


class TestDetectRefactoringsInHunks:
    def test_rename_hunk_yields_exactly_one(self):
        (refactoring,) = detect_refactorings_in_hunks([RENAME], SHA)
        assert refactoring.type is RefactoringType.RENAME_FUNCTION

    def test_move_suppresses_extract_of_same_target(self):
        refactorings = detect_refactorings_in_hunks([MOVE_FROM, MOVE_TO], SHA)
        assert [r.type for r in refactorings] == [RefactoringType.MOVE_FUNCTION]

    def test_extract_module_with_move(self):
        refactorings = detect_refactorings_in_hunks([EXTRACT_MODULE_FROM, EXTRACT_MODULE_TO], SHA)
        assert {r.type for r in refactorings} == {
            RefactoringType.EXTRACT_MODULE,
            RefactoringType.MOVE_FUNCTION,
        }

    def test_sorted_by_confidence(self):
        refactorings = detect_refactorings_in_hunks([INLINE, VARIABLE, RENAME], SHA)
        ranks = [r.confidence.rank for r in refactorings]
        assert ranks == sorted(ranks, reverse=True)
        assert refactorings[0].type is RefactoringType.RENAME_FUNCTION

    def test_types_filter(self):
        hunks = [INLINE, VARIABLE, RENAME]
        only = detect_refactorings_in_hunks(hunks, SHA, types=[RefactoringType.INLINE_FUNCTION])
        assert [r.type for r in only] == [RefactoringType.INLINE_FUNCTION]
        assert detect_refactorings_in_hunks(hunks, SHA, types=[]) == []
        assert detect_refactorings_in_hunks(hunks, SHA, types=[RefactoringType.UNKNOWN]) == []


UTIL = """\
defmodule MyApp.Util do
  def {name}(value) do
    value
    |> String.trim()
    |> String.downcase()
  end
end
"""


class TestDetectRefactoringsInRepository:
    def test_function_rename_commit(self, git_repo):
        git_repo.write("lib/my_app/util.ex", UTIL.format(name="helper"))
        git_repo.commit("Add helper")
        git_repo.write("lib/my_app/util.ex", UTIL.format(name="helper_v2"))
        sha = git_repo.commit("Rename helper")

        (refactoring,) = detect_refactorings(git_repo.root, sha)

        assert refactoring.type is RefactoringType.RENAME_FUNCTION
        assert refactoring.confidence is Confidence.HIGH
        assert refactoring.source.function == FunctionRef("helper", 1)
        assert refactoring.target.function == FunctionRef("helper_v2", 1)
        assert refactoring.commit == sha

    def test_batch_isolates_unreadable_commits(self, git_repo):
        git_repo.write("lib/my_app/util.ex", UTIL.format(name="helper"))
        first = git_repo.commit("Add helper")
        git_repo.write("lib/my_app/util.ex", UTIL.format(name="helper_v2"))
        second = git_repo.commit("Rename helper")
        missing = "f" * 40

        results = detect_refactorings_in_commits(git_repo.root, [first, second, missing])

        assert [item for item, _ in results] == [first, second, missing]
        assert results[0][1] == []
        assert len(results[1][1]) == 1
        assert results[2][1] == []

    def test_batch_survives_unexpected_detector_errors(self, git_repo, monkeypatch):
        git_repo.write("lib/my_app/util.ex", UTIL.format(name="helper"))
        first = git_repo.commit("Add helper")
        git_repo.write("lib/my_app/util.ex", UTIL.format(name="helper_v2"))
        second = git_repo.commit("Rename helper")
        rename = DETECTORS[RefactoringType.RENAME_FUNCTION]

        def fragile(hunks, commit, config):
            if commit == first:
                raise IndexError("hunk line out of range")
            return rename(hunks, commit, config)

        monkeypatch.setitem(DETECTORS, RefactoringType.RENAME_FUNCTION, fragile)
        results = detect_refactorings_in_commits(git_repo.root, [first, second])

        assert results[0] == (first, [])
        assert [r.type for r in results[1][1]] == [RefactoringType.RENAME_FUNCTION]


def _raw(hunk):
    """Diff-style lines of an existing hunk."""
    return [line.kind + line.text for line in hunk.lines]
