"""Tests for ref, SHA and path validation."""

import string

import pytest
from hypothesis import given, settings, strategies as st

from git_provenance.exceptions import ErrorKind, InvalidPathError, InvalidRefError, OutsideRepoError
from git_provenance.vcs import (
    normalize_file_path,
    require_ref,
    require_safe_path,
    require_sha,
    safe_path,
    valid_ref,
    valid_sha,
    valid_short_sha,
)

HEX = "0123456789abcdef"
INJECTION_CHARS = ";&|$`<>\"' \n"


class TestShaValidation:
    def test_full_sha(self):
        assert valid_sha("a" * 40)
        assert valid_sha("0123456789ABCDEF0123456789abcdef01234567")

    def test_wrong_length(self):
        assert not valid_sha("a" * 39)
        assert not valid_sha("a" * 41)

    def test_non_hex(self):
        assert not valid_sha("g" * 40)

    def test_trailing_newline_rejected(self):
        assert not valid_sha("a" * 40 + "\n")

    def test_non_string(self):
        assert not valid_sha(None)
        assert not valid_sha(12345)

    def test_short_sha_bounds(self):
        assert valid_short_sha("abc1234")
        assert not valid_short_sha("abc123")
        assert valid_short_sha("a" * 40)

    def test_require_sha_raises(self):
        with pytest.raises(InvalidRefError) as exc_info:
            require_sha("HEAD")
        assert exc_info.value.kind is ErrorKind.INVALID_REF
        assert exc_info.value.kind.is_validation

    @given(st.text(alphabet=HEX, min_size=40, max_size=40))
    @settings(max_examples=100)
    def test_any_40_hex_is_valid(self, sha: str) -> None:
        """Every 40-character hex string is a valid SHA and a valid ref."""
        assert valid_sha(sha)
        assert valid_ref(sha)
        assert require_sha(sha) == sha


class TestRefValidation:
    @pytest.mark.parametrize(
        "ref",
        [
            "HEAD",
            "HEAD~3",
            "HEAD^",
            "HEAD^2",
            "main",
            "feature/login",
            "v1.2.3",
            "refs/tags/v1.0.0",
            "refs/heads/main",
            "abc1234",
        ],
    )
    def test_accepts(self, ref):
        assert valid_ref(ref)
        assert require_ref(ref) == ref

    @pytest.mark.parametrize(
        "ref",
        [
            "",
            "-n",
            "--output=/tmp/x",
            "main..feature",
            "HEAD@{1}",
            "HEAD~x",
            "HEAD~1;ls",
            "main.lock",
            "feature/",
            "a//b",
            "main; rm -rf /",
            "$(whoami)",
            "`id`",
            "a|b",
            "a b",
        ],
    )
    def test_rejects(self, ref):
        assert not valid_ref(ref)
        with pytest.raises(InvalidRefError):
            require_ref(ref)

    def test_non_string(self):
        assert not valid_ref(None)
        assert not valid_ref(["HEAD"])

    @given(
        prefix=st.text(alphabet=string.ascii_letters + string.digits, min_size=1, max_size=20),
        char=st.sampled_from(INJECTION_CHARS),
        suffix=st.text(alphabet=string.ascii_letters, max_size=20),
    )
    @settings(max_examples=200)
    def test_shell_metacharacters_never_pass(self, prefix: str, char: str, suffix: str) -> None:
        """A ref containing any shell metacharacter is rejected."""
        assert not valid_ref(prefix + char + suffix)

    @given(st.text(max_size=30))
    @settings(max_examples=200)
    def test_leading_dash_never_passes(self, rest: str) -> None:
        """Option injection through a leading dash is always rejected."""
        assert not valid_ref("-" + rest)


class TestPathValidation:
    def test_relative_path(self):
        assert safe_path("lib/my_app.ex")
        assert require_safe_path("lib/my_app.ex") == "lib/my_app.ex"

    @pytest.mark.parametrize(
        "path",
        ["", "/etc/passwd", "../secret", "lib/../../secret", "-rf", "a//b", "lib/a\x00.ex"],
    )
    def test_unsafe_paths(self, path):
        assert not safe_path(path)
        with pytest.raises(InvalidPathError) as exc_info:
            require_safe_path(path)
        assert exc_info.value.kind is ErrorKind.INVALID_PATH

    def test_dots_inside_names_allowed(self):
        assert safe_path("lib/my..app.ex")
        assert safe_path(".formatter.exs")

    @given(st.lists(st.sampled_from(["lib", "src", "..", "a.ex"]), min_size=1, max_size=6))
    def test_traversal_segment_rejected(self, segments: list) -> None:
        """Any path with a '..' segment is unsafe; any without one is safe."""
        path = "/".join(segments)
        assert safe_path(path) == (".." not in segments)


class TestNormalizeFilePath:
    def test_relative_passthrough(self, tmp_path):
        assert normalize_file_path("lib/a.ex", tmp_path) == "lib/a.ex"

    def test_strips_dot_prefix(self, tmp_path):
        assert normalize_file_path("./lib/a.ex", tmp_path) == "lib/a.ex"

    def test_backslashes_normalized(self, tmp_path):
        assert normalize_file_path("lib\\a.ex", tmp_path) == "lib/a.ex"

    def test_absolute_inside_root(self, tmp_path):
        assert normalize_file_path(tmp_path / "lib" / "a.ex", tmp_path) == "lib/a.ex"

    def test_absolute_outside_root(self, tmp_path):
        root = tmp_path / "repo"
        root.mkdir()
        with pytest.raises(OutsideRepoError) as exc_info:
            normalize_file_path(tmp_path / "other" / "a.ex", root)
        assert exc_info.value.kind is ErrorKind.OUTSIDE_REPO

    def test_repository_root_itself(self, tmp_path):
        with pytest.raises(InvalidPathError):
            normalize_file_path(tmp_path, tmp_path)

    def test_relative_traversal(self, tmp_path):
        with pytest.raises(InvalidPathError):
            normalize_file_path("../outside.ex", tmp_path)
