"""Raw historical facts: commits, blame and per-file histories."""

from .blame import extract_blame, extract_blames, parse_porcelain
from .commits import (
    changed_files,
    extract_commit,
    extract_commits,
    parse_body,
    parse_subject,
)
from .file_history import (
    extract_file_history,
    extract_renames,
    file_exists_in_history,
    path_at_commit,
    rename_count,
    renamed,
)
from .models import BlameLine, Commit, FileBlame, FileHistory, Rename

__all__ = [
    "BlameLine",
    "Commit",
    "FileBlame",
    "FileHistory",
    "Rename",
    "changed_files",
    "extract_blame",
    "extract_blames",
    "extract_commit",
    "extract_commits",
    "extract_file_history",
    "extract_renames",
    "file_exists_in_history",
    "parse_body",
    "parse_porcelain",
    "parse_subject",
    "path_at_commit",
    "rename_count",
    "renamed",
]
