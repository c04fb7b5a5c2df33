"""Public API for git-provenance.

``ProvenanceMiner`` binds one repository and configuration and exposes every
query; ``mine()`` runs the common end-to-end extraction in one call.

Example:
    >>> from git_provenance import mine
    >>>
    >>> report = mine("/path/to/repo", limit=50)
    >>> len(report.activities)
    50
    >>>
    >>> # Individual queries
    >>> miner = ProvenanceMiner("/path/to/repo")
    >>> miner.blame("lib/my_app.ex").author_count
    3
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Union

from .activity import Activity, classify_commits
from .concurrency import map_isolated
from .config import MiningConfig, load_config
from .delegation import Delegation, extract_delegations
from .deprecation import Deprecation, detect_deprecations, track_deprecations
from .features import TrackedChanges, detect_all
from .history import (
    Commit,
    FileBlame,
    FileHistory,
    extract_blame,
    extract_blames,
    extract_commit,
    extract_commits,
    extract_file_history,
)
from .identity import (
    Agent,
    Association,
    Attribution,
    Developer,
    agents_from_commits,
    attach_attributions,
    extract_associations,
    extract_attributions,
    from_commits,
)
from .logging_config import configure_logging, get_logger
from .refactoring import Refactoring, RefactoringType, detect_refactorings, detect_refactorings_in_commits
from .releases import Release, extract_releases
from .snapshot import CodebaseSnapshot, extract_snapshot
from .vcs import GitGateway, RepoLike, open_repo
from .versions import (
    FunctionVersion,
    ModuleVersion,
    track_function_versions,
    track_module_versions,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProvenanceReport:
    """Everything mined from a window of recent history, for a graph builder."""

    repo_root: str
    commits: tuple[Commit, ...] = ()
    activities: tuple[Activity, ...] = ()
    developers: tuple[Developer, ...] = ()
    agents: tuple[Agent, ...] = ()
    associations: tuple[Association, ...] = ()
    attributions: tuple[Attribution, ...] = ()
    delegations: tuple[Delegation, ...] = ()
    refactorings: tuple[Refactoring, ...] = ()
    releases: tuple[Release, ...] = ()
    snapshot: Optional[CodebaseSnapshot] = None
    failures: dict[str, str] = field(default_factory=dict, compare=False)

    @property
    def commit_count(self) -> int:
        return len(self.commits)


class ProvenanceMiner:
    """Provenance queries against one repository."""

    def __init__(self, repo: RepoLike = ".", config: Optional[MiningConfig] = None):
        self.gateway: GitGateway = open_repo(repo, config)
        self.config = self.gateway.config

    @property
    def repo_root(self) -> Path:
        return self.gateway.repo_root

    def commit(self, ref: str = "HEAD") -> Commit:
        return extract_commit(self.gateway, ref)

    def commits(
        self, limit: Optional[int] = None, from_ref: str = "HEAD", offset: int = 0
    ) -> list[Commit]:
        return extract_commits(self.gateway, limit=limit, from_ref=from_ref, offset=offset)

    def blame(
        self,
        path: str,
        revision: Optional[str] = None,
        line_range: Optional[tuple[int, int]] = None,
    ) -> FileBlame:
        return extract_blame(self.gateway, path, revision=revision, line_range=line_range)

    def blames(self, paths: Iterable[str], revision: Optional[str] = None) -> dict[str, FileBlame]:
        return extract_blames(self.gateway, paths, revision=revision)

    def file_history(self, path: str, limit: Optional[int] = None, follow: bool = True) -> FileHistory:
        return extract_file_history(self.gateway, path, limit=limit, follow=follow)

    def developers(self, commits: Iterable[Commit]) -> list[Developer]:
        return from_commits(commits)

    def agents(self, commits: Iterable[Commit]) -> list[Agent]:
        return agents_from_commits(commits, detect_llm=self.config.detect_llm)

    def activities(self, commits: Iterable[Commit], include_scope: bool = True) -> list[Activity]:
        return classify_commits(self.gateway, commits, include_scope=include_scope)

    def delegations(self, commit: Union[Commit, str]) -> list[Delegation]:
        return extract_delegations(self.gateway, commit)

    def refactorings(
        self, commit: Union[Commit, str], types: Optional[Iterable[RefactoringType]] = None
    ) -> list[Refactoring]:
        return detect_refactorings(self.gateway, commit, types)

    def deprecations(self, commit: Union[Commit, str]) -> list[Deprecation]:
        return detect_deprecations(self.gateway, commit)

    def deprecation_history(self, path: str, limit: Optional[int] = None) -> list[Deprecation]:
        return track_deprecations(self.gateway, path, limit=limit)

    def features_and_fixes(self, commits: Iterable[Union[Commit, str]]) -> TrackedChanges:
        return detect_all(self.gateway, commits)

    def module_versions(self, module: str, limit: Optional[int] = None) -> list[ModuleVersion]:
        return track_module_versions(self.gateway, module, limit=limit)

    def function_versions(
        self, module: str, function: str, arity: int, limit: Optional[int] = None
    ) -> list[FunctionVersion]:
        return track_function_versions(self.gateway, module, function, arity, limit=limit)

    def releases(self) -> list[Release]:
        return extract_releases(self.gateway)

    def snapshot(self, ref: str = "HEAD") -> CodebaseSnapshot:
        return extract_snapshot(self.gateway, ref)

    def mine(
        self,
        limit: Optional[int] = None,
        include_scope: bool = True,
        include_refactorings: bool = True,
        include_snapshot: bool = False,
        include_attributions: bool = True,
    ) -> ProvenanceReport:
        """Extract provenance for the ``limit`` most recent commits.

        Per-commit delegation and attribution failures are recorded in
        ``failures`` (keyed ``"<part>:<sha>"``) and do not abort the run; a
        failing refactoring scan yields no refactorings for that commit.
        Attributed module versions are also indexed on each agent.
        """
        commits = self.commits(limit=limit)
        logger.info("Mining %d commits from %s", len(commits), self.repo_root)

        activities = self.activities(commits, include_scope=include_scope)
        associations = [a for commit in commits for a in extract_associations(commit)]

        failures: dict[str, str] = {}
        delegation_outcomes = map_isolated(self.delegations, commits, self.config.workers)
        delegations = []
        for outcome in delegation_outcomes:
            if outcome.ok:
                delegations.extend(outcome.value or [])
            else:
                failures[f"delegations:{outcome.item.sha}"] = str(outcome.error)

        attributions: list[Attribution] = []
        if include_attributions:
            attribution_outcomes = map_isolated(
                lambda commit: extract_attributions(self.gateway, commit),
                commits,
                self.config.workers,
            )
            for outcome in attribution_outcomes:
                if outcome.ok:
                    attributions.extend(outcome.value or [])
                else:
                    failures[f"attributions:{outcome.item.sha}"] = str(outcome.error)

        refactorings: list[Refactoring] = []
        if include_refactorings:
            for _, found in detect_refactorings_in_commits(self.gateway, commits):
                refactorings.extend(found)

        report = ProvenanceReport(
            repo_root=str(self.repo_root),
            commits=tuple(commits),
            activities=tuple(activities),
            developers=tuple(self.developers(commits)),
            agents=tuple(attach_attributions(self.agents(commits), attributions)),
            associations=tuple(associations),
            attributions=tuple(attributions),
            delegations=tuple(delegations),
            refactorings=tuple(refactorings),
            releases=tuple(self.releases()),
            snapshot=self.snapshot() if include_snapshot else None,
            failures=failures,
        )
        logger.info(
            "Mining complete: %d activities, %d agents, %d refactorings, %d releases",
            len(report.activities),
            len(report.agents),
            len(report.refactorings),
            len(report.releases),
        )
        return report

    def __repr__(self) -> str:
        return f"ProvenanceMiner({str(self.repo_root)!r})"


def mine(
    path: str = ".",
    limit: Optional[int] = None,
    config_file: Optional[Path] = None,
    **overrides,
) -> ProvenanceReport:
    """Mine a repository with configuration discovered from TOML and the environment.

    Args:
        path: Repository path (default: current directory)
        limit: Commits to mine (default: ``default_commit_limit``)
        config_file: Optional explicit config file path
        **overrides: Configuration overrides (e.g. ``workers=4``), plus
            ``verbose``/``quiet`` and ``log_file`` for logging

    Raises:
        RepoNotFoundError: ``path`` is not inside a git work tree
        InvalidConfigError: Configuration is invalid
    """
    log_file = overrides.pop("log_file", None)
    config = load_config(config_file=config_file, **overrides)
    configure_logging(config, log_file)
    logger.debug("Configuration loaded: %s mode", config.verbosity)
    return ProvenanceMiner(path, config).mine(limit=limit)
