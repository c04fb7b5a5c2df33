"""Agent identities and automated-account detection.

Agent kind detection is a data-driven ordered rule list: bot accounts, then
CI senders, then AI assistants, else developer. Message trailers can promote
a developer to ``llm`` but never override ``bot`` or ``ci``.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Iterable, Optional, Sequence

from ..concurrency import map_isolated
from ..config import MiningConfig
from ..history.commits import extract_commit
from ..history.models import Commit
from ..ids import activity_id, agent_id
from ..logging_config import get_logger
from ..vcs import RepoLike, open_repo
from .developers import normalize_email
from .models import (
    AGENT_TYPE_PRECEDENCE,
    Agent,
    AgentRole,
    AgentType,
    Association,
    Attribution,
    Developer,
)

logger = get_logger(__name__)

AGENT_TYPE_RULES: Sequence[tuple[re.Pattern[str], AgentType]] = (
    # bot accounts
    (re.compile(r"\[bot\]", re.I), AgentType.BOT),
    (re.compile(r"dependabot", re.I), AgentType.BOT),
    (re.compile(r"renovate", re.I), AgentType.BOT),
    (re.compile(r"greenkeeper", re.I), AgentType.BOT),
    (re.compile(r"snyk-bot", re.I), AgentType.BOT),
    (re.compile(r"semantic-release-bot", re.I), AgentType.BOT),
    (re.compile(r"release-bot", re.I), AgentType.BOT),
    (re.compile(r"mergify", re.I), AgentType.BOT),
    (re.compile(r"codecov", re.I), AgentType.BOT),
    (re.compile(r"coveralls", re.I), AgentType.BOT),
    (re.compile(r"allcontributors", re.I), AgentType.BOT),
    # CI senders
    (re.compile(r"github-actions", re.I), AgentType.CI),
    (re.compile(r"^action@github\.com$", re.I), AgentType.CI),
    (re.compile(r"^noreply@github\.com$", re.I), AgentType.CI),
    (re.compile(r"gitlab-ci", re.I), AgentType.CI),
    (re.compile(r"jenkins@", re.I), AgentType.CI),
    (re.compile(r"travis-ci|travis@", re.I), AgentType.CI),
    (re.compile(r"circleci", re.I), AgentType.CI),
    (re.compile(r"azure-pipelines", re.I), AgentType.CI),
    (re.compile(r"bitbucket-pipelines", re.I), AgentType.CI),
    # AI assistants
    (re.compile(r"copilot", re.I), AgentType.LLM),
    (re.compile(r"cursor", re.I), AgentType.LLM),
    (re.compile(r"codeium", re.I), AgentType.LLM),
    (re.compile(r"tabnine", re.I), AgentType.LLM),
)

LLM_MESSAGE_PATTERNS: Sequence[re.Pattern[str]] = (
    re.compile(r"co-authored-by:.*(copilot|cursor|claude|anthropic|chatgpt|openai|codeium)", re.I),
    re.compile(r"generated (by|with) .*\bai\b", re.I),
    re.compile(r"\bai-assisted\b", re.I),
)


def detect_type(email: Optional[str]) -> AgentType:
    """Agent kind from the email alone; first matching rule wins."""
    if not email:
        return AgentType.DEVELOPER
    for pattern, agent_type in AGENT_TYPE_RULES:
        if pattern.search(email):
            return agent_type
    return AgentType.DEVELOPER


def detect_type_with_context(email: Optional[str], message: Optional[str]) -> AgentType:
    """Like ``detect_type``, promoting developers to llm on assistant trailers."""
    base = detect_type(email)
    if base is not AgentType.DEVELOPER or not message:
        return base
    if any(pattern.search(message) for pattern in LLM_MESSAGE_PATTERNS):
        return AgentType.LLM
    return base


def automated(agent_type: AgentType) -> bool:
    return agent_type is not AgentType.DEVELOPER


def agents_from_commit(commit: Commit, detect_llm: bool = True) -> list[Agent]:
    """Author and committer agents; one entry when they share an email."""
    message = commit.message if detect_llm else None
    author = _agent_for(
        commit.author_email,
        commit.author_name,
        commit,
        AgentRole.AUTHOR,
        detect_type_with_context(commit.author_email, message),
    )
    committer = _agent_for(
        commit.committer_email,
        commit.committer_name,
        commit,
        AgentRole.COMMITTER,
        detect_type(commit.committer_email),
    )
    if author.agent_id == committer.agent_id:
        return [merge_agents(author, committer)]
    return [author, committer]


def extract_agents(
    repo: RepoLike,
    commit: "Commit | str" = "HEAD",
    detect_llm: Optional[bool] = None,
    config: Optional[MiningConfig] = None,
) -> list[Agent]:
    """Agents of a single commit (a Commit or a ref to look up)."""
    gateway = open_repo(repo, config)
    if detect_llm is None:
        detect_llm = gateway.config.detect_llm
    if not isinstance(commit, Commit):
        commit = extract_commit(gateway, commit)
    return agents_from_commit(commit, detect_llm)


def extract_agents_from_commits(
    repo: RepoLike,
    refs: Iterable[str],
    detect_llm: Optional[bool] = None,
    max_workers: Optional[int] = None,
    config: Optional[MiningConfig] = None,
) -> list[Agent]:
    """Agents across many commits, deduplicated by agent id (best effort)."""
    gateway = open_repo(repo, config)
    if detect_llm is None:
        detect_llm = gateway.config.detect_llm
    outcomes = map_isolated(
        lambda ref: extract_commit(gateway, ref), list(refs), max_workers or gateway.config.workers
    )
    commits = [outcome.value for outcome in outcomes if outcome.ok]
    return agents_from_commits(commits, detect_llm)


def agents_from_commits(commits: Iterable[Commit], detect_llm: bool = True) -> list[Agent]:
    agents: list[Agent] = []
    for commit in commits:
        agents.extend(agents_from_commit(commit, detect_llm))
    return aggregate_agents(agents)


def aggregate_agents(agents: Iterable[Agent]) -> list[Agent]:
    """Merge agents sharing an id, keeping first-seen order."""
    by_id: dict[str, Agent] = {}
    for agent in agents:
        existing = by_id.get(agent.agent_id)
        by_id[agent.agent_id] = agent if existing is None else merge_agents(existing, agent)
    return list(by_id.values())


def merge_agents(a: Agent, b: Agent) -> Agent:
    """Combine two records of the same agent id.

    The stronger kind wins (bot > ci > llm > developer) so an email always
    resolves to one type regardless of merge order.
    """
    if a.agent_id != b.agent_id:
        raise ValueError(f"cannot merge agents {a.agent_id} and {b.agent_id}")
    agent_type = max(a.agent_type, b.agent_type, key=AGENT_TYPE_PRECEDENCE.__getitem__)
    first = [d for d in (a.first_seen, b.first_seen) if d is not None]
    last = [d for d in (a.last_seen, b.last_seen) if d is not None]
    return Agent(
        agent_id=a.agent_id,
        agent_type=agent_type,
        email=a.email,
        name=a.name or b.name,
        names=a.names | b.names,
        roles=a.roles | b.roles,
        associated_activities=_union(a.associated_activities, b.associated_activities),
        attributed_entities=_union(a.attributed_entities, b.attributed_entities),
        first_seen=min(first) if first else None,
        last_seen=max(last) if last else None,
    )


def from_developer(developer: Developer, agent_type: Optional[AgentType] = None) -> Agent:
    """Agent view of a developer; kind detected from the email unless given."""
    roles = set()
    if developer.authored_commits:
        roles.add(AgentRole.AUTHOR)
    if developer.committed_commits:
        roles.add(AgentRole.COMMITTER)
    shas = sorted(developer.authored_commits | developer.committed_commits)
    return Agent(
        agent_id=agent_id(developer.email),
        agent_type=agent_type or detect_type(developer.email),
        email=developer.email,
        name=developer.name,
        names=developer.names,
        roles=frozenset(roles),
        associated_activities=tuple(activity_id(sha) for sha in shas),
        first_seen=developer.first_seen,
        last_seen=developer.last_seen,
    )


def agents_from_developers(developers: Iterable[Developer]) -> list[Agent]:
    return [from_developer(developer) for developer in developers]


def extract_associations(commit: Commit) -> list[Association]:
    """One association per agent role on the commit.

    Author and committer sharing an email still produce two associations,
    one per role.
    """
    activity = activity_id(commit.sha)
    return [
        Association(
            activity_id=activity,
            agent_id=agent_id(normalize_email(commit.author_email, commit.sha)),
            role=AgentRole.AUTHOR,
            timestamp=commit.author_date,
            metadata={"name": commit.author_name} if commit.author_name else {},
        ),
        Association(
            activity_id=activity,
            agent_id=agent_id(normalize_email(commit.committer_email, commit.sha)),
            role=AgentRole.COMMITTER,
            timestamp=commit.commit_date,
            metadata={"name": commit.committer_name} if commit.committer_name else {},
        ),
    ]


def extract_attributions(
    repo: RepoLike,
    commit: Commit,
    entity_ids: Optional[Iterable[str]] = None,
    include_committer: bool = False,
    config: Optional[MiningConfig] = None,
) -> list[Attribution]:
    """Tie the commit's agents to the entity versions it generated.

    ``entity_ids`` defaults to the module versions the commit produced
    (see ``versions.extract_generations``).
    """
    if entity_ids is None:
        from ..versions.tracker import extract_generations

        entity_ids = extract_generations(repo, commit.sha, config=config)
    entities = list(entity_ids)
    activity = activity_id(commit.sha)

    roles = [(AgentRole.AUTHOR, commit.author_email, commit.author_date)]
    if include_committer:
        roles.append((AgentRole.COMMITTER, commit.committer_email, commit.commit_date))

    attributions = []
    for role, email, timestamp in roles:
        agent = agent_id(normalize_email(email, commit.sha))
        for entity in entities:
            attributions.append(
                Attribution(
                    entity_id=entity,
                    agent_id=agent,
                    role=role,
                    activity_id=activity,
                    timestamp=timestamp,
                )
            )
    return attributions


def attach_attributions(agents: Iterable[Agent], attributions: Iterable[Attribution]) -> list[Agent]:
    """Fill each agent's ``attributed_entities`` reverse index."""
    by_agent: dict[str, list[str]] = {}
    for attribution in attributions:
        by_agent.setdefault(attribution.agent_id, []).append(attribution.entity_id)
    return [
        replace(
            agent,
            attributed_entities=_union(
                agent.attributed_entities, tuple(by_agent.get(agent.agent_id, ()))
            ),
        )
        for agent in agents
    ]


def _agent_for(
    email: Optional[str],
    name: Optional[str],
    commit: Commit,
    role: AgentRole,
    agent_type: AgentType,
) -> Agent:
    normalized = normalize_email(email, commit.sha)
    timestamp = commit.author_date if role is AgentRole.AUTHOR else commit.commit_date
    return Agent(
        agent_id=agent_id(normalized),
        agent_type=agent_type,
        email=normalized,
        name=name,
        names=frozenset({name}) if name else frozenset(),
        roles=frozenset({role}),
        associated_activities=(activity_id(commit.sha),),
        first_seen=timestamp,
        last_seen=timestamp,
    )


def _union(a: tuple[str, ...], b: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(a + b))
