"""Identity records: developers, PROV agents and their relations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class AgentType(Enum):
    DEVELOPER = "developer"
    BOT = "bot"
    CI = "ci"
    LLM = "llm"

    @property
    def automated(self) -> bool:
        return self is not AgentType.DEVELOPER


# Merge precedence: a stronger kind wins when the same email was seen as two kinds.
AGENT_TYPE_PRECEDENCE = {
    AgentType.BOT: 3,
    AgentType.CI: 2,
    AgentType.LLM: 1,
    AgentType.DEVELOPER: 0,
}


class AgentRole(Enum):
    AUTHOR = "author"
    COMMITTER = "committer"


@dataclass(frozen=True)
class Developer:
    """A person (or account) keyed by lower-cased email."""

    email: str
    name: Optional[str]  # most recently used name
    names: frozenset[str] = frozenset()
    authored_commits: frozenset[str] = frozenset()
    committed_commits: frozenset[str] = frozenset()
    first_authored: Optional[datetime] = None
    last_authored: Optional[datetime] = None
    first_committed: Optional[datetime] = None
    last_committed: Optional[datetime] = None

    @property
    def commit_count(self) -> int:
        return len(self.authored_commits | self.committed_commits)

    @property
    def first_seen(self) -> Optional[datetime]:
        dates = [d for d in (self.first_authored, self.first_committed) if d is not None]
        return min(dates) if dates else None

    @property
    def last_seen(self) -> Optional[datetime]:
        dates = [d for d in (self.last_authored, self.last_committed) if d is not None]
        return max(dates) if dates else None


@dataclass(frozen=True)
class Agent:
    """PROV-O agent derived from commit identities."""

    agent_id: str
    agent_type: AgentType
    email: str
    name: Optional[str] = None
    names: frozenset[str] = frozenset()
    roles: frozenset[AgentRole] = frozenset()
    associated_activities: tuple[str, ...] = ()
    attributed_entities: tuple[str, ...] = ()
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None

    @property
    def automated(self) -> bool:
        return self.agent_type.automated


@dataclass(frozen=True)
class Association:
    """An agent's participation in an activity (one commit)."""

    activity_id: str
    agent_id: str
    role: AgentRole
    timestamp: Optional[datetime] = None
    metadata: dict[str, str] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class Attribution:
    """An entity version attributed to the agent that authored it."""

    entity_id: str
    agent_id: str
    role: AgentRole = AgentRole.AUTHOR
    activity_id: Optional[str] = None
    timestamp: Optional[datetime] = None
