"""Data models for ownership and delegation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class DelegationReason(Enum):
    CODE_OWNERSHIP = "code_ownership"
    BOT_CONFIG = "bot_config"
    REVIEW_APPROVAL = "review_approval"
    TEAM_MEMBERSHIP = "team_membership"


@dataclass(frozen=True)
class CodeOwner:
    pattern: str  # gitignore-style glob
    owners: tuple[str, ...]  # handles, @team refs or emails
    source: Optional[str] = None
    line_number: Optional[int] = None  # 1-based


@dataclass(frozen=True)
class ReviewApproval:
    approval_id: str
    reviewer: str  # agent id
    activity: str  # activity id
    trailer: str  # Reviewed-by, Approved-by, ...
    reviewer_name: Optional[str] = None
    reviewer_email: Optional[str] = None
    approved_at: Optional[datetime] = None


@dataclass(frozen=True)
class Team:
    team_id: str
    name: str
    leads: tuple[str, ...]
    members: tuple[str, ...]


@dataclass(frozen=True)
class Delegation:
    """``delegate`` acted on behalf of ``delegator``."""

    delegation_id: str
    delegate: str
    delegator: str
    reason: DelegationReason
    activity: Optional[str] = None
    scope: tuple[str, ...] = ()  # file paths or patterns; empty = everything
    metadata: dict[str, str] = field(default_factory=dict, compare=False, hash=False)
