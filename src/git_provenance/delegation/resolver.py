"""Delegation edges derived from a commit."""

from __future__ import annotations

from typing import Optional, Union

from ..config import MiningConfig
from ..exceptions import FileNotFoundAtRevisionError
from ..history.commits import changed_files, extract_commit
from ..history.models import Commit
from ..identity.agents import detect_type
from ..identity.developers import normalize_email
from ..identity.models import AgentType
from ..ids import activity_id, agent_id, delegation_id
from ..logging_config import get_logger
from ..vcs import RepoLike, open_repo
from .codeowners import find_owners_for_files, parse_codeowners, pattern_matches
from .models import Delegation, DelegationReason
from .reviews import parse_review_trailers

logger = get_logger(__name__)


def extract_delegations(
    repo: RepoLike,
    commit: Union[Commit, str],
    include_code_owners: bool = True,
    include_bot_delegation: bool = True,
    include_review_approvals: bool = True,
    config: Optional[MiningConfig] = None,
) -> list[Delegation]:
    """Bot, ownership and review delegations for one commit.

    CODEOWNERS is read as of the commit itself; a repository without one
    contributes no ownership delegations.
    """
    gateway = open_repo(repo, config)
    if not isinstance(commit, Commit):
        commit = extract_commit(gateway, commit)

    delegations: list[Delegation] = []
    if include_bot_delegation:
        delegations.extend(bot_delegations(commit))
    if include_code_owners:
        delegations.extend(code_owner_delegations(gateway, commit))
    if include_review_approvals:
        delegations.extend(review_delegations(commit))
    return delegations


def bot_delegations(commit: Commit) -> list[Delegation]:
    """A bot author acts on behalf of the organization hosting it."""
    if detect_type(commit.author_email) is not AgentType.BOT:
        return []
    delegate = agent_id(normalize_email(commit.author_email, commit.sha))
    delegator = agent_id(infer_org_email(commit.author_email))
    activity = activity_id(commit.sha)
    return [
        Delegation(
            delegation_id=delegation_id(delegate, delegator, activity),
            delegate=delegate,
            delegator=delegator,
            reason=DelegationReason.BOT_CONFIG,
            activity=activity,
            metadata={"bot_email": commit.author_email or ""},
        )
    ]


def code_owner_delegations(repo: RepoLike, commit: Commit) -> list[Delegation]:
    """The author delegates to the owners of every file the commit touched."""
    gateway = open_repo(repo)
    try:
        rules = parse_codeowners(gateway, commit.sha)
    except FileNotFoundAtRevisionError:
        return []

    changed = changed_files(gateway, commit.sha)
    delegate = agent_id(normalize_email(commit.author_email, commit.sha))
    activity = activity_id(commit.sha)

    seen: set[tuple[str, str]] = set()
    delegations = []
    for path, rule in find_owners_for_files(rules, changed).items():
        for owner in rule.owners:
            delegator = owner_to_agent_id(owner)
            if delegator == delegate or (delegate, delegator) in seen:
                continue
            seen.add((delegate, delegator))
            delegations.append(
                Delegation(
                    delegation_id=delegation_id(delegate, delegator, activity),
                    delegate=delegate,
                    delegator=delegator,
                    reason=DelegationReason.CODE_OWNERSHIP,
                    activity=activity,
                    scope=(path,),
                    metadata={"pattern": rule.pattern, "owner": owner},
                )
            )
    return delegations


def review_delegations(commit: Commit) -> list[Delegation]:
    """The author is granted authority by each reviewer other than themself."""
    activity = activity_id(commit.sha)
    delegate = agent_id(normalize_email(commit.author_email, commit.sha))
    delegations = []
    for approval in parse_review_trailers(commit.message, activity, commit.commit_date):
        if approval.reviewer == delegate:
            continue
        delegations.append(
            Delegation(
                delegation_id=delegation_id(delegate, approval.reviewer, activity),
                delegate=delegate,
                delegator=approval.reviewer,
                reason=DelegationReason.REVIEW_APPROVAL,
                activity=activity,
                metadata={"approval_id": approval.approval_id, "trailer": approval.trailer},
            )
        )
    return delegations


def owner_to_agent_id(owner: str) -> str:
    """``@org/team`` -> team@org, ``@user`` -> user@github, emails as-is."""
    if not owner.startswith("@") and "@" in owner:
        return agent_id(owner)
    handle = owner.lstrip("@")
    if "/" in handle:
        org, team = handle.split("/", 1)
        return agent_id(f"{team}@{org}")
    return agent_id(f"{handle}@github")


def infer_org_email(bot_email: Optional[str]) -> str:
    if not bot_email:
        return "org@unknown"
    lowered = bot_email.lower()
    if "github.com" in lowered:
        return "org@github.com"
    if "gitlab.com" in lowered:
        return "org@gitlab.com"
    _, sep, domain = lowered.rpartition("@")
    return f"org@{domain}" if sep and domain else "org@unknown"


def delegates_to(delegation: Delegation, agent: str) -> bool:
    return delegation.delegator == agent


def has_reason(delegation: Delegation, reason: DelegationReason) -> bool:
    return delegation.reason is reason


def applies_to_file(delegation: Delegation, path: str) -> bool:
    if not delegation.scope:
        return True
    return any(pattern_matches(pattern, path) for pattern in delegation.scope)
