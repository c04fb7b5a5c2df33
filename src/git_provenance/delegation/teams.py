"""Team definition files and the delegations they imply."""

from __future__ import annotations

from typing import Optional

from ..exceptions import InvalidFormatError
from ..ids import delegation_id, team_id
from .models import Delegation, DelegationReason, Team

_FIELDS = ("team", "leads", "members")


def parse_team_file(content: str) -> Team:
    """Parse ``team:``/``leads:``/``members:`` lines.

    Raises:
        InvalidFormatError: A label is missing or the team name is empty
    """
    values: dict[str, str] = {}
    for line in content.splitlines():
        stripped = line.strip()
        label, sep, value = stripped.partition(":")
        key = label.strip().lower()
        if sep and key in _FIELDS and key not in values:
            values[key] = value.strip()

    missing = [label for label in _FIELDS if label not in values]
    if missing:
        raise InvalidFormatError("team file", f"missing {', '.join(missing)} line")
    name = values["team"]
    if not name:
        raise InvalidFormatError("team file", "team name is empty")

    return Team(
        team_id=team_id(name),
        name=name,
        leads=tuple(values["leads"].split()),
        members=tuple(values["members"].split()),
    )


def build_team_delegations(team: Team, activity: Optional[str] = None) -> list[Delegation]:
    """Each member delegates to each lead, skipping self-delegation."""
    return [
        Delegation(
            delegation_id=delegation_id(member, lead, activity),
            delegate=member,
            delegator=lead,
            reason=DelegationReason.TEAM_MEMBERSHIP,
            activity=activity,
            metadata={"team_id": team.team_id, "team_name": team.name},
        )
        for member in team.members
        for lead in team.leads
        if member != lead
    ]
