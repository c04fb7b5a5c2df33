"""Review trailers (``Reviewed-by:`` and friends) as approvals."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from ..ids import agent_id, approval_id
from .models import ReviewApproval

REVIEW_TRAILERS = ("Reviewed-by", "Approved-by", "Acked-by", "Signed-off-by")

_TRAILER_RE = re.compile(
    r"^\s*(" + "|".join(REVIEW_TRAILERS) + r"):\s*(.*?)\s*(?:<([^>]*)>)?\s*$",
    re.I,
)


def reviewer_email(name: Optional[str], email: Optional[str]) -> str:
    """The email used to key a reviewer; synthesized from the name when absent."""
    if email:
        return email
    return f"{(name or 'unknown').lower().replace(' ', '.')}@reviewer"


def parse_review_trailers(
    message: Optional[str],
    activity: str,
    timestamp: Optional[datetime] = None,
) -> list[ReviewApproval]:
    """One approval per trailer line, in message order."""
    if not message:
        return []
    approvals = []
    for line in message.splitlines():
        match = _TRAILER_RE.match(line)
        if not match:
            continue
        trailer, name, email = match.group(1), match.group(2).strip() or None, match.group(3)
        email = email.strip() if email and email.strip() else None
        if name is None and email is None:
            continue
        reviewer = agent_id(reviewer_email(name, email))
        approvals.append(
            ReviewApproval(
                approval_id=approval_id(reviewer, activity),
                reviewer=reviewer,
                activity=activity,
                trailer=_canonical_trailer(trailer),
                reviewer_name=name,
                reviewer_email=email,
                approved_at=timestamp,
            )
        )
    return approvals


def _canonical_trailer(trailer: str) -> str:
    for known in REVIEW_TRAILERS:
        if known.lower() == trailer.lower():
            return known
    return trailer
