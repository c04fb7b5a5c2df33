"""Authority delegation from ownership files, review trailers and teams."""

from .codeowners import (
    find_owners,
    find_owners_for_files,
    parse_codeowners,
    parse_codeowners_content,
    pattern_matches,
)
from .models import CodeOwner, Delegation, DelegationReason, ReviewApproval, Team
from .resolver import (
    applies_to_file,
    bot_delegations,
    code_owner_delegations,
    delegates_to,
    extract_delegations,
    has_reason,
    infer_org_email,
    owner_to_agent_id,
    review_delegations,
)
from .reviews import REVIEW_TRAILERS, parse_review_trailers, reviewer_email
from .teams import build_team_delegations, parse_team_file

__all__ = [
    "REVIEW_TRAILERS",
    "CodeOwner",
    "Delegation",
    "DelegationReason",
    "ReviewApproval",
    "Team",
    "applies_to_file",
    "bot_delegations",
    "build_team_delegations",
    "code_owner_delegations",
    "delegates_to",
    "extract_delegations",
    "find_owners",
    "find_owners_for_files",
    "has_reason",
    "infer_org_email",
    "owner_to_agent_id",
    "parse_codeowners",
    "parse_codeowners_content",
    "parse_review_trailers",
    "pattern_matches",
    "review_delegations",
    "reviewer_email",
]
