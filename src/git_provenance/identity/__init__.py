"""Identity resolution: developers, agents, associations and attributions."""

from .agents import (
    AGENT_TYPE_RULES,
    LLM_MESSAGE_PATTERNS,
    agents_from_commit,
    agents_from_commits,
    agents_from_developers,
    aggregate_agents,
    attach_attributions,
    automated,
    detect_type,
    detect_type_with_context,
    extract_agents,
    extract_agents_from_commits,
    extract_associations,
    extract_attributions,
    from_developer,
    merge_agents,
)
from .developers import (
    author_from_commit,
    authored_count,
    committed_count,
    committer_from_commit,
    from_commit,
    from_commits,
    has_name_variations,
    is_author,
    is_committer,
    merge_all,
    merge_developers,
    placeholder_email,
)
from .models import Agent, AgentRole, AgentType, Association, Attribution, Developer

__all__ = [
    "AGENT_TYPE_RULES",
    "LLM_MESSAGE_PATTERNS",
    "Agent",
    "AgentRole",
    "AgentType",
    "Association",
    "Attribution",
    "Developer",
    "agents_from_commit",
    "agents_from_commits",
    "agents_from_developers",
    "aggregate_agents",
    "attach_attributions",
    "author_from_commit",
    "authored_count",
    "automated",
    "committed_count",
    "committer_from_commit",
    "detect_type",
    "detect_type_with_context",
    "extract_agents",
    "extract_agents_from_commits",
    "extract_associations",
    "extract_attributions",
    "from_commit",
    "from_commits",
    "from_developer",
    "has_name_variations",
    "is_author",
    "is_committer",
    "merge_agents",
    "merge_all",
    "merge_developers",
    "placeholder_email",
]
