"""
git-provenance - Provenance mining for Elixir repositories

Turns git history into provenance records: commits, classified activities,
agents and their delegations, versioned modules and functions, detected
refactorings, deprecations, features and bug fixes, releases and codebase
snapshots, ready for a knowledge-graph builder to consume.
"""

__version__ = "0.1.0"

from .api import ProvenanceMiner, ProvenanceReport, mine
from .config import MiningConfig, load_config
from .exceptions import ProvenanceError
from .vcs import GitGateway

__all__ = [
    "mine",  # One-call extraction
    "ProvenanceMiner",  # Per-query access
    "ProvenanceReport",
    "MiningConfig",
    "load_config",
    "ProvenanceError",
    "GitGateway",
]
