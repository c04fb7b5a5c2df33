"""Stable identifiers for provenance records.

Every id is derived from the record's natural key, so the same commit or
email always yields the same id across runs:

  agent       "agent:" + sha256(lower(email))[:12]
  activity    "activity:" + short sha
  delegation  "delegation:" + sha256(delegate:delegator[:activity])[:12]
  approval    "approval:" + sha256(reviewer:activity)[:12]
  version     "<entity>@" + short sha
  release     "release:" + tag
  snapshot    "snapshot:" + short sha
  team        "team:" + slug(name)
"""

import hashlib
import re
from typing import Optional

SHORT_SHA_LENGTH = 7

_WHITESPACE_RE = re.compile(r"\s+")
_SLUG_RE = re.compile(r"[^a-z0-9]+")


def sha256_hex(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def short_sha(sha: str) -> str:
    return sha[:SHORT_SHA_LENGTH]


def agent_id(email: str) -> str:
    return "agent:" + sha256_hex(email.lower())[:12]


def activity_id(sha: str) -> str:
    return "activity:" + short_sha(sha)


def delegation_id(delegate: str, delegator: str, activity: Optional[str] = None) -> str:
    parts = [delegate, delegator]
    if activity:
        parts.append(activity)
    return "delegation:" + sha256_hex(":".join(parts))[:12]


def approval_id(reviewer: str, activity: str) -> str:
    return "approval:" + sha256_hex(f"{reviewer}:{activity}")[:12]


def version_id(entity: str, sha: str) -> str:
    return f"{entity}@{short_sha(sha)}"


def release_id(tag: str) -> str:
    return f"release:{tag}"


def snapshot_id(sha: str) -> str:
    return "snapshot:" + short_sha(sha)


def team_id(name: str) -> str:
    slug = _SLUG_RE.sub("-", name.lower()).strip("-")
    return f"team:{slug}"


def content_hash(source: str) -> str:
    """16-hex digest of source text, insensitive to whitespace layout."""
    normalized = _WHITESPACE_RE.sub(" ", source).strip()
    return sha256_hex(normalized)[:16]
