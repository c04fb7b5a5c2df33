"""Issue references in commit messages and their tracker URLs."""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Iterable, Optional

from ..config import DEFAULT_CONFIG, MiningConfig
from .models import IssueAction, IssueReference, IssueTracker

_TARGET = r"(?:#(\d+)|(?i:gh)-(\d+)|(?i:gl)-(\d+)|([A-Z][A-Z0-9]+)-(\d+))\b"

_ACTION_RE = re.compile(
    r"(?<![\w-])(?i:(fix(?:e[sd])?|close[sd]?|resolve[sd]?|refs?|references|relate[sd]?\s+to|see))"
    r"\s*:?\s+" + _TARGET
)
_GENERIC_RE = re.compile(r"(?<![\w&#])#(\d+)\b")
_GITHUB_RE = re.compile(r"\bGH-(\d+)\b")
_GITLAB_RE = re.compile(r"\bGL-(\d+)\b")
_JIRA_RE = re.compile(r"\b([A-Z][A-Z0-9]+)-(\d+)\b")

_ACTION_PREFIXES = (
    ("fix", IssueAction.FIXES),
    ("close", IssueAction.CLOSES),
    ("resolve", IssueAction.RESOLVES),
)


def parse_issue_references(message: Optional[str]) -> list[IssueReference]:
    """Issue references in ``message``, each issue once.

    References introduced by a verb (``fixes #12``, ``Closes GH-3``,
    ``resolved PROJ-7``, ``refs #4``) come first and carry that action;
    bare references follow as mentions.
    """
    if not message:
        return []
    refs: dict[tuple, IssueReference] = {}
    for match in _ACTION_RE.finditer(message):
        ref = _target_reference(match.groups()[1:], _action(match.group(1)))
        refs.setdefault(ref.key, ref)

    plain = [
        (m.start(), IssueReference(IssueTracker.GENERIC, int(m.group(1))))
        for m in _GENERIC_RE.finditer(message)
    ]
    plain += [
        (m.start(), IssueReference(IssueTracker.GITHUB, int(m.group(1))))
        for m in _GITHUB_RE.finditer(message)
    ]
    plain += [
        (m.start(), IssueReference(IssueTracker.GITLAB, int(m.group(1))))
        for m in _GITLAB_RE.finditer(message)
    ]
    plain += [
        (m.start(), IssueReference(IssueTracker.JIRA, int(m.group(2)), project=m.group(1)))
        for m in _JIRA_RE.finditer(message)
        if m.group(1) not in ("GH", "GL")
    ]
    for _, ref in sorted(plain, key=lambda pair: pair[0]):
        refs.setdefault(ref.key, ref)
    return list(refs.values())


def build_issue_url(ref: IssueReference, config: Optional[MiningConfig] = None) -> Optional[str]:
    """Web URL of ``ref`` for the trackers configured in ``config``.

    Bare ``#N`` references resolve against ``github_repo``. None when the
    tracker the reference needs is not configured.
    """
    config = config or DEFAULT_CONFIG
    if ref.tracker in (IssueTracker.GITHUB, IssueTracker.GENERIC):
        if not config.github_repo:
            return None
        return f"https://github.com/{config.github_repo}/issues/{ref.number}"
    if ref.tracker is IssueTracker.GITLAB:
        if not config.gitlab_repo:
            return None
        return f"{config.gitlab_url.rstrip('/')}/{config.gitlab_repo}/-/issues/{ref.number}"
    if not config.jira_url:
        return None
    return f"{config.jira_url.rstrip('/')}/browse/{ref.project}-{ref.number}"


def with_urls(
    refs: Iterable[IssueReference], config: Optional[MiningConfig] = None
) -> list[IssueReference]:
    return [replace(ref, url=build_issue_url(ref, config)) for ref in refs]


def _action(verb: str) -> IssueAction:
    verb = verb.lower()
    for prefix, action in _ACTION_PREFIXES:
        if verb.startswith(prefix):
            return action
    return IssueAction.RELATES


def _target_reference(groups, action: IssueAction) -> IssueReference:
    generic, github, gitlab, project, jira = groups
    if generic:
        return IssueReference(IssueTracker.GENERIC, int(generic), action)
    if github:
        return IssueReference(IssueTracker.GITHUB, int(github), action)
    if gitlab:
        return IssueReference(IssueTracker.GITLAB, int(gitlab), action)
    return IssueReference(IssueTracker.JIRA, int(jira), action, project=project)
