"""Timestamp parsing and email anonymization for git output."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Optional, Union

from ..exceptions import InvalidDatetimeError, InvalidTimestampError


def parse_iso8601(value: object) -> datetime:
    """Parse a strict ISO-8601 datetime (``%aI`` / ``%cI``) into an aware datetime.

    Raises:
        InvalidDatetimeError: Malformed input or a missing UTC offset
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidDatetimeError(value, "expected an ISO-8601 string")
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError as e:
        raise InvalidDatetimeError(value, str(e)) from None
    if parsed.tzinfo is None:
        raise InvalidDatetimeError(value, "missing UTC offset")
    return parsed


def parse_unix_timestamp(value: Union[int, str]) -> datetime:
    """Parse seconds since the epoch (int or digit string) into a UTC datetime.

    Raises:
        InvalidTimestampError: Non-integral or out-of-range input
    """
    if isinstance(value, bool):
        raise InvalidTimestampError(value)
    if isinstance(value, str):
        text = value.strip()
        if not text.lstrip("-").isdigit():
            raise InvalidTimestampError(value)
        seconds = int(text)
    elif isinstance(value, int):
        seconds = value
    else:
        raise InvalidTimestampError(value)
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise InvalidTimestampError(value, str(e)) from None


def anonymize_email(email: Optional[str]) -> Optional[str]:
    """sha256 hex digest of the lower-cased email; None passes through."""
    if email is None:
        return None
    return hashlib.sha256(email.lower().encode("utf-8")).hexdigest()
