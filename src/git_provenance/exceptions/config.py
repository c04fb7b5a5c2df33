"""Configuration errors."""

from typing import Any

from .base import ProvenanceError
from .taxonomy import ErrorKind


class InvalidConfigError(ProvenanceError):
    """Raised when configuration values or files are invalid."""

    kind = ErrorKind.INVALID_CONFIG

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason
