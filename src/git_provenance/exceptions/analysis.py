"""Analysis errors: versions, entities, ownership lookups, file formats."""

from typing import Optional

from .base import ProvenanceError
from .taxonomy import ErrorKind


class AnalysisError(ProvenanceError):
    """Base class for analysis-related errors."""

    pass


class InvalidVersionError(AnalysisError):
    """Raised when a string is not a MAJOR.MINOR.PATCH semantic version."""

    kind = ErrorKind.INVALID_VERSION

    def __init__(self, version: object):
        super().__init__(f"Invalid version: {version!r}", details={"version": str(version)})
        self.version = version


class ModuleNotFoundAtRevisionError(AnalysisError):
    """Raised when a module cannot be located at a revision."""

    kind = ErrorKind.MODULE_NOT_FOUND

    def __init__(self, module: str, ref: Optional[str] = None):
        details = {"module": module}
        if ref:
            details["ref"] = ref
        super().__init__(f"Module not found: {module}", details=details)
        self.module = module
        self.ref = ref


class FunctionNotFoundError(AnalysisError):
    """Raised when a function clause cannot be located inside a module."""

    kind = ErrorKind.FUNCTION_NOT_FOUND

    def __init__(self, module: str, function: str, arity: int):
        super().__init__(
            f"Function not found: {module}.{function}/{arity}",
            details={"module": module, "function": function, "arity": str(arity)},
        )
        self.module = module
        self.function = function
        self.arity = arity


class NoMatchError(AnalysisError):
    """Raised when no ownership pattern matches a file."""

    kind = ErrorKind.NO_MATCH

    def __init__(self, path: str):
        super().__init__(f"No ownership rule matches {path}", details={"path": path})
        self.path = path


class InvalidFormatError(AnalysisError):
    """Raised when an ownership or team file is malformed."""

    kind = ErrorKind.INVALID_FORMAT

    def __init__(self, what: str, reason: str, line_number: Optional[int] = None):
        details = {"what": what, "reason": reason}
        if line_number is not None:
            details["line"] = str(line_number)
        super().__init__(f"Invalid {what} format: {reason}", details=details)
        self.what = what
        self.reason = reason
        self.line_number = line_number
