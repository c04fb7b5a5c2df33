"""
Logging for git-provenance.

Nothing is configured on import. Library modules log through
``get_logger(__name__)``; applications call ``setup_logging`` (or
``configure_logging`` with a loaded ``MiningConfig``) once.
"""

import logging
from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from .config import MiningConfig

ROOT_LOGGER = "git_provenance"

VERBOSITY_LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.WARNING,
    "verbose": logging.DEBUG,
}

_FILE_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Route ``git_provenance`` records to a rich stderr handler.

    Args:
        verbose: DEBUG level, including every git invocation, with source paths
            and tracebacks with locals
        quiet: ERROR level only (wins over ``verbose``)
        log_file: Optional path that also receives plain-text records

    Returns:
        The ``git_provenance`` logger. Earlier handlers are replaced and
        records do not propagate to the root logger.
    """
    verbosity = "quiet" if quiet else "verbose" if verbose else "normal"
    return _install(verbosity, log_file)


def configure_logging(config: "MiningConfig", log_file: Optional[str] = None) -> logging.Logger:
    """``setup_logging`` driven by ``config.verbosity``."""
    return _install(config.verbosity, log_file)


def _install(verbosity: str, log_file: Optional[str]) -> logging.Logger:
    detailed = verbosity == "verbose"
    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=detailed,
            markup=False,
            show_path=detailed,
        )
    ]
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        handlers.append(file_handler)

    logger = logging.getLogger(ROOT_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(VERBOSITY_LEVELS[verbosity])
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger namespaced under ``git_provenance``.

    ``get_logger(__name__)`` inside the package keeps the module path;
    any other name is prefixed (``"custom"`` -> ``git_provenance.custom``).
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER)
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
