"""Logging setup.

All modules log through ``logging.getLogger(__name__)``; the CLI
attaches a single Rich handler on stderr to the package logger.
"""

import logging

from rich.logging import RichHandler

from angrr.utils.formatting import err_console

PACKAGE_LOGGER = "angrr"

TRACE = 5

LOG_LEVELS: dict[str, int] = {
    "off": logging.CRITICAL + 10,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}

# -v steps up from the default level
_VERBOSITY: tuple[str, ...] = ("info", "debug", "trace")


def level_for_verbosity(verbose: int) -> str:
    """Map a -v count to a level name, starting from info."""
    return _VERBOSITY[min(verbose, len(_VERBOSITY) - 1)]


def setup_logging(level: str = "info") -> None:
    """Attach the Rich handler to the package logger and set its level."""
    logging.addLevelName(TRACE, "TRACE")
    handler = RichHandler(
        console=err_console,
        show_time=False,
        show_path=False,
        markup=False,
    )
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.handlers = [handler]
    set_log_level(level)


def set_log_level(level: str) -> None:
    """Set the package log level by name."""
    logging.getLogger(PACKAGE_LOGGER).setLevel(LOG_LEVELS[level])
