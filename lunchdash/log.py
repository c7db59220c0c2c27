"""Logging setup for lunchdash."""

import logging
from pathlib import Path

from rich.logging import RichHandler

PACKAGE_LOGGER = "lunchdash"
DASHBOARD_LOG_FILE = "lunchdash.log"


def configure_logging(debug: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Install a single handler on the package logger.

    Args:
        debug: Log at DEBUG instead of INFO.
        log_file: Write plain-text logs to this file instead of the terminal.
            Used while the full-screen dashboard owns the display.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handler: logging.Handler
    if log_file is not None:
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    else:
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False
    return logger


def configure_dashboard_logging(debug: bool = False) -> logging.Logger:
    """Keep log output off the live display.

    With debug on, everything goes to lunchdash.log in the working
    directory. Otherwise nothing is written: failures reach the user through
    the status line and the error screen.
    """
    if debug:
        return configure_logging(debug=True, log_file=Path(DASHBOARD_LOG_FILE))

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)
    logger.propagate = False
    return logger
