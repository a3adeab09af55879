# src/config/logging_config.py

"""Per-run logging for the storefront.

Every launch writes a ``logs/run_<timestamp>.log`` file that captures all
``gidersen.*`` records at DEBUG level. Console output depends on how the
app runs: the headless CLI logs warnings to stderr, while the TUI routes
them to Textual's devtools console so the screen is never overwritten.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

from textual.logging import TextualHandler

from src.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)

_CONSOLE_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _console_level() -> int:
    """Read the console threshold from ``GIDERSEN_LOG_LEVEL``."""
    name = os.getenv("GIDERSEN_LOG_LEVEL", "WARNING").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


def setup_logging(tui: bool = False) -> Path:
    """Attach the run file handler and a console handler to ``gidersen``.

    Args:
        tui: Send console records to Textual instead of stderr.

    Returns:
        Path of the log file for this run.
    """
    Settings.LOGS_DIR.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = Settings.LOGS_DIR / f"run_{stamp}.log"

    app_logger = logging.getLogger("gidersen")
    app_logger.setLevel(logging.DEBUG)
    app_logger.propagate = False

    # Already configured in this process (tests, repeated launches)
    if app_logger.handlers:
        return log_file

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler: logging.Handler
    if tui:
        console_handler = TextualHandler(stderr=False, stdout=False)
    else:
        console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(_console_level())
    console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))

    app_logger.addHandler(file_handler)
    app_logger.addHandler(console_handler)
    app_logger.info("Logging to %s (tui=%s)", log_file, tui)

    return log_file
