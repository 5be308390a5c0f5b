"""Logging for the Timora backend.

Everything logs under the "timora" logger. Areas that want their own name in
the log line (reminders, recovery, snapshots) take a child logger from
get_logger(); records still flow to the handlers set up here.
"""

import logging
import sys
from datetime import datetime

from config import LOG_DIR, LOG_LEVEL

ROOT_NAME = "timora"

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-18s | %(message)s"


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """Attach the dated file log and, on a terminal, a console handler.

    Safe to call again: handlers are rebuilt rather than stacked, so the API
    process and the worker can both import this module.
    """
    root = logging.getLogger(ROOT_NAME)
    resolved = logging.getLevelName(str(level).upper())
    root.setLevel(resolved if isinstance(resolved, int) else logging.INFO)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    log_file = LOG_DIR / f"{datetime.now().strftime('%Y-%m-%d')}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(file_handler)

    # Worker under a service manager has no TTY
    if sys.stdout is not None and sys.stdout.isatty():
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        root.addHandler(console_handler)

    return root


def get_logger(area: str) -> logging.Logger:
    """Child logger such as "timora.reminders"."""
    return logging.getLogger(ROOT_NAME).getChild(area)


# Global logger instance
logger = setup_logging()
