"""Logging setup.

Call setup_logging() once at startup. While the TUI owns the terminal,
records go to Textual's devtools console; a log file can be added for
anything that needs to survive the session.
"""

import logging
from pathlib import Path
from typing import Optional

from textual.logging import TextualHandler

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_configured = False


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None) -> logging.Logger:
    """Configure the ``roost`` logger hierarchy."""
    global _configured
    logger = logging.getLogger("roost")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    if _configured:
        return logger

    # Outside the TUI, echo records to stderr only when asked for detail
    logger.addHandler(TextualHandler(stderr=verbose))

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    logger.propagate = False
    _configured = True
    return logger
