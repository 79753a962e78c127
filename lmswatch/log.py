"""
Console logging for the command line entry points.

Library modules only create loggers (logging.getLogger(__name__));
handlers are installed here, once, on the 'lmswatch' logger.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "lmswatch"


def configure_logging(level: str | int = "INFO", console: Console | None = None) -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)

    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(console=console or Console(stderr=True), show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
        root.propagate = False

    return root
