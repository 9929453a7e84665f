"""Logging setup for the console app."""

from __future__ import annotations

import logging
from pathlib import Path

from textual.logging import TextualHandler

from order_scanner.config import DEBUG_LOG_PATH

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(path: str | Path | None = DEBUG_LOG_PATH, level: int = logging.DEBUG) -> logging.Logger:
    """Send ``order_scanner`` records to the debug file and the Textual console."""
    root = logging.getLogger("order_scanner")
    root.setLevel(level)
    root.propagate = False
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.addHandler(TextualHandler())

    if path is not None:
        log_file = Path(path)
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError:
            # Logging must never interfere with app flow.
            root.warning(f"debug_log_unavailable path={log_file}")
        else:
            file_handler.setFormatter(logging.Formatter(_FORMAT))
            root.addHandler(file_handler)

    return root
