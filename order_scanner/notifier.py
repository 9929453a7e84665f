"""User-facing success/error notifications."""

from __future__ import annotations

import logging
from typing import Protocol

from textual.app import App

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class ToastNotifier:
    """Shows notifications as Textual toasts."""

    def __init__(self, app: App) -> None:
        self._app = app

    def success(self, message: str) -> None:
        logger.debug(f"notify_success message={message!r}")
        self._app.notify(message, severity="information", timeout=3)

    def error(self, message: str) -> None:
        logger.debug(f"notify_error message={message!r}")
        self._app.notify(message, title="Scan", severity="error", timeout=5)
