"""User-visible notifications (the transient toasts of the dashboard)."""
from __future__ import annotations

import logging
from typing import Protocol


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LogNotifier:
    def __init__(self, logger_name: str = "quicknotes.notify"):
        self.log = logging.getLogger(logger_name)

    def success(self, message: str) -> None:
        self.log.info(message)

    def error(self, message: str) -> None:
        self.log.error(message)
