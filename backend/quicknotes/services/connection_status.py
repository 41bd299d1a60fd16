"""Periodic health check of the notes table."""
from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from quicknotes.core.errors import RemoteServiceError
from quicknotes.storage.table import NotesTable, utc_now

log = logging.getLogger("quicknotes.health")


class ConnectionState(str, Enum):
    checking = "checking"
    connected = "connected"
    disconnected = "disconnected"


class ConnectionMonitor:
    def __init__(self, table: NotesTable, interval: float = 30.0):
        self.table = table
        self.interval = interval
        self.state = ConnectionState.checking
        self.last_checked: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    async def check(self) -> ConnectionState:
        previous, self.state = self.state, ConnectionState.checking
        try:
            await self.table.ping()
        except RemoteServiceError as e:
            # log transitions only; the poller repeats every interval
            if previous is not ConnectionState.disconnected:
                log.error("database connection error: %s", e.message)
            self.state = ConnectionState.disconnected
            self.last_error = e.message
        else:
            self.state = ConnectionState.connected
            self.last_error = None
        finally:
            self.last_checked = utc_now()
        return self.state

    async def _run(self) -> None:
        while True:
            await self.check()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def snapshot(self) -> dict[str, Any]:
        return {
            "database": self.state.value,
            "last_checked": self.last_checked.isoformat() if self.last_checked else None,
            "error": self.last_error,
        }
