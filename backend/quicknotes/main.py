"""FastAPI entry point: builds settings, storage and services, then mounts the routers."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from quicknotes.api.auth import router as auth_router
from quicknotes.api.health import router as health_router
from quicknotes.api.notes import router as notes_router
from quicknotes.core.config import Settings
from quicknotes.core.errors import register_exception_handlers
from quicknotes.core.logging import setup_logging
from quicknotes.services.connection_status import ConnectionMonitor
from quicknotes.services.note_service import NoteService
from quicknotes.storage.local_table import LocalNotesTable
from quicknotes.storage.rest_table import RestNotesTable
from quicknotes.storage.table import NotesTable
from quicknotes.storage.users_store import UsersStore
from quicknotes.utils.auth_hash import build_password_context

_log = logging.getLogger("quicknotes.startup")


def build_table(settings: Settings) -> NotesTable:
    if settings.notes_backend == "rest":
        if not settings.rest_configured:
            raise RuntimeError("QUICKNOTES_REST_URL and QUICKNOTES_REST_API_KEY are required for the rest backend")
        return RestNotesTable(
            settings.rest_url,
            settings.rest_api_key,
            table=settings.rest_table,
            timeout=settings.rest_timeout_seconds,
        )
    return LocalNotesTable(settings.data_dir)


def create_app(settings: Optional[Settings] = None, table: Optional[NotesTable] = None) -> FastAPI:
    settings = settings or Settings()
    setup_logging(settings.log_level)
    table = table or build_table(settings)
    monitor = ConnectionMonitor(table, interval=settings.health_check_interval_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _log.info("starting %s with %s table", settings.app_name, type(table).__name__)
        monitor.start()
        try:
            yield
        finally:
            await monitor.stop()
            await table.aclose()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.note_service = NoteService(table)
    app.state.users = UsersStore(settings.data_dir)
    app.state.pwd_context = build_password_context(settings.bcrypt_rounds)
    app.state.connection_monitor = monitor

    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(notes_router)
    return app


app = create_app()
