from fastapi import Request

from quicknotes.core.config import Settings
from quicknotes.services.connection_status import ConnectionMonitor
from quicknotes.services.note_service import NoteService
from quicknotes.storage.users_store import UsersStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_note_service(request: Request) -> NoteService:
    return request.app.state.note_service


def get_users_store(request: Request) -> UsersStore:
    return request.app.state.users


def get_connection_monitor(request: Request) -> ConnectionMonitor:
    return request.app.state.connection_monitor
