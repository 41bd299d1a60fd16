"""
Note record access layer: turns create/get/list/update/delete intents into
calls on a `NotesTable` and turns rows back into `Note` records.

Every call is scoped to an owner id. Reads of a missing or foreign note return
`None`; updates and deletes of one raise `NoteNotFoundError`.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import ValidationError

from quicknotes.core.errors import AuthenticationRequired, InvalidQueryError, NoteNotFoundError, RemoteServiceError
from quicknotes.models.notes import NoteCreate, NoteQuery, NoteUpdate, SortField, SortOrder
from quicknotes.storage.table import Note, NotesTable, to_timestamp, utc_now

log = logging.getLogger("quicknotes.notes")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class NotePage:
    items: list[Note]
    total: int
    page: int
    page_size: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.page_size))


def _require_owner(owner: Optional[str]) -> str:
    if not owner:
        raise AuthenticationRequired("An authenticated owner is required")
    return owner


def _to_note(row: dict[str, Any], action: str) -> Note:
    try:
        return Note.from_row(row)
    except (KeyError, TypeError, ValueError) as e:
        raise RemoteServiceError(f"Failed to {action}: malformed row ({e})") from e


class NoteService:
    def __init__(self, table: NotesTable):
        self.table = table

    async def create(self, draft: NoteCreate, owner: str) -> Note:
        owner = _require_owner(owner)
        row = draft.model_dump(mode="json")
        row["user_id"] = owner
        try:
            stored = await self.table.insert(row)
        except RemoteServiceError as e:
            raise RemoteServiceError(f"Failed to create note: {e.message}") from e
        note = _to_note(stored, "create note")
        log.info("note created id=%s owner=%s", note.id, owner)
        return note

    async def get_by_id(self, note_id: str, owner: str) -> Optional[Note]:
        owner = _require_owner(owner)
        try:
            row = await self.table.select_one(str(note_id), owner)
        except RemoteServiceError as e:
            raise RemoteServiceError(f"Failed to fetch note: {e.message}") from e
        if row is None:
            return None
        return _to_note(row, "fetch note")

    async def list_notes(
        self,
        owner: str,
        page: int = DEFAULT_PAGE,
        page_size: int = DEFAULT_PAGE_SIZE,
        search: str = "",
        sort_by: Union[SortField, str] = SortField.updated_at,
        sort_order: Union[SortOrder, str] = SortOrder.desc,
    ) -> NotePage:
        owner = _require_owner(owner)
        try:
            query = NoteQuery(page=page, page_size=page_size, search=search, sort_by=sort_by, sort_order=sort_order)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors())
            raise InvalidQueryError(f"Failed to fetch notes: invalid {fields}") from e
        try:
            rows, count = await self.table.select_page(
                owner,
                search=query.search,
                sort_by=query.sort_by.value,
                ascending=query.sort_order is SortOrder.asc,
                offset=query.offset,
                limit=query.page_size,
            )
        except RemoteServiceError as e:
            raise RemoteServiceError(f"Failed to fetch notes: {e.message}") from e
        items = [_to_note(r, "fetch notes") for r in rows]
        return NotePage(items=items, total=count, page=query.page, page_size=query.page_size)

    async def update(self, note_id: str, owner: str, patch: NoteUpdate) -> Note:
        owner = _require_owner(owner)
        values = patch.changes()
        values["updated_at"] = to_timestamp(utc_now())
        try:
            row = await self.table.update(str(note_id), owner, values)
        except RemoteServiceError as e:
            raise RemoteServiceError(f"Failed to update note: {e.message}") from e
        if row is None:
            raise NoteNotFoundError("Failed to update note: note not found")
        note = _to_note(row, "update note")
        log.info("note updated id=%s fields=%s", note.id, sorted(k for k in values if k != "updated_at"))
        return note

    async def delete(self, note_id: str, owner: str) -> None:
        owner = _require_owner(owner)
        try:
            deleted = await self.table.delete(str(note_id), owner)
        except RemoteServiceError as e:
            raise RemoteServiceError(f"Failed to delete note: {e.message}") from e
        if not deleted:
            raise NoteNotFoundError("Failed to delete note: note not found")
        log.info("note deleted id=%s owner=%s", note_id, owner)
