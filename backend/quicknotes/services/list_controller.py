"""
List controller for a user's notes.

Holds what the user currently sees (one page of notes plus the pagination,
search and sort state) and decides when to query the access layer again:

- search keystrokes are debounced; only the text current when the quiet period
  ends is sent, and only if (search, sort field, sort order) changed since the
  last request
- sort changes fetch page 1 immediately
- every fetch takes a sequence number and only the newest one may touch state
  (last request wins); older responses and errors are dropped
- after a successful create/update/delete the current page is fetched again so
  `total` is never stale

Runs on a single asyncio event loop; nothing here is thread-safe.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
import math
from typing import Awaitable, Callable, Optional, Union

from quicknotes.core.config import Settings
from quicknotes.core.errors import QuickNotesError
from quicknotes.models.notes import PAGE_SIZE_MAX, NoteCreate, NoteUpdate, SortField, SortOrder
from quicknotes.services.note_service import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, NoteService
from quicknotes.services.notifier import LogNotifier, Notifier
from quicknotes.storage.table import Note

log = logging.getLogger("quicknotes.controller")

DEFAULT_DEBOUNCE_SECONDS = 0.3

SessionProvider = Callable[[], Optional[str]]
QueryKey = tuple[str, SortField, SortOrder]


class NoteListController:
    def __init__(
        self,
        service: NoteService,
        session: SessionProvider,
        notifier: Optional[Notifier] = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
        on_sign_in_required: Optional[Callable[[], None]] = None,
    ):
        if not 1 <= page_size <= PAGE_SIZE_MAX:
            raise ValueError(f"page_size must be between 1 and {PAGE_SIZE_MAX}, got {page_size}")
        self.service = service
        self.notifier = notifier or LogNotifier()
        self.debounce = debounce
        self._session = session
        self._on_sign_in_required = on_sign_in_required

        self.items: list[Note] = []
        self.loading = False
        self.error: Optional[str] = None
        self.page = DEFAULT_PAGE
        self.page_size = page_size
        self.total = 0
        self.search = ""
        self.sort_field = SortField.updated_at
        self.sort_order = SortOrder.desc

        self._seq = 0
        self._requested: Optional[QueryKey] = None
        self._debounce_task: Optional[asyncio.Task] = None
        self._pending: set[asyncio.Task] = set()
        self._closed = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        service: NoteService,
        session: SessionProvider,
        notifier: Optional[Notifier] = None,
        **kwargs,
    ) -> "NoteListController":
        """Controller using the configured page size and search debounce."""
        return cls(
            service,
            session,
            notifier,
            page_size=settings.default_page_size,
            debounce=settings.search_debounce_seconds,
            **kwargs,
        )

    @property
    def query_key(self) -> QueryKey:
        return (self.search, self.sort_field, self.sort_order)

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.page_size))

    def _owner(self) -> Optional[str]:
        owner = self._session()
        if not owner:
            log.info("no authenticated owner; sign-in required")
            if self._on_sign_in_required is not None:
                self._on_sign_in_required()
            return None
        return owner

    def _is_current(self, seq: int) -> bool:
        return seq == self._seq and not self._closed

    def _report(self, exc: QuickNotesError) -> None:
        self.error = exc.message
        self.notifier.error(exc.message)

    async def _fetch(self, page: int) -> bool:
        """Query `page` with the current search/sort; True when the result was applied."""
        owner = self._owner()
        if owner is None:
            return False

        self._seq += 1
        seq = self._seq
        key = self.query_key
        self._requested = key
        self.loading = True
        self.error = None
        search, sort_field, sort_order = key

        try:
            result = await self.service.list_notes(
                owner,
                page=page,
                page_size=self.page_size,
                search=search,
                sort_by=sort_field,
                sort_order=sort_order,
            )
        except QuickNotesError as e:
            if not self._is_current(seq):
                log.debug("dropping error from superseded fetch seq=%s: %s", seq, e.message)
                return False
            log.warning("fetching notes failed: %s", e.message)
            self._requested = None
            self.loading = False
            self._report(e)
            return False

        if not self._is_current(seq):
            log.debug("dropping superseded fetch seq=%s (latest=%s)", seq, self._seq)
            return False

        self.items = list(result.items)
        self.total = result.total
        self.page = result.page
        self.loading = False
        return True

    def _spawn(self, coro: Awaitable[bool]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None

    async def _debounced_search(self) -> None:
        await asyncio.sleep(self.debounce)
        # the fetch runs detached so a later keystroke cannot cancel it mid-flight
        self._debounce_task = None
        if self.query_key != self._requested:
            self._spawn(self._fetch(DEFAULT_PAGE))

    async def mount(self) -> None:
        """Initial load: page 1, newest first, no search."""
        await self._fetch(DEFAULT_PAGE)

    def handle_search(self, text: str) -> None:
        self.search = text
        self._cancel_debounce()
        if self._closed:
            return
        self._debounce_task = asyncio.get_running_loop().create_task(self._debounced_search())

    async def handle_sort(self, field: Union[SortField, str]) -> None:
        field = SortField(field)
        if field != self.sort_field:
            self.sort_field = field
            self.sort_order = SortOrder.desc
        else:
            self.sort_order = SortOrder.asc if self.sort_order is SortOrder.desc else SortOrder.desc
        self._cancel_debounce()
        await self._fetch(DEFAULT_PAGE)

    async def handle_page_change(self, page: int) -> None:
        await self._fetch(page)

    async def refetch(self) -> None:
        await self._fetch(self.page)

    async def _refresh_after_mutation(self) -> None:
        applied = await self._fetch(self.page)
        if applied and not self.items and self.page > 1:
            # the page emptied out (e.g. last note of the last page deleted)
            await self._fetch(self.last_page)

    async def create_note(self, draft: NoteCreate) -> Optional[Note]:
        owner = self._owner()
        if owner is None:
            return None
        try:
            note = await self.service.create(draft, owner)
        except QuickNotesError as e:
            self._report(e)
            return None
        self.notifier.success("Note created successfully")
        await self._refresh_after_mutation()
        return note

    async def update_note(self, note_id: str, patch: NoteUpdate) -> Optional[Note]:
        owner = self._owner()
        if owner is None:
            return None
        try:
            note = await self.service.update(note_id, owner, patch)
        except QuickNotesError as e:
            self._report(e)
            return None
        self.notifier.success("Note updated successfully")
        await self._refresh_after_mutation()
        return note

    async def delete_note(self, note_id: str) -> bool:
        owner = self._owner()
        if owner is None:
            return False
        try:
            await self.service.delete(note_id, owner)
        except QuickNotesError as e:
            self._report(e)
            return False
        self.notifier.success("Note deleted successfully")
        await self._refresh_after_mutation()
        return True

    async def wait_idle(self) -> None:
        """Wait until no debounce timer or detached fetch is outstanding."""
        while self._debounce_task is not None or self._pending:
            tasks = [t for t in (self._debounce_task, *self._pending) if t is not None]
            await asyncio.gather(*tasks, return_exceptions=True)

    async def aclose(self) -> None:
        self._closed = True
        task = self._debounce_task
        self._cancel_debounce()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
