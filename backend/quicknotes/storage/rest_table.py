"""Notes table served by a PostgREST endpoint (the Supabase REST dialect).

The HTTP client is created explicitly and owned by the table; no real-time or
subscription channel is ever opened.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from quicknotes.core.errors import RemoteServiceError
from quicknotes.storage.table import NotesTable, SORTABLE_COLUMNS

log = logging.getLogger("quicknotes.storage.rest")

RETURN_ROWS = {"Prefer": "return=representation"}


def _like_pattern(search: str) -> str:
    """Quoted PostgREST value for a case-insensitive substring match."""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    escaped = escaped.replace("\\", "\\\\").replace('"', '\\"')
    return f'"*{escaped}*"'


def search_filter(search: str) -> str:
    pattern = _like_pattern(search)
    return f"(title.ilike.{pattern},content.ilike.{pattern})"


def parse_content_range(header: Optional[str]) -> Optional[int]:
    # "0-9/42", "*/0" or "0-9/*"
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1].strip()
    if total == "*":
        return None
    try:
        return int(total)
    except ValueError:
        return None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


class RestNotesTable(NotesTable):
    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = "notes",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.name = table
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        params: Optional[list[tuple[str, str]]] = None,
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
        ok_statuses: tuple[int, ...] = (),
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, f"/{self.name}", params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            log.warning("%s /%s failed: %s", method, self.name, e)
            raise RemoteServiceError(str(e) or type(e).__name__) from e
        if response.is_error and response.status_code not in ok_statuses:
            raise RemoteServiceError(_error_message(response))
        return response

    @staticmethod
    def _rows(response: httpx.Response) -> list[dict[str, Any]]:
        try:
            body = response.json()
        except ValueError as e:
            raise RemoteServiceError("malformed response body") from e
        if not isinstance(body, list):
            raise RemoteServiceError("expected a JSON array")
        return body

    async def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        response = await self._request("POST", json=row, headers=RETURN_ROWS)
        rows = self._rows(response)
        if not rows:
            raise RemoteServiceError("insert returned no row")
        return rows[0]

    async def select_one(self, note_id: str, owner: str) -> Optional[dict[str, Any]]:
        params = [("select", "*"), ("id", f"eq.{note_id}"), ("user_id", f"eq.{owner}")]
        rows = self._rows(await self._request("GET", params=params))
        return rows[0] if rows else None

    async def select_page(
        self,
        owner: str,
        search: str,
        sort_by: str,
        ascending: bool,
        offset: int,
        limit: int,
    ) -> tuple[list[dict[str, Any]], int]:
        if sort_by not in SORTABLE_COLUMNS:
            raise RemoteServiceError(f"column {sort_by!r} is not sortable")
        params = [("select", "*"), ("user_id", f"eq.{owner}")]
        if search:
            params.append(("or", search_filter(search)))
        direction = "asc" if ascending else "desc"
        params.append(("order", f"{sort_by}.{direction},id.asc"))
        headers = {
            "Range-Unit": "items",
            "Range": f"{offset}-{offset + limit - 1}",
            "Prefer": "count=exact",
        }
        # 416: the requested range starts past the last row
        response = await self._request("GET", params=params, headers=headers, ok_statuses=(416,))
        total = parse_content_range(response.headers.get("Content-Range"))
        if response.status_code == 416:
            return [], total or 0
        rows = self._rows(response)
        return rows, total if total is not None else offset + len(rows)

    async def update(self, note_id: str, owner: str, values: dict[str, Any]) -> Optional[dict[str, Any]]:
        params = [("id", f"eq.{note_id}"), ("user_id", f"eq.{owner}")]
        rows = self._rows(await self._request("PATCH", params=params, json=values, headers=RETURN_ROWS))
        return rows[0] if rows else None

    async def delete(self, note_id: str, owner: str) -> bool:
        params = [("id", f"eq.{note_id}"), ("user_id", f"eq.{owner}")]
        rows = self._rows(await self._request("DELETE", params=params, headers=RETURN_ROWS))
        return bool(rows)

    async def ping(self) -> None:
        await self._request("GET", params=[("select", "id"), ("limit", "1")])

    async def aclose(self) -> None:
        await self._client.aclose()
