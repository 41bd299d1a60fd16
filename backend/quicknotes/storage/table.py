"""Contract for the remote tabular data service that stores notes.

Rows are plain dicts with the columns
`id, user_id, title, content, color, created_at, updated_at`.
Every method raises `RemoteServiceError` when the service fails.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

COLUMNS = ("id", "user_id", "title", "content", "color", "created_at", "updated_at")
SORTABLE_COLUMNS = ("created_at", "updated_at")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_timestamp(dt: datetime) -> str:
    # fixed-width so stored values also compare correctly as strings
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        dt = value
    else:
        # PostgREST may send a trailing "Z"
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class Note:
    id: str
    owner_user_id: str
    title: str
    content: str
    color: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Note":
        return cls(
            id=str(row["id"]),
            owner_user_id=str(row["user_id"]),
            title=row["title"],
            content=row.get("content") or "",
            color=row["color"],
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner_user_id": self.owner_user_id,
            "title": self.title,
            "content": self.content,
            "color": self.color,
            "created_at": to_timestamp(self.created_at),
            "updated_at": to_timestamp(self.updated_at),
        }


class NotesTable(ABC):
    name = "notes"

    @abstractmethod
    async def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        """Persist a new row and return it with `id` and both timestamps filled in."""

    @abstractmethod
    async def select_one(self, note_id: str, owner: str) -> Optional[dict[str, Any]]:
        ...

    @abstractmethod
    async def select_page(
        self,
        owner: str,
        search: str,
        sort_by: str,
        ascending: bool,
        offset: int,
        limit: int,
    ) -> tuple[list[dict[str, Any]], int]:
        """Return the rows in `[offset, offset + limit - 1]` and the exact filtered count.

        Rows are ordered by `sort_by` and then by `id` ascending.
        """

    @abstractmethod
    async def update(self, note_id: str, owner: str, values: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Apply `values` to the matching row; `None` when nothing matched."""

    @abstractmethod
    async def delete(self, note_id: str, owner: str) -> bool:
        ...

    @abstractmethod
    async def ping(self) -> None:
        ...

    async def aclose(self) -> None:
        return None
