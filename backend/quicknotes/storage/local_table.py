import asyncio
import json
import logging
import os
import uuid
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from starlette.concurrency import run_in_threadpool

from quicknotes.core.errors import RemoteServiceError
from quicknotes.storage.table import NotesTable, SORTABLE_COLUMNS, parse_timestamp, to_timestamp, utc_now

log = logging.getLogger("quicknotes.storage.local")


def _safe_user_dir(base_dir: Path, user_id: str) -> Path:
    # user_id ends up in a path; keep it strict to avoid traversal.
    if (
        not user_id
        or user_id in (".", "..")
        or any(ch in user_id for ch in ("/", "\\", "\x00"))
        or ".." in user_id
    ):
        raise RemoteServiceError("Invalid user_id")
    return base_dir / "users" / user_id / "notes"


def _note_path(base_dir: Path, user_id: str, note_id: str) -> Optional[Path]:
    try:
        nid = uuid.UUID(str(note_id))
    except ValueError:
        return None
    return _safe_user_dir(base_dir, user_id) / f"{nid}.json"


def _atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
        f.flush()
        os.fsync(f.fileno())
    tmp_path.replace(path)


def _read_row(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


def _matches(row: dict[str, Any], needle: str) -> bool:
    return needle in row.get("title", "").lower() or needle in (row.get("content") or "").lower()


class LocalNotesTable(NotesTable):
    """Notes table kept as one JSON file per note under `<base_dir>/users/<owner>/notes/`.

    File IO runs in the threadpool; the event loop only awaits it.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        # update is read-modify-write
        self._write_lock = asyncio.Lock()

    def _insert(self, row: dict[str, Any]) -> dict[str, Any]:
        now = to_timestamp(utc_now())
        data = dict(row)
        data["id"] = str(uuid.uuid4())
        data["created_at"] = now
        data["updated_at"] = now
        path = _note_path(self.base_dir, data["user_id"], data["id"])
        try:
            _atomic_write_json(path, data)
        except OSError as e:
            raise RemoteServiceError(f"write failed: {e}") from e
        return data

    async def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        return await run_in_threadpool(self._insert, row)

    def _select_one(self, note_id: str, owner: str) -> Optional[dict[str, Any]]:
        path = _note_path(self.base_dir, owner, note_id)
        if path is None or not path.exists():
            return None
        try:
            return _read_row(path)
        except (OSError, ValueError) as e:
            raise RemoteServiceError(f"read failed: {e}") from e

    async def select_one(self, note_id: str, owner: str) -> Optional[dict[str, Any]]:
        return await run_in_threadpool(self._select_one, note_id, owner)

    def _load_owner_rows(self, owner: str) -> list[dict[str, Any]]:
        notes_dir = _safe_user_dir(self.base_dir, owner)
        if not notes_dir.exists():
            return []
        out: list[dict[str, Any]] = []
        for p in notes_dir.glob("*.json"):
            try:
                out.append(_read_row(p))
            except (OSError, ValueError):
                log.warning("skipping unreadable note file %s", p)
        return out

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
        rows = await run_in_threadpool(self._load_owner_rows, owner)
        if search:
            needle = search.lower()
            rows = [r for r in rows if _matches(r, needle)]

        # secondary key first; sort() is stable
        rows.sort(key=lambda r: r["id"])
        rows.sort(key=lambda r: parse_timestamp(r[sort_by]), reverse=not ascending)
        return rows[offset : offset + limit], len(rows)

    def _update(self, note_id: str, owner: str, values: dict[str, Any]) -> Optional[dict[str, Any]]:
        path = _note_path(self.base_dir, owner, note_id)
        if path is None or not path.exists():
            return None

        try:
            raw = _read_row(path)
            previous = parse_timestamp(raw["updated_at"])
            for key, value in values.items():
                if key in ("id", "user_id", "created_at"):
                    continue
                raw[key] = value

            stamp = parse_timestamp(raw["updated_at"])
            if stamp <= previous:
                stamp = previous + timedelta(microseconds=1)
            raw["updated_at"] = to_timestamp(stamp)

            _atomic_write_json(path, raw)
        except (OSError, ValueError) as e:
            raise RemoteServiceError(f"update failed: {e}") from e
        return raw

    async def update(self, note_id: str, owner: str, values: dict[str, Any]) -> Optional[dict[str, Any]]:
        async with self._write_lock:
            return await run_in_threadpool(self._update, note_id, owner, values)

    def _delete(self, note_id: str, owner: str) -> bool:
        path = _note_path(self.base_dir, owner, note_id)
        if path is None:
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise RemoteServiceError(f"delete failed: {e}") from e
        return True

    async def delete(self, note_id: str, owner: str) -> bool:
        async with self._write_lock:
            return await run_in_threadpool(self._delete, note_id, owner)

    def _ping(self) -> None:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RemoteServiceError(f"data directory unavailable: {e}") from e
        if not os.access(self.base_dir, os.W_OK):
            raise RemoteServiceError(f"data directory {self.base_dir} is not writable")

    async def ping(self) -> None:
        await run_in_threadpool(self._ping)
