from __future__ import annotations

import json
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


def _account_path(base_dir: Path, username: str) -> Path:
    # avoid path traversal
    if not username or any(ch in username for ch in ["/", "\\"]) or ".." in username:
        raise ValueError("Invalid username")
    return base_dir / "accounts" / f"{username.lower()}.json"


@dataclass(frozen=True)
class UserRecord:
    user_id: str
    username: str
    hashed_password: str
    created_at: str


def _load(path: Path) -> UserRecord:
    raw = json.loads(path.read_text(encoding="utf-8"))
    return UserRecord(
        user_id=raw["user_id"],
        username=raw["username"],
        hashed_password=raw["hashed_password"],
        created_at=raw["created_at"],
    )


class UsersStore:
    """Account records for the sign-up / sign-in flow, one JSON file per username."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def get(self, username: str) -> Optional[UserRecord]:
        p = _account_path(self.base_dir, username)
        if not p.exists():
            return None
        return _load(p)

    def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        accounts = self.base_dir / "accounts"
        if not accounts.exists():
            return None
        for p in accounts.glob("*.json"):
            rec = _load(p)
            if rec.user_id == user_id:
                return rec
        return None

    def create(self, username: str, hashed_password: str) -> UserRecord:
        p = _account_path(self.base_dir, username)
        if p.exists():
            raise FileExistsError("User exists")

        p.parent.mkdir(parents=True, exist_ok=True)
        rec = UserRecord(
            user_id=str(uuid.uuid4()),
            username=username,
            hashed_password=hashed_password,
            created_at=datetime.now(timezone.utc).isoformat(),
        )

        tmp = p.with_suffix(".tmp")
        tmp.write_text(json.dumps(asdict(rec), ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(p)
        return rec
