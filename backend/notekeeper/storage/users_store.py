from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from notekeeper.storage.notes_store import _atomic_write_json


def _users_dir(base_dir: Path) -> Path:
    return base_dir / "users"


def _safe_user_path(base_dir: Path, user_id: str) -> Path:
    # avoid path traversal through the user id
    if not user_id or any(ch in user_id for ch in ["/", "\\"]) or ".." in user_id:
        raise ValueError("Invalid user_id")
    return _users_dir(base_dir) / f"{user_id}.json"


@dataclass(frozen=True)
class UserRecord:
    id: str
    username: str
    email: str
    hashed_password: str
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "hashed_password": self.hashed_password,
            "created_at": self.created_at,
        }

    def public(self) -> dict[str, Any]:
        return {"id": self.id, "username": self.username, "email": self.email}


def _from_raw(raw: dict[str, Any]) -> UserRecord:
    return UserRecord(
        id=raw["id"],
        username=raw["username"],
        email=raw.get("email", ""),
        hashed_password=raw["hashed_password"],
        created_at=raw["created_at"],
    )


class UsersStore:
    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def get(self, user_id: str) -> Optional[UserRecord]:
        try:
            p = _safe_user_path(self.base_dir, user_id)
        except ValueError:
            return None
        if not p.exists():
            return None
        return _from_raw(json.loads(p.read_text(encoding="utf-8")))

    def find_by_username(self, username: str) -> Optional[UserRecord]:
        """
        Usernames are stored lowercase, so the lookup is case-insensitive.
        Linear scan over users/*.json; fine for a single-node store.
        """
        wanted = username.strip().lower()
        users_dir = _users_dir(self.base_dir)
        if not users_dir.exists():
            return None
        for p in users_dir.glob("*.json"):
            raw = json.loads(p.read_text(encoding="utf-8"))
            if raw.get("username") == wanted:
                return _from_raw(raw)
        return None

    def create(self, username: str, email: str, hashed_password: str) -> UserRecord:
        if self.find_by_username(username) is not None:
            raise FileExistsError("User exists")

        rec = UserRecord(
            id=str(uuid.uuid4()),
            username=username.strip().lower(),
            email=email,
            hashed_password=hashed_password,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        _atomic_write_json(_safe_user_path(self.base_dir, rec.id), rec.to_dict())
        return rec
