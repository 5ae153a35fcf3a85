import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from notekeeper.storage.notes_store import _atomic_write_json


def _category_path(base_dir: Path, category_id: uuid.UUID) -> Path:
    return base_dir / "categories" / f"{category_id}.json"


@dataclass(frozen=True)
class Category:
    id: uuid.UUID
    name: str
    color: str  # bare hex, no leading '#'
    user_id: str
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "color": self.color,
            "user_id": self.user_id,
            "created_at": self.created_at,
        }


class CategoriesStore:
    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def create(self, user_id: str, name: str, color: str) -> Category:
        cat = Category(
            id=uuid.uuid4(),
            name=name,
            color=color,
            user_id=user_id,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        _atomic_write_json(_category_path(self.base_dir, cat.id), cat.to_dict())
        return cat

    def get(self, category_id: uuid.UUID) -> Optional[Category]:
        p = _category_path(self.base_dir, category_id)
        if not p.exists():
            return None
        raw = json.loads(p.read_text(encoding="utf-8"))
        return Category(
            id=uuid.UUID(raw["id"]),
            name=raw["name"],
            color=raw["color"],
            user_id=raw["user_id"],
            created_at=raw["created_at"],
        )

    def get_many(self, category_ids: Iterable[uuid.UUID]) -> list[Category]:
        """Resolve references in the given order, dropping ones that no longer exist."""
        out: list[Category] = []
        for cid in category_ids:
            cat = self.get(cid)
            if cat is not None:
                out.append(cat)
        return out

    def list_for_user(self, user_id: str) -> list[Category]:
        cats_dir = self.base_dir / "categories"
        if not cats_dir.exists():
            return []
        out = [c for c in (self.get(uuid.UUID(p.stem)) for p in cats_dir.glob("*.json")) if c and c.user_id == user_id]
        out.sort(key=lambda c: c.name.lower())
        return out
