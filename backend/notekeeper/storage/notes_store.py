import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
        f.flush()
        os.fsync(f.fileno())
    tmp_path.replace(path)


def _notes_dir(base_dir: Path) -> Path:
    return base_dir / "notes"


def _note_path(base_dir: Path, note_id: uuid.UUID) -> Path:
    return _notes_dir(base_dir) / f"{note_id}.json"


@dataclass(frozen=True)
class ShareGrant:
    user: str
    permission: str  # "read" or "edit"

    def to_dict(self) -> dict[str, Any]:
        return {"user": self.user, "permission": self.permission}


@dataclass(frozen=True)
class Attachment:
    id: uuid.UUID
    filename: str
    original_filename: str
    mimetype: str
    size: int
    path: str  # content-store reference

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "filename": self.filename,
            "original_filename": self.original_filename,
            "mimetype": self.mimetype,
            "size": self.size,
            "path": self.path,
        }


@dataclass
class Note:
    id: uuid.UUID
    user_id: str
    title: str
    body: str
    color: str
    created_at: str
    updated_at: str
    categories: list[uuid.UUID] = field(default_factory=list)
    shared_with: list[ShareGrant] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)

    def grant_for(self, user_id: str) -> Optional[ShareGrant]:
        for grant in self.shared_with:
            if grant.user == user_id:
                return grant
        return None

    def attachment(self, attachment_id: uuid.UUID) -> Optional[Attachment]:
        for att in self.attachments:
            if att.id == attachment_id:
                return att
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "title": self.title,
            "body": self.body,
            "color": self.color,
            "categories": [str(c) for c in self.categories],
            "shared_with": [g.to_dict() for g in self.shared_with],
            "attachments": [a.to_dict() for a in self.attachments],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Note":
        return cls(
            id=uuid.UUID(raw["id"]),
            user_id=raw["user_id"],
            title=raw["title"],
            body=raw.get("body", ""),
            color=raw.get("color") or "ffffff",
            created_at=raw["created_at"],
            updated_at=raw["updated_at"],
            categories=[uuid.UUID(c) for c in raw.get("categories", [])],
            shared_with=[ShareGrant(user=g["user"], permission=g["permission"]) for g in raw.get("shared_with", [])],
            attachments=[
                Attachment(
                    id=uuid.UUID(a["id"]),
                    filename=a["filename"],
                    original_filename=a["original_filename"],
                    mimetype=a["mimetype"],
                    size=int(a["size"]),
                    path=a["path"],
                )
                for a in raw.get("attachments", [])
            ],
        )


NoteFilter = Callable[[Note], bool]


class NotesStore:
    """Document store for notes: one JSON document per note.

    Queries take a ``where`` predicate so the caller can fold its access
    rule into the lookup itself.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def _load(self, path: Path) -> Optional[Note]:
        # corrupted documents are treated as absent by every query
        try:
            return Note.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except (ValueError, KeyError, TypeError):
            logger.warning("Skipping corrupted note document %s", path.name)
            return None

    def _all(self) -> list[Note]:
        notes_dir = _notes_dir(self.base_dir)
        if not notes_dir.exists():
            return []
        return [n for n in (self._load(p) for p in notes_dir.glob("*.json")) if n is not None]

    def insert(self, user_id: str, title: str, body: str, color: str, categories: list[uuid.UUID]) -> Note:
        now = _utc_now_iso()
        note = Note(
            id=uuid.uuid4(),
            user_id=user_id,
            title=title,
            body=body,
            color=color,
            created_at=now,
            updated_at=now,
            categories=list(categories),
        )
        _atomic_write_json(_note_path(self.base_dir, note.id), note.to_dict())
        return note

    def find_one(self, note_id: uuid.UUID, where: Optional[NoteFilter] = None) -> Optional[Note]:
        path = _note_path(self.base_dir, note_id)
        if not path.exists():
            return None
        note = self._load(path)
        if note is None or (where is not None and not where(note)):
            return None
        return note

    def find(self, where: NoteFilter, skip: int = 0, limit: Optional[int] = None) -> list[Note]:
        """Matching notes, most recently updated first; ties broken by id so pages are stable."""
        matched = [n for n in self._all() if where(n)]
        matched.sort(key=lambda n: (n.updated_at, str(n.id)), reverse=True)
        if limit is None:
            return matched[skip:]
        return matched[skip : skip + limit]

    def count(self, where: NoteFilter) -> int:
        return sum(1 for n in self._all() if where(n))

    def save(self, note: Note) -> Note:
        note.updated_at = _utc_now_iso()
        _atomic_write_json(_note_path(self.base_dir, note.id), note.to_dict())
        return note

    def delete(self, note_id: uuid.UUID) -> bool:
        path = _note_path(self.base_dir, note_id)
        if not path.exists():
            return False
        path.unlink()
        return True
