from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from notekeeper.errors import OwnerOnlyField, StorageFailure, storage_guard
from notekeeper.models.notes import NoteCreate, NoteUpdate
from notekeeper.services.access import Operation, access_filter, load_note
from notekeeper.services.categories import require_usable
from notekeeper.services.serializers import note_out
from notekeeper.storage import Stores
from notekeeper.storage.notes_store import Note
from notekeeper.utils.colors import DEFAULT_COLOR

logger = logging.getLogger(__name__)


def _resolve_categories(
    stores: Stores,
    user_id: str,
    category_ids: list[uuid.UUID],
    note: Optional[Note] = None,
) -> list[uuid.UUID]:
    # de-duplicate, keep first occurrence order
    seen: list[uuid.UUID] = []
    for cid in category_ids:
        if cid in seen:
            continue
        require_usable(stores, cid, user_id, note)
        seen.append(cid)
    return seen


def create_note(stores: Stores, user_id: str, payload: NoteCreate) -> Note:
    categories = _resolve_categories(stores, user_id, payload.categories)
    with storage_guard("Error creating note"):
        return stores.notes.insert(
            user_id=user_id,
            title=payload.title,
            body=payload.body,
            color=payload.color or DEFAULT_COLOR,
            categories=categories,
        )


def get_note(stores: Stores, note_id: uuid.UUID, user_id: str) -> Note:
    return load_note(stores.notes, note_id, user_id, Operation.READ)


def update_note(stores: Stores, note_id: uuid.UUID, user_id: str, payload: NoteUpdate) -> Note:
    note = load_note(stores.notes, note_id, user_id, Operation.EDIT)

    if payload.color is not None and note.user_id != user_id:
        raise OwnerOnlyField("Only the owner can change the note color", field="color")

    if payload.title is not None:
        note.title = payload.title
    if payload.body is not None:
        note.body = payload.body
    if payload.color is not None:
        note.color = payload.color
    if payload.categories is not None:
        note.categories = _resolve_categories(stores, user_id, payload.categories, note)

    with storage_guard("Error updating note"):
        return stores.notes.save(note)


def delete_note(stores: Stores, note_id: uuid.UUID, user_id: str) -> Note:
    """Delete a note and every blob it references.

    Blobs go first. If one cannot be deleted, the records whose blobs are
    already gone are pruned and saved, and the note itself is kept, so no
    record is ever left pointing at a missing blob.
    """
    note = load_note(stores.notes, note_id, user_id, Operation.DELETE)

    remaining = list(note.attachments)
    for att in note.attachments:
        try:
            stores.blobs.delete(att.path)
        except FileNotFoundError:
            logger.warning("Blob %s of note %s was already missing", att.path, note.id)
        except OSError as exc:
            logger.exception("Could not delete blob %s of note %s", att.path, note.id)
            note.attachments = remaining
            with storage_guard("Error deleting note"):
                stores.notes.save(note)
            raise StorageFailure("Error deleting note") from exc
        remaining.remove(att)

    with storage_guard("Error deleting note"):
        stores.notes.delete(note.id)
    return note


@dataclass(frozen=True)
class Page:
    notes: list[Note]
    current_page: int
    limit: int
    total_notes: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_notes / self.limit) if self.limit else 0

    def pagination(self) -> dict[str, Any]:
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "totalNotes": self.total_notes,
            "limit": self.limit,
            "hasNextPage": self.current_page < self.total_pages,
            "hasPrevPage": self.current_page > 1,
        }


def list_home(stores: Stores, user_id: str, page: int, limit: int) -> Page:
    where = access_filter(Operation.READ, user_id)
    with storage_guard("Error retrieving home data"):
        notes = stores.notes.find(where, skip=(page - 1) * limit, limit=limit)
        total = stores.notes.count(where)
    return Page(notes=notes, current_page=page, limit=limit, total_notes=total)


def home_payload(stores: Stores, user_id: str, page: Page) -> dict[str, Any]:
    return {
        "pagination": page.pagination(),
        "notes": [note_out(stores, n, viewer_id=user_id) for n in page.notes],
    }


def clamp_limit(limit: Optional[int], default: int, maximum: int) -> int:
    if not limit or limit < 1:
        return default
    return min(limit, maximum)
