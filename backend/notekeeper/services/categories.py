from __future__ import annotations

import uuid
from typing import Optional

from notekeeper.errors import CategoryNotFound, DuplicateCategory, storage_guard
from notekeeper.services.access import Operation, load_note
from notekeeper.storage import Stores
from notekeeper.storage.categories_store import Category
from notekeeper.storage.notes_store import Note


def create_category(stores: Stores, user_id: str, name: str, color: str) -> Category:
    with storage_guard("Error creating category"):
        return stores.categories.create(user_id=user_id, name=name, color=color)


def require_usable(
    stores: Stores,
    category_id: uuid.UUID,
    user_id: str,
    note: Optional[Note] = None,
) -> Category:
    """A user may tag with their own categories, the note owner's, or ones already on the note.

    Anyone else's category is reported as not found.
    """
    cat = stores.categories.get(category_id)
    if cat is None:
        raise CategoryNotFound()
    if cat.user_id == user_id:
        return cat
    if note is not None and (cat.user_id == note.user_id or category_id in note.categories):
        return cat
    raise CategoryNotFound()


def link_category(stores: Stores, note_id: uuid.UUID, user_id: str, category_id: uuid.UUID) -> Note:
    note = load_note(stores.notes, note_id, user_id, Operation.EDIT)

    if category_id in note.categories:
        raise DuplicateCategory()
    require_usable(stores, category_id, user_id, note)

    note.categories.append(category_id)
    with storage_guard("Error adding category to note"):
        return stores.notes.save(note)


def unlink_category(stores: Stores, note_id: uuid.UUID, user_id: str, category_id: uuid.UUID) -> Note:
    note = load_note(stores.notes, note_id, user_id, Operation.EDIT)

    if category_id not in note.categories:
        return note

    note.categories = [c for c in note.categories if c != category_id]
    with storage_guard("Error removing category from note"):
        return stores.notes.save(note)
