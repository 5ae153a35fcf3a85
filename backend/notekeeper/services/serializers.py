from __future__ import annotations

from typing import Any, Optional

from notekeeper.services.access import user_permission
from notekeeper.storage import Stores
from notekeeper.storage.categories_store import Category
from notekeeper.storage.notes_store import Attachment, Note
from notekeeper.utils.colors import display_color


def category_out(cat: Category) -> dict[str, Any]:
    return {"id": str(cat.id), "name": cat.name, "color": display_color(cat.color)}


def categories_out(stores: Stores, note: Note) -> list[dict[str, Any]]:
    return [category_out(c) for c in stores.categories.get_many(note.categories)]


def attachment_out(att: Attachment) -> dict[str, Any]:
    return {
        "id": str(att.id),
        "filename": att.original_filename,
        "size": att.size,
        "mimetype": att.mimetype,
    }


def _user_ref(stores: Stores, user_id: str) -> dict[str, Any]:
    rec = stores.users.get(user_id)
    if rec is None:
        return {"id": user_id, "username": None, "email": None}
    return rec.public()


def note_out(stores: Stores, note: Note, viewer_id: Optional[str] = None) -> dict[str, Any]:
    """Full presentation form of a note.

    With ``viewer_id`` the author, share list and the viewer's own standing
    are included as in the home listing.
    """
    out: dict[str, Any] = {
        "id": str(note.id),
        "title": note.title,
        "body": note.body,
        "color": display_color(note.color),
        "categories": categories_out(stores, note),
        "attachments": [attachment_out(a) for a in note.attachments],
        "createdAt": note.created_at,
        "updatedAt": note.updated_at,
    }
    if viewer_id is None:
        return out

    out["author"] = _user_ref(stores, note.user_id)
    out["sharedWith"] = [
        {"user": _user_ref(stores, g.user), "permission": g.permission} for g in note.shared_with
    ]
    out["isOwner"] = note.user_id == viewer_id
    out["userPermission"] = user_permission(note, viewer_id)
    return out
