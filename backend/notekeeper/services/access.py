"""Standing checks for notes.

A note lookup always carries the requester's access rule as part of its
filter, so "does not exist" and "not allowed" come back as the same
``NotFoundOrForbidden`` error.
"""
from __future__ import annotations

import uuid
from enum import Enum
from typing import Optional

from notekeeper.errors import NotFoundOrForbidden, storage_guard
from notekeeper.storage.notes_store import Note, NoteFilter, NotesStore

PERMISSION_READ = "read"
PERMISSION_EDIT = "edit"
OWNER = "owner"


class Operation(str, Enum):
    READ = "read"
    EDIT = "edit"
    DELETE = "delete"
    SHARE = "share"
    ATTACH = "attach"


class Standing(str, Enum):
    OWNER = "owner"
    EDIT = "edit"
    READ = "read"
    NONE = "none"


def owned_by(user_id: str) -> NoteFilter:
    return lambda note: note.user_id == user_id


def shared_with(user_id: str, permission: Optional[str] = None) -> NoteFilter:
    def match(note: Note) -> bool:
        grant = note.grant_for(user_id)
        return grant is not None and (permission is None or grant.permission == permission)

    return match


def any_of(*filters: NoteFilter) -> NoteFilter:
    return lambda note: any(f(note) for f in filters)


def access_filter(op: Operation, user_id: str) -> NoteFilter:
    if op is Operation.READ:
        return any_of(owned_by(user_id), shared_with(user_id))
    if op is Operation.EDIT:
        return any_of(owned_by(user_id), shared_with(user_id, PERMISSION_EDIT))
    # delete, share and attachment management are owner-only
    return owned_by(user_id)


def load_note(notes: NotesStore, note_id: uuid.UUID, user_id: str, op: Operation) -> Note:
    with storage_guard("Error loading note"):
        note = notes.find_one(note_id, where=access_filter(op, user_id))
    if note is None:
        raise NotFoundOrForbidden()
    return note


def standing_of(note: Note, user_id: str) -> Standing:
    if note.user_id == user_id:
        return Standing.OWNER
    grant = note.grant_for(user_id)
    if grant is None:
        return Standing.NONE
    return Standing.EDIT if grant.permission == PERMISSION_EDIT else Standing.READ


def user_permission(note: Note, user_id: str) -> Optional[str]:
    """Return 'owner', the grant's permission, or None. Computed per request, never stored."""
    if note.user_id == user_id:
        return OWNER
    grant = note.grant_for(user_id)
    return grant.permission if grant else None
