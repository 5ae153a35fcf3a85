from __future__ import annotations

import uuid

from notekeeper.errors import GrantNotFound, SelfShareRejected, UserNotFound, storage_guard
from notekeeper.services.access import Operation, load_note
from notekeeper.storage import Stores
from notekeeper.storage.notes_store import ShareGrant
from notekeeper.storage.users_store import UserRecord


def grant_share(
    stores: Stores,
    note_id: uuid.UUID,
    owner_id: str,
    username: str,
    permission: str,
) -> tuple[UserRecord, ShareGrant]:
    target = stores.users.find_by_username(username)
    if target is None:
        raise UserNotFound()
    if target.id == owner_id:
        raise SelfShareRejected()

    note = load_note(stores.notes, note_id, owner_id, Operation.SHARE)

    grant = ShareGrant(user=target.id, permission=permission)
    for i, existing in enumerate(note.shared_with):
        if existing.user == target.id:
            # one grant per user: overwrite the permission in place
            note.shared_with[i] = grant
            break
    else:
        note.shared_with.append(grant)

    with storage_guard("Error sharing note"):
        stores.notes.save(note)
    return target, grant


def revoke_share(stores: Stores, note_id: uuid.UUID, owner_id: str, username: str) -> UserRecord:
    target = stores.users.find_by_username(username)
    if target is None:
        raise UserNotFound()

    note = load_note(stores.notes, note_id, owner_id, Operation.SHARE)

    if note.grant_for(target.id) is None:
        raise GrantNotFound()
    note.shared_with = [g for g in note.shared_with if g.user != target.id]

    with storage_guard("Error revoking access"):
        stores.notes.save(note)
    return target
