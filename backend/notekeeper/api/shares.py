from uuid import UUID

from fastapi import APIRouter, Depends

from notekeeper.api.deps import get_current_user, get_stores
from notekeeper.models.notes import ShareCreate, ShareRevoke
from notekeeper.services import sharing
from notekeeper.storage import Stores
from notekeeper.storage.event_log import Event

router = APIRouter(prefix="/notes", tags=["shares"])


@router.post("/{note_id}/share")
def share_note(
    note_id: UUID,
    payload: ShareCreate,
    user_id: str = Depends(get_current_user),
    stores: Stores = Depends(get_stores),
) -> dict:
    # owner grants (or re-grants) access to another user
    target, grant = sharing.grant_share(stores, note_id, user_id, payload.username, payload.permission)

    stores.events.emit(Event(
        event_type="SHARE_GRANTED",
        user_id=user_id,
        note_id=str(note_id),
        meta={"shared_with": target.id, "permission": grant.permission},
    ))

    return {
        "success": True,
        "message": "Note shared successfully",
        "sharedWith": {"username": target.username, "permission": grant.permission},
    }


@router.post("/{note_id}/revoke")
def revoke_access(
    note_id: UUID,
    payload: ShareRevoke,
    user_id: str = Depends(get_current_user),
    stores: Stores = Depends(get_stores),
) -> dict:
    target = sharing.revoke_share(stores, note_id, user_id, payload.username)

    stores.events.emit(Event(
        event_type="SHARE_REVOKED",
        user_id=user_id,
        note_id=str(note_id),
        meta={"revoked_from": target.id},
    ))

    return {
        "success": True,
        "message": "Access revoked successfully",
        "revokedFrom": {"username": target.username},
    }
