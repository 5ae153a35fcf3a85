from uuid import UUID

from fastapi import APIRouter, Depends, Query

from notekeeper.api.deps import get_current_user, get_stores
from notekeeper.config import Settings, get_settings
from notekeeper.models.notes import CategoryLink, NoteCreate, NoteUpdate
from notekeeper.services import categories as category_service
from notekeeper.services import notes as note_service
from notekeeper.services.serializers import categories_out, note_out
from notekeeper.storage import Stores
from notekeeper.storage.event_log import Event

router = APIRouter(prefix="/notes", tags=["notes"])


@router.post("", status_code=201)
def create_note(
    payload: NoteCreate,
    user_id: str = Depends(get_current_user),
    stores: Stores = Depends(get_stores),
) -> dict:
    note = note_service.create_note(stores, user_id, payload)

    stores.events.emit(Event(event_type="NOTE_CREATED", user_id=user_id, note_id=str(note.id)))

    return {"success": True, "message": "Note created successfully", "note": note_out(stores, note)}


@router.get("")
def home(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    user_id: str = Depends(get_current_user),
    stores: Stores = Depends(get_stores),
    settings: Settings = Depends(get_settings),
) -> dict:
    limit = note_service.clamp_limit(limit, settings.default_page_limit, settings.max_page_limit)
    result = note_service.list_home(stores, user_id, page=page, limit=limit)
    return {
        "success": True,
        "message": "Home data retrieved successfully",
        **note_service.home_payload(stores, user_id, result),
    }


@router.get("/{note_id}")
def get_note(note_id: UUID, user_id: str = Depends(get_current_user), stores: Stores = Depends(get_stores)) -> dict:
    note = note_service.get_note(stores, note_id, user_id)
    return {
        "success": True,
        "message": "Note retrieved successfully",
        "note": note_out(stores, note, viewer_id=user_id),
    }


@router.put("/{note_id}")
def update_note(
    note_id: UUID,
    payload: NoteUpdate,
    user_id: str = Depends(get_current_user),
    stores: Stores = Depends(get_stores),
) -> dict:
    note = note_service.update_note(stores, note_id, user_id, payload)

    stores.events.emit(Event(
        event_type="NOTE_UPDATED",
        user_id=user_id,
        note_id=str(note_id),
        meta={"fields": sorted(payload.model_dump(exclude_none=True))},
    ))

    return {"success": True, "message": "Note updated successfully", "note": note_out(stores, note)}


@router.delete("/{note_id}")
def delete_note(note_id: UUID, user_id: str = Depends(get_current_user), stores: Stores = Depends(get_stores)) -> dict:
    note = note_service.delete_note(stores, note_id, user_id)

    stores.events.emit(Event(
        event_type="NOTE_DELETED",
        user_id=user_id,
        note_id=str(note_id),
        meta={"attachments": len(note.attachments)},
    ))

    return {"success": True, "message": "Note deleted successfully"}


@router.post("/{note_id}/categories")
def add_category(
    note_id: UUID,
    payload: CategoryLink,
    user_id: str = Depends(get_current_user),
    stores: Stores = Depends(get_stores),
) -> dict:
    note = category_service.link_category(stores, note_id, user_id, payload.category_id)

    stores.events.emit(Event(
        event_type="CATEGORY_LINKED",
        user_id=user_id,
        note_id=str(note_id),
        meta={"category_id": str(payload.category_id)},
    ))

    return {
        "success": True,
        "message": "Category added to note successfully",
        "note": {"id": str(note.id), "categories": categories_out(stores, note)},
    }


@router.delete("/{note_id}/categories/{category_id}")
def remove_category(
    note_id: UUID,
    category_id: UUID,
    user_id: str = Depends(get_current_user),
    stores: Stores = Depends(get_stores),
) -> dict:
    note = category_service.unlink_category(stores, note_id, user_id, category_id)

    stores.events.emit(Event(
        event_type="CATEGORY_UNLINKED",
        user_id=user_id,
        note_id=str(note_id),
        meta={"category_id": str(category_id)},
    ))

    return {
        "success": True,
        "message": "Category removed from note successfully",
        "note": {"id": str(note.id), "categories": categories_out(stores, note)},
    }
