from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse

from notekeeper.api.deps import get_current_user, get_stores
from notekeeper.errors import MissingPayload, storage_guard
from notekeeper.services import attachments
from notekeeper.services.serializers import attachment_out
from notekeeper.storage import Stores
from notekeeper.storage.event_log import Event

router = APIRouter(prefix="/notes", tags=["attachments"])


@router.post("/{note_id}/attachments")
def upload_attachment(
    note_id: UUID,
    file: Optional[UploadFile] = File(default=None),
    user_id: str = Depends(get_current_user),
    stores: Stores = Depends(get_stores),
) -> dict:
    if file is None or not file.filename:
        raise MissingPayload()

    with storage_guard("Error uploading file"):
        blob = stores.blobs.put(file.file, original_filename=file.filename, mimetype=file.content_type)

    att = attachments.add_attachment(stores, note_id, user_id, blob)

    stores.events.emit(Event(
        event_type="ATTACHMENT_ADDED",
        user_id=user_id,
        note_id=str(note_id),
        meta={"attachment_id": str(att.id), "size": att.size},
    ))

    return {"success": True, "message": "File uploaded successfully", "attachment": attachment_out(att)}


@router.get("/{note_id}/attachments/{file_id}")
def download_attachment(
    note_id: UUID,
    file_id: UUID,
    user_id: str = Depends(get_current_user),
    stores: Stores = Depends(get_stores),
) -> FileResponse:
    att, path = attachments.open_attachment(stores, note_id, user_id, file_id)
    return FileResponse(path, media_type=att.mimetype, filename=att.original_filename)


@router.delete("/{note_id}/attachments/{file_id}")
def remove_attachment(
    note_id: UUID,
    file_id: UUID,
    user_id: str = Depends(get_current_user),
    stores: Stores = Depends(get_stores),
) -> dict:
    att = attachments.remove_attachment(stores, note_id, user_id, file_id)

    stores.events.emit(Event(
        event_type="ATTACHMENT_REMOVED",
        user_id=user_id,
        note_id=str(note_id),
        meta={"attachment_id": str(att.id)},
    ))

    return {"success": True, "message": "File removed successfully"}
