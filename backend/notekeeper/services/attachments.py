"""Attachment add/remove, keeping blobs and note records in step.

The upload boundary has already written the blob when ``add_attachment``
runs, so every failure path here has to delete it again. Removal deletes
the blob before touching the record: if the blob cannot be deleted the
record stays.
"""
from __future__ import annotations

import logging
import uuid
from pathlib import Path

from notekeeper.errors import AttachmentNotFound, NoteAppError, StorageFailure
from notekeeper.services.access import Operation, load_note
from notekeeper.storage import Stores
from notekeeper.storage.blob_store import StoredBlob
from notekeeper.storage.notes_store import Attachment

logger = logging.getLogger(__name__)


def add_attachment(stores: Stores, note_id: uuid.UUID, user_id: str, blob: StoredBlob) -> Attachment:
    try:
        note = load_note(stores.notes, note_id, user_id, Operation.ATTACH)
        att = Attachment(
            id=uuid.uuid4(),
            filename=blob.filename,
            original_filename=blob.original_filename,
            mimetype=blob.mimetype,
            size=blob.size,
            path=blob.reference,
        )
        note.attachments.append(att)
        stores.notes.save(note)
    except NoteAppError:
        stores.blobs.discard(blob.reference)
        raise
    except (OSError, ValueError) as exc:
        logger.exception("Could not attach %s to note %s", blob.reference, note_id)
        stores.blobs.discard(blob.reference)
        raise StorageFailure("Error uploading file") from exc
    return att


def remove_attachment(stores: Stores, note_id: uuid.UUID, user_id: str, attachment_id: uuid.UUID) -> Attachment:
    note = load_note(stores.notes, note_id, user_id, Operation.ATTACH)

    att = note.attachment(attachment_id)
    if att is None:
        raise AttachmentNotFound()

    try:
        stores.blobs.delete(att.path)
    except OSError as exc:
        logger.exception("Could not delete blob %s of note %s", att.path, note.id)
        raise StorageFailure("Error removing file") from exc

    note.attachments = [a for a in note.attachments if a.id != attachment_id]
    try:
        stores.notes.save(note)
    except OSError as exc:
        logger.exception("Blob %s deleted but note %s could not be saved", att.path, note.id)
        raise StorageFailure("Error removing file") from exc
    return att


def open_attachment(stores: Stores, note_id: uuid.UUID, user_id: str, attachment_id: uuid.UUID) -> tuple[Attachment, Path]:
    note = load_note(stores.notes, note_id, user_id, Operation.READ)
    att = note.attachment(attachment_id)
    if att is None:
        raise AttachmentNotFound()
    try:
        return att, stores.blobs.open(att.path)
    except FileNotFoundError as exc:
        logger.error("Attachment %s of note %s has no blob %s", att.id, note.id, att.path)
        raise StorageFailure("Error reading file") from exc
