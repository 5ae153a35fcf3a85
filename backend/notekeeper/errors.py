"""Domain errors raised by the note services.

Every error carries the request field it is about, so the API layer can
render ``{"success": false, "errors": {field: message}}`` without knowing
which service raised it.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator


class NoteAppError(Exception):
    status_code = 400
    field = "request"
    message = "Bad request"

    def __init__(self, message: str | None = None, field: str | None = None):
        if message is not None:
            self.message = message
        if field is not None:
            self.field = field
        super().__init__(self.message)

    def to_errors(self) -> dict[str, str]:
        return {self.field: self.message}


class NotFoundOrForbidden(NoteAppError):
    # One variant for both cases: callers must not learn whether the note exists.
    status_code = 404
    field = "note"
    message = "Note not found or access denied"


class UserNotFound(NoteAppError):
    status_code = 404
    field = "username"
    message = "User not found"


class SelfShareRejected(NoteAppError):
    status_code = 400
    field = "username"
    message = "Cannot share note with yourself"


class GrantNotFound(NoteAppError):
    status_code = 400
    field = "username"
    message = "This user doesn't have access to the note"


class DuplicateCategory(NoteAppError):
    status_code = 400
    field = "category"
    message = "Category already added to this note"


class CategoryNotFound(NoteAppError):
    status_code = 404
    field = "category"
    message = "Category not found"


class AttachmentNotFound(NoteAppError):
    status_code = 404
    field = "file"
    message = "File not found"


class MissingPayload(NoteAppError):
    status_code = 400
    field = "file"
    message = "No file uploaded"


class PayloadTooLarge(NoteAppError):
    status_code = 413
    field = "file"
    message = "File is too large"


class OwnerOnlyField(NoteAppError):
    status_code = 403
    field = "note"
    message = "Only the owner can change this field"


class StorageFailure(NoteAppError):
    status_code = 500
    field = "server"
    message = "Storage operation failed"


@contextmanager
def storage_guard(message: str) -> Iterator[None]:
    """Re-raise I/O and decode errors from the stores as StorageFailure(message)."""
    try:
        yield
    except (OSError, ValueError, KeyError) as exc:
        raise StorageFailure(message) from exc
