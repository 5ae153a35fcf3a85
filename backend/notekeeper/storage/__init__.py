from dataclasses import dataclass

from notekeeper.config import Settings
from notekeeper.storage.blob_store import BlobStore
from notekeeper.storage.categories_store import CategoriesStore
from notekeeper.storage.event_log import EventLog
from notekeeper.storage.notes_store import NotesStore
from notekeeper.storage.users_store import UsersStore


@dataclass
class Stores:
    notes: NotesStore
    users: UsersStore
    categories: CategoriesStore
    blobs: BlobStore
    events: EventLog

    @classmethod
    def from_settings(cls, settings: Settings) -> "Stores":
        return cls(
            notes=NotesStore(settings.data_dir),
            users=UsersStore(settings.data_dir),
            categories=CategoriesStore(settings.data_dir),
            blobs=BlobStore(settings.uploads_dir, max_bytes=settings.max_upload_bytes),
            events=EventLog(settings.data_dir),
        )
