import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from werkzeug.utils import secure_filename

from notekeeper.errors import PayloadTooLarge

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class StoredBlob:
    reference: str
    filename: str
    original_filename: str
    mimetype: str
    size: int


class BlobStore:
    """Flat directory of uploaded files, addressed by bare file name."""

    def __init__(self, base_dir: Path, max_bytes: Optional[int] = None):
        self.base_dir = base_dir
        self.max_bytes = max_bytes

    def _path(self, reference: str) -> Path:
        if not reference or "/" in reference or "\\" in reference or reference.startswith("."):
            raise FileNotFoundError(f"Invalid blob reference: {reference!r}")
        return self.base_dir / reference

    def put(self, stream: BinaryIO, original_filename: str, mimetype: str) -> StoredBlob:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        # the stored name is ours; only a sanitized extension is taken from the upload
        suffix = Path(secure_filename(original_filename)).suffix.lower()
        filename = f"{uuid.uuid4().hex}{suffix}"
        target = self.base_dir / filename

        size = 0
        try:
            with target.open("wb") as f:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if self.max_bytes is not None and size > self.max_bytes:
                        raise PayloadTooLarge()
                    f.write(chunk)
        except Exception:
            target.unlink(missing_ok=True)
            raise

        return StoredBlob(
            reference=filename,
            filename=filename,
            original_filename=original_filename,
            mimetype=mimetype or "application/octet-stream",
            size=size,
        )

    def exists(self, reference: str) -> bool:
        try:
            return self._path(reference).is_file()
        except FileNotFoundError:
            return False

    def open(self, reference: str) -> Path:
        """Path of an existing blob, for streaming back to the client."""
        p = self._path(reference)
        if not p.is_file():
            raise FileNotFoundError(reference)
        return p

    def delete(self, reference: str) -> None:
        # Raises FileNotFoundError when the blob is already gone.
        self._path(reference).unlink()
        logger.debug("Deleted blob %s", reference)

    def discard(self, reference: str) -> None:
        """Best-effort delete used for compensation; failures are logged only."""
        try:
            self.delete(reference)
        except OSError as exc:
            logger.warning("Could not clean up blob %s: %s", reference, exc)
