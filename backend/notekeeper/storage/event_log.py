import json
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _events_path(base_dir: Path, user_id: str) -> Path:
    if not user_id or any(ch in user_id for ch in "/\\") or ".." in user_id:
        raise ValueError("Invalid user_id")
    return base_dir / "events" / f"{user_id}.log"


@dataclass(frozen=True)
class Event:
    event_type: str
    user_id: str
    note_id: Optional[str] = None
    meta: Optional[dict[str, Any]] = None

    def to_json_line(self) -> str:
        obj = {
            "event_id": str(uuid.uuid4()),
            "event_type": self.event_type,
            "ts": _utc_now_iso(),
            "user_id": self.user_id,
            "note_id": self.note_id,
            "meta": self.meta or {},
        }
        return json.dumps(obj, ensure_ascii=False)


class EventLog:
    """Append-only audit trail of note mutations, one JSONL file per acting user."""

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def emit(self, event: Event) -> None:
        """Record an event after its mutation has been committed; failures are logged only."""
        try:
            path = _events_path(self.base_dir, event.user_id)
            path.parent.mkdir(parents=True, exist_ok=True)

            # append-only, durable write
            with path.open("a", encoding="utf-8") as f:
                f.write(event.to_json_line() + "\n")
                f.flush()
                os.fsync(f.fileno())
        except (OSError, ValueError):
            logger.exception("Could not record %s event for user %s", event.event_type, event.user_id)

    def read(self, user_id: str) -> list[dict[str, Any]]:
        p = _events_path(self.base_dir, user_id)
        if not p.exists():
            return []
        out = []
        for line in p.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            try:
                out.append(json.loads(line))
            except ValueError:
                continue
        return out
