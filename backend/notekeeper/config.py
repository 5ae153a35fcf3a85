from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

# Base data dir: repository_root/data (we are in backend/notekeeper/)
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[2] / "data"


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    uploads_dir: Path
    jwt_secret: str
    jwt_algorithm: str
    jwt_exp_minutes: int
    allow_user_id_header: bool
    max_upload_bytes: int
    default_page_limit: int
    max_page_limit: int
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read settings from the environment once per process (tests clear the cache)."""
    data_dir = Path(os.getenv("APP_DATA_DIR", str(DEFAULT_DATA_DIR)))
    uploads_dir = Path(os.getenv("UPLOADS_DIR", str(data_dir / "uploads")))
    return Settings(
        data_dir=data_dir,
        uploads_dir=uploads_dir,
        jwt_secret=os.getenv("JWT_SECRET", ""),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        jwt_exp_minutes=_int_env("JWT_EXP_MINUTES", 15),
        allow_user_id_header=_bool_env("ALLOW_USER_ID_HEADER", True),
        max_upload_bytes=_int_env("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
        default_page_limit=_int_env("DEFAULT_PAGE_LIMIT", 10),
        max_page_limit=_int_env("MAX_PAGE_LIMIT", 100),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
