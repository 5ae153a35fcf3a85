from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from notekeeper.config import Settings, get_settings
from notekeeper.storage import Stores
from notekeeper.utils.security import decode_token

bearer = HTTPBearer(auto_error=False)


def get_stores(settings: Settings = Depends(get_settings)) -> Stores:
    return Stores.from_settings(settings)


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    - Prefer JWT (Authorization: Bearer ...)
    - Fall back to X-User-Id when ALLOW_USER_ID_HEADER is on (tests + trusted proxy)
    """
    if creds is not None and creds.scheme.lower() == "bearer":
        try:
            payload = decode_token(creds.credentials)
        except JWTError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
        sub = payload.get("sub")
        if not sub:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
        return str(sub)

    if x_user_id and settings.allow_user_id_header:
        return x_user_id

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing credentials")
