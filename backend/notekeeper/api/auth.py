from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from notekeeper.api.deps import get_stores
from notekeeper.errors import storage_guard
from notekeeper.models.auth import LoginRequest, RegisterRequest, TokenResponse
from notekeeper.storage import Stores
from notekeeper.utils.security import create_access_token, hash_password, verify_password

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(req: RegisterRequest, stores: Stores = Depends(get_stores)):
    if stores.users.find_by_username(req.username) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User exists")

    # never store plaintext
    with storage_guard("Error registering user"):
        rec = stores.users.create(req.username, req.email, hash_password(req.password))
    return {
        "success": True,
        "message": "User registered successfully",
        "user": rec.public(),
    }


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, stores: Stores = Depends(get_stores)):
    rec = stores.users.find_by_username(req.username)
    if rec is None or not verify_password(req.password, rec.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return TokenResponse(access_token=create_access_token(subject=rec.id), user_id=rec.id)
