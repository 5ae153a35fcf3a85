"""Password hashing and bearer-token helpers.

Passwords are hashed with passlib's CryptContext (bcrypt, falling back to
pbkdf2_sha256 when the bcrypt backend cannot initialize). Tokens are
short-lived JWTs whose ``sub`` claim is the user id.
"""
from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from notekeeper.config import get_settings

logger = logging.getLogger(__name__)


def _build_context() -> CryptContext:
    rounds = None
    raw = os.environ.get("BCRYPT_ROUNDS")
    if raw is not None:
        try:
            rounds = int(raw)
        except ValueError:
            rounds = None

    try:
        ctx = CryptContext(schemes=["bcrypt"], deprecated="auto", **({"bcrypt__rounds": rounds} if rounds else {}))
        ctx.hash("backend-check")
        return ctx
    except Exception as exc:
        logger.warning("bcrypt backend unavailable, falling back to pbkdf2_sha256: %s", exc)
        return CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


pwd_context = _build_context()


def hash_password(plain: str) -> str:
    if plain is None:
        raise ValueError("Password must not be None")
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    if plain is None or hashed is None:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False


def _secret() -> str:
    s = get_settings().jwt_secret
    if not s:
        raise RuntimeError("JWT_SECRET is not set")
    return s


def create_access_token(subject: str) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=settings.jwt_exp_minutes)
    payload = {"sub": subject, "iat": int(now.timestamp()), "exp": int(exp.timestamp())}
    return jwt.encode(payload, _secret(), algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    return jwt.decode(token, _secret(), algorithms=[get_settings().jwt_algorithm])
