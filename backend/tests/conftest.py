import os

import pytest
from fastapi.testclient import TestClient

# cheap hashing for the test run; read once when the security module is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "dev-secret-for-tests")

from notekeeper.config import get_settings  # noqa: E402
from notekeeper.main import create_app  # noqa: E402


@pytest.fixture()
def data_dir(tmp_path, monkeypatch):
    # isolate data dir per test
    monkeypatch.setenv("APP_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("UPLOADS_DIR", raising=False)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


@pytest.fixture()
def client(data_dir):
    return TestClient(create_app())


@pytest.fixture()
def make_user(client):
    """Register a user and return its id (usable as X-User-Id)."""

    def _make(username: str, password: str = "StrongPassw0rd!") -> str:
        r = client.post(
            "/auth/register",
            json={"username": username, "email": f"{username.lower()}@example.com", "password": password},
        )
        assert r.status_code == 201, r.text
        return r.json()["user"]["id"]

    return _make


def as_user(user_id: str) -> dict:
    return {"X-User-Id": user_id}


def create_note(client, user_id: str, **fields) -> dict:
    payload = {"title": "t", "body": "b"}
    payload.update(fields)
    r = client.post("/notes", headers=as_user(user_id), json=payload)
    assert r.status_code == 201, r.text
    return r.json()["note"]


def share(client, owner_id: str, note_id: str, username: str, permission: str):
    return client.post(
        f"/notes/{note_id}/share",
        headers=as_user(owner_id),
        json={"username": username, "permission": permission},
    )
