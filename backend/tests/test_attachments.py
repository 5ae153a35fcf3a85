import json
from urllib.parse import quote
import uuid

from notekeeper.api.deps import get_stores
from notekeeper.config import get_settings
from notekeeper.storage import Stores
from notekeeper.storage.blob_store import BlobStore
from notekeeper.storage.notes_store import NotesStore

from conftest import as_user, create_note


class UndeletableBlobStore(BlobStore):
    def delete(self, reference: str) -> None:
        raise PermissionError(f"cannot delete {reference}")


class ReadOnlyNotesStore(NotesStore):
    def save(self, note):
        raise OSError("disk full")


def _upload(client, user_id, note_id, name="a.txt", content=b"hello", mimetype="text/plain"):
    return client.post(
        f"/notes/{note_id}/attachments",
        headers=as_user(user_id),
        files={"file": (name, content, mimetype)},
    )


def _blobs(data_dir):
    uploads = data_dir / "uploads"
    return sorted(p.name for p in uploads.iterdir()) if uploads.exists() else []


def _stored_attachments(data_dir, note_id):
    raw = json.loads((data_dir / "notes" / f"{note_id}.json").read_text(encoding="utf-8"))
    return raw["attachments"]


def test_upload_and_download(client, make_user, data_dir):
    owner = make_user("owner")
    note = create_note(client, owner)

    r = _upload(client, owner, note["id"], name="report.txt", content=b"hello world")
    assert r.status_code == 200
    att = r.json()["attachment"]
    assert att["filename"] == "report.txt"
    assert att["size"] == 11
    assert att["mimetype"] == "text/plain"

    stored = _stored_attachments(data_dir, note["id"])
    assert len(stored) == 1
    assert _blobs(data_dir) == [stored[0]["path"]]

    r = client.get(f"/notes/{note['id']}/attachments/{att['id']}", headers=as_user(owner))
    assert r.status_code == 200
    assert r.content == b"hello world"
    assert "report.txt" in r.headers["content-disposition"]


def test_read_grantee_can_download(client, make_user):
    owner = make_user("owner")
    alice = make_user("alice")
    note = create_note(client, owner)
    att = _upload(client, owner, note["id"]).json()["attachment"]
    client.post(f"/notes/{note['id']}/share", headers=as_user(owner), json={"username": "alice", "permission": "read"})

    r = client.get(f"/notes/{note['id']}/attachments/{att['id']}", headers=as_user(alice))
    assert r.status_code == 200
    assert r.content == b"hello"


def test_upload_without_file(client, make_user):
    owner = make_user("owner")
    note = create_note(client, owner)
    r = client.post(f"/notes/{note['id']}/attachments", headers=as_user(owner), data={"other": "x"})
    assert r.status_code == 400
    assert r.json()["errors"] == {"file": "No file uploaded"}


def test_rejected_upload_leaves_no_blob(client, make_user, data_dir):
    owner = make_user("owner")
    stranger = make_user("mallory")
    note = create_note(client, owner)

    r = _upload(client, stranger, note["id"])
    assert r.status_code == 404
    assert _blobs(data_dir) == []

    r = _upload(client, owner, str(uuid.uuid4()))
    assert r.status_code == 404
    assert _blobs(data_dir) == []


def test_failed_save_cleans_up_blob(client, make_user, data_dir):
    owner = make_user("owner")
    note = create_note(client, owner)

    def broken_stores():
        stores = Stores.from_settings(get_settings())
        stores.notes = ReadOnlyNotesStore(get_settings().data_dir)
        return stores

    client.app.dependency_overrides[get_stores] = broken_stores
    r = _upload(client, owner, note["id"])
    client.app.dependency_overrides.clear()

    assert r.status_code == 500
    assert r.json()["errors"] == {"server": "Error uploading file"}
    assert _blobs(data_dir) == []
    assert _stored_attachments(data_dir, note["id"]) == []


def test_oversized_upload_rejected(client, make_user, data_dir, monkeypatch):
    owner = make_user("owner")
    note = create_note(client, owner)
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "4")
    get_settings.cache_clear()

    r = _upload(client, owner, note["id"], content=b"too many bytes")
    assert r.status_code == 413
    assert _blobs(data_dir) == []
    assert _stored_attachments(data_dir, note["id"]) == []


def test_remove_attachment_deletes_blob(client, make_user, data_dir):
    owner = make_user("owner")
    note = create_note(client, owner)
    att = _upload(client, owner, note["id"]).json()["attachment"]

    r = client.delete(f"/notes/{note['id']}/attachments/{att['id']}", headers=as_user(owner))
    assert r.status_code == 200
    assert r.json()["message"] == "File removed successfully"
    assert _blobs(data_dir) == []
    assert _stored_attachments(data_dir, note["id"]) == []


def test_remove_unknown_attachment(client, make_user):
    owner = make_user("owner")
    note = create_note(client, owner)
    r = client.delete(f"/notes/{note['id']}/attachments/{uuid.uuid4()}", headers=as_user(owner))
    assert r.status_code == 404
    assert r.json()["errors"] == {"file": "File not found"}


def test_failed_blob_delete_keeps_record(client, make_user, data_dir):
    owner = make_user("owner")
    note = create_note(client, owner)
    att = _upload(client, owner, note["id"]).json()["attachment"]

    def broken_stores():
        stores = Stores.from_settings(get_settings())
        stores.blobs = UndeletableBlobStore(get_settings().uploads_dir)
        return stores

    client.app.dependency_overrides[get_stores] = broken_stores
    r = client.delete(f"/notes/{note['id']}/attachments/{att['id']}", headers=as_user(owner))
    client.app.dependency_overrides.clear()

    assert r.status_code == 500
    assert r.json()["errors"] == {"server": "Error removing file"}
    stored = _stored_attachments(data_dir, note["id"])
    assert [a["id"] for a in stored] == [att["id"]]
    assert _blobs(data_dir) == [stored[0]["path"]]


def test_blob_already_missing_keeps_record(client, make_user, data_dir):
    owner = make_user("owner")
    note = create_note(client, owner)
    att = _upload(client, owner, note["id"]).json()["attachment"]
    for name in _blobs(data_dir):
        (data_dir / "uploads" / name).unlink()

    r = client.delete(f"/notes/{note['id']}/attachments/{att['id']}", headers=as_user(owner))
    assert r.status_code == 500
    assert len(_stored_attachments(data_dir, note["id"])) == 1


def test_delete_note_removes_all_blobs(client, make_user, data_dir):
    owner = make_user("owner")
    note = create_note(client, owner)
    _upload(client, owner, note["id"], name="one.txt")
    _upload(client, owner, note["id"], name="two.txt")
    assert len(_blobs(data_dir)) == 2

    r = client.delete(f"/notes/{note['id']}", headers=as_user(owner))
    assert r.status_code == 200
    assert _blobs(data_dir) == []


def test_delete_note_keeps_note_when_blob_delete_fails(client, make_user, data_dir):
    owner = make_user("owner")
    note = create_note(client, owner)
    _upload(client, owner, note["id"])

    def broken_stores():
        stores = Stores.from_settings(get_settings())
        stores.blobs = UndeletableBlobStore(get_settings().uploads_dir)
        return stores

    client.app.dependency_overrides[get_stores] = broken_stores
    r = client.delete(f"/notes/{note['id']}", headers=as_user(owner))
    client.app.dependency_overrides.clear()

    assert r.status_code == 500
    assert len(_stored_attachments(data_dir, note["id"])) == 1
    assert len(_blobs(data_dir)) == 1


def test_non_ascii_filename_is_kept_verbatim(client, make_user, data_dir):
    owner = make_user("owner")
    note = create_note(client, owner)
    name = "résumé 文件.pdf"

    r = _upload(client, owner, note["id"], name=name, content=b"%PDF", mimetype="application/pdf")
    assert r.status_code == 200
    att = r.json()["attachment"]
    assert att["filename"] == name
    assert _stored_attachments(data_dir, note["id"])[0]["original_filename"] == name
    assert _blobs(data_dir)[0].endswith(".pdf")

    r = client.get(f"/notes/{note['id']}/attachments/{att['id']}", headers=as_user(owner))
    assert r.status_code == 200
    assert quote(name) in r.headers["content-disposition"]
