import json
import uuid

from fastapi.testclient import TestClient

from notekeeper.api.deps import get_stores
from notekeeper.config import get_settings
from notekeeper.storage import Stores
from notekeeper.storage.notes_store import NotesStore

from conftest import as_user, create_note, share


class UnreadableNotesStore(NotesStore):
    def find_one(self, note_id, where=None):
        raise OSError("I/O error")


class CrashingNotesStore(NotesStore):
    def count(self, where):
        raise RuntimeError("unexpected")


def _with_notes_store(store_cls):
    def stores():
        s = Stores.from_settings(get_settings())
        s.notes = store_cls(get_settings().data_dir)
        return s

    return stores


def test_create_note_strips_color_marker(client, make_user, data_dir):
    owner = make_user("owner")
    note = create_note(client, owner, title="hello", body="world", color="#ab12ef")
    assert note["color"] == "#ab12ef"

    # stored without the marker
    raw = json.loads((data_dir / "notes" / f"{note['id']}.json").read_text(encoding="utf-8"))
    assert raw["color"] == "ab12ef"
    assert raw["user_id"] == owner
    assert raw["shared_with"] == []


def test_create_note_defaults(client, make_user):
    owner = make_user("owner")
    r = client.post("/notes", headers=as_user(owner), json={"title": "only title"})
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Note created successfully"
    assert body["note"]["body"] == ""
    assert body["note"]["color"] == "#ffffff"
    assert body["note"]["categories"] == []


def test_create_note_rejects_bad_color(client, make_user):
    owner = make_user("owner")
    r = client.post("/notes", headers=as_user(owner), json={"title": "t", "color": "#zzzzzz"})
    assert r.status_code == 422
    assert r.json()["success"] is False
    assert "color" in r.json()["errors"]


def test_create_note_requires_title(client, make_user):
    owner = make_user("owner")
    r = client.post("/notes", headers=as_user(owner), json={"body": "no title"})
    assert r.status_code == 422
    assert "title" in r.json()["errors"]


def test_create_note_with_unknown_category(client, make_user):
    owner = make_user("owner")
    r = client.post(
        "/notes",
        headers=as_user(owner),
        json={"title": "t", "categories": ["00000000-0000-0000-0000-000000000000"]},
    )
    assert r.status_code == 404
    assert r.json()["errors"] == {"category": "Category not found"}


def test_get_note_returns_viewer_fields(client, make_user):
    owner = make_user("owner")
    note = create_note(client, owner)

    r = client.get(f"/notes/{note['id']}", headers=as_user(owner))
    assert r.status_code == 200
    got = r.json()["note"]
    assert got["isOwner"] is True
    assert got["userPermission"] == "owner"
    assert got["author"]["username"] == "owner"


def test_update_note_by_owner(client, make_user):
    owner = make_user("owner")
    note = create_note(client, owner, color="112233")

    r = client.put(f"/notes/{note['id']}", headers=as_user(owner), json={"title": "t2", "color": "#AABBCC"})
    assert r.status_code == 200
    updated = r.json()["note"]
    assert updated["title"] == "t2"
    assert updated["body"] == "b"  # untouched
    assert updated["color"] == "#aabbcc"
    assert updated["updatedAt"] >= note["updatedAt"]


def test_editor_cannot_change_color(client, make_user):
    owner = make_user("owner")
    bob = make_user("bob")
    note = create_note(client, owner, color="112233")
    assert share(client, owner, note["id"], "bob", "edit").status_code == 200

    r = client.put(f"/notes/{note['id']}", headers=as_user(bob), json={"color": "#000000"})
    assert r.status_code == 403
    assert "color" in r.json()["errors"]

    r = client.get(f"/notes/{note['id']}", headers=as_user(owner))
    assert r.json()["note"]["color"] == "#112233"


def test_delete_note(client, make_user, data_dir):
    owner = make_user("owner")
    note = create_note(client, owner)

    r = client.delete(f"/notes/{note['id']}", headers=as_user(owner))
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Note deleted successfully"}
    assert not (data_dir / "notes" / f"{note['id']}.json").exists()

    r = client.get(f"/notes/{note['id']}", headers=as_user(owner))
    assert r.status_code == 404


def test_invalid_note_id_is_rejected(client, make_user):
    owner = make_user("owner")
    # malformed identifier is rejected before business logic
    r = client.get("/notes/not-a-uuid", headers=as_user(owner))
    assert r.status_code == 422


def test_unreadable_note_returns_error_envelope(client, make_user):
    owner = make_user("owner")
    note = create_note(client, owner)

    client.app.dependency_overrides[get_stores] = _with_notes_store(UnreadableNotesStore)
    r = client.get(f"/notes/{note['id']}", headers=as_user(owner))
    client.app.dependency_overrides.clear()

    assert r.status_code == 500
    assert r.json() == {
        "success": False,
        "message": "Error loading note",
        "errors": {"server": "Error loading note"},
    }


def test_corrupted_note_document_is_treated_as_absent(client, make_user, data_dir):
    owner = make_user("owner")
    kept = create_note(client, owner, title="kept")
    broken_id = str(uuid.uuid4())
    (data_dir / "notes" / f"{broken_id}.json").write_text("{not json", encoding="utf-8")

    r = client.get(f"/notes/{broken_id}", headers=as_user(owner))
    assert r.status_code == 404
    assert r.json()["success"] is False

    r = client.get("/notes", headers=as_user(owner))
    assert r.status_code == 200
    assert [n["id"] for n in r.json()["notes"]] == [kept["id"]]


def test_unexpected_error_returns_error_envelope(client, make_user):
    owner = make_user("owner")
    client.app.dependency_overrides[get_stores] = _with_notes_store(CrashingNotesStore)
    r = TestClient(client.app, raise_server_exceptions=False).get("/notes", headers=as_user(owner))
    client.app.dependency_overrides.clear()

    assert r.status_code == 500
    assert r.json() == {
        "success": False,
        "message": "Internal server error",
        "errors": {"server": "Internal server error"},
    }
