from urllib.parse import quote

from fastapi.testclient import TestClient

from daybook.main import create_app
from daybook.models import CollectionKind
from daybook.store import KeyedStore
from daybook.workspace import Workspace


def save_draft(client, title, content):
    client.put("/api/editor", json={"title": title, "content": content})
    res = client.post("/api/editor/save")
    assert res.status_code == 200
    return res.json()


class TestDrafts:
    def test_save_and_list(self, client):
        first = save_draft(client, "First", "one")
        client.post("/api/editor/new", json={})
        second = save_draft(client, "Second", "two")
        drafts = client.get("/api/drafts").json()["drafts"]
        assert [d["id"] for d in drafts] == [second["id"], first["id"]]
        assert drafts[0]["isAutoSaved"] is False

    def test_save_empty_content(self, client):
        client.put("/api/editor", json={"title": "x", "content": " "})
        res = client.post("/api/editor/save")
        assert res.status_code == 400
        assert res.json()["error"] == "Enter some draft content first."

    def test_delete_draft_is_idempotent(self, client):
        draft = save_draft(client, "t", "x")
        assert client.delete(f"/api/drafts/{draft['id']}").status_code == 204
        assert client.delete(f"/api/drafts/{draft['id']}").status_code == 204
        assert client.get("/api/drafts").json()["drafts"] == []
        assert client.get("/api/editor").json()["draftId"] is None

    def test_clear_drafts(self, client):
        assert client.delete("/api/drafts").status_code == 400
        save_draft(client, "t", "x")
        res = client.delete("/api/drafts")
        assert res.json() == {"success": True, "removed": 1}

    def test_replace_drafts(self, client):
        res = client.put("/api/drafts", json={"drafts": [{"id": "d1", "title": "T", "content": "c"}]})
        assert res.status_code == 200
        assert [d["id"] for d in client.get("/api/drafts").json()["drafts"]] == ["d1"]

    def test_export_draft(self, client):
        draft = save_draft(client, "Notes é", "body text")
        res = client.get(f"/api/drafts/{draft['id']}/export")
        assert res.status_code == 200
        assert res.text == "body text"
        assert res.headers["content-type"].startswith("text/plain")
        assert quote("Notes é") in res.headers["content-disposition"]
        assert client.get("/api/drafts/missing/export").status_code == 404


class TestEditor:
    def test_edit_is_debounced(self, client, timers):
        res = client.put("/api/editor", json={"title": "T", "content": "typing"})
        assert res.json()["autosavePending"] is True
        assert client.get("/api/editor").json()["content"] == "typing"
        timers.last.fire()
        assert client.get("/api/editor").json()["autosavePending"] is False

    def test_flush_stages_immediately(self, client, workspace):
        client.put("/api/editor", json={"title": "T", "content": "blurred"})
        client.post("/api/editor/flush")
        assert workspace.editor.autosave.read()["content"] == "blurred"

    def test_load(self, client):
        draft = save_draft(client, "Old", "old")
        client.post("/api/editor/new", json={})
        res = client.post(f"/api/editor/load/{draft['id']}")
        assert res.json()["draftId"] == draft["id"]
        assert res.json()["content"] == "old"
        assert client.post("/api/editor/load/missing").status_code == 404

    def test_new_with_save_current(self, client):
        client.put("/api/editor", json={"title": "keep", "content": "pending text"})
        res = client.post("/api/editor/new", json={"saveCurrent": True})
        assert res.json()["content"] == ""
        assert [d["content"] for d in client.get("/api/drafts").json()["drafts"]] == ["pending text"]

    def test_export_editor(self, client):
        assert client.get("/api/editor/export").status_code == 400
        client.put("/api/editor", json={"title": "", "content": "abc"})
        res = client.get("/api/editor/export")
        assert res.status_code == 200
        assert res.text == "abc"

    def test_recovery_reported(self, client):
        assert client.get("/api/editor/recovery").json() == {"outcome": "nothing", "draft": None}


class TestLifecycle:
    def test_startup_recovers_and_shutdown_flushes(self, settings, backend, clock, timers):
        KeyedStore(backend).save(
            CollectionKind.AUTOSAVE,
            {"title": "", "content": "from last run", "targetId": None, "savedAt": 7, "isExistingDraft": False},
        )
        workspace = Workspace(settings, backend=backend, clock=clock, timer_factory=timers)
        with TestClient(create_app(settings, workspace)) as client:
            recovery = client.get("/api/editor/recovery").json()
            assert recovery["outcome"] == "created"
            assert recovery["draft"]["isAutoSaved"] is True
            assert recovery["draft"]["content"] == "from last run"
            client.put("/api/editor", json={"title": "", "content": "left open"})

        stage = KeyedStore(backend).load(CollectionKind.AUTOSAVE, {})
        assert stage["content"] == "left open"
        assert stage["title"] == "Autosaved"
