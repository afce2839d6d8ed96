from pathlib import Path

from fastapi.testclient import TestClient

from daybook.main import create_app
from daybook.workspace import Workspace


def upload(client, name="notes.txt", body=b"hello world", mimetype="text/plain"):
    return client.post("/api/files/upload", files={"file": (name, body, mimetype)})


class TestUpload:
    def test_upload_returns_metadata_and_link(self, client, settings):
        res = upload(client)
        assert res.status_code == 200
        data = res.json()
        assert data["success"] is True
        info = data["file"]
        assert info["originalName"] == "notes.txt"
        assert info["size"] == 11
        assert info["mimetype"].startswith("text/plain")
        assert info["downloads"] == 0
        assert data["downloadUrl"] == f"/d/{info['id']}"
        assert (Path(settings.upload_dir) / info["filename"]).read_bytes() == b"hello world"

    def test_upload_without_file(self, client):
        res = client.post("/api/files/upload")
        assert res.status_code == 400
        assert res.json() == {"error": "No file was uploaded"}

    def test_upload_too_large(self, small_upload_settings, backend, clock, timers):
        workspace = Workspace(small_upload_settings, backend=backend, clock=clock, timer_factory=timers)
        with TestClient(create_app(small_upload_settings, workspace)) as client:
            res = upload(client, body=b"x" * 64)
            assert res.status_code == 400
            assert res.json()["error"] == "The file is too large."
            assert client.get("/api/files").json() == {"files": []}


class TestListAndDelete:
    def test_list_newest_first(self, client):
        first = upload(client, "a.txt").json()["file"]
        second = upload(client, "b.txt").json()["file"]
        files = client.get("/api/files").json()["files"]
        assert [f["id"] for f in files] == [second["id"], first["id"]]

    def test_delete(self, client, settings):
        info = upload(client).json()["file"]
        res = client.delete(f"/api/files/{info['id']}")
        assert res.status_code == 200
        assert res.json() == {"success": True}
        assert not (Path(settings.upload_dir) / info["filename"]).exists()
        res_again = client.delete(f"/api/files/{info['id']}")
        assert res_again.status_code == 404
        assert res_again.json() == {"error": "File not found"}


class TestDownload:
    def test_download_streams_attachment_and_counts(self, client):
        info = upload(client, name="résumé.txt", body=b"cv").json()["file"]
        res = client.get(f"/d/{info['id']}")
        assert res.status_code == 200
        assert res.content == b"cv"
        assert res.headers["content-disposition"] == "attachment; filename*=UTF-8''r%C3%A9sum%C3%A9.txt"
        client.get(f"/d/{info['id']}")
        listed = client.get("/api/files").json()["files"][0]
        assert listed["downloads"] == 2

    def test_unknown_id_gets_html_page(self, client):
        res = client.get("/d/doesnotexist")
        assert res.status_code == 404
        assert res.headers["content-type"].startswith("text/html")

    def test_missing_blob_gets_plain_text(self, client, settings):
        info = upload(client).json()["file"]
        (Path(settings.upload_dir) / info["filename"]).unlink()
        res = client.get(f"/d/{info['id']}")
        assert res.status_code == 404
        assert res.headers["content-type"].startswith("text/plain")
        assert res.text == "The file has been removed."
