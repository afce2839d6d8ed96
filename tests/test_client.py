import httpx
import pytest

from daybook.client import FileShareClient, FileShareError

FILE_INFO = {
    "id": "abc123",
    "originalName": "notes.txt",
    "filename": "abc123.txt",
    "size": 5,
    "mimetype": "text/plain",
    "uploadedAt": 1,
    "downloads": 0,
}


def make_client(handler):
    return FileShareClient("http://daybook.test", transport=httpx.MockTransport(handler))


class TestFileShareClient:
    def test_upload_reports_progress(self, tmp_path):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = request.content
            return httpx.Response(200, json={"success": True, "file": FILE_INFO, "downloadUrl": "/d/abc123"})

        source = tmp_path / "notes.txt"
        source.write_bytes(b"hello")
        progress = []
        with make_client(handler) as client:
            result = client.upload(str(source), on_progress=lambda sent, total: progress.append((sent, total)))
        assert result["downloadUrl"] == "/d/abc123"
        assert seen["path"] == "/api/files/upload"
        assert b'filename="notes.txt"' in seen["body"]
        assert b"hello" in seen["body"]
        assert progress[-1] == (5, 5)

    def test_server_error_message_is_surfaced(self, tmp_path):
        def handler(request):
            return httpx.Response(400, json={"error": "The file is too large."})

        source = tmp_path / "big.bin"
        source.write_bytes(b"x")
        with make_client(handler) as client:
            with pytest.raises(FileShareError) as exc:
                client.upload(str(source))
        assert str(exc.value) == "The file is too large."
        assert exc.value.status_code == 400

    def test_non_json_error_uses_status(self):
        def handler(request):
            return httpx.Response(502, text="bad gateway")

        with make_client(handler) as client:
            with pytest.raises(FileShareError) as exc:
                client.list_files()
        assert exc.value.status_code == 502
        assert "502" in str(exc.value)

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with make_client(handler) as client:
            with pytest.raises(FileShareError) as exc:
                client.list_files()
        assert str(exc.value).startswith("Network error")
        assert exc.value.status_code is None

    def test_list_delete_download(self, tmp_path):
        def handler(request):
            if request.method == "GET" and request.url.path == "/api/files":
                return httpx.Response(200, json={"files": [FILE_INFO]})
            if request.method == "DELETE":
                return httpx.Response(200, json={"success": True})
            if request.url.path == "/d/abc123":
                return httpx.Response(200, content=b"hello")
            return httpx.Response(404, json={"error": "File not found"})

        dest = tmp_path / "out.txt"
        with make_client(handler) as client:
            assert client.list_files() == [FILE_INFO]
            client.delete("abc123")
            assert client.download("abc123", str(dest)) == dest
            with pytest.raises(FileShareError) as exc:
                client.download("other", str(tmp_path / "x"))
        assert dest.read_bytes() == b"hello"
        assert str(exc.value) == "File not found"
