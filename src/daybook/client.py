"""
File sharing client.

Talks to the upload/list/delete/download endpoints of a daybook server.
Failures are raised as FileShareError with a message fit for the user;
nothing is retried.
"""

import logging
import os
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, List, Optional

import httpx

from .exceptions import DaybookError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class FileShareError(DaybookError):
    """An upload, listing, deletion or download did not happen."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class _ProgressReader:
    """File wrapper that reports how many bytes have been read so far."""

    def __init__(self, fileobj: BinaryIO, total: int, callback: ProgressCallback):
        self._fileobj = fileobj
        self._total = total
        self._callback = callback
        self._sent = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._fileobj.read(size)
        if chunk:
            self._sent += len(chunk)
            self._callback(self._sent, self._total)
        return chunk

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        position = self._fileobj.seek(offset, whence)
        self._sent = position
        return position

    def tell(self) -> int:
        return self._fileobj.tell()

    def fileno(self) -> int:
        return self._fileobj.fileno()


class FileShareClient:
    """
    Synchronous client for the file sharing endpoints.

    Example:
        with FileShareClient("http://localhost:3000") as client:
            result = client.upload("report.pdf")
            print(result["downloadUrl"])
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def __enter__(self) -> "FileShareClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self._client.close()

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise FileShareError(f"Request timed out: {e}")
        except httpx.TransportError as e:
            raise FileShareError(f"Network error, check the connection: {e}")
        if response.status_code >= 400:
            message = f"Request failed: {response.status_code}"
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("error"):
                message = str(body["error"])
            logger.warning("%s %s failed: %s", method, path, message)
            raise FileShareError(message, status_code=response.status_code)
        return response

    def _json(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        response = self._send(method, path, **kwargs)
        try:
            return response.json()
        except ValueError:
            raise FileShareError("Could not parse the server response", status_code=response.status_code)

    def upload(
        self,
        path: str,
        on_progress: Optional[ProgressCallback] = None,
        mimetype: str = "application/octet-stream",
    ) -> Dict[str, Any]:
        """
        Upload a file and return the server's {success, file, downloadUrl}.

        Args:
            path: Local file to send
            on_progress: Called with (bytes_sent, total_bytes) as the body streams
            mimetype: Content type declared for the file part
        """
        file_path = Path(path)
        total = file_path.stat().st_size
        with open(file_path, "rb") as fh:
            body: Any = _ProgressReader(fh, total, on_progress) if on_progress else fh
            data = self._json("POST", "/api/files/upload", files={"file": (file_path.name, body, mimetype)})
        if not data.get("success"):
            raise FileShareError(data.get("error") or "Upload failed")
        return data

    def list_files(self) -> List[Dict[str, Any]]:
        return self._json("GET", "/api/files").get("files", [])

    def delete(self, file_id: str) -> None:
        data = self._json("DELETE", f"/api/files/{file_id}")
        if not data.get("success"):
            raise FileShareError(data.get("error") or "Delete failed")

    def download(self, file_id: str, dest: str) -> Path:
        """Save a stored file to dest and return the written path."""
        response = self._send("GET", f"/d/{file_id}")
        target = Path(dest)
        target.write_bytes(response.content)
        return target
