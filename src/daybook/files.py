from __future__ import annotations

import logging
import secrets
from pathlib import Path
from threading import RLock
from typing import BinaryIO, Callable, List, Optional, Tuple

from .exceptions import BlobMissing, RecordNotFound, ValidationFailed
from .models import CollectionKind, FileInfo
from .store import KeyedStore
from .utils import now_ms

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


def _file_id() -> str:
    return secrets.token_hex(8)


# PUBLIC_INTERFACE
class FileShare:
    """
    Uploaded file blobs on disk plus their metadata collection.

    Blobs are stored as '<id><ext>' under the upload directory; metadata
    is a whole-collection list in the keyed store, newest first.
    """

    def __init__(
        self,
        store: KeyedStore,
        upload_dir: str,
        *,
        max_bytes: int = 15 * 1024 ** 3,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = _file_id,
    ) -> None:
        self._store = store
        self._upload_dir = Path(upload_dir)
        self._upload_dir.mkdir(parents=True, exist_ok=True)
        self._max_bytes = max_bytes
        self._clock = clock
        self._id_factory = id_factory
        self._lock = RLock()

    @property
    def upload_dir(self) -> Path:
        return self._upload_dir

    def list(self) -> List[FileInfo]:
        return self._store.load(CollectionKind.FILES, [])

    def get(self, file_id: str) -> Optional[FileInfo]:
        return next((f for f in self.list() if f.get("id") == file_id), None)

    def store_upload(self, original_name: str, stream: BinaryIO, mimetype: Optional[str] = None) -> FileInfo:
        """
        Copy stream to disk and record its metadata.

        Raises:
            ValidationFailed if the file exceeds the size limit.
        """
        file_id = self._id_factory()
        name = Path(original_name or "upload").name
        filename = f"{file_id}{Path(name).suffix}"
        target = self._upload_dir / filename
        size = 0
        try:
            with open(target, "wb") as out:
                while True:
                    chunk = stream.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self._max_bytes:
                        raise ValidationFailed("The file is too large.")
                    out.write(chunk)
        except BaseException:
            target.unlink(missing_ok=True)
            raise

        info: FileInfo = {
            "id": file_id,
            "originalName": name,
            "filename": filename,
            "size": size,
            "mimetype": mimetype or "application/octet-stream",
            "uploadedAt": self._clock(),
            "downloads": 0,
        }
        with self._lock:
            files = self.list()
            files.insert(0, info)
            self._store.save(CollectionKind.FILES, files)
        logger.info("Stored upload %s (%s, %d bytes)", file_id, name, size)
        return info

    def delete(self, file_id: str) -> bool:
        """Remove the blob and its metadata. False when the id is unknown."""
        with self._lock:
            files = self.list()
            index = next((i for i, f in enumerate(files) if f.get("id") == file_id), None)
            if index is None:
                return False
            info = files.pop(index)
            try:
                (self._upload_dir / info["filename"]).unlink(missing_ok=True)
            except OSError:
                logger.exception("Failed to delete blob of file %s", file_id)
            self._store.save(CollectionKind.FILES, files)
            return True

    def open_download(self, file_id: str) -> Tuple[FileInfo, Path]:
        """
        Resolve a download and count it.

        Raises:
            RecordNotFound if the id is unknown, BlobMissing if its blob is gone.
        """
        with self._lock:
            files = self.list()
            info = next((f for f in files if f.get("id") == file_id), None)
            if info is None:
                raise RecordNotFound(f"File {file_id} does not exist.")
            path = self._upload_dir / info["filename"]
            if not path.is_file():
                raise BlobMissing(f"The file {file_id} has been removed.")
            info["downloads"] = int(info.get("downloads") or 0) + 1
            self._store.save(CollectionKind.FILES, files)
            return dict(info), path  # type: ignore[return-value]
