from __future__ import annotations

import copy
import json
import logging
from typing import Any, Optional

from .blobstore import BlobStore
from .models import CollectionKind

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class KeyedStore:
    """
    Whole-collection JSON persistence on top of a BlobStore.

    There is no partial update. Callers load a collection, change it in
    memory and save it back in full; a saved value replaces the previous
    one entirely.
    """

    def __init__(self, backend: BlobStore, prefix: str = "ptr") -> None:
        self._backend = backend
        self._prefix = prefix

    @property
    def backend(self) -> BlobStore:
        return self._backend

    def key_for(self, kind: CollectionKind) -> str:
        """Return the storage key of a collection, e.g. 'ptr_entries_v1'."""
        return f"{self._prefix}_{CollectionKind(kind).value}_v1"

    def load(self, kind: CollectionKind, default: Any = None) -> Any:
        """
        Return the saved collection, or a copy of default when the key is
        absent or its content is corrupt.

        Malformed JSON and a JSON value whose type differs from the
        default's (a dict where a list is expected) count as absent.
        """
        key = self.key_for(kind)
        raw: Optional[bytes] = self._backend.get(key)
        if raw is None:
            return copy.deepcopy(default)
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            logger.warning("Discarding corrupt collection %s: %s", key, e)
            return copy.deepcopy(default)
        if default is not None and not isinstance(data, type(default)):
            logger.warning(
                "Discarding collection %s: expected %s, found %s",
                key,
                type(default).__name__,
                type(data).__name__,
            )
            return copy.deepcopy(default)
        return data

    def save(self, kind: CollectionKind, value: Any) -> None:
        """Serialize value and overwrite the collection."""
        payload = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        self._backend.set(self.key_for(kind), payload.encode("utf-8"))

    def delete(self, kind: CollectionKind) -> None:
        self._backend.delete(self.key_for(kind))
