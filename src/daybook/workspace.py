from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .autosave import AutosaveBuffer, TimerFactory
from .blobstore import BlobStore, get_blob_store
from .drafts import DraftBook, DraftEditor
from .files import FileShare
from .reconcile import RecoveryReconciler, RecoveryResult
from .settings import Settings
from .store import KeyedStore
from .timetracker import TimeTracker
from .todos import TodoBoard
from .utils import now_ms

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class Workspace:
    """
    Everything one running app instance owns: the store and the services
    that mutate it. Created at startup, opened once, closed at shutdown.
    Nothing here is shared across instances.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        backend: Optional[BlobStore] = None,
        clock: Callable[[], int] = now_ms,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self.settings = settings
        self.store = KeyedStore(backend or get_blob_store(settings), settings.storage_prefix)
        self.tracker = TimeTracker(self.store, clock=clock)
        self.todos = TodoBoard(self.store, clock=clock)
        self.drafts = DraftBook(self.store, clock=clock)
        autosave = AutosaveBuffer(
            self.store,
            delay_ms=settings.autosave_delay_ms,
            clock=clock,
            timer_factory=timer_factory,
        )
        self.editor = DraftEditor(self.drafts, autosave, RecoveryReconciler(self.store, self.drafts.drafts))
        self.files = FileShare(self.store, settings.upload_dir, max_bytes=settings.max_upload_bytes, clock=clock)
        self._closed = False

    def open(self) -> RecoveryResult:
        """Recover staged edits before anything is served."""
        result = self.editor.open()
        logger.info("Workspace opened (%s backend, recovery: %s)", self.settings.storage_backend, result.outcome.value)
        return result

    def close(self) -> None:
        """Flush the editor stage and drop the running stopwatch."""
        if self._closed:
            return
        self._closed = True
        self.editor.close()
        self.tracker.cancel()
        logger.info("Workspace closed")
