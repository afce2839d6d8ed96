from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .models import AutosaveStage, CollectionKind
from .store import KeyedStore
from .utils import now_ms

logger = logging.getLogger(__name__)

AUTOSAVE_TITLE = "Autosaved"

TimerFactory = Callable[[float, Callable[[], None]], Any]


# PUBLIC_INTERFACE
class DebouncedTask:
    """
    A cancelable deferred call.

    schedule() replaces any pending call with a new one delay seconds out,
    flush() runs the action now and drops the pending call, cancel() drops
    the pending call without running anything.
    """

    def __init__(
        self,
        delay: float,
        action: Callable[[], None],
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self._delay = delay
        self._action = action
        self._timer_factory = timer_factory
        self._timer: Optional[Any] = None
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def schedule(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._generation += 1
            generation = self._generation
            timer = self._timer_factory(self._delay, lambda: self._fire(generation))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def flush(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._action()

    def cancel(self) -> None:
        with self._lock:
            self._cancel_timer()

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A timer cancelled while waiting on the lock must not run.
            if self._timer is None or generation != self._generation:
                return
            self._timer = None
            self._action()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


@dataclass(frozen=True)
class EditorSnapshot:
    """What the draft editor currently shows."""

    title: str
    content: str
    target_id: Optional[str] = None


# PUBLIC_INTERFACE
class AutosaveBuffer:
    """
    Debounced staging area for the in-progress edit of a single draft.

    The stage lives under its own key, apart from the committed drafts,
    and holds at most one snapshot. Staging is best effort: storage errors
    are logged and never reach the editor.
    """

    def __init__(
        self,
        store: KeyedStore,
        *,
        delay_ms: int = 1000,
        clock: Callable[[], int] = now_ms,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self._store = store
        self._clock = clock
        self._latest: Optional[EditorSnapshot] = None
        self._lock = threading.RLock()
        self._task = DebouncedTask(delay_ms / 1000.0, self._write, timer_factory)

    @property
    def pending(self) -> bool:
        return self._task.pending

    def schedule(self, snapshot: EditorSnapshot) -> None:
        """Remember snapshot and restart the debounce window."""
        with self._lock:
            self._latest = snapshot
        self._task.schedule()

    def flush(self) -> None:
        """Persist the latest snapshot now (blur, unload, teardown)."""
        self._task.flush()

    def reset(self, snapshot: EditorSnapshot) -> None:
        """Drop the pending write and make snapshot the one a later flush stages."""
        self._task.cancel()
        with self._lock:
            self._latest = snapshot

    def discard(self) -> None:
        """Drop the pending write, forget the snapshot and delete the stage."""
        self._task.cancel()
        with self._lock:
            self._latest = None
        try:
            self._store.delete(CollectionKind.AUTOSAVE)
        except Exception:
            logger.exception("Failed to clear autosave stage")

    def close(self) -> None:
        self.flush()
        self._task.cancel()

    def read(self) -> Optional[AutosaveStage]:
        """Return the staged snapshot, or None when nothing is staged."""
        return self._store.load(CollectionKind.AUTOSAVE, {}) or None

    def _write(self) -> None:
        with self._lock:
            snapshot = self._latest
        if snapshot is None:
            return
        try:
            if not snapshot.content.strip():
                # Never stage empty text; it would resurrect deleted content.
                self._store.delete(CollectionKind.AUTOSAVE)
                return
            stage: AutosaveStage = {
                "title": snapshot.title if snapshot.target_id else (snapshot.title.strip() or AUTOSAVE_TITLE),
                "content": snapshot.content,
                "targetId": snapshot.target_id,
                "savedAt": self._clock(),
                "isExistingDraft": snapshot.target_id is not None,
            }
            self._store.save(CollectionKind.AUTOSAVE, stage)
            logger.debug("Staged %d characters for draft %s", len(snapshot.content), snapshot.target_id)
        except Exception:
            logger.exception("Autosave failed")
