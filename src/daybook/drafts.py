from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Callable, List, Optional, Tuple, cast

from .autosave import AutosaveBuffer, EditorSnapshot
from .exceptions import ValidationFailed
from .lifecycle import EntryLifecycle
from .models import CollectionKind, Draft
from .reconcile import RecoveryReconciler, RecoveryResult
from .store import KeyedStore
from .utils import date_key, new_id, now_ms

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled draft"


# PUBLIC_INTERFACE
class DraftBook:
    """Committed drafts, most recent first."""

    def __init__(
        self,
        store: KeyedStore,
        *,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self._clock = clock
        self.drafts = EntryLifecycle(
            store, CollectionKind.DRAFTS, insert_at_head=True, clock=clock, id_factory=id_factory
        )

    def list(self) -> List[Draft]:
        return cast(List[Draft], self.drafts.all())

    def get(self, draft_id: str) -> Optional[Draft]:
        return cast(Optional[Draft], self.drafts.get(draft_id))

    def save(self, title: str, content: str, draft_id: Optional[str] = None) -> Draft:
        """
        Commit editor content. Updates the draft in place when draft_id is
        known, otherwise inserts a new draft at the head.
        """
        if not content.strip():
            raise ValidationFailed("Enter some draft content first.")
        fields = {"title": title.strip() or DEFAULT_TITLE, "content": content, "isAutoSaved": False}
        if draft_id:
            updated = self.drafts.update(draft_id, fields)
            if updated is not None:
                return cast(Draft, updated)
        return cast(Draft, self.drafts.create(fields))

    def delete(self, draft_id: str) -> bool:
        return self.drafts.delete(draft_id)

    def clear(self) -> int:
        if not self.drafts.all():
            raise ValidationFailed("There are no drafts.")
        count = self.drafts.clear()
        logger.info("Cleared %d drafts", count)
        return count

    def export_text(self, title: str, content: str) -> Tuple[str, str]:
        """Return (file name, text) for a plain-text download."""
        if not content:
            raise ValidationFailed("There is no content to export.")
        name = title.strip() or DEFAULT_TITLE
        return f"{name}-{date_key(self._clock())}.txt", content


@dataclass
class EditorState:
    title: str = ""
    content: str = ""
    draft_id: Optional[str] = None


# PUBLIC_INTERFACE
class DraftEditor:
    """
    The draft editor session.

    open() runs crash recovery once; edits are staged through the
    AutosaveBuffer; close() flushes the stage and stops its timer.
    """

    def __init__(self, book: DraftBook, autosave: AutosaveBuffer, reconciler: RecoveryReconciler) -> None:
        self._book = book
        self._autosave = autosave
        self._reconciler = reconciler
        self._state = EditorState()
        self._recovery: Optional[RecoveryResult] = None
        self._lock = RLock()

    @property
    def state(self) -> EditorState:
        with self._lock:
            return EditorState(self._state.title, self._state.content, self._state.draft_id)

    @property
    def recovery(self) -> Optional[RecoveryResult]:
        """Result of the recovery run by open(), None before open()."""
        return self._recovery

    @property
    def autosave(self) -> AutosaveBuffer:
        return self._autosave

    def open(self) -> RecoveryResult:
        with self._lock:
            if self._recovery is None:
                self._recovery = self._reconciler.reconcile()
            return self._recovery

    def edit(self, title: str, content: str) -> EditorState:
        with self._lock:
            self._state.title = title
            self._state.content = content
            self._autosave.schedule(self._snapshot())
            return self.state

    def blur(self) -> None:
        self._autosave.flush()

    unload = blur

    def load(self, draft_id: str) -> Optional[Draft]:
        draft = self._book.get(draft_id)
        if draft is None:
            return None
        with self._lock:
            self._state = EditorState(draft.get("title", ""), draft.get("content", ""), draft["id"])
            # An edit pending for the previous draft must not be staged under it later.
            self._autosave.reset(self._snapshot())
        return draft

    def save(self) -> Draft:
        with self._lock:
            saved = self._book.save(self._state.title, self._state.content, self._state.draft_id)
            self._state.draft_id = saved["id"]
            self._state.title = saved["title"]
            self._autosave.discard()
            return saved

    def new(self, save_current: bool = False) -> EditorState:
        """Start an empty draft, optionally committing unsaved text first."""
        with self._lock:
            if save_current and self._state.content.strip() and not self._state.draft_id:
                self.save()
            self._state = EditorState()
            self._autosave.discard()
            return self.state

    def delete(self, draft_id: str) -> bool:
        with self._lock:
            removed = self._book.delete(draft_id)
            if self._state.draft_id == draft_id:
                self.new()
            return removed

    def clear_all(self) -> int:
        with self._lock:
            count = self._book.clear()
            self._state.draft_id = None
            return count

    def export_text(self) -> Tuple[str, str]:
        with self._lock:
            return self._book.export_text(self._state.title, self._state.content)

    def close(self) -> None:
        self._autosave.close()

    def _snapshot(self) -> EditorSnapshot:
        return EditorSnapshot(self._state.title, self._state.content, self._state.draft_id)
