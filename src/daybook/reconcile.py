from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, cast

from .autosave import AUTOSAVE_TITLE
from .lifecycle import EntryLifecycle
from .models import CollectionKind, Draft
from .store import KeyedStore

logger = logging.getLogger(__name__)


class RecoveryOutcome(str, Enum):
    NOTHING = "nothing"
    MERGED = "merged"
    CREATED = "created"
    FAILED = "failed"


@dataclass(frozen=True)
class RecoveryResult:
    outcome: RecoveryOutcome
    draft: Optional[Draft] = None


# PUBLIC_INTERFACE
class RecoveryReconciler:
    """
    Folds a leftover autosave stage back into the committed drafts.

    Runs once when an editor session opens, before anything reads the
    drafts. The stage is deleted after the drafts have been saved; a crash
    in between replays the recovery once on the next start. A storage
    error is logged and reported as FAILED with the stage left in place,
    so the next start tries again.
    """

    def __init__(self, store: KeyedStore, drafts: EntryLifecycle) -> None:
        self._store = store
        self._drafts = drafts

    def reconcile(self) -> RecoveryResult:
        try:
            return self._reconcile()
        except Exception:
            logger.exception("Autosave recovery failed; the stage is kept for the next start")
            return RecoveryResult(RecoveryOutcome.FAILED)

    def _reconcile(self) -> RecoveryResult:
        stage = self._store.load(CollectionKind.AUTOSAVE, {})
        content = stage.get("content")
        if not isinstance(content, str) or not content.strip():
            self._store.delete(CollectionKind.AUTOSAVE)
            return RecoveryResult(RecoveryOutcome.NOTHING)

        title = stage.get("title") or ""
        target_id = stage.get("targetId")
        stamp: Dict[str, Any] = {}
        if isinstance(stage.get("savedAt"), int):
            stamp["updatedAt"] = stage["savedAt"]

        merged: Optional[Draft] = None
        if target_id:
            existing = self._drafts.get(target_id)
            if existing is not None:
                patch = {"title": title or existing.get("title", ""), "content": content, **stamp}
                merged = cast(Optional[Draft], self._drafts.update(target_id, patch, touch=False))

        if merged is not None:
            result = RecoveryResult(RecoveryOutcome.MERGED, merged)
            logger.info("Recovered autosaved edit into draft %s", target_id)
        else:
            if target_id:
                logger.info("Autosave target %s no longer exists; recovering as a new draft", target_id)
            payload = {"title": title or AUTOSAVE_TITLE, "content": content, "isAutoSaved": True, **stamp}
            created = cast(Draft, self._drafts.create(payload))
            result = RecoveryResult(RecoveryOutcome.CREATED, created)
            logger.info("Recovered autosaved text as new draft %s", created["id"])

        self._store.delete(CollectionKind.AUTOSAVE)
        return result
