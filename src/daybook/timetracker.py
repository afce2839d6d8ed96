from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Tuple, cast

from .exceptions import ValidationFailed
from .lifecycle import EntryLifecycle
from .models import CollectionKind, TimeEntry
from .store import KeyedStore
from .utils import date_key, new_id, now_ms

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled task"
DEFAULT_CATEGORY = "Uncategorized"
MIN_DURATION_MS = 1000
TOP_CATEGORIES = 5


@dataclass(frozen=True)
class ActiveSession:
    """The running stopwatch; lives in memory only."""

    id: str
    title: str
    category: str
    started_at: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# PUBLIC_INTERFACE
class TimeTracker:
    """
    Stopwatch sessions and the committed time entries they produce.

    Entries are appended in the order they finish; the day view sorts by
    start time when read.
    """

    def __init__(
        self,
        store: KeyedStore,
        *,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self._clock = clock
        self._id_factory = id_factory
        self.entries = EntryLifecycle(
            store, CollectionKind.ENTRIES, insert_at_head=False, clock=clock, id_factory=id_factory
        )
        self._active: Optional[ActiveSession] = None
        self._lock = RLock()

    @property
    def active(self) -> Optional[ActiveSession]:
        return self._active

    def elapsed_ms(self) -> int:
        with self._lock:
            if self._active is None:
                return 0
            return max(0, self._clock() - self._active.started_at)

    def start(self, title: str = "", category: str = "") -> ActiveSession:
        """Open a session. A second start while one runs returns the running one."""
        with self._lock:
            if self._active is not None:
                return self._active
            self._active = ActiveSession(
                id=self._id_factory(),
                title=title.strip() or DEFAULT_TITLE,
                category=category.strip() or DEFAULT_CATEGORY,
                started_at=self._clock(),
            )
            logger.info("Started session %s (%s)", self._active.title, self._active.category)
            return self._active

    def stop(self, title: Optional[str] = None, notes: str = "") -> TimeEntry:
        """
        Close the running session and commit it as a time entry.

        Raises:
            ValidationFailed if nothing is running or the session lasted
            less than one second; the session keeps running in that case.
        """
        with self._lock:
            session = self._active
            if session is None:
                raise ValidationFailed("No timer is running.")
            end = self._clock()
            elapsed = end - session.started_at
            if elapsed < MIN_DURATION_MS:
                raise ValidationFailed("The session is too short; it must last at least 1 second.")
            entry = self.entries.create(
                {
                    "title": (title or "").strip() or session.title or DEFAULT_TITLE,
                    "category": session.category,
                    "notes": notes.strip(),
                    "start": session.started_at,
                    "end": end,
                    "duration": elapsed,
                    "date": date_key(session.started_at),
                    "savedAt": end,
                }
            )
            self._active = None
            logger.info("Committed time entry %s lasting %d ms", entry["id"], elapsed)
            return cast(TimeEntry, entry)

    def cancel(self) -> None:
        """Drop the running session without committing it."""
        with self._lock:
            self._active = None

    def day(self, day: str) -> List[TimeEntry]:
        """Entries of one day ordered by start time."""
        entries = cast(List[TimeEntry], self.entries.query_by_date(day))
        return sorted(entries, key=lambda e: e.get("start", 0))

    def summary(self, day: str) -> Dict[str, Any]:
        entries = self.day(day)
        if not entries:
            return {"date": day, "count": 0, "total": 0, "average": 0, "longest": None, "categories": []}
        total = sum(e.get("duration", 0) for e in entries)
        longest = entries[0]
        for entry in entries[1:]:
            if entry.get("duration", 0) > longest.get("duration", 0):
                longest = entry
        per_category: Dict[str, int] = {}
        for entry in entries:
            key = entry.get("category") or DEFAULT_CATEGORY
            per_category[key] = per_category.get(key, 0) + entry.get("duration", 0)
        ranked: List[Tuple[str, int]] = sorted(per_category.items(), key=lambda kv: kv[1], reverse=True)
        return {
            "date": day,
            "count": len(entries),
            "total": total,
            "average": total // len(entries),
            "longest": {"id": longest["id"], "title": longest.get("title", ""), "duration": longest.get("duration", 0)},
            "categories": [{"category": c, "duration": d} for c, d in ranked[:TOP_CATEGORIES]],
        }

    def rename(self, entry_id: str, title: str) -> Optional[TimeEntry]:
        trimmed = title.strip()
        if not trimmed:
            raise ValidationFailed("The entry title cannot be empty.")
        return cast(Optional[TimeEntry], self.entries.update(entry_id, {"title": trimmed}))

    def edit_notes(self, entry_id: str, notes: str) -> Optional[TimeEntry]:
        return cast(Optional[TimeEntry], self.entries.update(entry_id, {"notes": notes.strip()}))

    def delete(self, entry_id: str) -> bool:
        return self.entries.delete(entry_id)

    def export_json(self) -> Tuple[str, str]:
        """
        Return (file name, pretty-printed JSON array of every entry).

        Raises:
            ValidationFailed if there is nothing to export.
        """
        entries = self.entries.all()
        if not entries:
            raise ValidationFailed("There is no data to export yet.")
        filename = f"time-record-{date_key(self._clock())}.json"
        return filename, json.dumps(entries, ensure_ascii=False, indent=2)
