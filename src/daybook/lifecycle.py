from __future__ import annotations

import logging
from threading import RLock
from typing import Any, Callable, Dict, List, Mapping, Optional

from .models import CollectionKind
from .store import KeyedStore
from .utils import new_id, now_ms

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

# Fields owned by the lifecycle; patches never overwrite them.
_PROTECTED = frozenset({"id", "createdAt"})


def _only_records(items: Any, label: str) -> List[Record]:
    """Keep the JSON objects of a stored list; anything else is dropped with a warning."""
    if not isinstance(items, list):
        logger.warning("Discarding %s: expected a list, found %s", label, type(items).__name__)
        return []
    records = [r for r in items if isinstance(r, dict)]
    if len(records) != len(items):
        logger.warning("Discarding %d malformed records in %s", len(items) - len(records), label)
    return records


# PUBLIC_INTERFACE
class EntryLifecycle:
    """
    CRUD over one ordered collection stored as a JSON list.

    Every mutation reloads the full collection, changes it in memory and
    saves it back. Operations on an id that is no longer present are
    no-ops rather than errors.
    """

    def __init__(
        self,
        store: KeyedStore,
        kind: CollectionKind,
        *,
        insert_at_head: bool = False,
        date_field: str = "date",
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self._store = store
        self._kind = kind
        self._insert_at_head = insert_at_head
        self._date_field = date_field
        self._clock = clock
        self._id_factory = id_factory
        self._lock = RLock()

    @property
    def kind(self) -> CollectionKind:
        return self._kind

    def all(self) -> List[Record]:
        """Return the whole collection in stored order."""
        return _only_records(self._store.load(self._kind, []), self._kind.value)

    def get(self, record_id: str) -> Optional[Record]:
        return next((r for r in self.all() if r.get("id") == record_id), None)

    def create(self, payload: Mapping[str, Any]) -> Record:
        """Assign a fresh id and timestamps, insert per collection order, persist."""
        with self._lock:
            records = self.all()
            now = self._clock()
            record: Record = {k: v for k, v in payload.items() if k not in _PROTECTED}
            record["id"] = self._unique_id(records)
            record["createdAt"] = now
            record.setdefault("updatedAt", now)
            if self._insert_at_head:
                records.insert(0, record)
            else:
                records.append(record)
            self._store.save(self._kind, records)
            return dict(record)

    def update(self, record_id: str, patch: Mapping[str, Any], *, touch: bool = True) -> Optional[Record]:
        """
        Merge patch into the record and persist. None if the id is gone.
        With touch=False an updatedAt carried by the patch is kept.
        """
        with self._lock:
            records = self.all()
            for index, existing in enumerate(records):
                if existing.get("id") != record_id:
                    continue
                updated = dict(existing)
                updated.update({k: v for k, v in patch.items() if k not in _PROTECTED})
                if touch or "updatedAt" not in patch:
                    updated["updatedAt"] = self._clock()
                records[index] = updated
                self._store.save(self._kind, records)
                return dict(updated)
            logger.debug("Ignoring update of missing %s record %s", self._kind.value, record_id)
            return None

    def delete(self, record_id: str) -> bool:
        """Remove the record and persist. False, with nothing written, if absent."""
        with self._lock:
            records = self.all()
            remaining = [r for r in records if r.get("id") != record_id]
            if len(remaining) == len(records):
                return False
            self._store.save(self._kind, remaining)
            return True

    def query_by_date(self, day: str) -> List[Record]:
        """Return records whose derived day key equals day, in stored order."""
        return [r for r in self.all() if r.get(self._date_field) == day]

    def replace_all(self, records: List[Record]) -> None:
        """Overwrite the whole collection."""
        with self._lock:
            self._store.save(self._kind, list(records))

    def clear(self) -> int:
        with self._lock:
            count = len(self.all())
            self._store.save(self._kind, [])
            return count

    def _unique_id(self, records: List[Record]) -> str:
        taken = {r.get("id") for r in records}
        candidate = self._id_factory()
        while candidate in taken:
            candidate = self._id_factory()
        return candidate


# PUBLIC_INTERFACE
class DayBucketLifecycle:
    """
    CRUD over a collection keyed by calendar day, each day owning an
    independently ordered list. Position in the list is the order.
    """

    def __init__(
        self,
        store: KeyedStore,
        kind: CollectionKind,
        *,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self._store = store
        self._kind = kind
        self._clock = clock
        self._id_factory = id_factory
        self._lock = RLock()

    def buckets(self) -> Dict[str, List[Record]]:
        stored = self._store.load(self._kind, {})
        return {day: _only_records(items, f"{self._kind.value} of {day}") for day, items in stored.items()}

    def items(self, day: str) -> List[Record]:
        return self.buckets().get(day, [])

    def find_day(self, record_id: str) -> Optional[str]:
        """Return the day holding record_id, or None."""
        for day, items in self.buckets().items():
            if any(r.get("id") == record_id for r in items):
                return day
        return None

    def create(self, day: str, payload: Mapping[str, Any]) -> Record:
        """Append a new record to the end of day's list and persist."""
        with self._lock:
            buckets = self.buckets()
            items = buckets.setdefault(day, [])
            taken = {r.get("id") for bucket in buckets.values() for r in bucket}
            record_id = self._id_factory()
            while record_id in taken:
                record_id = self._id_factory()
            now = self._clock()
            record: Record = {k: v for k, v in payload.items() if k not in _PROTECTED}
            record.update({"id": record_id, "createdAt": now, "updatedAt": now})
            items.append(record)
            self._store.save(self._kind, buckets)
            return dict(record)

    def update(self, day: str, record_id: str, patch: Mapping[str, Any]) -> Optional[Record]:
        with self._lock:
            buckets = self.buckets()
            items = buckets.get(day, [])
            for index, existing in enumerate(items):
                if existing.get("id") != record_id:
                    continue
                updated = dict(existing)
                updated.update({k: v for k, v in patch.items() if k not in _PROTECTED})
                updated["updatedAt"] = self._clock()
                items[index] = updated
                self._store.save(self._kind, buckets)
                return dict(updated)
            return None

    def delete(self, day: str, record_id: str) -> bool:
        with self._lock:
            buckets = self.buckets()
            items = buckets.get(day, [])
            remaining = [r for r in items if r.get("id") != record_id]
            if len(remaining) == len(items):
                return False
            buckets[day] = remaining
            self._store.save(self._kind, buckets)
            return True

    def reorder(self, day: str, dragged_id: str, target_id: str) -> List[Record]:
        """
        Move the dragged record to the index the target occupied before the
        move. Dropping A onto C in [A, B, C] yields [B, C, A].
        Unknown ids or dropping a record onto itself leave the list unchanged.
        """
        with self._lock:
            buckets = self.buckets()
            items = buckets.get(day, [])
            ids = [r.get("id") for r in items]
            if dragged_id == target_id or dragged_id not in ids or target_id not in ids:
                return items
            dragged_index = ids.index(dragged_id)
            target_index = ids.index(target_id)
            moved = items.pop(dragged_index)
            items.insert(target_index, moved)
            buckets[day] = items
            self._store.save(self._kind, buckets)
            return items

    def replace_day(self, day: str, items: List[Record]) -> None:
        with self._lock:
            buckets = self.buckets()
            buckets[day] = list(items)
            self._store.save(self._kind, buckets)

    def replace_all(self, buckets: Dict[str, List[Record]]) -> None:
        with self._lock:
            self._store.save(self._kind, dict(buckets))
