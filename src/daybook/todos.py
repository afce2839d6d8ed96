from __future__ import annotations

from typing import Callable, List, Optional, cast

from .exceptions import ValidationFailed
from .lifecycle import DayBucketLifecycle
from .models import CollectionKind, Todo, TodoBuckets
from .store import KeyedStore
from .utils import new_id, now_ms


# PUBLIC_INTERFACE
class TodoBoard:
    """Per-day ordered todo lists."""

    def __init__(
        self,
        store: KeyedStore,
        *,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self.buckets = DayBucketLifecycle(store, CollectionKind.TODOS, clock=clock, id_factory=id_factory)

    def items(self, day: str) -> List[Todo]:
        return cast(List[Todo], self.buckets.items(day))

    def all(self) -> TodoBuckets:
        return cast(TodoBuckets, self.buckets.buckets())

    def add(self, day: str, text: str) -> Todo:
        trimmed = text.strip()
        if not trimmed:
            raise ValidationFailed("The todo text cannot be empty.")
        return cast(Todo, self.buckets.create(day, {"text": trimmed, "completed": False}))

    def set_completed(self, day: str, todo_id: str, completed: bool) -> Optional[Todo]:
        return cast(Optional[Todo], self.buckets.update(day, todo_id, {"completed": bool(completed)}))

    def edit(self, day: str, todo_id: str, text: str) -> Optional[Todo]:
        trimmed = text.strip()
        if not trimmed:
            raise ValidationFailed("The todo text cannot be empty.")
        return cast(Optional[Todo], self.buckets.update(day, todo_id, {"text": trimmed}))

    def delete(self, day: str, todo_id: str) -> bool:
        return self.buckets.delete(day, todo_id)

    def reorder(self, day: str, dragged_id: str, target_id: str) -> List[Todo]:
        return cast(List[Todo], self.buckets.reorder(day, dragged_id, target_id))

    def replace_day(self, day: str, items: List[Todo]) -> None:
        self.buckets.replace_day(day, list(items))

    def replace_all(self, buckets: TodoBuckets) -> None:
        self.buckets.replace_all(dict(buckets))
