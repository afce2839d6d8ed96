from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, TypedDict

# Persisted field names stay camelCase so collections written by the browser
# front end load unchanged.


class CollectionKind(str, Enum):
    """Named collections kept in the blob store, one key each."""

    ENTRIES = "entries"
    TODOS = "todos"
    DRAFTS = "drafts"
    AUTOSAVE = "draft_autosave"
    FILES = "files"


# PUBLIC_INTERFACE
class RecordBase(TypedDict):
    """
    Fields shared by every record kind.

    Fields:
    - id: opaque unique string, assigned at creation and never reassigned
    - createdAt: epoch milliseconds of creation
    - updatedAt: epoch milliseconds of the last committed change
    """

    id: str
    createdAt: int
    updatedAt: int


# PUBLIC_INTERFACE
class TimeEntry(RecordBase):
    """A finished stopwatch session. ``date`` is the local day of ``start``."""

    title: str
    category: str
    notes: str
    start: int
    end: int
    duration: int
    date: str
    savedAt: int


# PUBLIC_INTERFACE
class Todo(RecordBase):
    """One todo item; its order is its position in the day's list."""

    text: str
    completed: bool


# PUBLIC_INTERFACE
class Draft(RecordBase):
    """A committed text draft. ``isAutoSaved`` marks drafts created by recovery."""

    title: str
    content: str
    isAutoSaved: bool


# PUBLIC_INTERFACE
class AutosaveStage(TypedDict):
    """The single pending editor snapshot used for crash recovery."""

    title: str
    content: str
    targetId: Optional[str]
    savedAt: int
    isExistingDraft: bool


# PUBLIC_INTERFACE
class FileInfo(TypedDict):
    """Metadata of an uploaded file; the blob lives at ``UPLOAD_DIR/filename``."""

    id: str
    originalName: str
    filename: str
    size: int
    mimetype: str
    uploadedAt: int
    downloads: int


TodoBuckets = Dict[str, List[Todo]]
