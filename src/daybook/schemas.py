from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .timetracker import MIN_DURATION_MS
from .utils import is_date_key


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict:
        """Dump in the persisted camelCase shape, leaving out unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


def _check_date(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    s = v.strip()
    if not is_date_key(s):
        raise ValueError("date must be an ISO calendar day, e.g. '2025-01-31'")
    return s


def _check_text(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be blank")
    return v


# ---------------------------------------------------------------- time tracking


# PUBLIC_INTERFACE
class TimerStart(CamelModel):
    """
    Schema for starting the stopwatch.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"title": "Write report", "category": "Work"}})

    title: str = Field(default="", description="Task name; a placeholder is used when empty")
    category: str = Field(default="", description="Task category; a placeholder is used when empty")


# PUBLIC_INTERFACE
class TimerStop(CamelModel):
    """
    Schema for stopping the stopwatch. The latest title typed in the form
    wins over the one given at start.
    """

    title: Optional[str] = Field(default=None, description="Final task name")
    notes: str = Field(default="", description="Free-form notes")


class ActiveSessionOut(CamelModel):
    id: str
    title: str
    category: str
    started_at: int = Field(..., description="Epoch milliseconds the session started")


class TimerStatus(CamelModel):
    active: Optional[ActiveSessionOut] = None
    elapsed: int = Field(0, description="Milliseconds since start, 0 when idle")
    clock: str = Field("00:00:00", description="Elapsed time as HH:MM:SS")


# PUBLIC_INTERFACE
class TimeEntryOut(CamelModel):
    """
    A committed time entry as persisted and exported.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "0b0c7d1e-4a4f-4c59-9a0e-5f3e2b7e6d11",
                "title": "Write report",
                "category": "Work",
                "notes": "",
                "start": 1738368000000,
                "end": 1738371600000,
                "duration": 3600000,
                "date": "2025-02-01",
                "savedAt": 1738371600000,
            }
        }
    )

    id: str
    title: str
    category: str = ""
    notes: str = ""
    start: int
    end: int
    duration: int = Field(..., ge=0)
    date: str
    saved_at: Optional[int] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


# PUBLIC_INTERFACE
class TimeEntryUpdate(CamelModel):
    """
    Inline edit of a time entry. Only provided fields change.
    """

    title: Optional[str] = Field(default=None, description="New title; must not be blank")
    notes: Optional[str] = Field(default=None, description="New notes")


class TimeEntryIn(TimeEntryOut):
    """
    A time entry written back by a client. It must satisfy the same rules
    as one committed by the stopwatch.
    """

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _check_text(v)

    @model_validator(mode="after")
    def validate_duration(self) -> "TimeEntryIn":
        if self.duration != self.end - self.start:
            raise ValueError("duration must equal end - start")
        if self.duration < MIN_DURATION_MS:
            raise ValueError(f"duration must be at least {MIN_DURATION_MS} ms")
        return self


class TimeEntriesReplace(CamelModel):
    entries: List[TimeEntryIn]


class CategoryTotal(CamelModel):
    category: str
    duration: int


class LongestEntry(CamelModel):
    id: str
    title: str
    duration: int


class DaySummary(CamelModel):
    date: str
    count: int
    total: int
    average: int
    longest: Optional[LongestEntry] = None
    categories: List[CategoryTotal] = Field(default_factory=list)


# ------------------------------------------------------------------------ todos


# PUBLIC_INTERFACE
class TodoOut(CamelModel):
    id: str
    text: str
    completed: bool = False
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


# PUBLIC_INTERFACE
class TodoCreate(CamelModel):
    """
    Schema for adding a todo to the end of a day's list.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"text": "Call the bank", "date": "2025-02-01"}})

    text: str = Field(..., description="What to do")
    date: Optional[str] = Field(default=None, description="Day key; defaults to today")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        return _check_date(v)


# PUBLIC_INTERFACE
class TodoUpdate(CamelModel):
    """
    Partial update of a todo. All fields are optional.
    """

    text: Optional[str] = None
    completed: Optional[bool] = None
    date: Optional[str] = Field(default=None, description="Day holding the todo; looked up when omitted")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        return _check_date(v)


class TodoMove(CamelModel):
    target_id: str = Field(..., description="Todo whose position the moved todo takes")
    date: Optional[str] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        return _check_date(v)


class TodoIn(TodoOut):
    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _check_text(v)


class TodosReplace(CamelModel):
    todos: Dict[str, List[TodoIn]]


class TodoDayReplace(CamelModel):
    items: List[TodoIn]


# ----------------------------------------------------------------------- drafts


# PUBLIC_INTERFACE
class DraftOut(CamelModel):
    id: str
    title: str
    content: str
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    is_auto_saved: bool = Field(False, description="True when the draft was created by crash recovery")


class DraftsReplace(CamelModel):
    drafts: List[DraftOut]


class EditorEdit(CamelModel):
    title: str = ""
    content: str = ""


class EditorNew(CamelModel):
    save_current: bool = Field(False, description="Commit unsaved text before clearing the editor")


class EditorOut(CamelModel):
    title: str
    content: str
    draft_id: Optional[str] = None
    autosave_pending: bool = False


class RecoveryOut(CamelModel):
    outcome: str = Field(..., description="nothing, merged, created or failed")
    draft: Optional[DraftOut] = None


# ------------------------------------------------------------------------ files


# PUBLIC_INTERFACE
class FileInfoOut(CamelModel):
    id: str
    original_name: str
    filename: str
    size: int
    mimetype: str
    uploaded_at: int
    downloads: int = 0


class UploadOut(CamelModel):
    success: bool = True
    file: FileInfoOut
    download_url: str


class FileListOut(CamelModel):
    files: List[FileInfoOut]


class SuccessOut(CamelModel):
    success: bool = True
