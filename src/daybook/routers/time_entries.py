from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ..dependencies import get_workspace, resolve_day
from ..schemas import (
    ActiveSessionOut,
    DaySummary,
    SuccessOut,
    TimeEntriesReplace,
    TimeEntryOut,
    TimeEntryUpdate,
    TimerStart,
    TimerStatus,
    TimerStop,
)
from ..utils import format_clock
from ..workspace import Workspace

router = APIRouter(tags=["time"])


def _entries(items: List[dict]) -> List[dict]:
    return [TimeEntryOut(**e).to_record() for e in items]


def _status(ws: Workspace) -> TimerStatus:
    session = ws.tracker.active
    elapsed = ws.tracker.elapsed_ms()
    return TimerStatus(
        active=ActiveSessionOut(**session.to_dict()) if session else None,
        elapsed=elapsed,
        clock=format_clock(elapsed),
    )


# PUBLIC_INTERFACE
@router.get("/api/timer", response_model=TimerStatus, summary="Timer Status")
def timer_status(ws: Workspace = Depends(get_workspace)) -> TimerStatus:
    """
    Return the running stopwatch session, if any, and its elapsed time.
    """
    return _status(ws)


# PUBLIC_INTERFACE
@router.post("/api/timer/start", response_model=TimerStatus, summary="Start Timer")
def start_timer(payload: TimerStart, ws: Workspace = Depends(get_workspace)) -> TimerStatus:
    """
    Start the stopwatch. Starting while a session runs keeps the running one.
    """
    ws.tracker.start(payload.title, payload.category)
    return _status(ws)


# PUBLIC_INTERFACE
@router.post(
    "/api/timer/stop",
    response_model=TimeEntryOut,
    summary="Stop Timer",
    responses={400: {"description": "No session running, or session shorter than one second"}},
)
def stop_timer(payload: TimerStop, ws: Workspace = Depends(get_workspace)) -> TimeEntryOut:
    """
    Stop the stopwatch and commit the session as a time entry.
    """
    entry = ws.tracker.stop(payload.title, payload.notes)
    return TimeEntryOut(**entry)


@router.post("/api/timer/cancel", response_model=TimerStatus, summary="Cancel Timer")
def cancel_timer(ws: Workspace = Depends(get_workspace)) -> TimerStatus:
    ws.tracker.cancel()
    return _status(ws)


# PUBLIC_INTERFACE
@router.get("/api/time-entries", summary="List Time Entries")
def list_entries(
    date: Optional[str] = Query(None, description="Day key; all entries when omitted"),
    ws: Workspace = Depends(get_workspace),
) -> dict:
    """
    List time entries. With a date, only that day's entries are returned,
    ordered by start time; without one, the whole collection in stored order.
    """
    if date is None:
        entries = ws.tracker.entries.all()
    else:
        entries = ws.tracker.day(resolve_day(date))
    return {"entries": _entries(entries)}


# PUBLIC_INTERFACE
@router.put("/api/time-entries", response_model=SuccessOut, summary="Replace Time Entries")
def replace_entries(payload: TimeEntriesReplace, ws: Workspace = Depends(get_workspace)) -> SuccessOut:
    """
    Overwrite the whole collection with the client's copy.
    """
    ws.tracker.entries.replace_all([e.to_record() for e in payload.entries])
    return SuccessOut()


@router.get("/api/time-entries/summary", response_model=DaySummary, summary="Day Summary")
def day_summary(
    date: Optional[str] = Query(None, description="Day key; defaults to today"),
    ws: Workspace = Depends(get_workspace),
) -> DaySummary:
    return DaySummary(**ws.tracker.summary(resolve_day(date)))


# PUBLIC_INTERFACE
@router.get(
    "/api/time-entries/export",
    summary="Export Time Entries",
    responses={200: {"content": {"application/json": {}}}, 400: {"description": "Nothing to export"}},
)
def export_entries(ws: Workspace = Depends(get_workspace)) -> Response:
    """
    Download every entry as a pretty-printed JSON array.
    """
    filename, body = ws.tracker.export_json()
    return Response(
        content=body.encode("utf-8"),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# PUBLIC_INTERFACE
@router.patch(
    "/api/time-entries/{entry_id}",
    response_model=TimeEntryOut,
    summary="Edit Time Entry",
    responses={400: {"description": "Blank title"}, 404: {"description": "Entry not found"}},
)
def patch_entry(entry_id: str, payload: TimeEntryUpdate, ws: Workspace = Depends(get_workspace)) -> TimeEntryOut:
    """
    Inline edit of an entry's title and/or notes.
    """
    updated = None
    if payload.title is not None:
        updated = ws.tracker.rename(entry_id, payload.title)
    if payload.notes is not None:
        updated = ws.tracker.edit_notes(entry_id, payload.notes)
    if payload.title is None and payload.notes is None:
        updated = ws.tracker.entries.get(entry_id)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Time entry not found")
    return TimeEntryOut(**updated)


# PUBLIC_INTERFACE
@router.delete("/api/time-entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Time Entry")
def delete_entry(entry_id: str, ws: Workspace = Depends(get_workspace)) -> None:
    """
    Delete an entry. Deleting an entry that is already gone is a no-op.
    """
    ws.tracker.delete(entry_id)
    return None
