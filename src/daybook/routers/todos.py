from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..dependencies import get_workspace, resolve_day
from ..schemas import SuccessOut, TodoCreate, TodoDayReplace, TodoMove, TodoOut, TodosReplace, TodoUpdate
from ..workspace import Workspace

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)


def _day_of(ws: Workspace, todo_id: str, day: Optional[str]) -> Optional[str]:
    return day if day else ws.todos.buckets.find_day(todo_id)


# PUBLIC_INTERFACE
@router.get("", summary="List Todos")
def list_todos(
    date: Optional[str] = Query(None, description="Day key; defaults to today"),
    ws: Workspace = Depends(get_workspace),
) -> dict:
    """
    Return one day's todos in their stored order.
    """
    day = resolve_day(date)
    items = [TodoOut(**t).to_record() for t in ws.todos.items(day)]
    completed = sum(1 for t in items if t.get("completed"))
    return {"date": day, "items": items, "completed": completed, "total": len(items)}


@router.get("/all", summary="All Todos")
def all_todos(ws: Workspace = Depends(get_workspace)) -> dict:
    return {"todos": ws.todos.all()}


# PUBLIC_INTERFACE
@router.put("", response_model=SuccessOut, summary="Replace Todos")
def replace_todos(payload: TodosReplace, ws: Workspace = Depends(get_workspace)) -> SuccessOut:
    """
    Overwrite every day's list with the client's copy.
    """
    ws.todos.replace_all({day: [t.to_record() for t in items] for day, items in payload.todos.items()})
    return SuccessOut()


# PUBLIC_INTERFACE
@router.put("/{date}", response_model=SuccessOut, summary="Replace Day")
def replace_day(date: str, payload: TodoDayReplace, ws: Workspace = Depends(get_workspace)) -> SuccessOut:
    """
    Overwrite a single day's list, leaving other days untouched.
    """
    ws.todos.replace_day(resolve_day(date), [t.to_record() for t in payload.items])
    return SuccessOut()


# PUBLIC_INTERFACE
@router.post("", response_model=TodoOut, status_code=status.HTTP_201_CREATED, summary="Add Todo")
def add_todo(payload: TodoCreate, ws: Workspace = Depends(get_workspace)) -> TodoOut:
    """
    Append a todo to the end of the day's list.
    """
    return TodoOut(**ws.todos.add(resolve_day(payload.date), payload.text))


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    responses={404: {"description": "Todo not found"}},
)
def patch_todo(todo_id: str, payload: TodoUpdate, ws: Workspace = Depends(get_workspace)) -> TodoOut:
    """
    Toggle completion and/or edit the text of a todo.
    """
    day = _day_of(ws, todo_id, payload.date)
    updated = None
    if day is not None:
        if payload.text is not None:
            updated = ws.todos.edit(day, todo_id, payload.text)
        if payload.completed is not None:
            updated = ws.todos.set_completed(day, todo_id, payload.completed)
        if payload.text is None and payload.completed is None:
            updated = next((t for t in ws.todos.items(day) if t.get("id") == todo_id), None)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return TodoOut(**updated)


# PUBLIC_INTERFACE
@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Todo")
def delete_todo(
    todo_id: str,
    date: Optional[str] = Query(None, description="Day holding the todo; looked up when omitted"),
    ws: Workspace = Depends(get_workspace),
) -> None:
    """
    Delete a todo. Deleting a todo that is already gone is a no-op.
    """
    day = _day_of(ws, todo_id, resolve_day(date) if date else None)
    if day is not None:
        ws.todos.delete(day, todo_id)
    return None


# PUBLIC_INTERFACE
@router.post("/{todo_id}/move", summary="Reorder Todo")
def move_todo(todo_id: str, payload: TodoMove, ws: Workspace = Depends(get_workspace)) -> dict:
    """
    Drop a todo onto another one; it takes the target's position.
    """
    day = _day_of(ws, todo_id, payload.date) or resolve_day(None)
    items = ws.todos.reorder(day, todo_id, payload.target_id)
    return {"date": day, "items": [TodoOut(**t).to_record() for t in items]}
