from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..dependencies import get_workspace
from ..schemas import DraftOut, DraftsReplace, EditorEdit, EditorNew, EditorOut, RecoveryOut, SuccessOut
from ..workspace import Workspace

router = APIRouter(tags=["drafts"])


def _editor(ws: Workspace) -> EditorOut:
    state = ws.editor.state
    return EditorOut(
        title=state.title,
        content=state.content,
        draft_id=state.draft_id,
        autosave_pending=ws.editor.autosave.pending,
    )


def _text_download(filename: str, text: str) -> Response:
    return Response(
        content=text.encode("utf-8"),
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


# PUBLIC_INTERFACE
@router.get("/api/drafts", summary="List Drafts")
def list_drafts(ws: Workspace = Depends(get_workspace)) -> dict:
    """
    Return committed drafts, most recent first.
    """
    return {"drafts": [DraftOut(**d).to_record() for d in ws.drafts.list()]}


# PUBLIC_INTERFACE
@router.put("/api/drafts", response_model=SuccessOut, summary="Replace Drafts")
def replace_drafts(payload: DraftsReplace, ws: Workspace = Depends(get_workspace)) -> SuccessOut:
    """
    Overwrite the whole drafts collection with the client's copy.
    """
    ws.drafts.drafts.replace_all([d.to_record() for d in payload.drafts])
    return SuccessOut()


# PUBLIC_INTERFACE
@router.delete("/api/drafts", summary="Clear Drafts", responses={400: {"description": "No drafts"}})
def clear_drafts(ws: Workspace = Depends(get_workspace)) -> dict:
    """
    Delete every draft. Callers confirm with the user first.
    """
    return {"success": True, "removed": ws.editor.clear_all()}


# PUBLIC_INTERFACE
@router.delete("/api/drafts/{draft_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Draft")
def delete_draft(draft_id: str, ws: Workspace = Depends(get_workspace)) -> None:
    """
    Delete a draft; the editor is reset when it holds that draft.
    Deleting a draft that is already gone is a no-op.
    """
    ws.editor.delete(draft_id)
    return None


@router.get(
    "/api/drafts/{draft_id}/export",
    summary="Export Draft",
    responses={400: {"description": "Empty content"}, 404: {"description": "Draft not found"}},
)
def export_draft(draft_id: str, ws: Workspace = Depends(get_workspace)) -> Response:
    draft = ws.drafts.get(draft_id)
    if draft is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Draft not found")
    filename, text = ws.drafts.export_text(draft.get("title", ""), draft.get("content", ""))
    return _text_download(filename, text)


# ----------------------------------------------------------------- editor session


# PUBLIC_INTERFACE
@router.get("/api/editor", response_model=EditorOut, summary="Editor State")
def editor_state(ws: Workspace = Depends(get_workspace)) -> EditorOut:
    return _editor(ws)


# PUBLIC_INTERFACE
@router.put("/api/editor", response_model=EditorOut, summary="Edit")
def edit(payload: EditorEdit, ws: Workspace = Depends(get_workspace)) -> EditorOut:
    """
    Record what the editor shows and restart the autosave debounce window.
    """
    ws.editor.edit(payload.title, payload.content)
    return _editor(ws)


# PUBLIC_INTERFACE
@router.post("/api/editor/flush", response_model=EditorOut, summary="Flush Autosave")
def flush(ws: Workspace = Depends(get_workspace)) -> EditorOut:
    """
    Stage the current editor text immediately. Sent on blur and page unload.
    """
    ws.editor.unload()
    return _editor(ws)


# PUBLIC_INTERFACE
@router.post(
    "/api/editor/save",
    response_model=DraftOut,
    summary="Save Draft",
    responses={400: {"description": "Empty content"}},
)
def save(ws: Workspace = Depends(get_workspace)) -> DraftOut:
    """
    Commit the editor content to the drafts collection and clear the stage.
    """
    return DraftOut(**ws.editor.save())


@router.post("/api/editor/new", response_model=EditorOut, summary="New Draft")
def new_draft(payload: EditorNew, ws: Workspace = Depends(get_workspace)) -> EditorOut:
    ws.editor.new(save_current=payload.save_current)
    return _editor(ws)


@router.post(
    "/api/editor/load/{draft_id}",
    response_model=EditorOut,
    summary="Load Draft",
    responses={404: {"description": "Draft not found"}},
)
def load_draft(draft_id: str, ws: Workspace = Depends(get_workspace)) -> EditorOut:
    if ws.editor.load(draft_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Draft not found")
    return _editor(ws)


@router.get("/api/editor/export", summary="Export Editor Text", responses={400: {"description": "Empty content"}})
def export_editor(ws: Workspace = Depends(get_workspace)) -> Response:
    filename, text = ws.editor.export_text()
    return _text_download(filename, text)


# PUBLIC_INTERFACE
@router.get("/api/editor/recovery", response_model=RecoveryOut, summary="Recovery Result")
def recovery(ws: Workspace = Depends(get_workspace)) -> RecoveryOut:
    """
    Report what crash recovery did when the workspace opened.
    """
    result = ws.editor.open()
    return RecoveryOut(
        outcome=result.outcome.value,
        draft=DraftOut(**result.draft) if result.draft else None,
    )
