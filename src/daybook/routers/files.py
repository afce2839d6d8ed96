from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, PlainTextResponse

from ..dependencies import get_workspace
from ..exceptions import BlobMissing, RecordNotFound
from ..schemas import FileInfoOut, FileListOut, SuccessOut, UploadOut
from ..workspace import Workspace

router = APIRouter(tags=["files"])

_NOT_FOUND_PAGE = """<!DOCTYPE html>
<html>
<head><title>File not found</title></head>
<body style="font-family: sans-serif; text-align: center; padding: 50px;">
  <h1>404</h1>
  <p>The file does not exist or has been deleted.</p>
  <a href="/">Back to home</a>
</body>
</html>
"""


# PUBLIC_INTERFACE
@router.post(
    "/api/files/upload",
    response_model=UploadOut,
    summary="Upload File",
    responses={400: {"description": "No file, or file too large"}},
)
def upload_file(
    file: Optional[UploadFile] = File(None, description="The file to store"),
    ws: Workspace = Depends(get_workspace),
):
    """
    Store a multipart upload (form field 'file') and return its metadata
    together with a short download link.
    """
    if file is None:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "No file was uploaded"})
    info = ws.files.store_upload(file.filename or "upload", file.file, file.content_type)
    return UploadOut(file=FileInfoOut(**info), download_url=f"/d/{info['id']}")


# PUBLIC_INTERFACE
@router.get("/api/files", response_model=FileListOut, summary="List Files")
def list_files(ws: Workspace = Depends(get_workspace)) -> FileListOut:
    return FileListOut(files=[FileInfoOut(**f) for f in ws.files.list()])


# PUBLIC_INTERFACE
@router.delete(
    "/api/files/{file_id}",
    response_model=SuccessOut,
    summary="Delete File",
    responses={404: {"description": "File not found"}},
)
def delete_file(file_id: str, ws: Workspace = Depends(get_workspace)):
    if not ws.files.delete(file_id):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "File not found"})
    return SuccessOut()


# PUBLIC_INTERFACE
@router.get("/d/{file_id}", summary="Download File", include_in_schema=True)
def download(file_id: str, ws: Workspace = Depends(get_workspace)):
    """
    Stream a stored file as an attachment and count the download.
    """
    try:
        info, path = ws.files.open_download(file_id)
    except BlobMissing:
        return PlainTextResponse("The file has been removed.", status_code=status.HTTP_404_NOT_FOUND)
    except RecordNotFound:
        return HTMLResponse(_NOT_FOUND_PAGE, status_code=status.HTTP_404_NOT_FOUND)
    return FileResponse(
        path,
        media_type=info.get("mimetype") or "application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(info['originalName'])}"},
    )
