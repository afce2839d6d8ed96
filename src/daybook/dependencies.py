from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Request, status

from .utils import date_key, is_date_key
from .workspace import Workspace


# PUBLIC_INTERFACE
def get_workspace(request: Request) -> Workspace:
    """Dependency returning the workspace opened by the app lifespan."""
    workspace: Optional[Workspace] = getattr(request.app.state, "workspace", None)
    if workspace is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Workspace not open")
    return workspace


def resolve_day(value: Optional[str]) -> str:
    """Return value as a day key, today when omitted; 400 when malformed."""
    if value is None or not value.strip():
        return date_key()
    day = value.strip()
    if not is_date_key(day):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="date must be formatted YYYY-MM-DD")
    return day
