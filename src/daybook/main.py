from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .exceptions import DaybookError, RecordNotFound
from .routers import drafts as drafts_router
from .routers import files as files_router
from .routers import time_entries as time_entries_router
from .routers import todos as todos_router
from .settings import Settings, get_settings
from .workspace import Workspace

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "time", "description": "Stopwatch sessions, time entries, day summaries and export."},
    {"name": "todos", "description": "Per-day ordered todo lists with drag-to-reorder."},
    {"name": "drafts", "description": "Text drafts and the autosaving editor session."},
    {"name": "files", "description": "File upload, listing, deletion and short download links."},
]


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the server process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, workspace: Optional[Workspace] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The workspace is opened (crash recovery runs) when the app starts and
    closed (the autosave stage is flushed) when it shuts down.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        ws = workspace or Workspace(settings)
        ws.open()
        app.state.workspace = ws
        try:
            yield
        finally:
            ws.close()
            app.state.workspace = None

    app = FastAPI(
        title="Daybook",
        description="Local-first time tracking, todos and drafts, with a small file sharing service.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "detail": [... pydantic/fastapi error details ...],
                "message": "Request validation failed"
            }
        """
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(DaybookError)
    async def daybook_exception_handler(request: Request, exc: DaybookError) -> JSONResponse:
        """
        Surface domain errors as a user-facing message: {"error": "..."}.
        """
        status_code = 404 if isinstance(exc, RecordNotFound) else 400
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"error": str(exc)})

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.storage_backend}

    app.include_router(time_entries_router.router)
    app.include_router(todos_router.router)
    app.include_router(drafts_router.router)
    app.include_router(files_router.router)
    return app


app = create_app()


def main() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Starting daybook on %s:%s", settings.host, settings.port)
    uvicorn.run("daybook.main:app", host=settings.host, port=settings.port, reload=False)


if __name__ == "__main__":
    main()
