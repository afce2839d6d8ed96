"""
Daybook: local-first time tracking, todos and drafts behind a FastAPI app.

The application factory lives in daybook.main (create_app); the shared
app instance used by uvicorn is daybook.main.app.
"""

__version__ = "0.1.0"
