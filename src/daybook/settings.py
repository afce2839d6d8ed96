from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

_BACKENDS = {"memory", "file", "sqlite"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - STORAGE_BACKEND: 'file' (default), 'memory' or 'sqlite'
    - DATA_DIR: directory for the file backend. Default './data'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/daybook.db'
    - STORAGE_PREFIX: prefix of every collection key. Default 'ptr'
    - AUTOSAVE_DELAY_MS: debounce window of the draft autosave. Default 1000
    - UPLOAD_DIR: directory holding uploaded file blobs. Default './uploads'
    - MAX_UPLOAD_BYTES: largest accepted upload. Default 15 GiB
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - HOST / PORT: bind address of the uvicorn server. Default 0.0.0.0:3000
    - LOG_LEVEL: root log level. Default INFO
    """

    storage_backend: str
    data_dir: str
    sqlite_db_path: str
    storage_prefix: str
    autosave_delay_ms: int
    upload_dir: str
    max_upload_bytes: int
    cors_allow_origins: List[str]
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int, minimum: int = 0) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("STORAGE_BACKEND", "file").strip().lower()
    if backend not in _BACKENDS:
        # Fallback to the file backend if unsupported
        backend = "file"

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        log_level = "INFO"

    return Settings(
        storage_backend=backend,
        data_dir=_get_env("DATA_DIR", "./data").strip(),
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/daybook.db").strip(),
        storage_prefix=_get_env("STORAGE_PREFIX", "ptr").strip(),
        autosave_delay_ms=_parse_int(_get_env("AUTOSAVE_DELAY_MS", "1000"), 1000),
        upload_dir=_get_env("UPLOAD_DIR", "./uploads").strip(),
        max_upload_bytes=_parse_int(_get_env("MAX_UPLOAD_BYTES", str(15 * 1024 ** 3)), 15 * 1024 ** 3, 1),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("PORT", "3000"), 3000, 1),
        log_level=log_level,
    )
