import json

from daybook.generate_openapi import generate_openapi
from daybook.settings import get_settings
from daybook.utils import format_duration, is_date_key


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("STORAGE_BACKEND", "STORAGE_PREFIX", "AUTOSAVE_DELAY_MS", "CORS_ALLOW_ORIGINS", "PORT", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        settings = get_settings()
        assert settings.storage_backend == "file"
        assert settings.storage_prefix == "ptr"
        assert settings.autosave_delay_ms == 1000
        assert settings.cors_allow_origins == ["*"]
        assert settings.port == 3000
        assert settings.log_level == "INFO"

    def test_overrides_and_fallbacks(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "SQLite")
        monkeypatch.setenv("AUTOSAVE_DELAY_MS", "250")
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test")
        monkeypatch.setenv("PORT", "not-a-number")
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        settings = get_settings()
        assert settings.storage_backend == "sqlite"
        assert settings.autosave_delay_ms == 250
        assert settings.cors_allow_origins == ["http://a.test", "http://b.test"]
        assert settings.port == 3000
        assert settings.log_level == "INFO"

    def test_unknown_backend_falls_back_to_file(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "redis")
        assert get_settings().storage_backend == "file"


class TestUtils:
    def test_is_date_key(self):
        assert is_date_key("2025-02-01")
        assert not is_date_key("2025-2-1")
        assert not is_date_key("2025-02-30")

    def test_format_duration(self):
        assert format_duration(45 * 60_000) == "45m"
        assert format_duration(125 * 60_000) == "2h5m"


class TestOpenAPI:
    def test_schema_written_with_tags(self, tmp_path):
        path = generate_openapi(str(tmp_path / "interfaces" / "openapi.json"))
        with open(path, encoding="utf-8") as f:
            schema = json.load(f)
        assert {t["name"] for t in schema["tags"]} == {"health", "time", "todos", "drafts", "files"}
        assert "/api/todos/{todo_id}/move" in schema["paths"]
        assert "/d/{file_id}" in schema["paths"]
