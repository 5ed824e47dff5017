"""
Tests for configuration loading.
"""

import pytest

from family_hub.config import Settings, get_settings, validate_all_settings


SECTION_VARS = (
    "BACKEND",
    "STATE_DIR",
    "FAMILY_HUB_API_BASE_URL",
    "FAMILY_HUB_API_TIMEOUT_SECONDS",
    "GOOGLE_SHEETS_CREDENTIALS_PATH",
    "GOOGLE_SHEETS_SPREADSHEET_ID",
    "PUSH_VAPID_PUBLIC_KEY",
)


@pytest.fixture
def env_dir(monkeypatch, tmp_path):
    for name in SECTION_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


class TestDotEnvLoading:
    """Tests that every settings section reads the .env file."""

    def test_every_section_reads_dotenv(self, env_dir):
        """Test that backend, API, Sheets and push values all come from .env."""
        credentials = env_dir / "service-account.json"
        credentials.write_text("{}", encoding="utf-8")
        (env_dir / ".env").write_text(
            "BACKEND=memory\n"
            "FAMILY_HUB_API_BASE_URL=http://api.example:9000/\n"
            "FAMILY_HUB_API_TIMEOUT_SECONDS=4\n"
            f"GOOGLE_SHEETS_CREDENTIALS_PATH={credentials}\n"
            "GOOGLE_SHEETS_SPREADSHEET_ID=sheet-abc\n"
            "PUSH_VAPID_PUBLIC_KEY=abc123\n",
            encoding="utf-8",
        )

        settings = get_settings()

        assert settings.app.backend == "memory"
        assert settings.api.base_url == "http://api.example:9000"
        assert settings.api.timeout_seconds == 4.0
        assert settings.google_sheets.spreadsheet_id == "sheet-abc"
        assert settings.google_sheets.credentials_path == str(credentials)
        assert settings.push.vapid_public_key == "abc123"
        assert settings.push.is_configured

    def test_environment_overrides_dotenv(self, env_dir, monkeypatch):
        """Test that a real environment variable wins over the .env value."""
        (env_dir / ".env").write_text("PUSH_VAPID_PUBLIC_KEY=from-file\n", encoding="utf-8")
        monkeypatch.setenv("PUSH_VAPID_PUBLIC_KEY", "from-env")

        assert Settings().push.vapid_public_key == "from-env"

    def test_missing_sheets_section_reported(self, env_dir):
        """Test that an unconfigured Sheets section fails validation on its own."""
        (env_dir / ".env").write_text("BACKEND=memory\n", encoding="utf-8")

        results = validate_all_settings()

        assert results["app"] is True
        assert results["api"] is True
        assert results["google_sheets"] is False
        assert "google_sheets_error" in results
