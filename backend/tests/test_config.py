"""
Tests for application configuration.
"""

import os
from unittest.mock import patch

import pytest

from services.errors import ConfigurationError


class TestEnums:
    """Tests for configuration enums."""

    def test_app_mode_values(self):
        from config import AppMode

        assert AppMode("dev") == AppMode.DEV
        assert AppMode("prod") == AppMode.PROD

    def test_backend_and_policy_values(self):
        from config import AIBackend, NoChangePolicy

        assert AIBackend("vertex") == AIBackend.VERTEX
        assert NoChangePolicy("reject") == NoChangePolicy.REJECT


class TestSettingsDefaults:
    """Tests for Settings default values."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            from config import AIBackend, AppMode, NoChangePolicy, Settings

            settings = Settings()
            assert settings.APP_MODE == AppMode.DEV
            assert settings.AI_BACKEND == AIBackend.GEMINI
            assert settings.IMAGE_MODEL == "gemini-2.5-flash-image-preview"
            assert settings.GOOGLE_LOCATION is None
            assert settings.NO_CHANGE_POLICY == NoChangePolicy.PASSTHROUGH
            assert settings.LOG_LEVEL == "INFO"

    def test_default_retry_policy(self):
        with patch.dict(os.environ, {}, clear=True):
            from config import Settings

            settings = Settings()
            assert settings.GENERATION_MAX_RETRIES == 2
            assert settings.GENERATION_BASE_DELAY_MS == 1000
            assert settings.GENERATION_JITTER_MS == 100
            assert settings.API_TIMEOUT_SECONDS == 120.0

    def test_default_image_dimensions(self):
        with patch.dict(os.environ, {}, clear=True):
            from config import Settings

            settings = Settings()
            assert (settings.DEFAULT_IMAGE_WIDTH, settings.DEFAULT_IMAGE_HEIGHT) == (1024, 1024)


class TestSettingsFromEnv:
    """Tests for Settings loading from environment variables."""

    def test_backend_from_env(self):
        env = {
            "AI_BACKEND": "vertex",
            "GOOGLE_PROJECT_ID": "demo-project",
            "GOOGLE_LOCATION": "asia-northeast1",
        }
        with patch.dict(os.environ, env, clear=True):
            from config import AIBackend, Settings

            settings = Settings()
            assert settings.AI_BACKEND == AIBackend.VERTEX
            assert settings.GOOGLE_PROJECT_ID == "demo-project"
            assert settings.GOOGLE_LOCATION == "asia-northeast1"

    def test_retry_policy_from_env(self):
        env = {"GENERATION_MAX_RETRIES": "4", "GENERATION_BASE_DELAY_MS": "250"}
        with patch.dict(os.environ, env, clear=True):
            from config import Settings

            settings = Settings()
            assert settings.GENERATION_MAX_RETRIES == 4
            assert settings.GENERATION_BASE_DELAY_MS == 250

    def test_zero_attempts_rejected(self):
        from pydantic import ValidationError

        with patch.dict(os.environ, {"GENERATION_MAX_RETRIES": "0"}, clear=True):
            from config import Settings

            with pytest.raises(ValidationError):
                Settings()

    def test_has_vertex_credentials(self):
        env = {"GOOGLE_CLIENT_EMAIL": "svc@example.com", "GOOGLE_PRIVATE_KEY": "pem"}
        with patch.dict(os.environ, env, clear=True):
            from config import Settings

            assert Settings().has_vertex_credentials is True


@pytest.mark.usefixtures("clear_settings_cache")
class TestValidateSettings:
    """Fail-fast guardrails applied by get_settings()."""

    def test_invalid_location_rejected(self):
        with patch.dict(os.environ, {"GOOGLE_LOCATION": "moon-base1"}, clear=True):
            import config

            with pytest.raises(ConfigurationError, match="Invalid Google Cloud location: moon-base1"):
                config.get_settings()

    def test_prod_rejects_debug(self):
        env = {"APP_MODE": "prod", "DEBUG": "true", "GEMINI_API_KEY": "k"}
        with patch.dict(os.environ, env, clear=True):
            import config

            with pytest.raises(ConfigurationError, match="DEBUG=True in production"):
                config.get_settings()

    def test_prod_requires_gemini_key(self):
        with patch.dict(os.environ, {"APP_MODE": "prod"}, clear=True):
            import config

            with pytest.raises(ConfigurationError, match="GEMINI_API_KEY is required"):
                config.get_settings()

    def test_prod_requires_vertex_credentials(self):
        env = {"APP_MODE": "prod", "AI_BACKEND": "vertex", "GOOGLE_PROJECT_ID": "p"}
        with patch.dict(os.environ, env, clear=True):
            import config

            with pytest.raises(ConfigurationError, match="Service Account credentials"):
                config.get_settings()

    def test_dev_without_key_only_warns(self):
        with patch.dict(os.environ, {}, clear=True):
            import config

            settings = config.get_settings()
            assert settings.GEMINI_API_KEY == ""

    def test_get_settings_is_cached(self):
        with patch.dict(os.environ, {"GEMINI_API_KEY": "k"}, clear=True):
            import config

            assert config.get_settings() is config.get_settings()
