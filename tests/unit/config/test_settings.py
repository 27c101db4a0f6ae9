"""Tests for Settings configuration class."""

from pathlib import Path

import pytest
from pydantic import ValidationError


class TestSettingsDefaults:
    """Test that Settings loads sensible defaults."""

    def test_settings_loads_with_defaults(self, monkeypatch):
        """Settings should load with default values when no env vars are set."""
        for var in [
            "DATABASE_PATH",
            "OBJECT_STORE_ROOT",
            "UPLOAD_BUCKET",
            "QUEUE_BACKEND",
            "REDIS_URL",
            "QUEUE_KEY",
            "WORKER_POLL_TIMEOUT",
            "WORKER_CONCURRENCY",
            "UPLOAD_RATE_LIMIT",
            "UPLOAD_RATE_WINDOW_SECONDS",
            "PRESIGN_EXPIRES_SECONDS",
            "MIN_TEXT_LENGTH",
            "DEFAULT_CREDITS",
            "LOG_LEVEL",
        ]:
            monkeypatch.delenv(var, raising=False)

        from resume_pipeline.config.settings import QueueBackend, Settings

        settings = Settings(_env_file=None)

        assert settings.database_path == Path("./data/resumes.db")
        assert settings.object_store_root == Path("./data/objects")
        assert settings.upload_bucket == "resume-uploads"
        assert settings.queue_backend == QueueBackend.MEMORY
        assert settings.redis_url == "redis://127.0.0.1:6379"
        assert settings.queue_key == "upload_jobs_v1"
        assert settings.worker_poll_timeout == 10.0
        assert settings.worker_concurrency == 1
        assert settings.upload_rate_limit == 10
        assert settings.upload_rate_window_seconds == 3600
        assert settings.rate_limit_storage_uri == "memory://"
        assert settings.presign_expires_seconds == 300
        assert settings.min_text_length == 1
        assert settings.default_credits == 0
        assert settings.log_level == "INFO"


class TestSettingsFromEnvironment:
    """Test that Settings reads from environment variables."""

    def test_reads_queue_backend_case_insensitively(self, monkeypatch):
        monkeypatch.setenv("QUEUE_BACKEND", "Redis")

        from resume_pipeline.config.settings import QueueBackend, Settings

        settings = Settings(_env_file=None)
        assert settings.queue_backend == QueueBackend.REDIS

    def test_reads_paths_from_env(self, monkeypatch):
        monkeypatch.setenv("DATABASE_PATH", "/custom/resumes.db")
        monkeypatch.setenv("OBJECT_STORE_ROOT", "/custom/objects")

        from resume_pipeline.config.settings import Settings

        settings = Settings(_env_file=None)
        assert settings.database_path == Path("/custom/resumes.db")
        assert settings.object_store_root == Path("/custom/objects")

    def test_reads_worker_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("WORKER_POLL_TIMEOUT", "2.5")
        monkeypatch.setenv("WORKER_CONCURRENCY", "4")

        from resume_pipeline.config.settings import Settings

        settings = Settings(_env_file=None)
        assert settings.worker_poll_timeout == 2.5
        assert settings.worker_concurrency == 4

    def test_log_level_is_upper_cased(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")

        from resume_pipeline.config.settings import Settings

        assert Settings(_env_file=None).log_level == "DEBUG"


class TestSettingsValidation:
    """Test that invalid values are rejected."""

    def test_rejects_unknown_queue_backend(self):
        from resume_pipeline.config.settings import Settings

        with pytest.raises(ValidationError):
            Settings(_env_file=None, queue_backend="kafka")

    def test_rejects_unknown_log_level(self):
        from resume_pipeline.config.settings import Settings

        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="LOUD")

    def test_rejects_blank_bucket(self):
        from resume_pipeline.config.settings import Settings

        with pytest.raises(ValidationError):
            Settings(_env_file=None, upload_bucket="   ")

    def test_rejects_zero_min_text_length(self):
        from resume_pipeline.config.settings import Settings

        with pytest.raises(ValidationError):
            Settings(_env_file=None, min_text_length=0)

    def test_rejects_non_positive_presign_expiry(self):
        from resume_pipeline.config.settings import Settings

        with pytest.raises(ValidationError):
            Settings(_env_file=None, presign_expires_seconds=0)


class TestSettingsSingleton:
    """Test the get_settings/reset_settings pair."""

    def test_get_settings_returns_same_instance(self):
        from resume_pipeline.config.settings import get_settings, reset_settings

        reset_settings()
        try:
            assert get_settings() is get_settings()
        finally:
            reset_settings()

    def test_reset_settings_creates_new_instance(self):
        from resume_pipeline.config.settings import get_settings, reset_settings

        reset_settings()
        first = get_settings()
        reset_settings()
        try:
            assert get_settings() is not first
        finally:
            reset_settings()
