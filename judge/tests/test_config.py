"""Tests for centralized configuration module."""

import os
import sys
import tempfile
from unittest.mock import patch

import pytest
from pydantic import ValidationError


class TestSandboxSettings:
    """Test sandbox configuration settings."""

    def test_sandbox_default_values(self):
        """Test sandbox settings have sensible defaults."""
        from judge.config import SandboxSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = SandboxSettings()
            assert settings.isolation == "process"
            assert settings.interpreter == (sys.executable or "python3")
            assert settings.timeout_sec == 10.0
            assert settings.memory_limit_mb == 256
            assert settings.max_output_chars == 50000
            assert settings.max_result_chars == 2_000_000
            assert settings.scratch_path == tempfile.gettempdir()

    def test_sandbox_from_environment(self):
        """Test sandbox settings can be loaded from environment."""
        from judge.config import SandboxSettings

        env = {
            "SANDBOX_ISOLATION": "docker",
            "SANDBOX_INTERPRETER": "/usr/bin/python3",
            "SANDBOX_SCRATCH_DIR": "/var/tmp/judge",
            "SANDBOX_TIMEOUT_SEC": "2.5",
            "SANDBOX_MEMORY_LIMIT_MB": "0",
            "SANDBOX_IMAGE": "judge-runner:1",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = SandboxSettings()
            assert settings.isolation == "docker"
            assert settings.interpreter == "/usr/bin/python3"
            assert settings.scratch_path == "/var/tmp/judge"
            assert settings.timeout_sec == 2.5
            assert settings.memory_limit_mb == 0
            assert settings.image == "judge-runner:1"

    def test_unknown_isolation_rejected(self):
        """Test that only known isolation modes are accepted."""
        from judge.config import SandboxSettings

        with patch.dict(os.environ, {"SANDBOX_ISOLATION": "chroot"}, clear=True):
            with pytest.raises(ValidationError):
                SandboxSettings()

    def test_non_positive_timeout_rejected(self):
        from judge.config import SandboxSettings

        with patch.dict(os.environ, {"SANDBOX_TIMEOUT_SEC": "0"}, clear=True):
            with pytest.raises(ValidationError):
                SandboxSettings()


class TestServiceSettings:
    def test_service_defaults(self):
        from judge.config import ServiceSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = ServiceSettings()
            assert settings.max_concurrent == 8
            assert settings.queue_timeout_sec == 30.0
            assert settings.log_level == "INFO"

    def test_service_from_environment(self):
        from judge.config import ServiceSettings

        env = {"JUDGE_MAX_CONCURRENT": "2", "JUDGE_QUEUE_TIMEOUT_SEC": "0.5"}
        with patch.dict(os.environ, env, clear=True):
            settings = ServiceSettings()
            assert settings.max_concurrent == 2
            assert settings.queue_timeout_sec == 0.5


class TestCorsSettings:
    """Test CORS configuration settings."""

    def test_cors_default_values(self):
        """Test CORS settings have sensible defaults."""
        from judge.config import CorsSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = CorsSettings()
            assert "http://localhost:3000" in settings.origins
            assert settings.allow_credentials is True

    def test_cors_wildcard_disables_credentials(self):
        """Test that wildcard origin disables credentials."""
        from judge.config import CorsSettings

        with patch.dict(os.environ, {"CORS_ORIGINS": "*"}, clear=True):
            settings = CorsSettings()
            assert settings.origins == ["*"]
            assert settings.allow_credentials is False


class TestSettings:
    """Test main Settings class that combines all settings."""

    def test_settings_singleton_pattern(self):
        """Test that get_settings returns the same instance."""
        from judge.config import get_settings

        s1 = get_settings()
        s2 = get_settings()
        assert s1 is s2

    def test_clear_settings_cache(self):
        from judge.config import clear_settings_cache, get_settings

        s1 = get_settings()
        clear_settings_cache()
        assert get_settings() is not s1

    def test_settings_has_all_subsections(self):
        """Test that Settings contains all configuration sections."""
        from judge.config import Settings

        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()
            assert hasattr(settings, "sandbox")
            assert hasattr(settings, "service")
            assert hasattr(settings, "cors")
            assert hasattr(settings, "debug")

    @pytest.mark.parametrize("raw,expected", [("1", True), ("yes", True), ("0", False), ("off", False)])
    def test_debug_settings(self, raw, expected):
        """Test debug flag configuration."""
        from judge.config import Settings

        with patch.dict(os.environ, {"REQUEST_DEBUG": raw}, clear=True):
            settings = Settings()
            assert settings.debug.request is expected
