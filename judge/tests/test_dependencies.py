"""Tests for dependency injection."""

import pytest
from unittest.mock import MagicMock, patch

from judge import state
from judge.errors import ServiceUnavailableError


class TestGetExecutor:
    """Test get_executor dependency."""

    def test_get_executor_returns_executor_when_initialized(self):
        """Test that get_executor returns the executor when initialized."""
        from judge.dependencies import get_executor

        mock_executor = MagicMock()
        with patch.object(state, "executor", mock_executor):
            assert get_executor() is mock_executor

    def test_get_executor_raises_when_not_initialized(self):
        """Test that get_executor raises ServiceUnavailableError when not initialized."""
        from judge.dependencies import get_executor

        with patch.object(state, "executor", None):
            with pytest.raises(ServiceUnavailableError) as exc_info:
                get_executor()
            assert "Executor not initialized" in str(exc_info.value.detail)


class TestGetOptionalExecutor:
    def test_returns_none_when_not_initialized(self):
        from judge.dependencies import get_optional_executor

        with patch.object(state, "executor", None):
            assert get_optional_executor() is None


class TestGetAdmission:
    """Test get_admission dependency."""

    def test_get_admission_returns_limiter(self):
        from judge.dependencies import get_admission

        mock_limiter = MagicMock()
        with patch.object(state, "admission", mock_limiter):
            assert get_admission() is mock_limiter

    def test_get_admission_raises_when_not_initialized(self):
        from judge.dependencies import get_admission

        with patch.object(state, "admission", None):
            with pytest.raises(ServiceUnavailableError) as exc_info:
                get_admission()
            assert "Admission limiter not initialized" in str(exc_info.value.detail)
