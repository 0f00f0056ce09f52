import os
import sys
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

import pytest
from fastapi.testclient import TestClient

from judge.config import SandboxSettings, clear_settings_cache
from judge.pipeline import clear_execution_log
from judge.sandbox import SandboxedExecutor


@pytest.fixture
def scratch_dir(tmp_path):
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def sandbox_settings(scratch_dir):
    return SandboxSettings(
        scratch_dir=str(scratch_dir),
        interpreter=sys.executable,
        timeout_sec=20,
        memory_limit_mb=1024,
    )


@pytest.fixture
def executor(sandbox_settings):
    return SandboxedExecutor(sandbox_settings)


@pytest.fixture
def client(monkeypatch, scratch_dir):
    monkeypatch.setenv("SANDBOX_SCRATCH_DIR", str(scratch_dir))
    monkeypatch.setenv("SANDBOX_INTERPRETER", sys.executable)
    monkeypatch.setenv("SANDBOX_TIMEOUT_SEC", "20")
    monkeypatch.setenv("SANDBOX_MEMORY_LIMIT_MB", "1024")
    clear_settings_cache()
    clear_execution_log()

    import judge.main as main

    with TestClient(main.app) as c:
        yield c
    clear_settings_cache()
