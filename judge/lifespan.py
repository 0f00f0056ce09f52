"""Lifespan management for the FastAPI application.

Startup prepares the scratch directory and creates the executor and the
admission limiter; shutdown clears them again.
"""

import logging
import os
from dataclasses import dataclass

from judge import state
from judge.admission import AdmissionLimiter
from judge.config import get_settings
from judge.sandbox import SandboxedExecutor

logger = logging.getLogger(__name__)


@dataclass
class LifespanResources:
    """Container for resources initialized during lifespan."""

    executor: SandboxedExecutor | None = None
    admission: AdmissionLimiter | None = None
    scratch_dir: str | None = None


def init_scratch_dir() -> str:
    """Create the configured scratch directory if it does not exist.

    Returns:
        The scratch directory path.
    """
    path = get_settings().sandbox.scratch_path
    os.makedirs(path, exist_ok=True)
    return path


def init_executor() -> SandboxedExecutor:
    """Create the executor and report whether it can run anything.

    Returns:
        Configured executor.
    """
    settings = get_settings()
    executor = SandboxedExecutor(settings.sandbox)
    if executor.is_available():
        logger.info(
            "Sandbox ready: isolation=%s interpreter=%s scratch=%s",
            settings.sandbox.isolation,
            settings.sandbox.interpreter,
            executor.scratch_dir,
        )
    else:
        logger.warning(
            "Sandbox interpreter unavailable: isolation=%s interpreter=%s image=%s",
            settings.sandbox.isolation,
            settings.sandbox.interpreter,
            settings.sandbox.image,
        )
    return executor


def init_admission() -> AdmissionLimiter:
    settings = get_settings()
    return AdmissionLimiter(
        max_concurrent=settings.service.max_concurrent,
        queue_timeout=settings.service.queue_timeout_sec,
    )


async def setup_resources() -> LifespanResources:
    """Set up all shared resources.

    Returns:
        LifespanResources containing all initialized resources.
    """
    resources = LifespanResources()
    resources.scratch_dir = init_scratch_dir()
    resources.executor = init_executor()
    resources.admission = init_admission()

    state.executor = resources.executor
    state.admission = resources.admission

    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    """Clean up all resources on shutdown.

    Args:
        resources: The resources to clean up.
    """
    if resources.admission and resources.admission.active:
        logger.warning("Shutting down with %d runs in flight", resources.admission.active)

    state.executor = None
    state.admission = None
