"""Dependency injection for FastAPI endpoints.

This module provides FastAPI dependencies for the executor and admission
limiter created during application startup.

Usage in controllers:
    from judge.dependencies import Executor

    @router.post("/example")
    async def example(executor: Executor):
        ...
"""

from typing import Annotated

from fastapi import Depends

from judge import state
from judge.admission import AdmissionLimiter
from judge.errors import ServiceUnavailableError
from judge.sandbox import SandboxedExecutor


def get_executor() -> SandboxedExecutor:
    """Get the sandboxed executor.

    Raises:
        ServiceUnavailableError: If the executor is not initialized.
    """
    if state.executor is None:
        raise ServiceUnavailableError(detail="Executor not initialized")
    return state.executor


def get_admission() -> AdmissionLimiter:
    """Get the admission limiter.

    Raises:
        ServiceUnavailableError: If the limiter is not initialized.
    """
    if state.admission is None:
        raise ServiceUnavailableError(detail="Admission limiter not initialized")
    return state.admission


def get_optional_executor() -> SandboxedExecutor | None:
    return state.executor


Executor = Annotated[SandboxedExecutor, Depends(get_executor)]
OptionalExecutor = Annotated[SandboxedExecutor | None, Depends(get_optional_executor)]
Admission = Annotated[AdmissionLimiter, Depends(get_admission)]
