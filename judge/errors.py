"""Standardized error handling for the judge.

This module provides:
1. Execution errors raised by the pipeline stages, normalized into the
   run verdict failure shape at the pipeline boundary
2. API errors for HTTP-level failures, with a FastAPI exception handler
3. Standard error response models

Usage:
    from judge.errors import MissingEntryPoint, ServiceUnavailableError

    # In pipeline stages:
    raise MissingEntryPoint('The function "twoSum" is not defined.')

    # Register handlers in main.py:
    from judge.errors import register_exception_handlers
    register_exception_handlers(app)
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    detail: str | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None


class ExecutionError(Exception):
    """Base class for failures of a single submission run.

    These never reach the HTTP layer as faults; the pipeline turns them
    into a ``success: false`` verdict.
    """

    error: str = "execution_error"
    message: str = "Failed to execute code"

    def __init__(self, message: str | None = None, **context: Any) -> None:
        self.message = message or self.__class__.message
        self.context = context if context else None
        super().__init__(self.message)


class MissingEntryPoint(ExecutionError):
    error = "missing_entry_point"
    message = "The required function is not defined"


class AmbiguousCallConvention(ExecutionError):
    """The entry point cannot be tied to a single function or class."""

    error = "ambiguous_call_convention"
    message = "Cannot determine how to call the entry point"


class HarnessConstructionError(ExecutionError):
    error = "harness_construction_error"
    message = "Failed to build the test harness"


class ProcessLaunchFailure(ExecutionError):
    error = "process_launch_failure"
    message = "Failed to start the interpreter"


class ProcessRuntimeFailure(ExecutionError):
    error = "process_runtime_failure"
    message = "Process exited with an error"


class ProcessTimeout(ProcessRuntimeFailure):
    error = "process_timeout"
    message = "Execution timed out"


class OutputParseFailure(ExecutionError):
    error = "output_parse_failure"
    message = "Failed to parse Python output"


class HarnessInternalError(ExecutionError):
    """An exception raised inside the generated harness itself."""

    error = "harness_internal_error"
    message = "The test harness reported an error"


class FilesystemError(ExecutionError):
    error = "filesystem_error"
    message = "Failed to manage the harness file"


class APIError(Exception):
    """Base class for API errors."""

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: str | None = None,
        error_code: str | None = None,
        **context: Any,
    ) -> None:
        self.detail = detail or self.__class__.detail
        self.error_code = error_code
        self.context = context if context else None
        super().__init__(self.detail)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        return ErrorResponse(
            error=self.error,
            detail=self.detail,
            error_code=self.error_code,
            context=self.context,
        )


class ServiceUnavailableError(APIError):
    """Service unavailable error (503)."""

    status_code = 503
    error = "service_unavailable"
    detail = "Service temporarily unavailable"


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors."""
    logger.warning(
        "API error: %s (status=%d, path=%s)",
        exc.detail,
        exc.status_code,
        request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(APIError, api_error_handler)
