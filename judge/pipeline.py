"""Submission pipeline: validate, build the harness, run it, interpret.

``run_submission`` is the single entry point used by the HTTP layer and
never raises for a bad submission; every failure comes back as a
``success: false`` :class:`RunResponse`.
"""

import hashlib
import logging
import threading
import time
from collections import deque
from datetime import UTC, datetime
from typing import Any

from judge.errors import ExecutionError, HarnessConstructionError
from judge.harness import build_harness
from judge.models.execution import RunResponse, Submission, TestSpec
from judge.results import format_duration, interpret, summarize
from judge.sandbox import SandboxedExecutor
from judge.validator import validate_submission

_logger = logging.getLogger("judge.pipeline")

EXECUTION_LOG_SIZE = 1000

_execution_log: deque[dict[str, Any]] = deque(maxlen=EXECUTION_LOG_SIZE)
_execution_log_lock = threading.Lock()


def _code_hash(code: str) -> str:
    return hashlib.sha256(code.encode()).hexdigest()[:16]


def _log_execution(
    submission: Submission,
    case_count: int,
    success: bool,
    error_type: str | None,
    duration_ms: int,
) -> None:
    entry = {
        "timestamp": datetime.now(UTC).isoformat(),
        "entry_point": submission.entry_point,
        "code_hash": _code_hash(submission.source_code),
        "success": success,
        "error_type": error_type,
        "case_count": case_count,
        "duration_ms": duration_ms,
    }
    with _execution_log_lock:
        _execution_log.append(entry)

    _logger.info(
        "Submission run: entry_point=%s success=%s error=%s cases=%d duration=%dms code_hash=%s",
        submission.entry_point, success, error_type or "-", case_count, duration_ms, entry["code_hash"],
    )


def get_execution_log(limit: int = 50) -> list[dict[str, Any]]:
    with _execution_log_lock:
        entries = list(_execution_log)
    return entries[-limit:] if limit > 0 else []


def clear_execution_log() -> None:
    with _execution_log_lock:
        _execution_log.clear()


def _evaluate(
    submission: Submission,
    cases: list[TestSpec],
    executor: SandboxedExecutor,
) -> RunResponse:
    settings = executor.settings
    if len(submission.source_code) > settings.max_source_chars:
        raise HarnessConstructionError(
            f"Submission too large ({len(submission.source_code)} > {settings.max_source_chars} characters)"
        )

    validation = validate_submission(submission.source_code, submission.entry_point)
    # docker enforces its own memory and pids limits
    in_process = settings.isolation == "process"
    harness = build_harness(
        submission.model_copy(update={"source_code": validation.source}),
        cases,
        timeout_sec=settings.timeout_sec,
        memory_limit_mb=settings.memory_limit_mb if in_process else 0,
        process_limit=settings.pids_limit if in_process else 0,
    )
    outcome = interpret(executor.run(harness.program), cases)
    return RunResponse(
        success=outcome.overall_success,
        output=summarize(outcome),
        test_results=outcome.per_case_results,
        execution_time=format_duration(outcome.total_execution_time),
        message=validation.message,
    )


def run_submission(
    submission: Submission,
    cases: list[TestSpec],
    executor: SandboxedExecutor,
) -> RunResponse:
    """Judge ``submission`` against ``cases`` and return the verdict."""
    start_time = time.time()
    error_type = None
    try:
        response = _evaluate(submission, cases, executor)
    except ExecutionError as e:
        error_type = e.error
        response = RunResponse(success=False, error=e.message, error_type=e.error)
    except Exception as e:
        _logger.exception("Unexpected failure while running submission")
        error_type = "internal_error"
        response = RunResponse(
            success=False,
            error=f"Failed to execute code: {e}",
            error_type=error_type,
        )

    duration_ms = int((time.time() - start_time) * 1000)
    _log_execution(submission, len(cases), response.success, error_type, duration_ms)
    return response
