"""Turn captured harness output into an :class:`ExecutionOutcome`.

Every way a run can go wrong is classified by raising one of the
:mod:`judge.errors` execution errors; the pipeline converts those into a
failed verdict.
"""

import json
from typing import Any

from judge.errors import (
    FilesystemError,
    HarnessInternalError,
    OutputParseFailure,
    ProcessLaunchFailure,
    ProcessRuntimeFailure,
    ProcessTimeout,
)
from judge.literals import clip_text, normalize_expected_literal, outputs_match
from judge.models.execution import CaseResult, ExecutionOutcome, TestSpec
from judge.sandbox import ProcessOutcome

RAW_OUTPUT_EXCERPT = 500

ALL_PASSED = "All test cases passed!"
SOME_FAILED = "Some test cases failed."


def _truthy(value: Any) -> bool:
    return value is True or value == "True"


def _excerpt(text: str) -> str:
    if len(text) > RAW_OUTPUT_EXCERPT:
        return text[:RAW_OUTPUT_EXCERPT] + "..."
    return text


def _text(value: Any) -> str:
    """Text taken from the child, with lone surrogates escaped so it can be encoded."""
    return str(value).encode("utf-8", "backslashreplace").decode("utf-8")


def _parse_document(stdout: str) -> list[dict[str, Any]]:
    try:
        document = json.loads(stdout)
    except ValueError as e:
        raise OutputParseFailure(
            f"Failed to parse Python output: {e}\nRaw output: {_excerpt(stdout)!r}"
        ) from e
    if not isinstance(document, list) or not all(isinstance(item, dict) for item in document):
        raise OutputParseFailure(
            f"Failed to parse Python output: expected a list of results\nRaw output: {_excerpt(stdout)!r}"
        )
    return document


def _check_process(outcome: ProcessOutcome) -> None:
    if outcome.launch_error:
        raise ProcessLaunchFailure(f"Failed to start interpreter: {outcome.launch_error}")
    if outcome.filesystem_error:
        raise FilesystemError(f"Failed to write test harness: {outcome.filesystem_error}")
    if outcome.timed_out:
        if outcome.timeout_sec is None:
            raise ProcessTimeout()
        raise ProcessTimeout(f"Execution timed out after {outcome.timeout_sec:g} seconds")
    if outcome.return_code != 0 or outcome.stderr.strip():
        stderr = outcome.stderr.strip()
        raise ProcessRuntimeFailure(
            stderr or f"Process exited with status {outcome.return_code}",
            return_code=outcome.return_code,
        )


def _case_result(raw: dict[str, Any], spec: TestSpec | None) -> CaseResult:
    if raw.get("error"):
        return CaseResult(error=_text(raw["error"]))
    actual = raw.get("actual")
    passed = _truthy(raw.get("passed"))
    # the child's verdict only stands if it agrees with the caller's expectation
    if spec is not None:
        expected = clip_text(normalize_expected_literal(spec.expected_output_literal))
        passed = passed and outputs_match(actual, expected)
    try:
        execution_time = float(raw.get("execution_time") or 0)
    except (TypeError, ValueError):
        execution_time = 0.0
    stdout = raw.get("stdout")
    return CaseResult(
        input=None if raw.get("input") is None else _text(raw["input"]),
        expected=None if raw.get("expected") is None else _text(raw["expected"]),
        actual=None if actual is None else _text(actual),
        passed=passed,
        execution_time=execution_time,
        stdout=_text(stdout) if stdout else None,
    )


def interpret(outcome: ProcessOutcome, cases: list[TestSpec] | None = None) -> ExecutionOutcome:
    """Classify ``outcome``; ``cases`` are the specs the harness was built from."""
    _check_process(outcome)
    document = _parse_document(outcome.stdout)

    if len(document) == 1 and document[0].get("error"):
        raise HarnessInternalError(_text(document[0]["error"]))
    if cases is not None and len(document) != len(cases):
        raise OutputParseFailure(
            f"Failed to parse Python output: expected {len(cases)} results, got {len(document)}"
            f"\nRaw output: {_excerpt(outcome.stdout)!r}"
        )

    results = [
        _case_result(raw, cases[idx] if cases is not None else None)
        for idx, raw in enumerate(document)
    ]
    overall = bool(results) and all(r.passed is True and r.error is None for r in results)
    total = sum(r.execution_time or 0.0 for r in results)
    return ExecutionOutcome(
        per_case_results=results,
        overall_success=overall,
        total_execution_time=total,
    )


def summarize(outcome: ExecutionOutcome) -> str:
    return ALL_PASSED if outcome.overall_success else SOME_FAILED


def format_duration(seconds: float) -> str:
    return f"{seconds:.4f}s"
