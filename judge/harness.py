"""Test harness generation.

A harness is a standalone Python program that loads the submission,
runs every test case against the entry point and prints one JSON list of
case results. Everything taken from the request (submission text, entry
point, cases) is embedded as string data via ``repr`` and never spliced
into the program as code.
"""

import json
import math
from dataclasses import dataclass
from string import Template

from judge.errors import AmbiguousCallConvention, HarnessConstructionError
from judge.literals import (
    RESULT_FIELD_LIMIT,
    TRUNCATION_SUFFIX,
    normalize_expected_literal,
    normalize_input_literal,
    parse_input_literal,
)
from judge.models.execution import CallConvention, Submission, TestSpec
from judge.validator import check_entry_point_name, locate_definitions

DEFAULT_CLASS_NAME = "Solution"
FILE_SIZE_LIMIT = 10 * 1024 * 1024
OPEN_FILES_LIMIT = 64
CAPTURED_OUTPUT_LIMIT = 10000

_TEMPLATE = Template('''\
# coding: utf-8
# Generated test harness.
import ast
import contextlib
import io
import json
import sys
import time

SOURCE = $source
ENTRY_POINT = $entry_point
CLASS_NAME = $class_name
CASES = json.loads($cases)
LIMITS = $limits
OUTPUT_LIMIT = $output_limit
FIELD_LIMIT = $field_limit
TRUNCATION_SUFFIX = $truncation_suffix


def _apply_limits():
    try:
        import resource
    except ImportError:
        return
    for name, value in LIMITS:
        which = getattr(resource, name, None)
        if which is None or not value:
            continue
        try:
            resource.setrlimit(which, (value, value))
        except (ValueError, OSError):
            pass


def _describe(exc):
    text = str(exc)
    name = type(exc).__name__
    return f"{name}: {text}" if text else name


def _clip(text):
    if len(text) > FIELD_LIMIT:
        return text[:FIELD_LIMIT] + TRUNCATION_SUFFIX
    return text


def _load(captured):
    namespace = {"__name__": "__submission__", "__builtins__": __builtins__}
    code = compile(SOURCE, "<submission>", "exec")
    with contextlib.redirect_stdout(captured), contextlib.redirect_stderr(captured):
        exec(code, namespace)
    target = CLASS_NAME or ENTRY_POINT
    if target not in namespace:
        raise NameError(f"name {target!r} is not defined")
    return namespace


def _resolve(namespace):
    if CLASS_NAME is None:
        return namespace[ENTRY_POINT]
    return getattr(namespace[CLASS_NAME](), ENTRY_POINT)


def _run_case(namespace, case):
    captured = io.StringIO()
    try:
        input_data = ast.literal_eval(case["input"])
        expected = case["expected"]
        with contextlib.redirect_stdout(captured), contextlib.redirect_stderr(captured):
            start_time = time.perf_counter()
            actual = _resolve(namespace)(input_data)
            execution_time = time.perf_counter() - start_time
        actual_text = str(actual)
        return {
            "input": _clip(str(input_data)),
            "expected": _clip(str(expected)),
            "actual": _clip(actual_text),
            "passed": actual_text.lower() == str(expected).lower(),
            "execution_time": execution_time,
            "stdout": captured.getvalue()[:OUTPUT_LIMIT],
        }
    except (Exception, SystemExit) as e:
        return {"error": _clip(_describe(e))}


def run_tests():
    _apply_limits()
    try:
        namespace = _load(io.StringIO())
    except (Exception, SystemExit) as e:
        return [{"error": _clip(_describe(e))}]
    return [_run_case(namespace, case) for case in CASES]


if __name__ == "__main__":
    results = run_tests()
    sys.__stdout__.write(json.dumps(results))
    sys.__stdout__.flush()
''')


@dataclass
class Harness:
    program: str
    class_name: str | None
    case_count: int


def resolve_class_name(submission: Submission) -> str | None:
    """Decide how the entry point is called; ``None`` means a plain function.

    ``auto`` looks at where the entry point is defined: only at module
    level means a function, only inside one class means a method of that
    class. Anything else is refused rather than guessed.
    """
    if submission.call_convention == CallConvention.FUNCTION:
        return None

    definitions = locate_definitions(submission.source_code, submission.entry_point)
    owners = {d.owner for d in definitions if d.owner is not None}
    top_level = any(d.indent == 0 for d in definitions)

    if submission.call_convention == CallConvention.METHOD:
        if submission.class_name:
            return submission.class_name
        return owners.pop() if len(owners) == 1 else DEFAULT_CLASS_NAME

    if submission.class_name:
        return submission.class_name
    if len(owners) == 1 and not top_level:
        return owners.pop()
    if not owners and top_level:
        return None
    raise AmbiguousCallConvention(
        f'Cannot tell how to call "{submission.entry_point}": it is defined in '
        f"{_describe_owners(owners, top_level)}. Set callConvention and className explicitly.",
        owners=sorted(owners),
        top_level=top_level,
    )


def _describe_owners(owners: set[str], top_level: bool) -> str:
    places = [f"class {name}" for name in sorted(owners)]
    if top_level:
        places.append("module level")
    return ", ".join(places) if places else "nested scopes only"


def _encode_cases(cases: list[TestSpec]) -> str:
    encoded = []
    for case in cases:
        parse_input_literal(case.input_literal)
        encoded.append(
            {
                "input": normalize_input_literal(case.input_literal),
                "expected": normalize_expected_literal(case.expected_output_literal),
            }
        )
    return json.dumps(encoded)


def build_harness(
    submission: Submission,
    cases: list[TestSpec],
    timeout_sec: float = 10.0,
    memory_limit_mb: int = 0,
    process_limit: int = 0,
) -> Harness:
    """Generate the harness program for ``submission`` against ``cases``.

    ``submission.source_code`` should already have passed
    :func:`judge.validator.validate_submission`.
    """
    if not cases:
        raise HarnessConstructionError("At least one test case is required")
    check_entry_point_name(submission.entry_point)
    class_name = resolve_class_name(submission)
    if class_name is not None:
        check_entry_point_name(class_name)

    limits = [
        ("RLIMIT_AS", memory_limit_mb * 1024 * 1024),
        ("RLIMIT_CPU", int(math.ceil(timeout_sec)) + 1),
        ("RLIMIT_FSIZE", FILE_SIZE_LIMIT),
        ("RLIMIT_NOFILE", OPEN_FILES_LIMIT),
        ("RLIMIT_NPROC", process_limit),
    ]
    program = _TEMPLATE.substitute(
        source=repr(submission.source_code),
        entry_point=repr(submission.entry_point),
        class_name=repr(class_name),
        cases=repr(_encode_cases(cases)),
        limits=repr(limits),
        output_limit=repr(CAPTURED_OUTPUT_LIMIT),
        field_limit=repr(RESULT_FIELD_LIMIT),
        truncation_suffix=repr(TRUNCATION_SUFFIX),
    )
    return Harness(program=program, class_name=class_name, case_count=len(cases))
