"""Example literal normalization.

Problem statements carry examples such as ``Input: nums = [2,7,11,15]``
and ``Output: [0,1]``. Inputs are reduced to a bare literal and parsed
with :func:`ast.literal_eval`, so only data ever reaches a harness.
"""

import ast
import re
from typing import Any

from judge.errors import HarnessConstructionError

# reported input, expected and actual values are cut to this length
RESULT_FIELD_LIMIT = 20000
TRUNCATION_SUFFIX = "... [truncated]"

_INPUT_LABEL = re.compile(r"^\s*input\s*:\s*", re.IGNORECASE)
_OUTPUT_LABEL = re.compile(r"^\s*output\s*:\s*", re.IGNORECASE)
# one leading ``name=`` assignment, never ``==``
_NAME_PREFIX = re.compile(r"^\s*[A-Za-z_]\w*\s*=(?!=)\s*")


def normalize_input_literal(literal: str) -> str:
    text = _INPUT_LABEL.sub("", literal.strip(), count=1)
    return _NAME_PREFIX.sub("", text, count=1).strip()


def normalize_expected_literal(literal: str) -> str:
    return _OUTPUT_LABEL.sub("", literal.strip(), count=1).strip()


def parse_input_literal(literal: str) -> Any:
    """Normalize and parse an example input, raising on anything but a literal."""
    text = normalize_input_literal(literal)
    if not text:
        raise HarnessConstructionError("Example input is empty")
    try:
        return ast.literal_eval(text)
    except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError) as e:
        raise HarnessConstructionError(
            f"Example input is not a valid Python literal: {text[:200]!r} ({e.__class__.__name__})"
        ) from e


def outputs_match(actual: Any, expected: Any) -> bool:
    """Case-insensitive comparison of the text forms of two values."""
    return str(actual).lower() == str(expected).lower()


def clip_text(text: str, limit: int = RESULT_FIELD_LIMIT) -> str:
    """Shorten ``text`` the same way the harness shortens reported values."""
    if len(text) > limit:
        return text[:limit] + TRUNCATION_SUFFIX
    return text
