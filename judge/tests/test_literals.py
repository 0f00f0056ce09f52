import pytest

from judge.errors import HarnessConstructionError
from judge.literals import (
    normalize_expected_literal,
    normalize_input_literal,
    outputs_match,
    parse_input_literal,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("nums=[1,2,3,1]", "[1,2,3,1]"),
        ("nums = [1, 2]", "[1, 2]"),
        ("Input: nums = [2,7,11,15]", "[2,7,11,15]"),
        ("  5  ", "5"),
        ("'a=b'", "'a=b'"),
        ("{'k': 1}", "{'k': 1}"),
    ],
)
def test_normalize_input_literal(raw, expected):
    assert normalize_input_literal(raw) == expected


def test_equality_is_not_a_name_prefix():
    assert normalize_input_literal("x == 1") == "x == 1"


def test_normalize_expected_literal():
    assert normalize_expected_literal("Output: [0,1]\n") == "[0,1]"
    assert normalize_expected_literal(" true ") == "true"


def test_parse_input_literal_values():
    assert parse_input_literal("nums=[1,2,3]") == [1, 2, 3]
    assert parse_input_literal("-5") == -5
    assert parse_input_literal("(1, 'a', None, True)") == (1, "a", None, True)
    assert parse_input_literal("{'a': [1.5]}") == {"a": [1.5]}


@pytest.mark.parametrize(
    "raw",
    [
        "__import__('os').system('id')",
        "[1, 2] + [3]",
        "open('/etc/passwd')",
        "[1, 2",
        "",
        "nums=",
    ],
)
def test_parse_input_literal_rejects_code(raw):
    with pytest.raises(HarnessConstructionError):
        parse_input_literal(raw)


def test_outputs_match_is_case_insensitive_text():
    assert outputs_match(True, "true")
    assert outputs_match("True", "true")
    assert outputs_match([0, 1], "[0, 1]")
    assert not outputs_match([0, 1], "[0,1]")
    assert not outputs_match(6, "7")
