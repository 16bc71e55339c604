import re

import pytest

from goldfile.diff import (
    DiffEngine,
    classic_diff,
    colored_diff,
    diff,
    simple_diff,
)

ACTUAL = "Lorem ipsum dolor."
EXPECTED = "Lorem dolor sit amet."


@pytest.mark.parametrize(
    "engine, expected_diff",
    [
        (DiffEngine.SIMPLE, "Expected: Lorem dolor sit amet.\nGot: Lorem ipsum dolor."),
        (
            DiffEngine.CLASSIC,
            "--- Expected\n+++ Actual\n@@ -1 +1 @@\n-Lorem dolor sit amet.\n+Lorem ipsum dolor.\n",
        ),
        (
            DiffEngine.COLORED,
            "Lorem \x1b[31mipsum \x1b[0mdolor\x1b[32m sit amet\x1b[0m.",
        ),
    ],
)
def test_diff_engines(engine, expected_diff):
    assert diff(engine, ACTUAL, EXPECTED) == expected_diff


def test_undefined_engine_falls_back_to_simple():
    assert diff(DiffEngine.UNDEFINED, "a", "b") == "Expected: b\nGot: a"
    assert diff(99, "a", "b") == "Expected: b\nGot: a"


def test_diff_accepts_plain_int():
    assert diff(3, "x", "y") == simple_diff("x", "y")
    assert diff(1, ACTUAL, EXPECTED) == classic_diff(ACTUAL, EXPECTED)


def test_engine_values_select_engines():
    assert diff(DiffEngine(1), ACTUAL, EXPECTED) == classic_diff(ACTUAL, EXPECTED)
    assert diff(DiffEngine(2), ACTUAL, EXPECTED) == colored_diff(ACTUAL, EXPECTED)
    assert diff(DiffEngine(3), ACTUAL, EXPECTED) == simple_diff(ACTUAL, EXPECTED)
    assert diff(DiffEngine(0), "a", "b") == "Expected: b\nGot: a"


def test_classic_no_difference_is_empty():
    assert classic_diff("same\ntext", "same\ntext") == ""


def test_classic_multiline_context():
    result = classic_diff("a\nx\nc", "a\nb\nc")
    assert result == "--- Expected\n+++ Actual\n@@ -1,3 +1,3 @@\n a\n-b\n+x\n c\n"


def test_colored_equal_text_is_unchanged():
    assert colored_diff("abc", "abc") == "abc"


def test_colored_empty_inputs():
    assert colored_diff("", "") == ""
    assert colored_diff("", "x") == "\x1b[32mx\x1b[0m"
    assert colored_diff("x", "") == "\x1b[31mx\x1b[0m"


def test_colored_contained_text():
    assert colored_diff("abc", "xabcy") == "\x1b[32mx\x1b[0mabc\x1b[32my\x1b[0m"


_SEGMENT = re.compile(r"\x1b\[(31|32)m(.*?)\x1b\[0m", re.DOTALL)


def _side(rendered, keep):
    drop = "32" if keep == "31" else "31"

    def repl(match):
        return match.group(2) if match.group(1) != drop else ""

    return _SEGMENT.sub(repl, rendered)


@pytest.mark.parametrize(
    "actual, expected",
    [
        (ACTUAL, EXPECTED),
        ("the quick brown fox", "the slow brown dog"),
        ("kitten sitting", "sitting kitten"),
        ("abcdefghij", "abxdefyhij"),
        ("line one\nline two\n", "line one\nline 2\nline three\n"),
    ],
)
def test_colored_reconstructs_both_sides(actual, expected):
    rendered = colored_diff(actual, expected)
    assert _side(rendered, "31") == actual
    assert _side(rendered, "32") == expected