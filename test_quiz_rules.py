"""
Unit tests for the shared timer and answer-check rules.
"""
import json
import re

import pytest

import quiz_rules
from generator import render_runtime_script
from quiz_rules import (
    check_answer,
    compute_remaining,
    format_remaining,
    is_correct,
    is_urgent,
    normalize_answer,
)

LOOP_SOLUTION = "for (let i = 0; i < 5; i++) {\n  console.log(i);\n}"


def test_normalize_trims_and_collapses_whitespace():
    assert normalize_answer("  a \n\t b   c  ") == "a b c"
    assert normalize_answer(LOOP_SOLUTION) == "for (let i = 0; i < 5; i++) { console.log(i); }"


def test_normalize_handles_empty_and_none():
    assert normalize_answer("") == ""
    assert normalize_answer(None) == ""
    assert normalize_answer(" \n ") == ""


def test_exact_solution_is_correct():
    assert is_correct(LOOP_SOLUTION, LOOP_SOLUTION)


def test_reflowed_whitespace_is_correct():
    assert is_correct("for (let i = 0; i < 5; i++) {   console.log(i);\n\n}", LOOP_SOLUTION)


def test_removing_internal_whitespace_is_incorrect():
    """Collapsing keeps one space; dropping spaces entirely does not match."""
    assert not is_correct("for(let i=0;i<5;i++){console.log(i);}", LOOP_SOLUTION)


def test_answer_check_is_case_sensitive():
    assert not is_correct(LOOP_SOLUTION.upper(), LOOP_SOLUTION)


def test_solution_inside_longer_input_is_correct():
    assert is_correct("ok: " + LOOP_SOLUTION, LOOP_SOLUTION)
    assert is_correct("// my answer\n" + LOOP_SOLUTION + "\n// done", LOOP_SOLUTION)


def test_partial_solution_is_incorrect():
    assert not is_correct("for (let i = 0; i < 5; i++) {", LOOP_SOLUTION)


def test_check_answer_works_on_normalized_text():
    assert check_answer("a b", "a b")
    assert check_answer("x a b y", "a b")
    assert not check_answer("a", "a b")


@pytest.mark.parametrize("now, expected", [
    (0, 60_000),
    (1, 59_999),
    (59_999, 1),
    (60_000, 0),
    (120_000, 0),
])
def test_compute_remaining(now, expected):
    assert compute_remaining(0, 60_000, now) == expected


def test_compute_remaining_uses_start_timestamp():
    assert compute_remaining(5_000, 60_000, 15_000) == 50_000


@pytest.mark.parametrize("remaining, display", [
    (600_000, "10:00"),
    (60_000, "1:00"),
    (59_999, "0:59"),
    (61_500, "1:01"),
    (5_000, "0:05"),
    (0, "0:00"),
])
def test_format_remaining(remaining, display):
    assert format_remaining(remaining) == display


def test_urgent_boundary():
    assert is_urgent(59_999)
    assert not is_urgent(60_000)
    assert is_urgent(0)


def test_runtime_script_declares_shared_rules():
    for name in ("normalizeAnswer", "checkAnswer", "computeRemaining", "formatRemaining", "isUrgent"):
        assert f"function {name}(" in quiz_rules.RUNTIME_JS


# --- Embedded runtime parity (no browser needed) ---

def test_runtime_normalize_uses_the_same_whitespace_rule():
    match = re.search(r"\.trim\(\)\.replace\(/(.+?)/g, ' '\)", quiz_rules.RUNTIME_JS)
    assert match is not None
    assert match.group(1) == quiz_rules._WHITESPACE_RUN.pattern


def test_runtime_urgency_is_strictly_below_threshold():
    assert re.search(
        r"function isUrgent\(remaining\) \{\s*return remaining < URGENT_THRESHOLD_MS;\s*\}",
        quiz_rules.RUNTIME_JS,
    )


def test_runtime_answer_check_is_equality_or_substring():
    assert re.search(
        r"return normalizedInput === normalizedSolution \|\| normalizedInput\.indexOf\(normalizedSolution\) !== -1;",
        quiz_rules.RUNTIME_JS,
    )


def test_runtime_remaining_is_recomputed_from_start():
    assert "return Math.max(0, limit - (now - start));" in quiz_rules.RUNTIME_JS


def test_rendered_runtime_carries_the_python_constants():
    script = render_runtime_script(stage_count=3, time_limit_ms=60_000)
    assert "$" not in script
    assert "var URGENT_THRESHOLD_MS = %d;" % quiz_rules.URGENT_THRESHOLD_MS in script
    assert "var ADVANCE_DELAY_MS = %d;" % quiz_rules.ADVANCE_DELAY_MS in script
    assert "var TICK_INTERVAL_MS = %d;" % quiz_rules.TICK_INTERVAL_MS in script
    assert "var STAGE_COUNT = 3;" in script
    assert json.dumps(quiz_rules.TIME_UP_MESSAGE) in script
