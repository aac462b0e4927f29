from __future__ import annotations

# Output checking against a materialized expectation.
#
# Returns (ok, message, expected_preview, actual_preview); previews are
# truncated for diff display.

import math

from ..models import AnyExpected, ExactExpected, Expectation, FloatExpected


def float_token_matches(expected: str, actual: str, *, absolute_error: float, relative_error: float) -> bool:
    if expected == actual:
        return True
    try:
        e = float(expected)
        a = float(actual)
    except ValueError:
        return False
    if e == a:
        return True
    diff = abs(e - a)
    if not math.isnan(absolute_error) and diff <= absolute_error:
        return True
    if not math.isnan(relative_error) and diff <= relative_error * abs(e):
        return True
    return False


def compare_float(actual: str, expected: FloatExpected) -> tuple[bool, str, str, str]:
    a_tokens = actual.split()
    e_tokens = expected.text.split()
    n = min(len(a_tokens), len(e_tokens))
    idx = next(
        (
            i
            for i in range(n)
            if not float_token_matches(
                e_tokens[i],
                a_tokens[i],
                absolute_error=expected.absolute_error,
                relative_error=expected.relative_error,
            )
        ),
        n,
    )
    if idx == n and len(a_tokens) == len(e_tokens):
        return True, "", " ".join(e_tokens[:50]), " ".join(a_tokens[:50])
    return (
        False,
        f"float mismatch at {idx}: expected={e_tokens[idx] if idx < len(e_tokens) else '<eof>'} actual={a_tokens[idx] if idx < len(a_tokens) else '<eof>'}",
        " ".join(e_tokens[max(0, idx - 10) : idx + 10]),
        " ".join(a_tokens[max(0, idx - 10) : idx + 10]),
    )


def check_output(expected: Expectation, actual: str) -> tuple[bool, str, str, str]:
    if isinstance(expected, AnyExpected):
        return True, "", (expected.example or "")[:200], actual[:200]
    if isinstance(expected, ExactExpected):
        ok = actual == expected.text
        return ok, "" if ok else "exact mismatch", expected.text[:200], actual[:200]
    return compare_float(actual, expected)
