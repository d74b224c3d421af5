"""Test-runner output grammars.

Each grammar is tried in order and returns ``(passing, failing)`` or None.
The first grammar that matches wins; when none match the caller gets an
explicit unparsed result instead of guessed zeros.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")

Counts = tuple[int, int]
Grammar = Callable[[str], "Counts | None"]

_SUMMARY_LINE = re.compile(r"^\s*Tests:?\s+(?P<body>.*\d.*)$", re.MULTILINE)
_PASSED = re.compile(r"(\d+)\s+passed", re.IGNORECASE)
_FAILED = re.compile(r"(\d+)\s+failed", re.IGNORECASE)
_PASSING = re.compile(r"(\d+)\s+passing", re.IGNORECASE)
_FAILING = re.compile(r"(\d+)\s+failing", re.IGNORECASE)
_BUN_PASS = re.compile(r"^\s*(\d+)\s+pass\s*$", re.MULTILINE)
_BUN_FAIL = re.compile(r"^\s*(\d+)\s+fail\s*$", re.MULTILINE)
_TAP_PASS = re.compile(r"^#\s*pass\s+(\d+)\s*$", re.MULTILINE | re.IGNORECASE)
_TAP_FAIL = re.compile(r"^#\s*fail\s+(\d+)\s*$", re.MULTILINE | re.IGNORECASE)


def _first_int(pattern: re.Pattern[str], text: str) -> int | None:
    match = pattern.search(text)
    return int(match.group(1)) if match else None


def _last_int(pattern: re.Pattern[str], text: str) -> int | None:
    matches = pattern.findall(text)
    return int(matches[-1]) if matches else None


def jest_vitest_summary(text: str) -> Counts | None:
    """``Tests: 5 failed, 45 passed, 50 total`` / ``Tests  45 passed | 5 failed (50)``."""
    lines = [m.group("body") for m in _SUMMARY_LINE.finditer(text)]
    for body in reversed(lines):
        passing = _first_int(_PASSED, body)
        failing = _first_int(_FAILED, body)
        if passing is not None or failing is not None:
            return passing or 0, failing or 0
    return None


def passed_failed(text: str) -> Counts | None:
    """``<n> passed`` / ``<n> failed`` anywhere in the output (pytest, ava, ...)."""
    passing = _last_int(_PASSED, text)
    if passing is None:
        return None
    return passing, _last_int(_FAILED, text) or 0


def mocha_passing_failing(text: str) -> Counts | None:
    """``<n> passing`` / ``<n> failing``."""
    passing = _first_int(_PASSING, text)
    if passing is None:
        return None
    return passing, _first_int(_FAILING, text) or 0


def bun_pass_fail(text: str) -> Counts | None:
    """``<n> pass`` / ``<n> fail`` summary lines (bun test)."""
    passing = _last_int(_BUN_PASS, text)
    if passing is None:
        return None
    return passing, _last_int(_BUN_FAIL, text) or 0


def tap_summary(text: str) -> Counts | None:
    """``# pass <n>`` / ``# fail <n>`` (node --test, tape)."""
    passing = _last_int(_TAP_PASS, text)
    if passing is None:
        return None
    return passing, _last_int(_TAP_FAIL, text) or 0


GRAMMARS: tuple[tuple[str, Grammar], ...] = (
    ("jest-vitest", jest_vitest_summary),
    ("passed-failed", passed_failed),
    ("mocha", mocha_passing_failing),
    ("bun", bun_pass_fail),
    ("tap", tap_summary),
)


@dataclass(frozen=True)
class ParsedCounts:
    """Counts extracted by a named grammar."""

    grammar: str
    passing: int
    failing: int


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE.sub("", text)


def parse_test_output(text: str) -> ParsedCounts | None:
    """Apply grammars in order; None when no grammar matched."""
    clean = strip_ansi(text)
    for name, grammar in GRAMMARS:
        counts = grammar(clean)
        if counts is not None:
            return ParsedCounts(grammar=name, passing=counts[0], failing=counts[1])
    return None
