"""Claim validator: cross-check factual claims in commit messages.

Rules, first applicable wins:

- ``<a>/<b> tests passing`` must match the actual test run exactly.
- ``all tests passing`` requires zero failing tests.
- ``removed``/``deleted``/``fixed``/``cleaned`` requires pending changes.

Projects without a test script are never blocked by the test rules.
"""

from __future__ import annotations

import re

from aai_hooks import ui
from aai_hooks.config import PolicyConfig
from aai_hooks.gates.base import FailureMode
from aai_hooks.gates.commit_message import extract_commit_message
from aai_hooks.git.inspector import RepositoryInspector
from aai_hooks.types import HookInvocation, PolicyDecision, TestRunOutcome

SOURCE = "validate-claims"

TEST_COUNT_CLAIM = re.compile(r"(\d+)\s*/\s*(\d+)\s+tests?\s+passing", re.IGNORECASE)
ALL_TESTS_CLAIM = re.compile(r"\ball\s+tests?\s+passing\b", re.IGNORECASE)
MODIFICATION_CLAIM = re.compile(r"\b(removed|deleted|fixed|cleaned)\b", re.IGNORECASE)
# A period ends the phrase only at a sentence boundary, so "console.log" survives.
CLAIMED_PHRASE = re.compile(
    r"\b(?:removed|deleted|fixed|cleaned)\s+(.+?)(?:\.(?=\s|$)|$)",
    re.IGNORECASE | re.MULTILINE,
)

OUTPUT_TAIL_CHARS = 1500


def _tail(text: str) -> str:
    text = text.strip()
    if len(text) <= OUTPUT_TAIL_CHARS:
        return text
    return "..." + text[-OUTPUT_TAIL_CHARS:]


def _unverifiable_reason(outcome: TestRunOutcome) -> str | None:
    """Reason the run cannot support a claim, or None when counts are usable."""
    if outcome.timed_out:
        return f"Test run {outcome.error}"
    if outcome.error:
        return f"Test command could not start: {outcome.error}"
    if not outcome.parsed:
        if outcome.returncode != 0:
            return f"Test command exited with code {outcome.returncode}"
        return "Test output did not match any known result format"
    return None


def count_mismatch_message(claimed: tuple[int, int], outcome: TestRunOutcome) -> str:
    return f"""
❌ BLOCKED: Test count mismatch

Commit claims: {claimed[0]}/{claimed[1]} tests passing
Actual results: {outcome.passing}/{outcome.total} tests passing

Do NOT commit false claims. Update commit message with actual test results.

Evidence required:
  - Run: {outcome.command}
  - Verify counts match
  - Update commit message
"""


def cannot_verify_message(claim: str, reason: str, outcome: TestRunOutcome) -> str:
    output = _tail(outcome.raw_output)
    detail = f"\nOutput:\n{output}\n" if output else ""
    return f"""
❌ BLOCKED: Cannot verify {claim} claim

Commit claims test results but the tests could not be verified.

Error: {reason}
{detail}
Fix tests before committing claims about test results.

Run: {outcome.command}
"""


def failing_tests_message(outcome: TestRunOutcome) -> str:
    return f"""
❌ BLOCKED: False "all tests passing" claim

Commit claims "all tests passing" but {outcome.failing} tests are failing.

Run '{outcome.command}' to see failures.

Do NOT commit false claims. Either:
1. Fix failing tests
2. Update commit message to reflect reality
"""


def hallucinated_change_message(claimed: str) -> str:
    return f"""
❌ BLOCKED: File modification claim without changes

Commit claims to have modified: {claimed}

But git status shows 0 files modified.

This is likely agent hallucination.

Evidence required:
  - Run: git status
  - Verify files were actually modified
  - Provide git diff output
"""


class ClaimValidator:
    """Validates test-count, all-passing, and modification claims.

    Fails closed only while verifying an explicit claim; a project with no
    discoverable test command, or an unreadable git status, is allowed.
    """

    name = "claim-validator"
    failure_mode = FailureMode.CLOSED

    def __init__(self, config: PolicyConfig):
        self.config = config

    def applies(self, invocation: HookInvocation) -> bool:
        return extract_commit_message(invocation.command_text) is not None

    def evaluate(self, invocation: HookInvocation, inspector: RepositoryInspector) -> PolicyDecision:
        message = extract_commit_message(invocation.command_text)
        if message is None:
            return PolicyDecision.allow()

        if self.config.bypass_marker in message:
            return PolicyDecision.allow()

        count_match = TEST_COUNT_CLAIM.search(message)
        if count_match:
            claimed = (int(count_match.group(1)), int(count_match.group(2)))
            return self.validate_test_count(claimed, inspector)

        if ALL_TESTS_CLAIM.search(message):
            return self.validate_all_tests_passing(inspector)

        if MODIFICATION_CLAIM.search(message):
            return self.validate_modifications(message, inspector)

        return PolicyDecision.allow()

    def _run_tests(self, inspector: RepositoryInspector) -> TestRunOutcome | None:
        outcome = inspector.run_configured_tests()
        if outcome is None:
            ui.note(SOURCE, "No test command found, skipping validation")
        return outcome

    def validate_test_count(self, claimed: tuple[int, int], inspector: RepositoryInspector) -> PolicyDecision:
        outcome = self._run_tests(inspector)
        if outcome is None:
            return PolicyDecision.allow()

        reason = _unverifiable_reason(outcome)
        if reason is not None:
            return PolicyDecision.block(cannot_verify_message("test count", reason, outcome))

        if claimed != (outcome.passing, outcome.total):
            return PolicyDecision.block(count_mismatch_message(claimed, outcome))

        ui.note(SOURCE, "✓ Test count verified")
        return PolicyDecision.allow()

    def validate_all_tests_passing(self, inspector: RepositoryInspector) -> PolicyDecision:
        outcome = self._run_tests(inspector)
        if outcome is None:
            return PolicyDecision.allow()

        if not outcome.executed:
            reason = _unverifiable_reason(outcome) or "Test command failed"
            return PolicyDecision.block(cannot_verify_message('"all tests passing"', reason, outcome))

        if outcome.parsed and outcome.failing > 0:
            return PolicyDecision.block(failing_tests_message(outcome))

        if outcome.returncode != 0:
            reason = f"Test command exited with code {outcome.returncode}"
            return PolicyDecision.block(cannot_verify_message('"all tests passing"', reason, outcome))

        ui.note(SOURCE, "✓ All tests passing verified")
        return PolicyDecision.allow()

    def validate_modifications(self, message: str, inspector: RepositoryInspector) -> PolicyDecision:
        changed = inspector.changed_paths()
        if changed is None:
            ui.warn(SOURCE, "Error checking git status; allowing commit")
            return PolicyDecision.allow()

        if not changed:
            phrase = CLAIMED_PHRASE.search(message)
            claimed = phrase.group(1).strip() if phrase else "items"
            return PolicyDecision.block(hallucinated_change_message(claimed))

        ui.note(SOURCE, f"✓ File modifications verified ({len(changed)} files)")
        return PolicyDecision.allow()
