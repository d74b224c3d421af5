"""Verification gate: completion claims in commit messages need evidence.

A commit message that claims finished work ("implemented", "fixed", ...) is
only allowed when one of these holds:

1. the message carries the bypass marker,
2. a complete evidence document exists at the configured path,
3. no evidence document exists but the automatic check passes (files are
   staged and, for TypeScript projects, ``tsc --noEmit`` reports no errors).

An evidence document that exists but lacks required sections blocks on its
own; it is never treated as "no evidence".
"""

from __future__ import annotations

from dataclasses import dataclass

from aai_hooks import ui
from aai_hooks.config import PolicyConfig
from aai_hooks.evidence import EvidenceState, check_evidence
from aai_hooks.gates.base import FailureMode
from aai_hooks.gates.commit_message import extract_commit_message, matched_keywords
from aai_hooks.git.inspector import RepositoryInspector
from aai_hooks.types import HookInvocation, PolicyDecision

SOURCE = "require-verification"
TS_ERROR_MARKER = "error TS"


@dataclass(frozen=True)
class BasicCheck:
    """Outcome of the automatic fallback verification."""

    passed: bool
    reason: str = ""


def incomplete_evidence_message(evidence_file: str, missing: list[str], bypass_marker: str) -> str:
    listed = "\n".join(f"  - {section}" for section in missing)
    return f"""
❌ BLOCKED: Incomplete verification evidence

Evidence file exists but missing sections:
{listed}

Either:
1. Update {evidence_file} with missing sections
2. Add {bypass_marker} to commit message for WIP commits
"""


def unverified_claim_message(message: str, reason: str, config: PolicyConfig) -> str:
    sections = "\n".join(f"   - {section}" for section in config.required_sections)
    return f"""
❌ BLOCKED: Completion claim without verification

Commit message: "{message}"

This message contains a completion claim but verification failed:
{reason}

Options:
1. Run tests and ensure they pass
2. Create {config.evidence_file} with:
{sections}
3. Add {config.bypass_marker} to commit message for WIP commits

Do NOT claim completion without verification.
"""


class VerificationGate:
    """Requires evidence for completion claims on ``git commit -m``.

    Fails closed: once a claim is detected, anything that prevents
    verification blocks.
    """

    name = "verification-gate"
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
            ui.note(SOURCE, f"Skipping due to {self.config.bypass_marker} flag")
            return PolicyDecision.allow()

        if not matched_keywords(message, self.config.completion_keywords):
            return PolicyDecision.allow()

        evidence_path = inspector.project_root() / self.config.evidence_file
        evidence = check_evidence(evidence_path, self.config.required_sections)

        if evidence.state is EvidenceState.VALID:
            ui.note(SOURCE, "✓ Verification evidence found")
            return PolicyDecision.allow()

        if evidence.state is EvidenceState.INVALID:
            return PolicyDecision.block(
                incomplete_evidence_message(self.config.evidence_file, evidence.missing, self.config.bypass_marker)
            )

        check = self.basic_check(inspector)
        if not check.passed:
            return PolicyDecision.block(unverified_claim_message(message, check.reason, self.config))

        ui.note(SOURCE, "✓ Basic verification passed")
        return PolicyDecision.allow()

    def basic_check(self, inspector: RepositoryInspector) -> BasicCheck:
        """Staged files must exist; a TypeScript project must type-check."""
        if not inspector.staged_file_list():
            return BasicCheck(passed=False, reason="No files staged for commit")

        if inspector.has_typescript_config():
            result = inspector.run_type_check()
            if result.timed_out:
                return BasicCheck(
                    passed=False,
                    reason=f"Could not verify: TypeScript check {result.error}",
                )
            if TS_ERROR_MARKER in result.output:
                return BasicCheck(passed=False, reason="TypeScript compilation errors exist")

        return BasicCheck(passed=True)
