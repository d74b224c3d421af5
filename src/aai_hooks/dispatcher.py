"""Dispatcher: route one host event through the applicable components.

Command gates run in a fixed order and the first block short-circuits the
rest. No exception escapes ``dispatch``: a component that raises resolves to
its declared failure mode.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from aai_hooks import ui
from aai_hooks.config import PolicyConfig
from aai_hooks.context import ContextInjector, degraded_summary
from aai_hooks.gates import BranchGuard, ClaimValidator, FailureMode, Gate, PackageManagerGuard, VerificationGate
from aai_hooks.git.inspector import RepositoryInspector
from aai_hooks.scan.anti_patterns import AntiPatternScanner
from aai_hooks.types import EventKind, HookInvocation, PolicyDecision

SOURCE = "dispatch"
STOP_EVENTS = frozenset({EventKind.SUBAGENT_STOP, EventKind.SESSION_STOP})

InspectorFactory = Callable[[Path, PolicyConfig], RepositoryInspector]


@dataclass(frozen=True)
class DispatchResult:
    """Combined outcome of one invocation."""

    decision: PolicyDecision
    component: str | None = None
    context: dict[str, Any] | None = None
    report: str | None = None

    @property
    def blocked(self) -> bool:
        return self.decision.blocked


def internal_error_message(component: str, error: BaseException, config: PolicyConfig) -> str:
    return f"""
❌ BLOCKED: {component} could not complete verification

Error: {type(error).__name__}: {error}

The check could not confirm the claim in this command, so it was not allowed.

Options:
1. Retry the command
2. Add {config.bypass_marker} to the commit message for WIP commits
"""


def deadline_message(component: str, config: PolicyConfig) -> str:
    return f"""
❌ BLOCKED: {component} could not verify within {config.deadline:g}s

Verification did not finish before the hook time budget ran out.

Options:
1. Run the project's tests manually and retry
2. Add {config.bypass_marker} to the commit message for WIP commits
"""


def failure_decision(component: str, mode: FailureMode, block_message: str, reason: str) -> PolicyDecision:
    """Resolve a component failure according to its declared failure mode."""
    if mode is FailureMode.CLOSED:
        return PolicyDecision.block(block_message)
    ui.warn(SOURCE, f"{component} skipped: {reason}")
    return PolicyDecision.allow()


class Dispatcher:
    """Runs hook components for one invocation in a fixed declared order."""

    def __init__(
        self,
        config: PolicyConfig,
        *,
        inspector_factory: InspectorFactory = RepositoryInspector,
        clock: Callable[[], float] = time.monotonic,
        include_context: bool = True,
    ):
        self.config = config
        self.inspector_factory = inspector_factory
        self.clock = clock
        self.include_context = include_context
        self.gates: list[Gate] = [
            PackageManagerGuard(config),
            BranchGuard(config),
            VerificationGate(config),
            ClaimValidator(config),
        ]
        self.scanner = AntiPatternScanner(config)
        self.injector = ContextInjector(config)
        self._started = clock()

    def _expired(self) -> bool:
        return self.clock() - self._started > self.config.deadline

    def evaluate_gate(self, gate: Gate, invocation: HookInvocation, inspector: RepositoryInspector) -> PolicyDecision:
        """Evaluate one gate, converting failures into its failure mode."""
        if not gate.applies(invocation):
            return PolicyDecision.allow()
        if self._expired():
            return failure_decision(
                gate.name,
                gate.failure_mode,
                deadline_message(gate.name, self.config),
                "time budget exhausted",
            )
        try:
            return gate.evaluate(invocation, inspector)
        except Exception as exc:
            return failure_decision(
                gate.name,
                gate.failure_mode,
                internal_error_message(gate.name, exc, self.config),
                f"{type(exc).__name__}: {exc}",
            )

    def run_gates(self, invocation: HookInvocation, gates: list[Gate] | None = None) -> DispatchResult:
        """Run command gates in order; the first block wins."""
        if invocation.event_kind is not EventKind.PRE_ACTION or not invocation.has_command:
            return DispatchResult(decision=PolicyDecision.allow())

        inspector = self.inspector_factory(invocation.working_directory, self.config)
        for gate in gates if gates is not None else self.gates:
            decision = self.evaluate_gate(gate, invocation, inspector)
            if decision.blocked:
                return DispatchResult(decision=decision, component=gate.name)
        return DispatchResult(decision=PolicyDecision.allow())

    def run_scanner(self, invocation: HookInvocation) -> DispatchResult:
        """Anti-pattern scan; errors block, warnings are reported only."""
        inspector = self.inspector_factory(invocation.working_directory, self.config)
        if self._expired():
            ui.warn(SOURCE, f"{self.scanner.name} skipped: time budget exhausted")
            return DispatchResult(decision=PolicyDecision.allow())
        try:
            result = self.scanner.scan(invocation, inspector)
        except Exception as exc:
            decision = failure_decision(
                self.scanner.name,
                self.scanner.failure_mode,
                internal_error_message(self.scanner.name, exc, self.config),
                f"{type(exc).__name__}: {exc}",
            )
            return DispatchResult(decision=decision)

        if result.blocked:
            return DispatchResult(decision=result.decision(), component=self.scanner.name)
        return DispatchResult(
            decision=PolicyDecision.allow(),
            report=result.report() if result.warnings else None,
        )

    def inject_context(self, invocation: HookInvocation) -> dict[str, Any]:
        """Informational payload; never raises."""
        if self._expired():
            return {"decision": "continue", "warning": "Context detection skipped: time budget exhausted"}
        try:
            inspector = self.inspector_factory(invocation.working_directory, self.config)
            return self.injector.summary(invocation, inspector)
        except Exception as exc:
            return degraded_summary(exc)

    def dispatch(self, invocation: HookInvocation) -> DispatchResult:
        """Route the invocation by event kind and return one decision."""
        if invocation.event_kind in STOP_EVENTS:
            return self.run_scanner(invocation)

        if invocation.event_kind is EventKind.PRE_ACTION:
            result = self.run_gates(invocation)
            if result.blocked or not self.include_context:
                return result
            return DispatchResult(decision=result.decision, context=self.inject_context(invocation))

        return DispatchResult(decision=PolicyDecision.allow())
