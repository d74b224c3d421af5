"""Shared contract for gate components."""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from aai_hooks.git.inspector import RepositoryInspector
from aai_hooks.types import HookInvocation, PolicyDecision


class FailureMode(str, Enum):
    """Decision a component falls back to when it cannot complete.

    OPEN components allow (advisory checks); CLOSED components block with a
    diagnostic (verification checks that were already asked to prove a claim).
    """

    OPEN = "fail-open"
    CLOSED = "fail-closed"


class Gate(Protocol):
    """A component that can allow or block one invocation."""

    name: str
    failure_mode: FailureMode

    def applies(self, invocation: HookInvocation) -> bool: ...

    def evaluate(self, invocation: HookInvocation, inspector: RepositoryInspector) -> PolicyDecision: ...
