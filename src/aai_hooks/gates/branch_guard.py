"""Branch guard: refuse mutating git commands on protected branches."""

from __future__ import annotations

from aai_hooks import ui
from aai_hooks.config import PolicyConfig
from aai_hooks.gates.base import FailureMode
from aai_hooks.gates.commit_message import mutating_git_verb
from aai_hooks.git.inspector import RepositoryInspector
from aai_hooks.types import HookInvocation, PolicyDecision

SOURCE = "block-master"


def protected_branch_message(branch: str, verb: str, config: PolicyConfig) -> str:
    return f"""
⛔ BLOCKED: Cannot run `git {verb}` directly on '{branch}'

This is a protected branch. Direct commits/pushes/merges are not allowed.

REQUIRED: Create a feature branch first:

  git checkout -b feature/your-feature-name
  # or
  git checkout -b fix/your-fix-name

Then make your changes on the feature branch.

Protected branches: {', '.join(config.protected_branches)}
"""


class BranchGuard:
    """Blocks commit/push/merge while HEAD is on a protected branch.

    Fails open: when the branch cannot be determined the command is allowed.
    """

    name = "branch-guard"
    failure_mode = FailureMode.OPEN

    def __init__(self, config: PolicyConfig):
        self.config = config

    def applies(self, invocation: HookInvocation) -> bool:
        return mutating_git_verb(invocation.command_text) is not None

    def evaluate(self, invocation: HookInvocation, inspector: RepositoryInspector) -> PolicyDecision:
        verb = mutating_git_verb(invocation.command_text)
        if verb is None:
            return PolicyDecision.allow()

        branch = inspector.current_branch()
        if branch is None:
            ui.warn(SOURCE, "Could not determine current branch")
            return PolicyDecision.allow()

        if self.config.is_protected(branch):
            return PolicyDecision.block(protected_branch_message(branch, verb, self.config))
        return PolicyDecision.allow()
