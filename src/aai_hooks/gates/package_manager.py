"""Package manager guard: keep npm out of pnpm/yarn/bun projects."""

from __future__ import annotations

import re

from aai_hooks.config import PolicyConfig
from aai_hooks.gates.base import FailureMode
from aai_hooks.git.inspector import RepositoryInspector
from aai_hooks.project import lockfile_package_manager
from aai_hooks.types import HookInvocation, PolicyDecision

NPM_COMMAND = re.compile(r"(?<![\w-])npm\s+(install|i|add|remove|rm|uninstall|run|test|start|build|ci)\b")


def wrong_manager_message(manager: str, lockfile: str) -> str:
    return f"""⛔ BLOCKED: This project uses {manager} ({lockfile} exists).

Use {manager} instead of npm:
  npm install  → {manager} install
  npm test     → {manager} test
  npm run X    → {manager} X
  npm i pkg    → {manager} add pkg
"""


class PackageManagerGuard:
    """Blocks npm package commands when another manager's lockfile exists.

    Fails open: unreadable project state allows the command.
    """

    name = "package-manager-guard"
    failure_mode = FailureMode.OPEN

    def __init__(self, config: PolicyConfig):
        self.config = config

    def applies(self, invocation: HookInvocation) -> bool:
        return bool(invocation.command_text) and NPM_COMMAND.search(invocation.command_text or "") is not None

    def evaluate(self, invocation: HookInvocation, inspector: RepositoryInspector) -> PolicyDecision:
        if not self.applies(invocation):
            return PolicyDecision.allow()

        found = lockfile_package_manager(invocation.working_directory)
        if found is None:
            return PolicyDecision.allow()

        lockfile, manager = found
        if manager == "npm":
            return PolicyDecision.allow()
        return PolicyDecision.block(wrong_manager_message(manager, lockfile))
