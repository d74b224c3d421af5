"""Context injector: ambient project facts for the host's own reasoning.

Informational only. Detection failures produce a degraded payload with a
``warning`` field; this component never blocks.
"""

from __future__ import annotations

import shlex
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from aai_hooks import project
from aai_hooks.config import PolicyConfig
from aai_hooks.gates.base import FailureMode
from aai_hooks.git.inspector import RepositoryInspector
from aai_hooks.types import HookInvocation

COMMAND_TEMPLATES: dict[str, str] = {
    "install": "{pm} install",
    "test": "{pm} test",
    "build": "{pm} run build",
    "lint": "{pm} run lint",
    "dev": "{pm} run dev",
}

# First dependency present wins within each table.
FRONTEND = (("react", "React"), ("vue", "Vue"), ("svelte", "Svelte"), ("@angular/core", "Angular"), ("angular", "Angular"))
BACKEND = (("express", "Express"), ("fastify", "Fastify"), ("hono", "Hono"), ("koa", "Koa"))
UNIT_TEST = (("jest", "Jest"), ("vitest", "Vitest"), ("mocha", "Mocha"))
E2E_TEST = (("@playwright/test", "Playwright"), ("cypress", "Cypress"))
DATABASE = (
    ("prisma", "Prisma"),
    ("typeorm", "TypeORM"),
    ("better-sqlite3", "SQLite"),
    ("pg", "PostgreSQL"),
    ("mongodb", "MongoDB"),
)
TOOL_FLAGS: dict[str, str] = {
    "typescript": "typescript",
    "nextjs": "next",
    "tailwind": "tailwindcss",
}

ENV_EXPORTS = ("AAI_PACKAGE_MANAGER", "AAI_TEST_COMMAND", "AAI_GIT_BRANCH")


def _is_hint_export(line: str) -> bool:
    return any(line.startswith(f"export {key}=") for key in ENV_EXPORTS)


def _first_label(deps: set[str], table: tuple[tuple[str, str], ...]) -> str | None:
    for name, label in table:
        if name in deps:
            return label
    return None


def detect_stack(manifest: dict[str, Any] | None) -> dict[str, Any]:
    """Coarse framework/library presence from manifest dependency keys."""
    if manifest is None:
        return {}
    deps = project.dependency_names(manifest)
    stack: dict[str, Any] = {
        "frontend": _first_label(deps, FRONTEND),
        "backend": _first_label(deps, BACKEND),
        "testing": {
            "unit": _first_label(deps, UNIT_TEST),
            "e2e": _first_label(deps, E2E_TEST),
        },
        "database": _first_label(deps, DATABASE),
    }
    for flag, dependency in TOOL_FLAGS.items():
        stack[flag] = dependency in deps
    return stack


def lifecycle_commands(package_manager: str) -> dict[str, str]:
    return {name: template.format(pm=package_manager) for name, template in COMMAND_TEMPLATES.items()}


class ContextInjector:
    """Derives package manager, commands, git state, and stack facts."""

    name = "context-injector"
    failure_mode = FailureMode.OPEN

    def __init__(self, config: PolicyConfig):
        self.config = config

    def detect(self, invocation: HookInvocation, inspector: RepositoryInspector) -> dict[str, Any]:
        project_root = invocation.working_directory
        manifest = project.load_manifest(project_root)
        package_manager = project.detect_package_manager(project_root, manifest)
        repo_root = inspector.repo_root()

        return {
            "packageManager": package_manager,
            "commands": lifecycle_commands(package_manager),
            "paths": {"projectRoot": str(project_root)},
            "git": {
                "branch": inspector.current_branch() or "unknown",
                "repoName": (repo_root or project_root).name,
                "isClean": inspector.working_tree_is_clean(),
            },
            "stack": detect_stack(manifest),
            "workspaces": project.detect_workspaces(project_root, manifest),
            "detectedAt": datetime.now(UTC).isoformat(),
        }

    def summary(self, invocation: HookInvocation, inspector: RepositoryInspector) -> dict[str, Any]:
        """Host payload: ``{"decision": "continue", "PROJECT_CONTEXT": {...}}``."""
        try:
            context = self.detect(invocation, inspector)
        except Exception as exc:
            return degraded_summary(exc)

        self.persist(context)
        return {"decision": "continue", "PROJECT_CONTEXT": context}

    def persist(self, context: dict[str, Any]) -> None:
        """Write hint variables into the host session env file, replacing earlier values."""
        if not self.config.env_file:
            return
        values = {
            "AAI_PACKAGE_MANAGER": context["packageManager"],
            "AAI_TEST_COMMAND": context["commands"]["test"],
            "AAI_GIT_BRANCH": context["git"]["branch"],
        }
        exports = [f"export {key}={shlex.quote(str(values[key]))}" for key in ENV_EXPORTS]
        path = Path(self.config.env_file)
        try:
            existing = path.read_text(encoding="utf-8").splitlines() if path.is_file() else []
            # one line per hint variable
            kept = [line for line in existing if not _is_hint_export(line)]
            updated = [*kept, *exports]
            if updated == existing:
                return
            path.write_text("\n".join(updated) + "\n", encoding="utf-8")
        except OSError:
            # hint data only
            return


def degraded_summary(exc: BaseException) -> dict[str, Any]:
    return {"decision": "continue", "warning": f"Context detection failed: {exc}"}
