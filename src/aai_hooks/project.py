"""Project manifest inspection: package manager, scripts, workspaces."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

PACKAGE_MANIFEST = "package.json"
TSCONFIG = "tsconfig.json"

# Lockfile -> package manager, in detection priority order.
LOCKFILES: tuple[tuple[str, str], ...] = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
    ("package-lock.json", "npm"),
)

DEFAULT_PACKAGE_MANAGER = "npm"


def load_manifest(project_root: Path) -> dict[str, Any] | None:
    """Load package.json, or None when missing or unparseable."""
    path = project_root / PACKAGE_MANIFEST
    if not path.is_file():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def lockfile_package_manager(project_root: Path) -> tuple[str, str] | None:
    """Return (lockfile, manager) for the first lockfile present."""
    for lockfile, manager in LOCKFILES:
        if (project_root / lockfile).is_file():
            return lockfile, manager
    return None


def detect_package_manager(project_root: Path, manifest: dict[str, Any] | None = None) -> str:
    """Detect package manager from lockfiles, then the packageManager field."""
    found = lockfile_package_manager(project_root)
    if found is not None:
        return found[1]

    if manifest is None:
        manifest = load_manifest(project_root)
    declared = (manifest or {}).get("packageManager")
    if isinstance(declared, str):
        for manager in ("pnpm", "yarn", "bun", "npm"):
            if declared.startswith(manager):
                return manager

    return DEFAULT_PACKAGE_MANAGER


def detect_test_command(project_root: Path, workspace_root: Path | None = None) -> list[str] | None:
    """Return argv for the project's test script, or None when not declared.

    Only lockfiles pick the runner here; a package inside a workspace falls
    back to the lockfile at workspace_root, and a test script without any
    lockfile runs through npm.
    """
    manifest = load_manifest(project_root)
    if manifest is None:
        return None
    scripts = manifest.get("scripts")
    if not isinstance(scripts, dict) or not scripts.get("test"):
        return None

    found = lockfile_package_manager(project_root)
    if found is None and workspace_root is not None:
        found = lockfile_package_manager(workspace_root)
    manager = found[1] if found is not None else DEFAULT_PACKAGE_MANAGER
    return [manager, "test"]


def has_typescript_config(project_root: Path) -> bool:
    return (project_root / TSCONFIG).is_file()


def dependency_names(manifest: dict[str, Any] | None) -> set[str]:
    """Union of dependency and devDependency keys."""
    names: set[str] = set()
    for key in ("dependencies", "devDependencies"):
        section = (manifest or {}).get(key)
        if isinstance(section, dict):
            names.update(str(name) for name in section)
    return names


def detect_workspaces(project_root: Path, manifest: dict[str, Any] | None = None) -> list[str]:
    """Return workspace package globs from package.json or pnpm-workspace.yaml."""
    if manifest is None:
        manifest = load_manifest(project_root)

    declared = (manifest or {}).get("workspaces")
    # yarn classic allows {"packages": [...]} as well as a bare list
    if isinstance(declared, dict):
        declared = declared.get("packages")
    if isinstance(declared, list):
        return [str(item) for item in declared if isinstance(item, str)]

    pnpm_workspace = project_root / "pnpm-workspace.yaml"
    if pnpm_workspace.is_file():
        try:
            with open(pnpm_workspace, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            return []
        packages = data.get("packages") if isinstance(data, dict) else None
        if isinstance(packages, list):
            return [str(item) for item in packages if isinstance(item, str)]

    return []
