"""Tests for the package manager guard."""

import pytest

from aai_hooks.gates.package_manager import PackageManagerGuard


@pytest.mark.parametrize(
    ("lockfile", "manager"),
    [("pnpm-lock.yaml", "pnpm"), ("yarn.lock", "yarn"), ("bun.lockb", "bun")],
)
def test_blocks_npm_in_other_manager_projects(lockfile, manager, invocation, fake_inspector, config, tmp_path):
    (tmp_path / lockfile).write_text("")
    decision = PackageManagerGuard(config).evaluate(invocation("npm install lodash", tmp_path), fake_inspector())

    assert decision.blocked
    assert f"This project uses {manager} ({lockfile} exists)" in decision.message
    assert f"npm install  → {manager} install" in decision.message


def test_npm_project_allowed(invocation, fake_inspector, config, tmp_path):
    (tmp_path / "package-lock.json").write_text("{}")
    assert not PackageManagerGuard(config).evaluate(invocation("npm test", tmp_path), fake_inspector()).blocked


def test_no_lockfile_allowed(invocation, fake_inspector, config, tmp_path):
    assert not PackageManagerGuard(config).evaluate(invocation("npm ci", tmp_path), fake_inspector()).blocked


@pytest.mark.parametrize("command", ["pnpm install", "npx tsc --noEmit", "echo npm", "git commit -m 'x'"])
def test_non_npm_commands_do_not_apply(command, invocation, config, tmp_path):
    (tmp_path / "pnpm-lock.yaml").write_text("")
    assert not PackageManagerGuard(config).applies(invocation(command, tmp_path))


def test_chained_npm_command_applies(invocation, config, tmp_path):
    assert PackageManagerGuard(config).applies(invocation("cd web && npm run build", tmp_path))
