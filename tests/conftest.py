"""Pytest configuration and fixtures for aai-hooks tests."""
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

from aai_hooks.config import PolicyConfig
from aai_hooks.git.exec import ExecResult
from aai_hooks.types import EventKind, HookInvocation, TestRunOutcome


def pytest_sessionfinish(session, exitstatus):
    """Fail the run when --cov was requested but no coverage data was written."""
    cov_enabled = any("--cov" in str(arg) for arg in session.config.args)
    if not cov_enabled:
        return

    coverage_files = list(Path.cwd().glob(".coverage*"))
    if not coverage_files:
        pytest.exit(
            "Coverage was enabled but no data was collected. "
            "Check that tests import from 'aai_hooks' (the package) not 'src/aai_hooks'.",
            returncode=1,
        )


def git(repo: Path, *args: str) -> str:
    completed = subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True, text=True)
    return completed.stdout


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository on branch feature/x with one commit."""
    repo = tmp_path / "test_repo"
    repo.mkdir()

    git(repo, "init")
    git(repo, "config", "user.email", "test@example.com")
    git(repo, "config", "user.name", "Test User")
    git(repo, "config", "commit.gpgsign", "false")

    (repo / "README.md").write_text("# Test Repo\n")
    git(repo, "add", "README.md")
    git(repo, "commit", "-m", "Initial commit")
    git(repo, "checkout", "-B", "feature/x")

    return repo


@pytest.fixture
def run_git_in() -> Callable[..., str]:
    return git


@pytest.fixture
def config() -> PolicyConfig:
    return PolicyConfig()


def make_invocation(command: str | None, cwd: Path, event: EventKind | None = EventKind.PRE_ACTION) -> HookInvocation:
    return HookInvocation(event_kind=event, command_text=command, working_directory=cwd)


@pytest.fixture
def invocation() -> Callable[..., HookInvocation]:
    return make_invocation


def make_outcome(
    passing: int,
    failing: int,
    *,
    returncode: int | None = None,
    grammar: str | None = "passed-failed",
    timed_out: bool = False,
    error: str | None = None,
    raw_output: str = "",
) -> TestRunOutcome:
    if returncode is None:
        returncode = 1 if failing else 0
    return TestRunOutcome(
        command="npm test",
        passing=passing,
        failing=failing,
        raw_output=raw_output,
        returncode=returncode,
        grammar=grammar,
        timed_out=timed_out,
        error=error,
    )


@pytest.fixture
def outcome() -> Callable[..., TestRunOutcome]:
    return make_outcome


class FakeInspector:
    """In-memory stand-in for RepositoryInspector."""

    def __init__(
        self,
        root: Path,
        *,
        branch: str | None = "feature/x",
        staged: list[str] | None = None,
        changed: list[str] | None = None,
        clean: bool = True,
        tests: TestRunOutcome | None = None,
        typescript: bool = False,
        type_check_output: str = "",
        type_check_timed_out: bool = False,
        repo_root: Path | None = None,
    ):
        self.working_directory = root
        self.branch = branch
        self.staged = staged or []
        self.changed = changed
        self.clean = clean
        self.tests = tests
        self.typescript = typescript
        self.type_check_output = type_check_output
        self.type_check_timed_out = type_check_timed_out
        self._repo_root = repo_root
        self.test_runs = 0
        self.branch_queries = 0

    def repo_root(self) -> Path | None:
        return self._repo_root

    def project_root(self) -> Path:
        return self._repo_root or self.working_directory

    def current_branch(self) -> str | None:
        self.branch_queries += 1
        return self.branch

    def staged_file_list(self) -> list[str]:
        return list(self.staged)

    def changed_paths(self) -> list[str] | None:
        return None if self.changed is None else list(self.changed)

    def working_tree_is_clean(self) -> bool:
        return self.clean

    def run_configured_tests(self) -> TestRunOutcome | None:
        self.test_runs += 1
        return self.tests

    def has_typescript_config(self) -> bool:
        return self.typescript

    def run_type_check(self) -> ExecResult:
        return ExecResult(
            argv=("npx", "tsc", "--noEmit"),
            cwd=self.project_root(),
            returncode=124 if self.type_check_timed_out else (2 if self.type_check_output else 0),
            stdout=self.type_check_output,
            stderr="",
            timed_out=self.type_check_timed_out,
            error="timed out after 30s" if self.type_check_timed_out else None,
        )


@pytest.fixture
def fake_inspector(tmp_path: Path) -> Callable[..., FakeInspector]:
    def _make(**kwargs) -> FakeInspector:
        root = kwargs.pop("root", tmp_path)
        return FakeInspector(root, **kwargs)

    return _make
