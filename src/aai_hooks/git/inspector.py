"""Repository Inspector: read-only queries over git and the test runner.

Every query degrades to None/empty on failure; callers decide whether that
means allow or block.
"""

from __future__ import annotations

from pathlib import Path

from aai_hooks import project
from aai_hooks.config import PolicyConfig
from aai_hooks.git.exec import ExecResult, run_command, run_git
from aai_hooks.testrun import parse_test_output
from aai_hooks.types import RepositorySnapshot, TestRunOutcome

# Non-interactive mode for runners that would otherwise watch for changes.
TEST_ENV = {"CI": "true", "FORCE_COLOR": "0"}
TYPECHECK_ARGV = ["npx", "tsc", "--noEmit"]


def _lines(text: str) -> list[str]:
    return [line for line in text.splitlines() if line.strip()]


def _status_path(line: str) -> str:
    # Porcelain/short format: "XY path" or "XY old -> new"
    path = line[3:] if len(line) > 3 else line.strip()
    if " -> " in path:
        path = path.split(" -> ", 1)[1]
    return path.strip().strip('"')


class RepositoryInspector:
    """Best-effort, read-only view of one working directory."""

    def __init__(self, working_directory: Path, config: PolicyConfig):
        self.working_directory = working_directory
        self.config = config
        self._toplevel: Path | None = None
        self._toplevel_resolved = False

    def _git(self, args: list[str]) -> ExecResult:
        return run_git(args, repo_root=self.working_directory, timeout=self.config.git_timeout)

    def repo_root(self) -> Path | None:
        """Return the git top-level directory, or None outside a repository."""
        if not self._toplevel_resolved:
            self._toplevel_resolved = True
            result = self._git(["rev-parse", "--show-toplevel"])
            root = result.stdout.strip() if result.ok else ""
            self._toplevel = Path(root).resolve() if root else None
        return self._toplevel

    def project_root(self) -> Path:
        """Repository root when available, else the working directory."""
        return self.repo_root() or self.working_directory

    def current_branch(self) -> str | None:
        """Return the current branch name, or None when detached/unavailable."""
        result = self._git(["rev-parse", "--abbrev-ref", "HEAD"])
        if not result.ok:
            return None
        branch = result.stdout.strip()
        if not branch or branch == "HEAD":
            return None
        return branch

    def staged_file_list(self) -> list[str]:
        """Return staged paths in git order; empty when none or on failure."""
        result = self._git(["diff", "--cached", "--name-only"])
        if not result.ok:
            return []
        return [line.strip() for line in _lines(result.stdout)]

    def changed_paths(self) -> list[str] | None:
        """Return paths reported by ``git status --short``; None on failure."""
        result = self._git(["status", "--short"])
        if not result.ok:
            return None
        return [_status_path(line) for line in _lines(result.stdout)]

    def working_tree_is_clean(self) -> bool:
        """True only when git reports no pending tracked changes."""
        result = self._git(["status", "--porcelain", "--untracked-files=no"])
        if not result.ok:
            return False
        return not result.stdout.strip()

    def manifest_root(self) -> Path:
        """Working directory when it holds package.json or tsconfig.json, else the project root."""
        for name in (project.PACKAGE_MANIFEST, project.TSCONFIG):
            if (self.working_directory / name).is_file():
                return self.working_directory
        return self.project_root()

    def test_command(self) -> list[str] | None:
        return project.detect_test_command(self.manifest_root(), self.repo_root())

    def run_configured_tests(self) -> TestRunOutcome | None:
        """Run the detected test command; None when no test script exists."""
        argv = self.test_command()
        if argv is None:
            return None

        result = run_command(
            argv,
            cwd=self.manifest_root(),
            timeout=self.config.test_timeout,
            merge_stderr=True,
            env=TEST_ENV,
        )
        parsed = parse_test_output(result.output)
        return TestRunOutcome(
            command=" ".join(argv),
            passing=parsed.passing if parsed else 0,
            failing=parsed.failing if parsed else 0,
            raw_output=result.output,
            returncode=result.returncode,
            grammar=parsed.grammar if parsed else None,
            timed_out=result.timed_out,
            error=result.error,
        )

    def has_typescript_config(self) -> bool:
        return project.has_typescript_config(self.manifest_root())

    def run_type_check(self) -> ExecResult:
        """Run a no-emit TypeScript check in the project root."""
        return run_command(
            TYPECHECK_ARGV,
            cwd=self.manifest_root(),
            timeout=self.config.test_timeout,
            merge_stderr=True,
        )

    def snapshot(self, *, with_tests: bool = False) -> RepositorySnapshot:
        return RepositorySnapshot(
            current_branch=self.current_branch(),
            staged_files=self.staged_file_list(),
            test_run=self.run_configured_tests() if with_tests else None,
        )
