"""Read-only git and test-runner inspection for hook components."""

from aai_hooks.git.exec import ExecResult, run_command, run_git
from aai_hooks.git.inspector import RepositoryInspector

__all__ = ["ExecResult", "RepositoryInspector", "run_command", "run_git"]
