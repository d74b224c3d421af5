"""Policy configuration built once per hook invocation.

Every component receives a ``PolicyConfig`` explicitly; nothing reads the
process environment after construction.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

DEFAULT_PROTECTED_BRANCHES: tuple[str, ...] = ("main", "master", "production", "develop")
DEFAULT_BYPASS_MARKER = "[skip-verify]"
DEFAULT_EVIDENCE_FILE = "task-completion-evidence.md"

DEFAULT_COMPLETION_KEYWORDS: tuple[str, ...] = (
    "complete",
    "completed",
    "done",
    "finished",
    "implemented",
    "added",
    "created",
    "fixed",
    "updated",
    "implement",
    "finish",
)

REQUIRED_EVIDENCE_SECTIONS: tuple[str, ...] = (
    "Files Modified",
    "Changes Summary",
    "Build Status",
    "Test Status",
)

# Regex fragments anchored at the end of a file name.
DEFAULT_BACKUP_PATTERNS: tuple[str, ...] = (
    r"\.bak\d*$",
    r"\.fixmock$",
    r"\.final$",
    r"\.prefinal$",
    r"\.broken$",
    r"\.backup$",
    r"\.new$",
    r"\.old$",
    r"\.orig$",
    r"\.tmp$",
)

MAX_GIT_TIMEOUT = 5.0
MAX_TEST_TIMEOUT = 30.0
DEFAULT_DEADLINE = 55.0


def _split_list(raw: str | None) -> tuple[str, ...]:
    if raw is None:
        return ()
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _bounded_seconds(raw: str | None, default: float, ceiling: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    return min(value, ceiling)


@dataclass(frozen=True)
class PolicyConfig:
    """Policy parameters for all gate components."""

    protected_branches: tuple[str, ...] = DEFAULT_PROTECTED_BRANCHES
    bypass_marker: str = DEFAULT_BYPASS_MARKER
    evidence_file: str = DEFAULT_EVIDENCE_FILE
    completion_keywords: tuple[str, ...] = DEFAULT_COMPLETION_KEYWORDS
    required_sections: tuple[str, ...] = REQUIRED_EVIDENCE_SECTIONS
    backup_patterns: tuple[str, ...] = DEFAULT_BACKUP_PATTERNS
    git_timeout: float = MAX_GIT_TIMEOUT
    test_timeout: float = MAX_TEST_TIMEOUT
    deadline: float = DEFAULT_DEADLINE
    env_file: str | None = None
    _backup_regexes: tuple[re.Pattern[str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        normalized = tuple(b.strip().lower() for b in self.protected_branches if b.strip())
        object.__setattr__(self, "protected_branches", normalized)
        object.__setattr__(
            self,
            "_backup_regexes",
            tuple(re.compile(pattern) for pattern in self.backup_patterns),
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PolicyConfig:
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            PolicyConfig with defaults for every unset or blank variable
        """
        env = os.environ if environ is None else environ

        protected = _split_list(env.get("PROTECTED_BRANCHES")) or DEFAULT_PROTECTED_BRANCHES
        keywords = _split_list(env.get("AAI_HOOKS_COMPLETION_KEYWORDS")) or DEFAULT_COMPLETION_KEYWORDS
        suffixes = _split_list(env.get("AAI_HOOKS_BACKUP_SUFFIXES"))
        patterns = tuple(re.escape(s) + "$" for s in suffixes) or DEFAULT_BACKUP_PATTERNS

        return cls(
            protected_branches=protected,
            bypass_marker=(env.get("AAI_HOOKS_BYPASS_MARKER") or "").strip() or DEFAULT_BYPASS_MARKER,
            evidence_file=(env.get("AAI_HOOKS_EVIDENCE_FILE") or "").strip() or DEFAULT_EVIDENCE_FILE,
            completion_keywords=keywords,
            backup_patterns=patterns,
            git_timeout=_bounded_seconds(env.get("AAI_HOOKS_GIT_TIMEOUT"), MAX_GIT_TIMEOUT, MAX_GIT_TIMEOUT),
            test_timeout=_bounded_seconds(env.get("AAI_HOOKS_TEST_TIMEOUT"), MAX_TEST_TIMEOUT, MAX_TEST_TIMEOUT),
            deadline=_bounded_seconds(env.get("AAI_HOOKS_DEADLINE"), DEFAULT_DEADLINE, 600.0),
            env_file=(env.get("CLAUDE_ENV_FILE") or "").strip() or None,
        )

    def is_protected(self, branch: str | None) -> bool:
        """Return True when branch (or origin/<branch>) is protected."""
        if not branch:
            return False
        lowered = branch.strip().lower()
        return any(lowered in (name, f"origin/{name}") for name in self.protected_branches)

    def is_backup_file(self, path: str) -> bool:
        """Return True when the file name carries a backup/temp suffix."""
        name = path.replace("\\", "/").rsplit("/", 1)[-1]
        return any(regex.search(name) for regex in self._backup_regexes)
