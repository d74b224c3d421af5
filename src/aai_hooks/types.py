"""Core types shared by every hook component."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class EventKind(str, Enum):
    """Lifecycle point at which the host invoked the hook."""

    PRE_ACTION = "PreAction"
    POST_ACTION = "PostAction"
    SUBAGENT_STOP = "SubagentStop"
    SESSION_STOP = "SessionStop"


# Host event names mapped onto the lifecycle points above.
HOST_EVENT_NAMES: dict[str, EventKind] = {
    "pretooluse": EventKind.PRE_ACTION,
    "preaction": EventKind.PRE_ACTION,
    "posttooluse": EventKind.POST_ACTION,
    "postaction": EventKind.POST_ACTION,
    "subagentstop": EventKind.SUBAGENT_STOP,
    "stop": EventKind.SESSION_STOP,
    "sessionend": EventKind.SESSION_STOP,
    "sessionstop": EventKind.SESSION_STOP,
}


def parse_event_kind(raw: object) -> EventKind | None:
    """Map a host event name onto an EventKind, or None when unknown."""
    if not isinstance(raw, str):
        return None
    return HOST_EVENT_NAMES.get(raw.strip().replace("_", "").replace("-", "").lower())


@dataclass(frozen=True)
class HookInvocation:
    """One host event, immutable for the lifetime of the hook process."""

    event_kind: EventKind | None
    command_text: str | None
    working_directory: Path

    @property
    def has_command(self) -> bool:
        return bool(self.command_text and self.command_text.strip())


@dataclass(frozen=True)
class PolicyDecision:
    """Allow/block outcome of a gate component."""

    blocked: bool
    message: str | None = None

    def __post_init__(self) -> None:
        if self.blocked and not (self.message and self.message.strip()):
            raise ValueError("blocking decision requires a message")

    @classmethod
    def allow(cls) -> PolicyDecision:
        return cls(blocked=False)

    @classmethod
    def block(cls, message: str) -> PolicyDecision:
        return cls(blocked=True, message=message)


class FindingCategory(str, Enum):
    """Anti-pattern categories reported by the scanner."""

    BACKUP_FILE = "BACKUP_FILES"
    STAGED_BACKUP_FILE = "STAGED_BACKUP_FILES"
    DEBUG_LOGGING = "CONSOLE_LOG"


class Severity(str, Enum):
    """Finding severity; only errors block."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class AntiPatternFinding:
    """Single detected anti-pattern."""

    category: FindingCategory
    severity: Severity
    message: str
    affected_paths: list[str]
    remedy: str


@dataclass(frozen=True)
class TestRunOutcome:
    """Result of running the project's configured test command.

    ``grammar`` names the output grammar that produced the counts. It is None
    when no grammar matched; the counts are then zero and must not be trusted.
    """

    __test__ = False

    command: str
    passing: int
    failing: int
    raw_output: str
    returncode: int
    grammar: str | None = None
    timed_out: bool = False
    error: str | None = None

    @property
    def parsed(self) -> bool:
        return self.grammar is not None

    @property
    def total(self) -> int:
        return self.passing + self.failing

    @property
    def executed(self) -> bool:
        """True when the runner started and finished within its timeout."""
        return not self.timed_out and self.error is None


@dataclass(frozen=True)
class RepositorySnapshot:
    """Best-effort view of repository state for one invocation."""

    current_branch: str | None
    staged_files: list[str] = field(default_factory=list)
    test_run: TestRunOutcome | None = None
