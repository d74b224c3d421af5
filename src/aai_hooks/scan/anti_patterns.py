"""Anti-pattern scanner run after a sub-agent finishes its turn.

Checks, without running tests:

1. backup/temp files under the conventional source roots (error),
2. debug logging in production sources under ``src/`` (warning),
3. backup/temp files staged for commit (error).

Only error findings block.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from aai_hooks.config import PolicyConfig
from aai_hooks.gates.base import FailureMode
from aai_hooks.git.inspector import RepositoryInspector
from aai_hooks.types import (
    AntiPatternFinding,
    FindingCategory,
    HookInvocation,
    PolicyDecision,
    Severity,
)

SOURCE = "anti-patterns"

SOURCE_ROOTS: tuple[str, ...] = ("src", "lib", "app", "tests", ".claude")
DEBUG_SCAN_ROOT = "src"
EXCLUDED_DIRS = frozenset({"node_modules", "dist", "coverage", ".git"})
DEBUG_EXTENSIONS = frozenset({".ts", ".tsx", ".js", ".jsx"})
DEBUG_STATEMENT = re.compile(r"console\.log")

# Substrings of the relative path that mark legitimate debug output.
DEBUG_EXCLUSIONS: tuple[str, ...] = (
    "logger.ts",
    "logger.js",
    "logging.ts",
    "logging.js",
    ".test.ts",
    ".test.js",
    ".spec.ts",
    ".spec.js",
    "__tests__/",
    "__mocks__/",
    ".md",
    "node_modules/",
)

ERROR_DISPLAY_CAP = 10
WARNING_DISPLAY_CAP = 5
REMEDY_PATH_CAP = 5
RULE = "=" * 60
SUBRULE = "-" * 40


@dataclass
class ScanResult:
    """Findings plus the combined decision and rendered report."""

    errors: list[AntiPatternFinding] = field(default_factory=list)
    warnings: list[AntiPatternFinding] = field(default_factory=list)

    @property
    def findings(self) -> list[AntiPatternFinding]:
        return [*self.errors, *self.warnings]

    @property
    def blocked(self) -> bool:
        return bool(self.errors)

    def report(self) -> str:
        return render_report(self.errors, self.warnings)

    def decision(self) -> PolicyDecision:
        if self.blocked:
            return PolicyDecision.block(self.report())
        return PolicyDecision.allow()


def _walk_files(root: Path) -> list[Path]:
    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRS)
        for filename in sorted(filenames):
            files.append(Path(dirpath) / filename)
    return files


def _relative(path: Path, base: Path) -> str:
    try:
        return path.relative_to(base).as_posix()
    except ValueError:
        return path.as_posix()


def find_backup_files(project_root: Path, config: PolicyConfig) -> list[str]:
    """Backup/temp files anywhere under the conventional source roots."""
    found: list[str] = []
    for name in SOURCE_ROOTS:
        root = project_root / name
        if not root.is_dir():
            continue
        for path in _walk_files(root):
            if config.is_backup_file(path.name):
                found.append(_relative(path, project_root))
    return found


def is_debug_excluded(relative_path: str) -> bool:
    return any(marker in relative_path for marker in DEBUG_EXCLUSIONS)


def find_debug_logging(project_root: Path) -> list[str]:
    """Production source files under src/ containing console.log."""
    root = project_root / DEBUG_SCAN_ROOT
    if not root.is_dir():
        return []

    violations: list[str] = []
    for path in _walk_files(root):
        if path.suffix not in DEBUG_EXTENSIONS:
            continue
        relative = _relative(path, project_root)
        if is_debug_excluded(relative):
            continue
        try:
            text = path.read_text(encoding="utf-8", errors="ignore")
        except OSError:
            continue
        if DEBUG_STATEMENT.search(text):
            violations.append(relative)
    return violations


def find_staged_backup_files(inspector: RepositoryInspector, config: PolicyConfig) -> list[str]:
    return [path for path in inspector.staged_file_list() if config.is_backup_file(path)]


def scan(project_root: Path, inspector: RepositoryInspector, config: PolicyConfig) -> ScanResult:
    """Run every anti-pattern check and classify findings by severity."""
    result = ScanResult()

    backups = find_backup_files(project_root, config)
    if backups:
        result.errors.append(
            AntiPatternFinding(
                category=FindingCategory.BACKUP_FILE,
                severity=Severity.ERROR,
                message=f"Found {len(backups)} backup/temp files that should be deleted",
                affected_paths=backups,
                remedy="Delete these files: rm " + " ".join(backups[:REMEDY_PATH_CAP]),
            )
        )

    debug_files = find_debug_logging(project_root)
    if debug_files:
        result.warnings.append(
            AntiPatternFinding(
                category=FindingCategory.DEBUG_LOGGING,
                severity=Severity.WARNING,
                message=f"Found console.log in {len(debug_files)} production files",
                affected_paths=debug_files,
                remedy="Consider using a structured logger instead",
            )
        )

    staged = find_staged_backup_files(inspector, config)
    if staged:
        result.errors.append(
            AntiPatternFinding(
                category=FindingCategory.STAGED_BACKUP_FILE,
                severity=Severity.ERROR,
                message=f"{len(staged)} backup files are staged for commit",
                affected_paths=staged,
                remedy="Unstage and delete: git reset HEAD -- " + " ".join(staged),
            )
        )

    return result


def _render_paths(lines: list[str], paths: list[str], cap: int) -> None:
    lines.append("  Files:")
    for path in paths[:cap]:
        lines.append(f"    - {path}")
    if len(paths) > cap:
        lines.append(f"    ... and {len(paths) - cap} more (showing first {cap})")


def render_report(errors: list[AntiPatternFinding], warnings: list[AntiPatternFinding]) -> str:
    """Render findings as the fixed-width validation report."""
    lines = ["", RULE, "ANTI-PATTERN VALIDATION REPORT", RULE]

    if errors:
        lines.extend(["", "❌ ERRORS (must fix before proceeding):", SUBRULE])
        for finding in errors:
            lines.extend(["", f"[{finding.category.value}] {finding.message}"])
            if finding.affected_paths:
                _render_paths(lines, finding.affected_paths, ERROR_DISPLAY_CAP)
            lines.append(f"  Fix: {finding.remedy}")

    if warnings:
        lines.extend(["", "⚠️  WARNINGS (should fix when possible):", SUBRULE])
        for finding in warnings:
            lines.extend(["", f"[{finding.category.value}] {finding.message}"])
            if finding.affected_paths:
                _render_paths(lines, finding.affected_paths, WARNING_DISPLAY_CAP)
            lines.append(f"  Fix: {finding.remedy}")

    if not errors and not warnings:
        lines.extend(["", "✓ All anti-pattern checks passed!"])

    lines.extend(["", RULE, ""])
    return "\n".join(lines)


class AntiPatternScanner:
    """Post-subagent scan; blocks only on error findings.

    Fails open: a scan that cannot complete never blocks the session.
    """

    name = "anti-pattern-scanner"
    failure_mode = FailureMode.OPEN

    def __init__(self, config: PolicyConfig):
        self.config = config

    def applies(self, invocation: HookInvocation) -> bool:
        return True

    def scan(self, invocation: HookInvocation, inspector: RepositoryInspector) -> ScanResult:
        return scan(inspector.project_root(), inspector, self.config)

    def evaluate(self, invocation: HookInvocation, inspector: RepositoryInspector) -> PolicyDecision:
        return self.scan(invocation, inspector).decision()
