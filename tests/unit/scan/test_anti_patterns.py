"""Tests for the anti-pattern scanner."""

from pathlib import Path

from aai_hooks.config import PolicyConfig
from aai_hooks.scan.anti_patterns import (
    AntiPatternScanner,
    find_backup_files,
    find_debug_logging,
    render_report,
    scan,
)
from aai_hooks.types import FindingCategory, Severity


def _touch(root: Path, relative: str, text: str = "") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def test_clean_project_passes(fake_inspector, config, tmp_path):
    _touch(tmp_path, "src/app.ts", "export const x = 1;\n")
    result = scan(tmp_path, fake_inspector(), config)

    assert not result.blocked
    assert result.findings == []
    assert "✓ All anti-pattern checks passed!" in result.report()
    assert not result.decision().blocked


def test_backup_files_under_source_roots_are_errors(fake_inspector, config, tmp_path):
    _touch(tmp_path, "src/app.ts.bak")
    _touch(tmp_path, "lib/util.js.bak2")
    _touch(tmp_path, "tests/fixture.orig")
    _touch(tmp_path, "docs/notes.bak")
    _touch(tmp_path, "src/node_modules/pkg/index.js.bak")

    result = scan(tmp_path, fake_inspector(), config)

    assert result.blocked
    [finding] = result.errors
    assert finding.category is FindingCategory.BACKUP_FILE
    assert finding.severity is Severity.ERROR
    assert finding.affected_paths == ["src/app.ts.bak", "lib/util.js.bak2", "tests/fixture.orig"]
    assert finding.remedy.startswith("Delete these files: rm src/app.ts.bak")


def test_debug_logging_is_only_a_warning(fake_inspector, config, tmp_path):
    _touch(tmp_path, "src/app.ts", "console.log('debug');\n")
    _touch(tmp_path, "src/app.test.ts", "console.log('fine in tests');\n")
    _touch(tmp_path, "src/utils/logger.ts", "console.log('logger');\n")
    _touch(tmp_path, "src/__tests__/helper.js", "console.log('helper');\n")
    _touch(tmp_path, "src/README.md", "console.log in docs\n")
    _touch(tmp_path, "lib/other.ts", "console.log('outside src');\n")

    result = scan(tmp_path, fake_inspector(), config)

    assert not result.blocked
    [finding] = result.warnings
    assert finding.category is FindingCategory.DEBUG_LOGGING
    assert finding.affected_paths == ["src/app.ts"]
    assert "⚠️  WARNINGS (should fix when possible):" in result.report()
    assert not result.decision().blocked


def test_staged_backup_files_are_errors(fake_inspector, config, tmp_path):
    result = scan(tmp_path, fake_inspector(staged=["README.md", "config.json.old"]), config)

    assert result.blocked
    [finding] = result.errors
    assert finding.category is FindingCategory.STAGED_BACKUP_FILE
    assert finding.affected_paths == ["config.json.old"]
    assert finding.remedy == "Unstage and delete: git reset HEAD -- config.json.old"


def test_report_layout(fake_inspector, config, tmp_path):
    for index in range(12):
        _touch(tmp_path, f"src/file{index:02d}.ts.tmp")
    _touch(tmp_path, "src/app.ts", "console.log(1)")

    report = scan(tmp_path, fake_inspector(), config).report()

    assert "=" * 60 in report
    assert "ANTI-PATTERN VALIDATION REPORT" in report
    assert "❌ ERRORS (must fix before proceeding):" in report
    assert "[BACKUP_FILES] Found 12 backup/temp files that should be deleted" in report
    assert "    - src/file09.ts.tmp" in report
    assert "src/file10.ts.tmp" not in report.split("  Fix:")[0]
    assert "    ... and 2 more (showing first 10)" in report
    assert "[CONSOLE_LOG] Found console.log in 1 production files" in report
    assert report.index("ERRORS") < report.index("WARNINGS")


def test_custom_backup_suffixes(fake_inspector, tmp_path):
    config = PolicyConfig.from_env({"AAI_HOOKS_BACKUP_SUFFIXES": ".swp"})
    _touch(tmp_path, "src/a.ts.swp")
    _touch(tmp_path, "src/b.ts.bak")

    assert find_backup_files(tmp_path, config) == ["src/a.ts.swp"]


def test_missing_roots_are_ignored(tmp_path, config):
    assert find_backup_files(tmp_path, config) == []
    assert find_debug_logging(tmp_path) == []


def test_render_report_without_findings():
    report = render_report([], [])
    assert report.splitlines()[1] == "=" * 60
    assert "ERRORS" not in report


def test_scanner_uses_project_root(invocation, fake_inspector, config, tmp_path):
    repo = tmp_path / "repo"
    _touch(repo, "src/a.ts.final")
    inspector = fake_inspector(root=tmp_path, repo_root=repo)

    decision = AntiPatternScanner(config).evaluate(invocation(None, tmp_path), inspector)

    assert decision.blocked
    assert "src/a.ts.final" in decision.message
