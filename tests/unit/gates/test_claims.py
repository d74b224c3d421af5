"""Tests for the claim validator."""

import json

import pytest

from aai_hooks.gates.base import FailureMode
from aai_hooks.gates.claims import ClaimValidator
from aai_hooks.git.exec import ExecResult
from aai_hooks.git.inspector import RepositoryInspector


def _evaluate(config, invocation, inspector, message, cwd):
    return ClaimValidator(config).evaluate(invocation(f'git commit -m "{message}"', cwd), inspector)


def test_count_mismatch_blocks(invocation, fake_inspector, outcome, config, tmp_path):
    inspector = fake_inspector(tests=outcome(45, 5))
    decision = _evaluate(config, invocation, inspector, "47/50 tests passing", tmp_path)

    assert decision.blocked
    assert "Commit claims: 47/50 tests passing" in decision.message
    assert "Actual results: 45/50 tests passing" in decision.message
    assert "Run: npm test" in decision.message


def test_matching_count_allows_even_with_failures(invocation, fake_inspector, outcome, config, tmp_path):
    inspector = fake_inspector(tests=outcome(45, 5))
    assert not _evaluate(config, invocation, inspector, "45/50 tests passing", tmp_path).blocked


def test_count_claim_with_unparsed_output_cannot_be_verified(invocation, fake_inspector, outcome, config, tmp_path):
    inspector = fake_inspector(tests=outcome(0, 0, grammar=None, returncode=0, raw_output="ok"))
    decision = _evaluate(config, invocation, inspector, "10/10 tests passing", tmp_path)

    assert decision.blocked
    assert "Cannot verify test count claim" in decision.message
    assert "did not match any known result format" in decision.message


def test_count_claim_with_timeout_cannot_be_verified(invocation, fake_inspector, outcome, config, tmp_path):
    run = outcome(0, 0, grammar=None, returncode=124, timed_out=True, error="timed out after 30s")
    decision = _evaluate(config, invocation, fake_inspector(tests=run), "10/10 tests passing", tmp_path)

    assert decision.blocked
    assert "timed out after 30s" in decision.message


def test_no_test_command_allows(invocation, fake_inspector, config, tmp_path):
    inspector = fake_inspector(tests=None)
    assert not _evaluate(config, invocation, inspector, "47/50 tests passing", tmp_path).blocked
    assert not _evaluate(config, invocation, inspector, "all tests passing", tmp_path).blocked
    assert inspector.test_runs == 2


def test_all_tests_passing_with_failures_blocks(invocation, fake_inspector, outcome, config, tmp_path):
    decision = _evaluate(config, invocation, fake_inspector(tests=outcome(45, 5)), "All tests passing", tmp_path)

    assert decision.blocked
    assert "5 tests are failing" in decision.message


def test_all_tests_passing_verified(invocation, fake_inspector, outcome, config, tmp_path):
    assert not _evaluate(config, invocation, fake_inspector(tests=outcome(12, 0)), "all tests passing", tmp_path).blocked


def test_all_tests_passing_with_nonzero_exit_blocks(invocation, fake_inspector, outcome, config, tmp_path):
    run = outcome(0, 0, grammar=None, returncode=1, raw_output="Error: cannot find module")
    decision = _evaluate(config, invocation, fake_inspector(tests=run), "all tests passing", tmp_path)

    assert decision.blocked
    assert "exited with code 1" in decision.message
    assert "cannot find module" in decision.message


def test_all_tests_passing_when_runner_is_missing_blocks(invocation, fake_inspector, outcome, config, tmp_path):
    run = outcome(0, 0, grammar=None, returncode=127, error="executable not found: pnpm")
    decision = _evaluate(config, invocation, fake_inspector(tests=run), "all tests passing", tmp_path)

    assert decision.blocked
    assert "could not start" in decision.message


def test_hallucinated_removal_blocks(invocation, fake_inspector, config, tmp_path):
    decision = _evaluate(config, invocation, fake_inspector(changed=[]), "Removed all console.log statements", tmp_path)

    assert decision.blocked
    assert "Commit claims to have modified: all console.log statements" in decision.message
    assert "0 files modified" in decision.message


def test_removal_with_changes_allows(invocation, fake_inspector, config, tmp_path):
    inspector = fake_inspector(changed=["src/app.ts"])
    assert not _evaluate(config, invocation, inspector, "Removed all console.log statements", tmp_path).blocked


def test_unreadable_status_allows(invocation, fake_inspector, config, tmp_path):
    assert not _evaluate(config, invocation, fake_inspector(changed=None), "fixed the parser", tmp_path).blocked


@pytest.mark.parametrize("message", ["prefixed the names", "undeleted branch", "refactor parser"])
def test_modification_words_need_word_boundaries(message, invocation, fake_inspector, config, tmp_path):
    assert not _evaluate(config, invocation, fake_inspector(changed=[]), message, tmp_path).blocked


def test_count_rule_takes_precedence(invocation, fake_inspector, outcome, config, tmp_path):
    inspector = fake_inspector(tests=outcome(3, 0), changed=[])
    decision = _evaluate(config, invocation, inspector, "fixed bug, 3/3 tests passing", tmp_path)

    assert not decision.blocked
    assert inspector.test_runs == 1


def test_bypass_marker_skips_claims(invocation, fake_inspector, outcome, config, tmp_path):
    inspector = fake_inspector(tests=outcome(1, 9))
    assert not _evaluate(config, invocation, inspector, "[skip-verify] 10/10 tests passing", tmp_path).blocked
    assert inspector.test_runs == 0


def test_plain_message_runs_nothing(invocation, fake_inspector, config, tmp_path):
    inspector = fake_inspector()
    assert not _evaluate(config, invocation, inspector, "chore: bump deps", tmp_path).blocked
    assert inspector.test_runs == 0


def test_validator_fails_closed():
    assert ClaimValidator.failure_mode is FailureMode.CLOSED


def test_count_claim_checked_in_package_subdirectory(git_repo, invocation, config, monkeypatch):
    web = git_repo / "web"
    web.mkdir()
    (web / "package.json").write_text(json.dumps({"scripts": {"test": "jest"}}))
    seen = {}

    def fake_run_command(argv, *, cwd, timeout, merge_stderr=False, env=None):
        seen["cwd"] = cwd
        return ExecResult(tuple(argv), cwd, 1, "Tests:       5 failed, 45 passed, 50 total\n", "")

    monkeypatch.setattr("aai_hooks.git.inspector.run_command", fake_run_command)

    decision = ClaimValidator(config).evaluate(
        invocation('git commit -m "47/50 tests passing"', web), RepositoryInspector(web, config)
    )

    assert decision.blocked
    assert "Actual results: 45/50 tests passing" in decision.message
    assert seen["cwd"] == web
