"""AAI hooks CLI - one sub-command per host hook.

Gating commands exit 0 to allow and 2 to block (message on stderr).
Informational commands print one JSON object on stdout and always exit 0.
"""

from collections.abc import Callable

import typer

from aai_hooks import __version__, ui
from aai_hooks.config import PolicyConfig
from aai_hooks.dispatcher import Dispatcher, DispatchResult
from aai_hooks.gates import BranchGuard, ClaimValidator, Gate, PackageManagerGuard, VerificationGate
from aai_hooks.invocation import read_invocation
from aai_hooks.types import EventKind, parse_event_kind

BLOCK_EXIT_CODE = 2

cli = typer.Typer(
    name="aai-hooks",
    help="AAI hooks - policy gates for AI coding-assistant hook events",
    no_args_is_help=True,
    add_completion=False,
)


def _finish(result: DispatchResult) -> None:
    """Translate a dispatch result into host protocol output and exit code."""
    if result.blocked:
        ui.emit_block(result.decision.message or "")
        raise typer.Exit(BLOCK_EXIT_CODE)
    if result.report:
        ui.emit_block(result.report)
    if result.context is not None:
        ui.emit_json(result.context)


def _run_single_gate(gate_type: Callable[[PolicyConfig], Gate]) -> None:
    config = PolicyConfig.from_env()
    invocation = read_invocation(default_event=EventKind.PRE_ACTION)
    dispatcher = Dispatcher(config, include_context=False)
    _finish(dispatcher.run_gates(invocation, [gate_type(config)]))


@cli.command()
def version() -> None:
    """Show version and exit."""
    typer.echo(__version__)


@cli.command()
def dispatch(
    event: str | None = typer.Option(
        None,
        "--event",
        help="Event kind when the payload does not name one (PreAction, SubagentStop, ...)",
    ),
    context: bool = typer.Option(
        True,
        "--context/--no-context",
        help="Emit project context JSON after allowed pre-action events",
    ),
) -> None:
    """Route one host event through every applicable component."""
    default_event = parse_event_kind(event)
    if event is not None and default_event is None:
        choices = ", ".join(kind.value for kind in EventKind)
        ui.console.print(f"[bold red]Error:[/bold red] unknown event {event!r} (choose from {choices})")
        raise typer.Exit(1)

    config = PolicyConfig.from_env()
    invocation = read_invocation(default_event=default_event)
    _finish(Dispatcher(config, include_context=context).dispatch(invocation))


@cli.command("branch-guard")
def branch_guard() -> None:
    """Block commit/push/merge on protected branches."""
    _run_single_gate(BranchGuard)


@cli.command("require-verification")
def require_verification() -> None:
    """Block completion claims in commit messages without evidence."""
    _run_single_gate(VerificationGate)


@cli.command("validate-claims")
def validate_claims() -> None:
    """Block commit messages whose test/change claims do not match reality."""
    _run_single_gate(ClaimValidator)


@cli.command("package-manager")
def package_manager() -> None:
    """Block npm commands in projects locked to pnpm, yarn, or bun."""
    _run_single_gate(PackageManagerGuard)


@cli.command("anti-patterns")
def anti_patterns() -> None:
    """Scan the working tree for backup files and debug logging."""
    config = PolicyConfig.from_env()
    invocation = read_invocation(default_event=EventKind.SUBAGENT_STOP)
    _finish(Dispatcher(config).run_scanner(invocation))


@cli.command("inject-context")
def inject_context() -> None:
    """Print detected project context as JSON for the host."""
    config = PolicyConfig.from_env()
    invocation = read_invocation(default_event=EventKind.PRE_ACTION)
    ui.emit_json(Dispatcher(config).inject_context(invocation))


if __name__ == "__main__":

    cli()
