"""Console output for hooks.

Standard output belongs to the host protocol (JSON for informational hooks),
so every diagnostic goes to standard error.
"""

from __future__ import annotations

import json
import os
import sys
from typing import Any

from rich.console import Console
from rich.markup import escape

console = Console(stderr=True, highlight=False, soft_wrap=True)


def quiet_enabled() -> bool:
    return os.environ.get("AAI_HOOKS_QUIET", "").strip() in {"1", "true", "yes"}


def note(source: str, message: str) -> None:
    """Print a dim diagnostic line, e.g. ``[validate-claims] no test command``."""
    if quiet_enabled():
        return
    console.print(f"[dim]{escape(f'[{source}]')} {escape(message)}[/dim]")


def warn(source: str, message: str) -> None:
    if quiet_enabled():
        return
    console.print(f"[yellow]{escape(f'[{source}]')} Warning:[/yellow] {escape(message)}")


def emit_block(message: str) -> None:
    """Write a block message verbatim to stderr for the host to feed back."""
    console.print(message, markup=False, emoji=False, highlight=False)


def emit_json(payload: dict[str, Any]) -> None:
    """Write one JSON object to stdout for the host."""
    sys.stdout.write(json.dumps(payload) + "\n")
    sys.stdout.flush()
