"""Host payload parsing.

Malformed or missing payloads never raise: they produce an invocation with
no command, which no gate applies to.
"""

from __future__ import annotations

import json
import os
import sys
import threading
from pathlib import Path
from typing import Any, TextIO

from aai_hooks.types import EventKind, HookInvocation, parse_event_kind

STDIN_TIMEOUT = 5.0


def read_stdin(stream: TextIO | None = None, timeout: float = STDIN_TIMEOUT) -> str:
    """Read all of stdin, giving up after timeout seconds.

    The read runs on a daemon thread so a host that never closes the pipe
    cannot hang the hook.
    """
    source = stream if stream is not None else sys.stdin
    if source is None:
        return ""
    try:
        if source.isatty():
            return ""
    except (OSError, ValueError):
        return ""

    chunks: list[str] = []

    def _read() -> None:
        try:
            chunks.append(source.read())
        except (OSError, ValueError):
            chunks.append("")

    reader = threading.Thread(target=_read, daemon=True)
    reader.start()
    reader.join(timeout)
    return chunks[0] if chunks else ""


def _command_from(payload: dict[str, Any]) -> str | None:
    tool_input = payload.get("tool_input")
    if isinstance(tool_input, dict) and isinstance(tool_input.get("command"), str):
        return tool_input["command"]
    command = payload.get("command")
    return command if isinstance(command, str) else None


def _working_directory(raw: object) -> Path:
    if isinstance(raw, str) and raw.strip():
        candidate = Path(raw).expanduser()
        if candidate.is_dir():
            return candidate.resolve()
    return Path(os.getcwd()).resolve()


def parse_invocation(raw: str, default_event: EventKind | None = None) -> HookInvocation:
    """Build a HookInvocation from the raw stdin payload.

    Args:
        raw: Payload text, usually a JSON object
        default_event: Event kind assumed when the payload does not name one

    Returns:
        HookInvocation; empty when the payload is unusable
    """
    payload: Any = None
    if raw.strip():
        try:
            payload = json.loads(raw)
        except ValueError:
            payload = None

    if not isinstance(payload, dict):
        return HookInvocation(event_kind=default_event, command_text=None, working_directory=_working_directory(None))

    event = parse_event_kind(payload.get("hook_event_name")) or default_event
    command = _command_from(payload)
    if event is None and command:
        event = EventKind.PRE_ACTION

    return HookInvocation(
        event_kind=event,
        command_text=command,
        working_directory=_working_directory(payload.get("cwd")),
    )


def read_invocation(
    stream: TextIO | None = None,
    default_event: EventKind | None = None,
    timeout: float = STDIN_TIMEOUT,
) -> HookInvocation:
    return parse_invocation(read_stdin(stream, timeout), default_event)
