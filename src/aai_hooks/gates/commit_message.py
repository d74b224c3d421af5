"""Matching helpers for shell command text.

Command text is opaque: it is matched against known verbs by regex, never
parsed as shell grammar.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

GIT_MUTATING_VERB = re.compile(r"\bgit\s+(?:-\S+\s+)*(commit|push|merge)\b")
GIT_COMMIT = re.compile(r"\bgit\s+(?:-\S+\s+)*commit\b")

# -m "msg", -am 'msg', -m"msg", --message "msg", --message="msg"
_MESSAGE = re.compile(
    r"""(?<![\w-])(?:-[A-Za-z]*m|--message)(?:\s+|=)?(["'])(?P<message>.+?)\1""",
    re.DOTALL,
)


def mutating_git_verb(command: str | None) -> str | None:
    """Return commit/push/merge when the command runs one, else None."""
    if not command:
        return None
    match = GIT_MUTATING_VERB.search(command)
    return match.group(1) if match else None


def is_git_commit(command: str | None) -> bool:
    return bool(command) and GIT_COMMIT.search(command or "") is not None


def extract_commit_message(command: str | None) -> str | None:
    """Return the quoted ``-m`` message of a git commit, or None."""
    if not is_git_commit(command):
        return None
    match = _MESSAGE.search(command or "")
    if not match:
        return None
    return match.group("message")


def matched_keywords(message: str, keywords: Iterable[str]) -> list[str]:
    """Return the keywords present in message as whole words (case-insensitive)."""
    found = []
    for keyword in keywords:
        if re.search(rf"\b{re.escape(keyword)}\b", message, re.IGNORECASE):
            found.append(keyword)
    return found
