"""Completion evidence document reader.

The evidence document is plain text (usually markdown) authored between hook
invocations. A section counts as present when a header line names it: a
markdown heading, a bold line, or a ``Name:`` label line. Prose mentioning a
section name does not count.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

_HEADING = re.compile(r"^\s{0,3}#{1,6}\s+(?P<title>.+?)\s*#*\s*$")
_BOLD = re.compile(r"^\s*(?:[-*]\s+)?(?:\*\*|__)(?P<title>.+?)(?:\*\*|__)\s*:?\s*(?P<rest>.*)$")
_LABEL = re.compile(r"^\s*(?:[-*]\s+)?(?P<title>[A-Za-z][A-Za-z ]{1,60}?)\s*:\s*(?P<rest>.*)$")


class EvidenceState(str, Enum):
    """Outcome of reading the evidence file."""

    MISSING = "missing"
    INVALID = "invalid"
    VALID = "valid"


@dataclass(frozen=True)
class CompletionEvidence:
    """Parsed evidence document with its named sections."""

    path: Path
    sections: dict[str, str] = field(default_factory=dict)

    def has_section(self, name: str) -> bool:
        """True when some header title names the section as whole words."""
        pattern = re.compile(rf"\b{re.escape(name.strip())}\b", re.IGNORECASE)
        return any(pattern.search(title) for title in self.sections)

    def missing_sections(self, required: tuple[str, ...]) -> list[str]:
        return [name for name in required if not self.has_section(name)]


@dataclass(frozen=True)
class EvidenceCheck:
    """Evidence lookup result for the verification gate."""

    state: EvidenceState
    path: Path
    missing: list[str] = field(default_factory=list)
    error: str | None = None


def _header_title(line: str) -> tuple[str, str] | None:
    for pattern in (_HEADING, _BOLD):
        match = pattern.match(line)
        if match:
            title = match.group("title").strip().rstrip(":").strip()
            rest = match.groupdict().get("rest") or ""
            return title, rest.strip()
    match = _LABEL.match(line)
    if match:
        return match.group("title").strip(), match.group("rest").strip()
    return None


def parse_evidence(text: str, path: Path) -> CompletionEvidence:
    """Split document text into sections keyed by header title."""
    sections: dict[str, str] = {}
    current: str | None = None
    body: list[str] = []

    def flush() -> None:
        if current is not None:
            existing = sections.get(current, "")
            joined = "\n".join(body).strip()
            sections[current] = f"{existing}\n{joined}".strip() if existing else joined

    for line in text.splitlines():
        header = _header_title(line)
        if header is None:
            body.append(line)
            continue
        flush()
        current, rest = header
        body = [rest] if rest else []
    flush()

    return CompletionEvidence(path=path, sections=sections)


def read_evidence(path: Path) -> CompletionEvidence | None:
    """Read evidence fresh from disk; None when the file does not exist."""
    if not path.is_file():
        return None
    text = path.read_text(encoding="utf-8", errors="replace")
    return parse_evidence(text, path)


def check_evidence(path: Path, required: tuple[str, ...]) -> EvidenceCheck:
    """Classify the evidence file as missing, invalid, or valid."""
    try:
        evidence = read_evidence(path)
    except OSError as exc:
        return EvidenceCheck(state=EvidenceState.INVALID, path=path, missing=list(required), error=str(exc))

    if evidence is None:
        return EvidenceCheck(state=EvidenceState.MISSING, path=path)

    missing = evidence.missing_sections(required)
    if missing:
        return EvidenceCheck(state=EvidenceState.INVALID, path=path, missing=missing)
    return EvidenceCheck(state=EvidenceState.VALID, path=path)
