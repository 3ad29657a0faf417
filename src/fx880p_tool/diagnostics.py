"""Diagnostic sinks handed to the decoder.

Events are observational only: nothing recorded here changes what gets
decoded.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

INVALID_LINE = "invalid_line"
UNKNOWN_OPCODE = "unknown_opcode"
UNKNOWN_CHARACTER = "unknown_character"
HIDDEN_SEPARATOR = "hidden_separator"

EVENT_KINDS = (INVALID_LINE, UNKNOWN_OPCODE, UNKNOWN_CHARACTER, HIDDEN_SEPARATOR)


@dataclass(frozen=True)
class DiagnosticEvent:
    kind: str
    offset: int
    line_number: int
    detail: str
    token: Optional[str] = None

    def describe(self) -> str:
        return f"{self.offset:X} line {self.line_number}: {self.detail}"


class Diagnostics:
    """No-op sink; subclasses decide what to keep or report."""

    def info(self, message: str, *args: object) -> None:
        return None

    def event(self, event: DiagnosticEvent) -> None:
        return None

    def report(
        self,
        kind: str,
        offset: int,
        line_number: int,
        detail: str,
        token: Optional[str] = None,
    ) -> None:
        self.event(DiagnosticEvent(kind, offset, line_number, detail, token))


NullDiagnostics = Diagnostics


class RecordingDiagnostics(Diagnostics):
    def __init__(self) -> None:
        self.events: List[DiagnosticEvent] = []
        self.messages: List[str] = []

    def info(self, message: str, *args: object) -> None:
        self.messages.append(message % args if args else message)

    def event(self, event: DiagnosticEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: str) -> List[DiagnosticEvent]:
        return [event for event in self.events if event.kind == kind]

    def counts(self) -> Dict[str, int]:
        counts: Counter[str] = Counter(event.kind for event in self.events)
        return {kind: counts.get(kind, 0) for kind in EVENT_KINDS}

    def summary(self) -> dict:
        """Occurrences of unknown opcodes and characters, keyed by placeholder."""

        summary: dict = {"counts": self.counts()}
        for kind in (UNKNOWN_OPCODE, UNKNOWN_CHARACTER):
            seen: Counter[str] = Counter()
            lines: dict[str, set[int]] = defaultdict(set)
            for event in self.of_kind(kind):
                token = event.token or event.detail
                seen[token] += 1
                lines[token].add(event.line_number)
            summary[kind] = {
                token: {"count": count, "lines": sorted(lines[token])}
                for token, count in sorted(seen.items(), key=lambda kv: (-kv[1], kv[0]))
            }
        return summary


class LoggingDiagnostics(RecordingDiagnostics):
    """Records events and forwards them to :mod:`logging`."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        super().__init__()
        self.log = log or logger

    def info(self, message: str, *args: object) -> None:
        super().info(message, *args)
        self.log.info(message, *args)

    def event(self, event: DiagnosticEvent) -> None:
        super().event(event)
        self.log.debug("%s", event.describe())


__all__ = [
    "DiagnosticEvent",
    "Diagnostics",
    "EVENT_KINDS",
    "HIDDEN_SEPARATOR",
    "INVALID_LINE",
    "LoggingDiagnostics",
    "NullDiagnostics",
    "RecordingDiagnostics",
    "UNKNOWN_CHARACTER",
    "UNKNOWN_OPCODE",
]
