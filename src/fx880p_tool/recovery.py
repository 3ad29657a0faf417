"""Accumulation buffer deciding between complete programs and fragments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class DecodedLine:
    number: int
    text: str
    offset: int = 0
    count: int = 0


@dataclass
class DecodedProgram:
    lines: List[DecodedLine] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(line.text for line in self.lines)

    @property
    def line_numbers(self) -> List[int]:
        return [line.number for line in self.lines]


@dataclass
class DiscardedFragment:
    lines: List[DecodedLine] = field(default_factory=list)
    trailing: str = ""

    @property
    def text(self) -> str:
        return "".join(line.text for line in self.lines) + self.trailing


class RecoveryManager:
    """Lines accepted since the last program end, plus everything settled so far.

    A line number of 0, or one not above the last accepted number, poisons
    the whole buffer: it is moved to :attr:`fragments` and the tracker starts
    over. A program end moves the buffer to :attr:`programs`. Either way the
    buffer is left empty and the last line number reset.
    """

    def __init__(self) -> None:
        self.programs: List[DecodedProgram] = []
        self.fragments: List[DiscardedFragment] = []
        self.last_line_number = 0
        self._buffer: List[DecodedLine] = []

    @property
    def pending(self) -> bool:
        return bool(self._buffer)

    def accepts(self, number: int) -> bool:
        return number > 0 and number > self.last_line_number

    def accept_line(self, line: DecodedLine) -> bool:
        if not self.accepts(line.number):
            self.discard_buffer()
            return False
        self._buffer.append(line)
        self.last_line_number = line.number
        return True

    def complete_program(self) -> DecodedProgram | None:
        program = None
        if self._buffer:
            program = DecodedProgram(lines=self._buffer)
            self.programs.append(program)
        self._reset()
        return program

    def discard_buffer(self, trailing: str = "") -> DiscardedFragment | None:
        fragment = None
        if self._buffer or trailing:
            fragment = DiscardedFragment(lines=self._buffer, trailing=trailing)
            self.fragments.append(fragment)
        self._reset()
        return fragment

    def _reset(self) -> None:
        self._buffer = []
        self.last_line_number = 0


__all__ = ["DecodedLine", "DecodedProgram", "DiscardedFragment", "RecoveryManager"]
