"""
Heuristic line scanner for FX-880P tokenized BASIC images.

The rules below were reverse engineered from memory dumps, so they can be
wrong or incomplete.

A stored line looks like::

    count (1 byte)  line number (2 bytes, low first)  0x20  body ...  0x00

where the terminating 0x00 sits exactly ``count`` bytes after the count byte.
Images hold intact programs next to leftovers of deleted or edited ones, so
the scanner does not walk programs. It tries every offset as a count byte
and accepts it when the terminator and the fixed space are where the count
says they should be. A 0x00 met between lines closes the current program.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

from .charset import CharsetMapper
from .diagnostics import (
    HIDDEN_SEPARATOR,
    INVALID_LINE,
    UNKNOWN_CHARACTER,
    UNKNOWN_OPCODE,
    Diagnostics,
)
from .opcodes import (
    ELSE,
    LATEST_REVISION,
    LINE_END,
    LINE_REFERENCE,
    PROGRAM_END,
    SPACE,
    STATEMENT_SEPARATOR,
    OpcodeGroup,
    OpcodeTable,
    read_word,
    unknown_token_placeholder,
)
from .recovery import DecodedLine, DecodedProgram, DiscardedFragment, RecoveryManager
from .spacing import SPACER, SpacingNormalizer

HEADER_SIZE = 4
NEWLINE = "\n"


@dataclass(frozen=True)
class Cursor:
    """Position inside a line body."""

    offset: int
    remaining: int
    previous: int = LINE_END

    def advance(self, step: "Step") -> "Cursor":
        return Cursor(
            offset=self.offset + step.size,
            remaining=self.remaining - step.size,
            previous=step.marker,
        )


class Step(NamedTuple):
    text: str
    size: int
    marker: int
    invalid: bool = False


@dataclass
class LineResult:
    number: int
    offset: int
    count: int
    text: str
    end: int
    consumed: int
    valid: bool = True

    def decoded(self) -> DecodedLine:
        return DecodedLine(
            number=self.number, text=self.text, offset=self.offset, count=self.count
        )


@dataclass
class ScanResult:
    start: int
    end: int
    programs: List[DecodedProgram] = field(default_factory=list)
    fragments: List[DiscardedFragment] = field(default_factory=list)
    newline: str = NEWLINE

    @property
    def text(self) -> str:
        return self.newline.join(program.text for program in self.programs)

    @property
    def fragments_text(self) -> str:
        return self.newline.join(fragment.text for fragment in self.fragments)


class LineScanner:
    def __init__(
        self,
        image: bytes,
        *,
        revision: int = LATEST_REVISION,
        table: Optional[OpcodeTable] = None,
        charset: Optional[CharsetMapper] = None,
        spacing: Optional[SpacingNormalizer] = None,
        diagnostics: Optional[Diagnostics] = None,
        newline: str = NEWLINE,
    ) -> None:
        self.image = bytes(image)
        self.revision = revision
        self.table = table or OpcodeTable(revision)
        self.charset = charset or CharsetMapper(revision)
        if spacing is None:
            spacing = SpacingNormalizer(self.table, enabled=revision >= 2)
        self.spacing = spacing
        self.diagnostics = diagnostics or Diagnostics()
        self.newline = newline

    def is_line_start(self, offset: int) -> bool:
        image = self.image
        if offset < 0 or offset + 3 >= len(image):
            return False
        count = image[offset]
        if offset + count >= len(image):
            return False
        return count > 0 and image[offset + count] == LINE_END and image[offset + 3] == SPACE

    def decode_line(self, offset: int) -> LineResult | None:
        """Decode the line whose count byte is at ``offset``.

        Returns ``None`` when ``offset`` fails the line-start test. Line
        number ordering is the caller's business.
        """

        if not self.is_line_start(offset):
            return None
        count = self.image[offset]
        number = read_word(self.image, offset + 1)
        parts = [f"{number}{SPACER}"]
        cursor = Cursor(offset=offset + HEADER_SIZE, remaining=count - 3)
        consumed = 0

        def result(valid: bool) -> LineResult:
            return LineResult(
                number=number,
                offset=offset,
                count=count,
                text="".join(parts),
                end=cursor.offset,
                consumed=consumed,
                valid=valid,
            )

        if cursor.remaining <= 0:
            # terminator inside the header itself
            self.diagnostics.report(
                INVALID_LINE, offset, number, "line count too short.  Invalid BASIC line."
            )
            return result(False)

        while cursor.remaining > 0:
            step = self.step(cursor, number)
            if not step.invalid and step.marker != LINE_END and step.size >= cursor.remaining:
                self.diagnostics.report(
                    INVALID_LINE,
                    cursor.offset,
                    number,
                    "token runs into the line terminator.  Invalid BASIC line.",
                )
                step = step._replace(invalid=True)
            if step.invalid:
                return result(False)
            parts.append(step.text)
            consumed += step.size
            cursor = cursor.advance(step)

        return result(True)

    def step(self, cursor: Cursor, line_number: int = 0) -> Step:
        """Decode the single unit at ``cursor``."""

        value = self.image[cursor.offset]
        group = self.table.group(value)
        if group is not None:
            return self._token(cursor, group, line_number)
        if value == LINE_REFERENCE:
            target = read_word(self.image, cursor.offset + 1)
            return Step(str(target), 3, value)
        if value == LINE_END:
            if cursor.remaining > 1:
                self.diagnostics.report(
                    INVALID_LINE,
                    cursor.offset,
                    line_number,
                    "null byte found with bytes remaining in current line.  "
                    "Invalid BASIC line.",
                )
                return Step("", 1, value, invalid=True)
            return Step(self.newline, 1, value)
        if value == SPACE:
            return Step(SPACER, 1, value)
        if value == STATEMENT_SEPARATOR:
            return self._separator(cursor, line_number)
        return self._literal(cursor, line_number)

    def _token(self, cursor: Cursor, group: OpcodeGroup, line_number: int) -> Step:
        image = self.image
        offset = cursor.offset
        command = image[offset + 1] if offset + 1 < len(image) else 0
        keyword = self.table.lookup(group.marker, command)
        if keyword is None:
            keyword = unknown_token_placeholder(group.marker, command)
            self.diagnostics.report(
                UNKNOWN_OPCODE,
                offset,
                line_number,
                f"unknown token {command:X} {group.marker:X}.",
                token=keyword,
            )
        text = self.spacing.before(cursor.previous, group.marker) + keyword
        following = offset + group.width
        if group.space_after and following < len(image):
            text += self.spacing.after(cursor.previous, image[following])
        return Step(text, group.width, group.marker)

    def _separator(self, cursor: Cursor, line_number: int) -> Step:
        # From revision 2 on, the separator in front of ELSE is hidden as the
        # editor does.
        if self.revision < 2:
            return Step(":", 1, STATEMENT_SEPARATOR)
        image = self.image
        look = cursor.offset + 1
        while look < len(image) and image[look] == SPACE:
            look += 1
        if look + 1 < len(image) and (image[look], image[look + 1]) == ELSE:
            self.diagnostics.report(
                HIDDEN_SEPARATOR,
                cursor.offset,
                line_number,
                "multi-statement marker found before 'ELSE', ignored.",
            )
            return Step("", 1, STATEMENT_SEPARATOR)
        return Step(":", 1, STATEMENT_SEPARATOR)

    def _literal(self, cursor: Cursor, line_number: int) -> Step:
        value = self.image[cursor.offset]
        text = self.charset.lookup(value)
        if text is None:
            text = self.charset.convert(value)
            self.diagnostics.report(
                UNKNOWN_CHARACTER,
                cursor.offset,
                line_number,
                f"unknown byte {value:X}.",
                token=text,
            )
        return Step(text, 1, value)

    def scan(self, start: int = 0, end: int | None = None) -> ScanResult:
        """Scan ``start``..``end`` (inclusive) for programs and fragments."""

        image = self.image
        size = len(image)
        if end is None:
            end = size - 1
        recovery = RecoveryManager()
        position = max(start, 0)

        while position < size and position <= end:
            count = image[position]
            if position + 3 >= size or position + count >= size:
                position += 1
                continue

            if not self.is_line_start(position):
                if count == PROGRAM_END:
                    recovery.complete_program()
                position += 1
                continue

            number = read_word(image, position + 1)
            if not recovery.accepts(number):
                self.diagnostics.report(
                    INVALID_LINE,
                    position,
                    number,
                    f"line number does not follow line {recovery.last_line_number}; "
                    "partial program discarded.",
                )
                recovery.discard_buffer()
                position += 1
                continue

            line = self.decode_line(position)
            if line is not None and line.valid:
                recovery.accept_line(line.decoded())
                position = line.end
            else:
                recovery.discard_buffer(trailing=line.text if line else "")
                position += 1

        # Whatever is still pending never saw a program end.
        if recovery.pending:
            recovery.discard_buffer()

        return ScanResult(
            start=start,
            end=end,
            programs=recovery.programs,
            fragments=recovery.fragments,
            newline=self.newline,
        )


__all__ = ["Cursor", "LineResult", "LineScanner", "ScanResult", "Step"]
