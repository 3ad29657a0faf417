"""
Opcode groups and keyword tables for FX-880P tokenized BASIC.

Nothing here comes from a published format description. Keywords are stored
as a group marker byte followed by a command byte; the marker names below
are descriptive only and say nothing about how the device numbers them.
Entries flagged ``speculative`` were seen in dumps but never confirmed
against the manual.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

LINE_END = 0x00
PROGRAM_END = 0x00
STATEMENT_SEPARATOR = 0x01
LINE_REFERENCE = 0x03
SPACE = 0x20
PAREN_OPEN = 0x28
EQUALS = 0x3D

GROUP_REMARK = 0x02
GROUP_STATEMENT = 0x04
GROUP_FUNCTION = 0x05
GROUP_STRING = 0x06
GROUP_OPERATOR = 0x07

LATEST_REVISION = 2
REVISIONS = (1, 2)


@dataclass(frozen=True)
class OpcodeGroup:
    marker: int
    name: str
    width: int = 2
    space_after: bool = True


@dataclass(frozen=True)
class Opcode:
    group: int
    command: int
    keyword: str
    revision: int = 1
    retired: int | None = None
    speculative: bool = False

    def available(self, revision: int) -> bool:
        if revision < self.revision:
            return False
        return self.retired is None or revision < self.retired


# The remark group only ever holds the apostrophe; its command byte is not
# consumed and decodes as an ordinary character afterwards.
GROUPS: Dict[int, OpcodeGroup] = {
    GROUP_REMARK: OpcodeGroup(GROUP_REMARK, "remark", width=1, space_after=False),
    GROUP_STATEMENT: OpcodeGroup(GROUP_STATEMENT, "statement"),
    GROUP_FUNCTION: OpcodeGroup(GROUP_FUNCTION, "function"),
    GROUP_STRING: OpcodeGroup(GROUP_STRING, "string"),
    GROUP_OPERATOR: OpcodeGroup(GROUP_OPERATOR, "operator"),
}

ELSE = (GROUP_OPERATOR, 0x48)


def _group(marker: int, entries: Iterable[tuple], revision: int = 1) -> list[Opcode]:
    opcodes = []
    for entry in entries:
        command, keyword = entry[0], entry[1]
        extra = entry[2] if len(entry) > 2 else {}
        opcodes.append(
            Opcode(
                group=marker,
                command=command,
                keyword=keyword,
                revision=extra.get("revision", revision),
                retired=extra.get("retired"),
                speculative=extra.get("speculative", False),
            )
        )
    return opcodes


_SPECULATIVE = {"revision": 2, "speculative": True}

OPCODES: Tuple[Opcode, ...] = tuple(
    _group(GROUP_REMARK, [(0x45, "'")])
    + _group(
        GROUP_STATEMENT,
        [
            (0x47, "THEN"),
            (0x49, "GOTO"),
            (0x4A, "GOSUB"),
            (0x4B, "RETURN"),
            (0x4C, "RESUME"),
            (0x4D, "RESTORE"),
            (0x53, "PASS"),
            (0x57, "EDIT"),
            (0x5D, "TRON"),
            (0x5F, "TROFF"),
            (0x63, "POKE"),
            (0x6A, "CLEAR"),
            (0x70, "BEEP"),
            (0x71, "CLS"),
            (0x72, "CLOSE"),
            (0x78, "DEFSEG"),
            (0x7C, "DIM"),
            (0x80, "DATA"),
            (0x81, "FOR"),
            (0x82, "NEXT"),
            (0x85, "ERASE"),
            (0x86, "ERROR"),
            (0x87, "END"),
            (0x8D, "IF"),
            (0x8F, "LET"),
            (0x91, "LOCATE"),
            (0x97, "OPEN"),
            (0x9A, "ON"),
            (0xA3, "PRINT"),
            (0xA8, "READ"),
            (0xA9, "REM"),
            (0xAC, "SET"),
            (0xAE, "STOP"),
        ],
    )
    + _group(
        GROUP_STATEMENT,
        [
            (0x4E, "WRITE#"),
            (0x58, "LLIST"),
            (0x59, "LOAD"),
            (0x60, "VERIFY"),
            (0x6B, "NEW"),
            (0x6C, "SAVE"),
            (0x6E, "ANGLE"),
            (0x76, "DEF", _SPECULATIVE),
            (0x99, "OUT"),
            (0x9F, "CALCJMP", _SPECULATIVE),
            (0xA4, "LPRINT"),
            (0xA5, "PUT", _SPECULATIVE),
            (0xB0, "MODE", _SPECULATIVE),
        ],
        revision=2,
    )
    + _group(
        GROUP_FUNCTION,
        [
            (0x4F, "ERL"),
            (0x86, "PEEK"),
            (0x8D, "FRE"),
        ],
    )
    + _group(
        GROUP_FUNCTION,
        [
            (0x50, "ERR"),
            (0x60, "PI"),
            (0x63, "CUR"),
            (0x67, "FACT"),
            (0x6B, "SIN"),
            (0x6C, "COS"),
            (0x6D, "TAN"),
            (0x6E, "ASN"),
            (0x6F, "ACS"),
            (0x70, "ATN"),
            (0x71, "HYPSIN"),
            (0x72, "HYPCOS"),
            (0x73, "HYPTAN"),
            (0x74, "HYPASN"),
            (0x75, "HYPACS"),
            (0x76, "HYPATN"),
            (0x77, "LN"),
            (0x78, "LOG"),
            (0x79, "EXP"),
            (0x7A, "SQR"),
            (0x7B, "ABS"),
            (0x7C, "SGN"),
            (0x7D, "INT"),
            (0x7E, "FIX"),
            (0x7F, "FRAC"),
            (0x8A, "EOF"),
            (0x90, "ROUND"),
            (0x92, "VALF"),
            (0x93, "RAN#"),
            (0x94, "ASC"),
            (0x95, "LEN"),
            (0x96, "VAL"),
            (0x9C, "DEG"),
            (0xA7, "REC"),
            (0xA8, "POL"),
            (0xAA, "NPR"),
            (0xAB, "NCR"),
        ],
        revision=2,
    )
    + _group(
        GROUP_STRING,
        [
            (0x9B, "INPUT"),
            (0xA0, "CHR$"),
            (0xA8, "INKEY", {"retired": 2}),
        ],
    )
    + _group(
        GROUP_STRING,
        [
            (0x97, "DMS$"),
            (0x9C, "MID$"),
            (0x9D, "RIGHT$"),
            (0x9E, "LEFT$"),
            (0xA1, "STR$"),
            (0xA3, "HEX$"),
            (0xA8, "INKEY$"),
            (0xAD, "CALC$"),
        ],
        revision=2,
    )
    + _group(
        GROUP_OPERATOR,
        [
            (0x47, "THEN"),
            (0x48, "ELSE"),
            (0x49, "GOTO"),
            (0xB6, "TAB"),
            (0xBC, "AS"),
            (0xC0, "STEP"),
            (0xC1, "TO"),
        ],
    )
    + _group(
        GROUP_OPERATOR,
        [
            (0xBB, "ALL"),
            (0xC3, "NOT"),
            (0xC4, "AND"),
            (0xC5, "OR"),
            (0xC6, "XOR"),
            (0xC7, "MOD"),
        ],
        revision=2,
    )
)


class OpcodeTable:
    """Two-level (group marker, command byte) -> keyword lookup."""

    def __init__(self, revision: int = LATEST_REVISION) -> None:
        if revision not in REVISIONS:
            raise ValueError(f"unknown token revision {revision}")
        self.revision = revision
        self._keywords: Dict[Tuple[int, int], str] = {
            (op.group, op.command): op.keyword
            for op in OPCODES
            if op.available(revision)
        }

    def __len__(self) -> int:
        return len(self._keywords)

    def __contains__(self, pair: object) -> bool:
        return pair in self._keywords

    def is_token(self, value: int) -> bool:
        return value in GROUPS

    def group(self, marker: int) -> OpcodeGroup | None:
        return GROUPS.get(marker)

    def lookup(self, group: int, command: int) -> str | None:
        return self._keywords.get((group, command))

    def keywords(self) -> Dict[Tuple[int, int], str]:
        return dict(self._keywords)


def unknown_token_placeholder(group: int, command: int) -> str:
    """Render an unmapped opcode pair, command byte first."""

    return f"{{{command:X} {group:X}}}"


def speculative_opcodes() -> list[Opcode]:
    return [op for op in OPCODES if op.speculative]


def read_word(image: bytes, offset: int) -> int:
    """Read a low-byte-first 16-bit value, or 0 when it runs off the image."""

    if offset < 0 or offset + 1 >= len(image):
        return 0
    return image[offset + 1] * 256 + image[offset]


__all__ = [
    "ELSE",
    "EQUALS",
    "GROUPS",
    "GROUP_FUNCTION",
    "GROUP_OPERATOR",
    "GROUP_REMARK",
    "GROUP_STATEMENT",
    "GROUP_STRING",
    "LATEST_REVISION",
    "LINE_END",
    "LINE_REFERENCE",
    "OPCODES",
    "Opcode",
    "OpcodeGroup",
    "OpcodeTable",
    "PAREN_OPEN",
    "PROGRAM_END",
    "REVISIONS",
    "SPACE",
    "STATEMENT_SEPARATOR",
    "read_word",
    "speculative_opcodes",
    "unknown_token_placeholder",
]
