"""Spacing around decoded keywords.

Tokenized lines do not store the blanks a user sees around keywords, so the
listing would otherwise read ``IFA=1THENGOTO100``. These rules were inferred
from what the device editor displays and are kept as observed.
"""

from __future__ import annotations

from .opcodes import (
    EQUALS,
    LINE_END,
    PAREN_OPEN,
    SPACE,
    STATEMENT_SEPARATOR,
    OpcodeTable,
)

SPACER = " "

_NO_SPACE_AFTER = frozenset({SPACE, PAREN_OPEN})
_SPACE_AFTER_TOKEN_ONLY = frozenset({EQUALS, STATEMENT_SEPARATOR, LINE_END})


def is_alphanumeric(value: int) -> bool:
    return (
        0x30 <= value <= 0x39
        or 0x41 <= value <= 0x5A
        or 0x61 <= value <= 0x7A
    )


class SpacingNormalizer:
    def __init__(self, table: OpcodeTable, *, enabled: bool = True) -> None:
        self.table = table
        self.enabled = enabled

    def before(self, previous: int, current: int) -> str:
        """Blank to insert ahead of ``current`` when it follows an identifier."""

        if not self.enabled:
            return ""
        if (
            not self.table.is_token(previous)
            and is_alphanumeric(previous)
            and self.table.is_token(current)
        ):
            return SPACER
        return ""

    def after(self, previous: int, following: int) -> str:
        """Blank to insert behind a keyword.

        ``previous`` is the raw byte of the unit decoded before the keyword and
        ``following`` the byte right after it.
        """

        if not self.enabled or following in _NO_SPACE_AFTER:
            return ""
        if following in _SPACE_AFTER_TOKEN_ONLY:
            return SPACER if self.table.is_token(previous) else ""
        return SPACER


__all__ = ["SPACER", "SpacingNormalizer", "is_alphanumeric"]
