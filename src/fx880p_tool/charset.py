"""
FX-880P display character set.

Reference: https://en.wikipedia.org/wiki/Casio_calculator_character_sets

Entries are strings rather than single characters because 0x9E needs two
code points (superscript minus one). Control codes and 0xFC..0xFF have no
glyph.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from .opcodes import LATEST_REVISION, REVISIONS

_HIGH_HALF = (
    # 0x80
    "Å", "∫", "√", "´", "Σ", "Ω", "▒", "▮",
    "α", "β", "γ", "ε", "θ", "μ", "σ", "Φ",
    # 0x90
    "⁰", "¹", "²", "³", "⁴", "⁵", "⁶", "⁷",
    "⁸", "⁹", "⁺", "⁻", "ⁿ", "ˣ", "⁻¹", "÷",
    # 0xA0 - 0xDF: half-width katakana block
    "\u00a0",
    *(chr(code) for code in range(0xFF61, 0xFFA0)),
    # 0xE0
    "≥", "≤", "≠", "↑", "←", "↓", "→", "π",
    "≠", "≥", "♦", "♣", "□", "○", "△", "\\",
    # 0xF0
    "×", "円", "年", "月", "日", "千", "万", "£",
    "¢", "±", "∓", "ᵒ", None, None, None, None,
)


def _device_table() -> Tuple[Optional[str], ...]:
    table: list[Optional[str]] = [None] * 0x20
    table.extend(chr(code) for code in range(0x20, 0x7F))
    table[0x5C] = "¥"
    table.append(" ")
    table.extend(_HIGH_HALF)
    return tuple(table)


def _ascii_table() -> Tuple[Optional[str], ...]:
    return tuple(chr(code) if 0x20 <= code <= 0x7E else None for code in range(256))


_TABLES = {1: _ascii_table(), 2: _device_table()}


class CharsetMapper:
    """Byte -> display text lookup for literal characters."""

    def __init__(self, revision: int = LATEST_REVISION) -> None:
        if revision not in REVISIONS:
            raise ValueError(f"unknown token revision {revision}")
        self.revision = revision
        self._table: Sequence[Optional[str]] = _TABLES[revision]

    def __len__(self) -> int:
        return len(self._table)

    def lookup(self, value: int) -> Optional[str]:
        return self._table[value & 0xFF]

    def convert(self, value: int) -> str:
        text = self.lookup(value)
        if text is None:
            return unknown_character_placeholder(value)
        return text

    def is_known(self, value: int) -> bool:
        return self.lookup(value) is not None


def unknown_character_placeholder(value: int) -> str:
    return f"{{{value:X}}}"


__all__ = ["CharsetMapper", "unknown_character_placeholder"]
