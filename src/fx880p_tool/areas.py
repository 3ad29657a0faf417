"""
Program area directory at the top of a full memory image.

Each of the ten records is 15 bytes::

    start address (2 bytes, low first)
    0x00
    end address (2 bytes, low first)
    0x00
    0x80
    0x50 'P'
    ASCII '0'..'9' program area number
    six 0x20 spaces
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .opcodes import read_word

RECORD_SIZE = 15
AREA_COUNT = 10

OFFSET_START_ADDRESS = 0
OFFSET_END_ADDRESS = 3
OFFSET_MARKER = 7
OFFSET_NUMBER = 8

AREA_MARKER = 0x50


@dataclass(frozen=True)
class ProgramArea:
    number: int
    start: int
    end: int
    record_offset: int

    @property
    def size(self) -> int:
        return self.end - self.start

    @property
    def unused(self) -> bool:
        return self.size <= 0

    @property
    def name(self) -> str:
        return f"P{self.number}"

    def describe(self) -> str:
        if self.unused:
            return f"Program Area {self.name}: (Unused)."
        return (
            f"Program Area {self.name}: {self.size} bytes from "
            f"{self.start:X} to {self.end:X}."
        )


def read_area_record(image: bytes, offset: int) -> ProgramArea | None:
    """Decode the directory record at ``offset``; ``None`` without a P marker."""

    if offset < 0 or offset + RECORD_SIZE > len(image):
        return None
    number = image[offset + OFFSET_NUMBER]
    if image[offset + OFFSET_MARKER] != AREA_MARKER or not 0x30 <= number <= 0x39:
        return None
    return ProgramArea(
        number=number - 0x30,
        start=read_word(image, offset + OFFSET_START_ADDRESS),
        end=read_word(image, offset + OFFSET_END_ADDRESS),
        record_offset=offset,
    )


def locate_program_areas(image: bytes) -> List[ProgramArea]:
    """Return the valid directory records in the last ``10 * 15`` bytes."""

    first = len(image) - RECORD_SIZE * AREA_COUNT
    if first < 0:
        return []
    areas: List[ProgramArea] = []
    for offset in range(first, len(image), RECORD_SIZE):
        area = read_area_record(image, offset)
        if area is not None:
            areas.append(area)
    return areas


def has_program_areas(areas: List[ProgramArea]) -> bool:
    return len(areas) == AREA_COUNT


__all__ = [
    "AREA_COUNT",
    "ProgramArea",
    "RECORD_SIZE",
    "has_program_areas",
    "locate_program_areas",
    "read_area_record",
]
