from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from typing import Iterable, Sequence


def repo_src_path() -> Path:
    """Return the repository's ``src`` directory."""

    return Path(__file__).resolve().parents[1] / "src"


def _ensure_repo_on_path() -> None:
    if importlib.util.find_spec("fx880p_tool") is None:
        sys.path.insert(0, str(repo_src_path()))


_ensure_repo_on_path()


def make_line(number: int, body: bytes) -> bytes:
    """Encode one stored line: count, number (low first), space, body, 0x00."""

    count = 4 + len(body)
    return bytes([count, number & 0xFF, number >> 8, 0x20]) + body + b"\x00"


def make_program(lines: Iterable[tuple[int, bytes]]) -> bytes:
    """Lines followed by the 0x00 that closes the program."""

    return b"".join(make_line(number, body) for number, body in lines) + b"\x00"


def make_record(number: int, start: int, end: int) -> bytes:
    return (
        start.to_bytes(2, "little")
        + b"\x00"
        + end.to_bytes(2, "little")
        + b"\x00\x80P"
        + bytes([0x30 + number])
        + b" " * 6
    )


def make_directory(slots: dict[int, tuple[int, int]], numbers: Sequence[int] = range(10)) -> bytes:
    """Directory block; slots missing from ``slots`` are written as unused."""

    return b"".join(make_record(n, *slots.get(n, (0, 0))) for n in numbers)


def place(image: bytearray, offset: int, data: bytes) -> None:
    image[offset : offset + len(data)] = data
