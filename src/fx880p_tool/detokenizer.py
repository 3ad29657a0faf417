"""High-level decoding of a whole memory image."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .areas import ProgramArea, has_program_areas, locate_program_areas
from .diagnostics import Diagnostics, LoggingDiagnostics
from .opcodes import LATEST_REVISION, REVISIONS
from .recovery import DecodedProgram, DiscardedFragment
from .scanner import NEWLINE, LineScanner, ScanResult


@dataclass(frozen=True)
class DecoderConfig:
    revision: int = LATEST_REVISION
    newline: str = NEWLINE

    def __post_init__(self) -> None:
        if self.revision not in REVISIONS:
            raise ValueError(f"unknown token revision {self.revision}")


@dataclass
class SlotResult:
    area: ProgramArea
    scan: ScanResult

    @property
    def programs(self) -> List[DecodedProgram]:
        return self.scan.programs

    @property
    def fragments(self) -> List[DiscardedFragment]:
        return self.scan.fragments

    @property
    def text(self) -> str:
        return self.scan.text


@dataclass
class DetokenizeResult:
    image_size: int
    start: int
    config: DecoderConfig
    areas: List[ProgramArea] = field(default_factory=list)
    slots: List[SlotResult] = field(default_factory=list)
    scan: Optional[ScanResult] = None

    @property
    def has_program_areas(self) -> bool:
        return has_program_areas(self.areas)

    @property
    def programs(self) -> List[DecodedProgram]:
        if self.scan is not None:
            return list(self.scan.programs)
        return [program for slot in self.slots for program in slot.programs]

    @property
    def fragments(self) -> List[DiscardedFragment]:
        if self.scan is not None:
            return list(self.scan.fragments)
        return [fragment for slot in self.slots for fragment in slot.fragments]

    @property
    def text(self) -> str:
        return self.config.newline.join(program.text for program in self.programs)

    @property
    def fragments_text(self) -> str:
        return self.config.newline.join(fragment.text for fragment in self.fragments)

    def blocks(self) -> Dict[str, str]:
        """Output text keyed by name suffix: the slot digit, or ``""``."""

        if self.scan is not None:
            return {"": self.scan.text}
        return {str(slot.area.number): slot.text for slot in self.slots if slot.text}


class Detokenizer:
    """Locates program areas (when starting at 0) and scans each of them."""

    def __init__(
        self,
        image: bytes,
        start: int = 0,
        *,
        config: DecoderConfig | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        if start < 0:
            raise ValueError("start offset must be >= 0")
        self.image = bytes(image)
        self.start = start
        self.config = config or DecoderConfig()
        self.diagnostics = diagnostics if diagnostics is not None else LoggingDiagnostics()
        self.areas: List[ProgramArea] = []
        if self.start == 0:
            self.areas = self._load_program_areas()

    @property
    def has_program_areas(self) -> bool:
        return has_program_areas(self.areas)

    def _load_program_areas(self) -> List[ProgramArea]:
        self.diagnostics.info("Looking for Program Areas...")
        areas = locate_program_areas(self.image)
        self.diagnostics.info("Found %d Program Areas.", len(areas))
        for area in areas:
            self.diagnostics.info("%s", area.describe())
        return areas

    def _scanner(self) -> LineScanner:
        return LineScanner(
            self.image,
            revision=self.config.revision,
            diagnostics=self.diagnostics,
            newline=self.config.newline,
        )

    def run(self) -> DetokenizeResult:
        result = DetokenizeResult(
            image_size=len(self.image),
            start=self.start,
            config=self.config,
            areas=list(self.areas),
        )
        scanner = self._scanner()

        if not self.has_program_areas:
            result.scan = scanner.scan(self.start, len(self.image) - 1)
            return result

        # Slots share nothing, each scan starts from an empty buffer.
        for area in self.areas:
            if area.unused:
                continue
            self.diagnostics.info("DeTokenizing %s...", area.name)
            slot = SlotResult(area=area, scan=scanner.scan(area.start, area.end))
            result.slots.append(slot)
            self.diagnostics.info("DeTokenizing %s completed.", area.name)
        return result


def detokenize(
    image: bytes,
    start: int = 0,
    *,
    config: DecoderConfig | None = None,
    diagnostics: Diagnostics | None = None,
) -> DetokenizeResult:
    return Detokenizer(image, start, config=config, diagnostics=diagnostics).run()


__all__ = [
    "DecoderConfig",
    "DetokenizeResult",
    "Detokenizer",
    "SlotResult",
    "detokenize",
]
