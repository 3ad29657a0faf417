"""
Top-level package for FX-880P tokenized BASIC recovery.

This package collects the line scanner, token tables and CLI helpers used to
rebuild BASIC listings from raw Casio FX-880P memory images, including the
remains of deleted or edited programs.
"""

from .areas import ProgramArea, has_program_areas, locate_program_areas
from .charset import CharsetMapper
from .detokenizer import (
    DecoderConfig,
    DetokenizeResult,
    Detokenizer,
    SlotResult,
    detokenize,
)
from .diagnostics import (
    DiagnosticEvent,
    Diagnostics,
    LoggingDiagnostics,
    NullDiagnostics,
    RecordingDiagnostics,
)
from .opcodes import LATEST_REVISION, OpcodeTable, read_word
from .recovery import DecodedLine, DecodedProgram, DiscardedFragment, RecoveryManager
from .scanner import LineScanner, ScanResult
from .spacing import SpacingNormalizer

__all__ = [
    "__version__",
    "CharsetMapper",
    "DecodedLine",
    "DecodedProgram",
    "DecoderConfig",
    "DetokenizeResult",
    "Detokenizer",
    "DiagnosticEvent",
    "Diagnostics",
    "DiscardedFragment",
    "LATEST_REVISION",
    "LineScanner",
    "LoggingDiagnostics",
    "NullDiagnostics",
    "OpcodeTable",
    "ProgramArea",
    "RecordingDiagnostics",
    "RecoveryManager",
    "ScanResult",
    "SlotResult",
    "SpacingNormalizer",
    "detokenize",
    "has_program_areas",
    "locate_program_areas",
    "read_word",
]

__version__ = "0.0.1"
