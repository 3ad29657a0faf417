"""Command line wrapper: read images, decode, write listings."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .detokenizer import DecoderConfig, DetokenizeResult, detokenize
from .diagnostics import LoggingDiagnostics
from .opcodes import LATEST_REVISION, REVISIONS

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

EXIT_OK = 0
EXIT_OUTPUT_ERROR = 1
EXIT_MISSING_INPUT = 2
EXIT_BAD_ADDRESS = 3


@dataclass
class DumpResult:
    outputs: list[Path]
    result: DetokenizeResult


def configure_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    root.addHandler(stream)
    if log_file is not None:
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


def _parse_address(spec: str, base: int = 16) -> int:
    text = spec.strip()
    if base == 16 and text.lower().startswith("0x"):
        text = text[2:]
    value = int(text, base)
    if value < 0:
        raise ValueError("address must be >= 0")
    return value


def _read_image(paths: Sequence[Path]) -> bytes:
    return b"".join(Path(path).read_bytes() for path in paths)


def _slot_output_path(out: Path, suffix: str) -> Path:
    if not suffix:
        return out
    return out.with_name(f"{out.stem}{suffix}{out.suffix}")


def _check_outputs(paths: Sequence[Path], force: bool = False) -> None:
    for path in paths:
        if path.exists() and not force:
            raise FileExistsError(
                f"Output file {path} already exists; use --force to overwrite"
            )


def _write_text(path: Path, text: str, *, newline: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline=newline) as handle:
        handle.write(text)


def build_report(
    result: DetokenizeResult,
    diagnostics: LoggingDiagnostics,
    inputs: Sequence[Path],
) -> dict:
    return {
        "tool": "fx880p_tool",
        "inputs": [str(path) for path in inputs],
        "image_size": result.image_size,
        "start": result.start,
        "revision": result.config.revision,
        "has_program_areas": result.has_program_areas,
        "program_areas": [
            {
                "number": area.number,
                "start": area.start,
                "end": area.end,
                "size": area.size,
                "unused": area.unused,
            }
            for area in result.areas
        ],
        "slots": [
            {
                "number": slot.area.number,
                "programs": len(slot.programs),
                "fragments": len(slot.fragments),
                "lines": sum(len(p.lines) for p in slot.programs),
            }
            for slot in result.slots
        ],
        "totals": {
            "programs": len(result.programs),
            "fragments": len(result.fragments),
            "lines": sum(len(p.lines) for p in result.programs),
        },
        "diagnostics": diagnostics.summary(),
    }


def dump_basic(
    inputs: Sequence[Path],
    out: Path,
    *,
    start: int = 0,
    revision: int = LATEST_REVISION,
    crlf: bool = False,
    fragments_out: Path | None = None,
    report_out: Path | None = None,
    force: bool = False,
) -> DumpResult:
    """Decode ``inputs`` (concatenated) and write the listing(s) below ``out``."""

    image = _read_image(inputs)
    diagnostics = LoggingDiagnostics(logger)
    result = detokenize(
        image, start, config=DecoderConfig(revision=revision), diagnostics=diagnostics
    )
    newline = "\r\n" if crlf else "\n"

    # Every target is checked before the first one is written.
    writes: list[tuple[Path, str, str]] = [
        (_slot_output_path(Path(out), suffix), text, newline)
        for suffix, text in result.blocks().items()
    ]
    if fragments_out is not None:
        writes.append((Path(fragments_out), result.fragments_text, newline))
    if report_out is not None:
        report = build_report(result, diagnostics, inputs)
        writes.append((Path(report_out), json.dumps(report, indent=2) + "\n", "\n"))
    _check_outputs([path for path, _, _ in writes], force=force)

    outputs: list[Path] = []
    for path, text, line_break in writes:
        _write_text(path, text, newline=line_break)
        outputs.append(path)
        logger.info("Wrote %s", path)

    return DumpResult(outputs=outputs, result=result)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fx880p_tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    detok = subparsers.add_parser(
        "detokenize",
        help="Recover BASIC listings from an FX-880P memory image",
    )
    detok.add_argument(
        "inputs",
        nargs="+",
        type=Path,
        help="Input image file(s); several files are concatenated in order",
    )
    detok.add_argument("--out", required=True, type=Path, help="Output listing file")
    detok.add_argument(
        "--address",
        default="0000",
        help="Start address, hexadecimal unless --address-base 10 (default 0000)",
    )
    detok.add_argument(
        "--address-base",
        type=int,
        choices=(16, 10),
        default=16,
        help="Number base of --address",
    )
    detok.add_argument(
        "--revision",
        type=int,
        choices=REVISIONS,
        default=LATEST_REVISION,
        help="Token table revision to decode with",
    )
    detok.add_argument(
        "--crlf",
        action="store_true",
        help="Write CR LF line breaks",
    )
    detok.add_argument(
        "--fragments",
        type=Path,
        help="Optional file for discarded partial programs",
    )
    detok.add_argument(
        "--report",
        type=Path,
        help="Optional JSON summary of slots and unknown tokens",
    )
    detok.add_argument(
        "--force",
        action="store_true",
        help="Allow overwriting existing output files",
    )
    detok.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every invalid line and unknown byte",
    )
    detok.add_argument("--log-file", type=Path, help="Also write the log to a file")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.command == "detokenize":
        configure_logging(args.verbose, args.log_file)

        for path in args.inputs:
            if not path.is_file():
                logger.error("Input file %s was not found.", path)
                return EXIT_MISSING_INPUT

        try:
            start = _parse_address(args.address, args.address_base)
        except ValueError:
            logger.error(
                "Address %s was not in %s format.",
                args.address,
                "hex" if args.address_base == 16 else "decimal",
            )
            return EXIT_BAD_ADDRESS

        try:
            dump_basic(
                args.inputs,
                args.out,
                start=start,
                revision=args.revision,
                crlf=args.crlf,
                fragments_out=args.fragments,
                report_out=args.report,
                force=args.force,
            )
        except FileExistsError as exc:
            logger.error("%s", exc)
            return EXIT_OUTPUT_ERROR
        return EXIT_OK

    parser.error(f"Unknown command {args.command}")


__all__ = [
    "DumpResult",
    "build_arg_parser",
    "build_report",
    "configure_logging",
    "dump_basic",
    "main",
]
