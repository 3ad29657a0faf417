from __future__ import annotations

import pytest

from conftest import make_line, make_program
from fx880p_tool.diagnostics import (
    HIDDEN_SEPARATOR,
    INVALID_LINE,
    UNKNOWN_CHARACTER,
    UNKNOWN_OPCODE,
    RecordingDiagnostics,
)
from fx880p_tool.scanner import Cursor, LineScanner

PRINT = b"\x04\xa3"
LET = b"\x04\x8f"
GOTO = b"\x04\x49"
TO = b"\x07\xc1"
ELSE = b"\x07\x48"
PI = b"\x05\x60"
SIN = b"\x05\x6b"
PAD = b"\x00" * 4


def _scan(image: bytes, **kwargs):
    diagnostics = RecordingDiagnostics()
    scanner = LineScanner(image, diagnostics=diagnostics, **kwargs)
    return scanner.scan(), diagnostics


def _line_text(body: bytes, number: int = 10, **kwargs) -> str:
    scanner = LineScanner(make_line(number, body) + PAD, **kwargs)
    line = scanner.decode_line(0)
    assert line is not None and line.valid
    return line.text


def test_print_line_decodes() -> None:
    image = bytes([0x07, 0x0A, 0x00, 0x20, 0x04, 0xA3, 0x20, 0x00]) + PAD
    result, _ = _scan(image)
    assert [p.text for p in result.programs] == ["10 PRINT \n"]
    assert result.fragments == []


def test_unterminated_program_is_a_fragment() -> None:
    image = make_line(10, PRINT + b" ")
    result, _ = _scan(image)
    assert result.programs == []
    assert [f.text for f in result.fragments] == ["10 PRINT \n"]


def test_count_past_end_is_never_a_line() -> None:
    image = b"\x40\x0a\x00\x20\x41\x42\x00"
    scanner = LineScanner(image)
    assert not scanner.is_line_start(0)
    assert scanner.decode_line(0) is None
    result = scanner.scan()
    assert result.programs == [] and result.fragments == []


def test_out_of_order_line_discards_buffer_and_scan_recovers() -> None:
    image = (
        make_line(20, b"A")
        + make_line(15, b"B")
        + b"\x00"
        + make_program([(10, b"C")])
        + PAD
    )
    result, diagnostics = _scan(image)
    assert [p.text for p in result.programs] == ["10 C\n"]
    assert [f.text for f in result.fragments] == ["20 A\n"]
    assert diagnostics.of_kind(INVALID_LINE)


def test_line_number_zero_is_invalid() -> None:
    image = make_program([(0, b"A")]) + PAD
    result, diagnostics = _scan(image)
    assert result.programs == []
    assert len(diagnostics.of_kind(INVALID_LINE)) == 1


def test_programs_split_on_program_end() -> None:
    image = (
        make_program([(10, PRINT + b"1"), (20, b"\x04\x87")])
        + make_program([(10, b"A=2")])
        + PAD
    )
    result, _ = _scan(image)
    assert [p.line_numbers for p in result.programs] == [[10, 20], [10]]
    assert result.text == "10 PRINT 1\n20 END\n\n10 A=2\n"


def test_separator_before_else_is_hidden() -> None:
    text = _line_text(b"A \x01 " + ELSE + b" B")
    assert text == "10 A  ELSE B\n"
    assert ":" not in text


def test_separator_without_else_is_colon() -> None:
    assert _line_text(b"A\x01B") == "10 A:B\n"


def test_first_revision_keeps_separator_before_else() -> None:
    diagnostics = RecordingDiagnostics()
    scanner = LineScanner(
        make_line(10, b"A\x01" + ELSE + b"B") + PAD, revision=1, diagnostics=diagnostics
    )
    assert scanner.decode_line(0).text == "10 A:ELSEB\n"
    assert diagnostics.of_kind(HIDDEN_SEPARATOR) == []


def test_hidden_separator_is_reported() -> None:
    diagnostics = RecordingDiagnostics()
    scanner = LineScanner(make_line(10, b"\x01" + ELSE) + PAD, diagnostics=diagnostics)
    assert scanner.decode_line(0).text == "10 ELSE\n"
    assert len(diagnostics.of_kind(HIDDEN_SEPARATOR)) == 1


def test_keyword_after_identifier_gets_spaces() -> None:
    assert _line_text(b"A" + TO + b"B") == "10 A TO B\n"


def test_no_space_before_equals_after_plain_character() -> None:
    assert _line_text(b"A" + PI + b"=1") == "10 A PI=1\n"
    assert _line_text(LET + PI + b"=1") == "10 LET PI =1\n"
    assert _line_text(SIN + b"(X)") == "10 SIN(X)\n"


def test_line_reference_is_decimal() -> None:
    assert _line_text(GOTO + b"\x03\x64\x00") == "10 GOTO 100\n"
    assert _line_text(GOTO + b"\x03\x10\x27") == "10 GOTO 10000\n"


def test_remark_marker_consumes_one_byte() -> None:
    scanner = LineScanner(make_line(10, b"\x02\x45HI") + PAD)
    line = scanner.decode_line(0)
    assert line.text == "10 'EHI\n"
    assert line.consumed == line.count - 3


def test_unknown_opcode_placeholder() -> None:
    diagnostics = RecordingDiagnostics()
    scanner = LineScanner(make_line(10, b"\x04\xffA") + PAD, diagnostics=diagnostics)
    line = scanner.decode_line(0)
    assert line.text == "10 {FF 4} A\n"
    assert line.consumed == line.count - 3
    (event,) = diagnostics.of_kind(UNKNOWN_OPCODE)
    assert event.token == "{FF 4}"
    assert event.line_number == 10
    assert event.offset == 4


def test_unknown_character_placeholder() -> None:
    diagnostics = RecordingDiagnostics()
    scanner = LineScanner(make_line(10, b"A\xfcB") + PAD, diagnostics=diagnostics)
    assert scanner.decode_line(0).text == "10 A{FC}B\n"
    assert [e.token for e in diagnostics.of_kind(UNKNOWN_CHARACTER)] == ["{FC}"]


def test_interior_terminator_discards_buffer() -> None:
    image = (
        make_line(5, b"X")
        + make_line(10, b"A\x00B")
        + b"\x00"
        + make_program([(20, b"C")])
        + PAD
    )
    result, diagnostics = _scan(image)
    assert [f.text for f in result.fragments] == ["5 X\n10 A"]
    assert [p.text for p in result.programs] == ["20 C\n"]
    assert diagnostics.of_kind(INVALID_LINE)


def test_token_running_into_terminator_is_invalid() -> None:
    scanner = LineScanner(make_line(10, b"A\x04") + PAD)
    line = scanner.decode_line(0)
    assert line is not None
    assert not line.valid
    assert line.text == "10 A"


def test_every_valid_line_consumes_its_declared_count() -> None:
    bodies = [
        PRINT + b'"HI"',
        b"A" + TO + b"B\x01" + GOTO + b"\x03\x64\x00",
        b"\x02\x45 note",
        b"\x04\xfe\xfc",
    ]
    image = make_program([(10 * (i + 1), body) for i, body in enumerate(bodies)]) + PAD
    scanner = LineScanner(image)
    result = scanner.scan()
    (program,) = result.programs
    for line in program.lines:
        decoded = scanner.decode_line(line.offset)
        assert decoded.consumed == decoded.count - 3 == line.count - 3


def test_scan_is_deterministic_and_monotonic() -> None:
    junk = bytes((i * 37 + 11) & 0xFF for i in range(512))
    image = (
        junk
        + make_program([(10, PRINT), (30, b"A=1"), (20, b"B")])
        + junk
        + make_program([(100, b"Z"), (200, LET + b"Q=2")])
        + PAD
    )
    first, _ = _scan(image)
    second, _ = _scan(image)
    assert first.text == second.text
    assert [f.text for f in first.fragments] == [f.text for f in second.fragments]
    for program in first.programs:
        numbers = program.line_numbers
        assert all(a < b for a, b in zip(numbers, numbers[1:]))
    assert "100 Z\n200 LET Q=2\n" in first.text


def test_all_zero_image_yields_nothing() -> None:
    result, _ = _scan(bytes(65536))
    assert result.programs == []
    assert all(not f.text for f in result.fragments)


def test_program_end_in_last_three_bytes_does_not_complete() -> None:
    program = make_program([(10, b"A")])
    result = LineScanner(program).scan()
    assert result.programs == []
    assert [f.text for f in result.fragments] == ["10 A\n"]

    result = LineScanner(program + bytes(3)).scan()
    assert [p.text for p in result.programs] == ["10 A\n"]
    assert result.fragments == []


def test_scan_respects_inclusive_end() -> None:
    program = make_program([(10, b"A")])
    image = program + make_program([(10, b"B")]) + PAD
    scanner = LineScanner(image)
    assert scanner.scan(0, len(program) - 1).text == "10 A\n"
    assert scanner.scan(len(program)).text == "10 B\n"


def test_first_revision_has_no_spacing() -> None:
    assert _line_text(b"A" + TO + b"B", revision=1) == "10 ATOB\n"
    assert _line_text(SIN, revision=1) == "10 {6B 5}\n"


def test_crlf_newline() -> None:
    assert _line_text(b"A", newline="\r\n") == "10 A\r\n"


def test_step_reports_size_and_marker() -> None:
    scanner = LineScanner(make_line(10, GOTO + b"\x03\x64\x00") + PAD)
    step = scanner.step(Cursor(offset=4, remaining=6))
    assert (step.text, step.size, step.marker) == ("GOTO ", 2, 0x04)
    step = scanner.step(Cursor(offset=6, remaining=4, previous=0x04))
    assert (step.text, step.size, step.marker) == ("100", 3, 0x03)


@pytest.mark.parametrize("offset", [-1, 10_000])
def test_decode_line_out_of_range(offset: int) -> None:
    assert LineScanner(make_line(10, b"A")).decode_line(offset) is None
