"""Diagnostics: section inference, offsets and log files."""

import pytest

from ftlsav.binary import BinaryReader
from ftlsav.diagnostics import (
    UNKNOWN_SECTION,
    build_diagnostic,
    enriched_error,
    extract_byte_offset,
    infer_section,
    record_failure,
    write_log,
)
from ftlsav.errors import MalformedLength, SaveParseError
from ftlsav.header import parse_header
from ftlsav.model import Diagnostic, ParseMode
from ftlsav.paths import ENV_LOG_DIR, get_log_dir


def failed_header() -> MalformedLength:
    data = (11).to_bytes(4, "little") + b"\x00" * 28 + (-3).to_bytes(4, "little", signed=True)
    try:
        parse_header(BinaryReader(data))
    except MalformedLength as e:
        return e
    pytest.fail("header unexpectedly decoded")


def test_infer_section_uses_innermost_decoder_frame():
    assert infer_section(failed_header()) == "parse_header"


def test_infer_section_ignores_foreign_frames():
    def parse_elsewhere():
        raise ValueError("boom")

    try:
        parse_elsewhere()
    except ValueError as e:
        assert infer_section(e) == UNKNOWN_SECTION


@pytest.mark.parametrize("message, expected", [
    ("Negative string length -3 at byte offset 28", 28),
    ("Ship candidate at Byte Offset 12 has implausible hull 0", 12),
    ("bad value near offset 40", 40),
    ("no position here", None),
])
def test_extract_byte_offset(message, expected):
    assert extract_byte_offset(message) == expected


def test_build_diagnostic():
    diagnostic = build_diagnostic(failed_header())
    assert diagnostic.section == "parse_header"
    assert diagnostic.byte_offset == 32
    assert diagnostic.log_path is None
    assert "Negative string length -3" in diagnostic.message


def test_log_file_contents(log_dir):
    exc = failed_header()
    diagnostic = record_failure(exc, ParseMode.FULL, "/tmp/saves/continue.sav")

    assert diagnostic.log_path is not None
    text = open(diagnostic.log_path, encoding="utf-8").read()
    assert "SourceFile: /tmp/saves/continue.sav" in text
    assert "ParseMode: FULL" in text
    assert "Section: parse_header" in text
    assert "ByteOffset: 32" in text
    assert "Message: Negative string length -3 at byte offset 32" in text
    assert "Exception:" in text
    assert "Traceback" in text
    assert diagnostic.log_path.startswith(str(log_dir))


def test_log_without_source_or_offset(log_dir):
    diagnostic = Diagnostic(section=UNKNOWN_SECTION, byte_offset=None, message="nothing")
    path = write_log(diagnostic, ValueError("nothing"), ParseMode.RESTRICTED_OPAQUE_TAIL)
    text = open(path, encoding="utf-8").read()
    assert path.endswith("_unknown.sav.log")
    assert "SourceFile: (unknown)" in text
    assert "ByteOffset: -1" in text


def test_log_quotes_undecodable_string(log_dir):
    message = "No ship blueprint anchor 'PLAYER_\udcffHIP' validated after byte offset 40"
    diagnostic = Diagnostic(section="parse_partial", byte_offset=40, message=message)
    path = write_log(diagnostic, ValueError(message), ParseMode.PARTIAL_PLAYER_SHIP_OPAQUE_TAIL)

    assert path is not None
    text = open(path, encoding="utf-8").read()
    assert "Message: No ship blueprint anchor 'PLAYER_\\udcffHIP'" in text


def test_unwritable_log_dir(tmp_path, monkeypatch):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")
    monkeypatch.setenv(ENV_LOG_DIR, str(blocker / "logs"))
    diagnostic = record_failure(failed_header(), ParseMode.FULL)
    assert diagnostic.log_path is None


def test_enriched_error_message():
    diagnostic = Diagnostic("parse_crew_prefix", None, "String length 20000 exceeds 10000")
    error = enriched_error(ValueError(), diagnostic)
    assert isinstance(error, SaveParseError)
    assert error.diagnostic is diagnostic
    assert str(error) == (
        "Failed to parse save file.\n\n"
        "Section: parse_crew_prefix\n"
        "Byte offset: unknown\n"
        "Log: (not written)\n\n"
        "String length 20000 exceeds 10000"
    )


def test_log_dir_override(monkeypatch, tmp_path):
    monkeypatch.setenv(ENV_LOG_DIR, str(tmp_path / "elsewhere"))
    assert get_log_dir() == tmp_path / "elsewhere"


def test_platform_log_dir(monkeypatch):
    monkeypatch.delenv(ENV_LOG_DIR)
    assert "ftlsav" in str(get_log_dir())
