"""The full -> partial -> restricted fallback cascade."""

import pytest

from ftlsav import Capability, MalformedLength, ParseMode, SaveParseError, decode, encode
from ftlsav.model import RESTRICTED_CAPABILITIES

from save_builders import HS_BLUEPRINT, RESTRICTED_TAIL, hs_save, restricted_save


def test_restricted_mode(unreadable_save, log_dir):
    game = decode(unreadable_save)

    assert game.parse_mode == ParseMode.RESTRICTED_OPAQUE_TAIL
    assert game.capabilities == RESTRICTED_CAPABILITIES
    assert Capability.SHIP not in game.capabilities
    assert game.player_ship_name == "Restricted Fixture"
    assert game.player_ship.blueprint_id == "PLAYER_SHIP_UNION"
    assert game.player_ship.name == "Restricted Fixture"
    assert game.tail == RESTRICTED_TAIL
    assert encode(game) == unreadable_save


def test_restricted_warnings(unreadable_save):
    game = decode(unreadable_save)
    tail_offset = len(unreadable_save) - len(RESTRICTED_TAIL)

    full, partial = game.diagnostics
    assert full.section == "parse_ship_header"
    assert full.byte_offset == tail_offset
    assert partial.section == "parse_partial"
    assert partial.byte_offset == tail_offset

    assert game.warnings == [
        f"Full parse failed (parse_ship_header, offset {tail_offset}). "
        f"Falling back to partial mode. Log: {full.log_path}",
        f"Partial parse failed (parse_partial, offset {tail_offset}). "
        f"Falling back to restricted mode. Log: {partial.log_path}",
    ]


def test_each_failure_is_logged(unreadable_save, log_dir):
    game = decode(unreadable_save, source_path="/saves/continue.sav")

    logs = sorted(log_dir.glob("*.log"))
    assert len(logs) == 2
    assert {str(p) for p in logs} == {d.log_path for d in game.diagnostics}
    for path in logs:
        assert path.name.endswith("_continue.sav.log")


@pytest.mark.parametrize("fmt", [2, 7, 8, 9])
def test_other_formats_do_not_fall_back(fmt, log_dir):
    data = restricted_save(fmt)
    with pytest.raises(SaveParseError) as excinfo:
        decode(data)

    error = excinfo.value
    assert isinstance(error.__cause__, MalformedLength)
    tail_offset = len(data) - len(RESTRICTED_TAIL)
    assert error.offset == tail_offset
    assert str(error).startswith(
        "Failed to parse save file.\n\n"
        "Section: parse_ship_header\n"
        f"Byte offset: {tail_offset}\n"
        f"Log: {error.diagnostic.log_path}\n\n"
    )
    assert len(list(log_dir.glob("*.log"))) == 1


def test_save_parse_error_is_a_value_error():
    with pytest.raises(ValueError):
        decode(restricted_save(9))


def test_decode_accepts_bytearray(unreadable_save):
    game = decode(bytearray(unreadable_save))
    assert game.tail == RESTRICTED_TAIL


def test_undecodable_blueprint_still_falls_back(log_dir):
    data = bytearray(hs_save())
    header_blueprint = data.find(HS_BLUEPRINT.encode("ascii"))
    data[header_blueprint + 7] = 0xFF
    data = bytes(data)

    game = decode(data)

    assert game.parse_mode == ParseMode.RESTRICTED_OPAQUE_TAIL
    assert game.player_ship_blueprint_id == "PLAYER_\udcffHIP_HS"
    assert len(game.diagnostics) == 2
    assert all(d.log_path for d in game.diagnostics)
    partial_log = open(game.diagnostics[1].log_path, encoding="utf-8").read()
    assert "PLAYER_\\udcffHIP_HS" in partial_log
    assert encode(game) == data
