"""Partial recovery of modded format-11 saves."""

import struct

import pytest

from ftlsav import Capability, ParseMode, decode, encode, read_header_snapshot
from ftlsav.errors import BoundaryNotFound, ImplausibleCount
from ftlsav.model import PARTIAL_CAPABILITIES
from ftlsav.partial import parse_partial, parse_recovered_crew

from save_builders import HS_BLUEPRINT, HS_TAIL, decoy_pre_ship, hs_save


def test_modded_save_decodes_partially(modded_save):
    game = decode(modded_save)

    assert game.parse_mode == ParseMode.PARTIAL_PLAYER_SHIP_OPAQUE_TAIL
    assert game.capabilities == PARTIAL_CAPABILITIES | Capability.CREW
    assert Capability.CARGO not in game.capabilities
    assert Capability.SYSTEMS not in game.capabilities

    ship = game.player_ship
    assert ship.blueprint_id == HS_BLUEPRINT
    assert ship.name == "Hyperspace Runner"
    assert (ship.hull, ship.fuel, ship.drone_parts, ship.missiles, ship.scrap) == (25, 9, 3, 6, 140)
    assert [w["weapon_id"] for w in ship.weapons] == ["LASER_BURST_2", "MISSILES_2_PLAYER"]
    assert [d["drone_id"] for d in ship.drones] == ["COMBAT_1"]
    assert ship.augments == ["HS_CUSTOM_AUG"]
    assert game.tail == HS_TAIL
    assert game.pre_ship == b""


def test_warning_names_failed_section(modded_save):
    game = decode(modded_save)

    assert len(game.warnings) == 1
    assert game.warnings[0].startswith("Full parse failed (parse_crew_prefix, offset ")
    assert "Falling back to partial mode. Log: " in game.warnings[0]
    assert len(game.diagnostics) == 1
    assert game.diagnostics[0].section == "parse_crew_prefix"
    offset = game.diagnostics[0].byte_offset
    assert struct.unpack_from("<i", modded_save, offset)[0] == -7


def test_crew_recovered(modded_save):
    crew = decode(modded_save).player_ship.crew

    assert [c.name for c in crew] == ["Ripley", "Hicks"]
    first = crew[0]
    assert first.race == "human"
    assert first.health == 100
    assert (first.sprite_x, first.sprite_y) == (35, 70)
    assert first.original_color_race == "human"
    assert first.original_race == "human"
    assert first.inline_pre == struct.pack("<22i", *range(1000, 1021), -7)
    assert first.inline_post == struct.pack("<4i", 2000, 2001, 2002, 2003)
    assert first.pilot_mastery_one is True
    assert first.pilot_mastery_two is False
    assert first.combat_mastery_two is True


def test_round_trip_is_exact(modded_save):
    game = decode(modded_save)
    assert encode(game) == modded_save
    assert decode(encode(game)) == game


def test_crew_health_edit_is_local(modded_save):
    game = decode(modded_save)
    game.player_ship.crew[1].health = 55
    edited = encode(game)

    assert len(edited) == len(modded_save)
    changed = [i for i, (a, b) in enumerate(zip(modded_save, edited)) if a != b]
    assert changed
    start = changed[0]
    assert changed[-1] - start < 4
    assert struct.unpack_from("<i", modded_save, start)[0] == 100
    assert struct.unpack_from("<i", edited, start)[0] == 55
    assert decode(edited).player_ship.crew[1].health == 55


def test_loadout_edit(modded_save):
    game = decode(modded_save)
    game.player_ship.augments.append("WEAPON_PREIGNITE")
    game.player_ship.scrap = 10
    edited = decode(encode(game))

    assert edited.parse_mode == ParseMode.PARTIAL_PLAYER_SHIP_OPAQUE_TAIL
    assert edited.player_ship.augments == ["HS_CUSTOM_AUG", "WEAPON_PREIGNITE"]
    assert edited.player_ship.scrap == 10
    assert edited.tail == HS_TAIL


def test_crew_recovery_failure_keeps_interior():
    data = hs_save(doubled=False)
    game = decode(data)

    assert game.parse_mode == ParseMode.PARTIAL_PLAYER_SHIP_OPAQUE_TAIL
    assert game.capabilities == PARTIAL_CAPABILITIES
    ship = game.player_ship
    assert ship.crew == []
    assert ship.ship_interior is not None
    assert struct.unpack_from("<i", ship.ship_interior, 0)[0] == 2
    assert ship.augments == ["HS_CUSTOM_AUG"]
    assert any("Crew could not be recovered" in w for w in game.warnings)
    assert encode(game) == data


def test_decoy_anchor_rejected():
    pre_ship = decoy_pre_ship()
    data = hs_save(pre_ship=pre_ship)
    game = decode(data)

    assert game.parse_mode == ParseMode.PARTIAL_PLAYER_SHIP_OPAQUE_TAIL
    assert game.pre_ship == pre_ship
    assert game.player_ship.hull == 25
    assert game.diagnostics[0].section == "parse_ship_header"
    assert encode(game) == data


def test_no_anchor():
    data = hs_save()
    header = read_header_snapshot(data)
    header.player_ship_blueprint_id = "PLAYER_SHIP_MISSING"
    with pytest.raises(BoundaryNotFound, match=r"\(0 candidates rejected\)"):
        parse_partial(data, header)


def test_recovered_crew_count_bounded():
    with pytest.raises(ImplausibleCount) as excinfo:
        parse_recovered_crew(struct.pack("<i", 101), 11)
    assert "crew count 101" in str(excinfo.value)
