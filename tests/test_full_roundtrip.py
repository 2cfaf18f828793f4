"""Full-mode decoding and byte-exact re-encoding across format versions."""

import struct

import pytest

from ftlsav import Capability, ParseMode, SystemType, decode, encode
from ftlsav.model import FULL_CAPABILITIES

from save_builders import FIXTURE_BLUEPRINT, minimal_game, rich_game, trap_room_door


def changed_offsets(before: bytes, after: bytes) -> list[int]:
    assert len(before) == len(after)
    return [i for i, (a, b) in enumerate(zip(before, after)) if a != b]


@pytest.mark.parametrize("fmt", [2, 7, 8, 9, 11])
def test_minimal_game_round_trip(fmt):
    game = minimal_game(fmt)
    data = encode(game)
    decoded = decode(data)

    assert decoded == game
    assert encode(decoded) == data


@pytest.mark.parametrize("fmt", [2, 7, 8, 9, 11])
def test_rich_game_round_trip(fmt):
    game = rich_game(fmt)
    data = encode(game)
    decoded = decode(data)

    assert decoded.parse_mode == ParseMode.FULL
    assert decoded.warnings == []
    assert decoded.diagnostics == []
    assert decoded == game
    assert encode(decoded) == data


def test_decode_encode_is_idempotent(rich_save):
    once = decode(rich_save)
    twice = decode(encode(once))
    assert twice == once
    assert encode(twice) == rich_save


def test_decoy_augment_in_room_data(minimal_save):
    game = decode(minimal_save)

    assert game.parse_mode == ParseMode.FULL
    assert game.capabilities == FULL_CAPABILITIES
    assert Capability.METADATA in game.capabilities
    ship = game.player_ship
    assert ship.blueprint_id == FIXTURE_BLUEPRINT
    assert [w["weapon_id"] for w in ship.weapons] == ["LASER_BURST_2", "ION_STUN"]
    assert [w["armed"] for w in ship.weapons] == [True, False]
    assert ship.augments == ["AUTO_COOLDOWN", "REPAIR_ARM"]
    assert "FAKE_AUG" not in ship.augments
    assert ship.room_door == trap_room_door()
    assert game.cargo == ["DRONE_DEFENSE", "MISSILES_SMALL"]


def test_rich_game_fields():
    game = decode(encode(rich_game(11)))
    ship = game.player_ship

    assert [c.name for c in ship.crew] == ["Ripley", "Ruwen"]
    crystal = ship.crew[1]
    assert crystal.lockdown_recharge_ticks_goal == 50000
    assert ship.crew[0].lockdown_recharge_ticks is None
    assert ship.system(SystemType.SHIELDS)["deionization_ticks"] == -2147483648
    assert ship.system_capacity(SystemType.MEDBAY) == 0
    assert "power" not in ship.system(SystemType.MEDBAY)
    assert ship.cloaking_info is not None
    assert game.player_extended_info["hacking"]["drone_pod"]["hops_to_live"] == 3
    assert len(game.player_extended_info["weapon_modules"]) == 2

    nearby = game.nearby_ship
    assert nearby.extra_string_before_crew == "PIRATE_SCOUT_EXTENSION"
    assert nearby.starting_crew == [{"race": "human", "name": "Pirate"}]
    assert game.unknown_xi == 5
    assert game.encounter["choices"] == [1, 2]
    assert [p["projectile_type"] for p in game.projectiles] == [0, 1, 2, 3, 4, 5, 6]
    assert "extended" in game.projectiles[6]
    assert game.environment["asteroid_field"]["stray_rock_ticks"] == 0


def test_format_2_store_shelves():
    game = decode(encode(rich_game(2)))
    store = game.beacons[0]["store"]
    assert len(store["shelves"]) == 2
    assert store["shelves"][0]["items"][1] == {"available": -1}
    assert "extra_data" not in store["shelves"][0]["items"][0]
    assert "unknown_eta" not in game.beacons[0]
    assert game.f2_current_beacon_id == 4


@pytest.mark.parametrize("fmt", [8, 9])
def test_beacon_flag_for_formats_8_and_9(fmt):
    game = decode(encode(rich_game(fmt)))
    assert [b["unknown_eta"] for b in game.beacons] == [True, False]


def test_pds_projectile_has_no_extension_before_format_11():
    game = decode(encode(rich_game(9)))
    assert "extended" not in game.projectiles[6]
    assert "hack_anim" in game.player_extended_info["weapon_modules"][0]


def test_nonzero_bools_become_canonical():
    data = bytearray(encode(minimal_game(11)))
    # random_native is the word right after the format version
    data[4:8] = struct.pack("<i", 7)
    game = decode(bytes(data))
    assert game.random_native is True
    assert encode(game)[4:8] == struct.pack("<i", 1)


def test_trailing_bytes_kept():
    data = encode(minimal_game(11)) + b"\x01\x02\x03"
    game = decode(data)
    assert game.parse_mode == ParseMode.FULL
    assert game.tail == b"\x01\x02\x03"
    assert encode(game) == data


class TestEditLocality:
    def test_hull(self):
        data = encode(rich_game(11))
        game = decode(data)
        game.player_ship.hull = 17
        edited = encode(game)

        changed = changed_offsets(data, edited)
        assert len(changed) == 1
        # 30 -> 17 only touches the low byte of the little-endian hull word
        offset = changed[0]
        assert struct.unpack_from("<i", data, offset)[0] == 30
        assert struct.unpack_from("<i", edited, offset)[0] == 17

    def test_scrap_and_state_var(self):
        data = encode(minimal_game(7))
        game = decode(data)
        game.player_ship.scrap = 999
        game.set_state_var("fired_shot", 4)
        edited = encode(game)

        assert len(edited) == len(data)
        decoded = decode(edited)
        assert decoded.player_ship.scrap == 999
        assert decoded.state_var("fired_shot") == 4
        assert decoded.player_ship.room_door == trap_room_door()

    def test_missing_systems_written_blank(self):
        game = rich_game(11)
        data = encode(game)
        game.player_ship.systems = [s for s in game.player_ship.systems if s["capacity"]]

        assert encode(game) == data

    def test_added_weapon_gets_module(self):
        game = decode(encode(minimal_game(11)))
        game.player_ship.weapons.append({"weapon_id": "BEAM_1", "armed": False})
        edited = decode(encode(game))

        assert [w["weapon_id"] for w in edited.player_ship.weapons][-1] == "BEAM_1"
        assert len(edited.player_extended_info["weapon_modules"]) == 3
