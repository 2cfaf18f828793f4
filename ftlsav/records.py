"""Full-schema decoder and encoder.

Every ``parse_*`` function has a ``write_*`` twin that emits the same fields
in the same order for the same format version. Room, breach and door data is
never interpreted; it is carried as an opaque blob located with the weapon
section scanner.

Copyright (C) 2026 wszqkzqk <wszqkzqk@qq.com>

This library is free software; you can redistribute it and/or
modify it under the terms of the GNU Lesser General Public
License as published by the Free Software Foundation; either
version 2.1 of the License, or (at your option) any later version.

This library is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
Lesser General Public License for more details.

You should have received a copy of the GNU Lesser General Public
License along with this library; if not, write to the Free Software
Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301  USA
"""

import logging

from .binary import STRING_ERRORS, BinaryReader, BinaryWriter, is_printable_ascii
from .errors import CandidateRejected
from .header import parse_header, saved_game_from_header, write_header
from .model import Crew, ProjectileType, SavedGame, Ship, SystemType
from .scanners import find_weapon_section
from .schema import (
    ASTEROID_FIELD_FIELDS,
    BATTERY_FIELDS,
    BEACON_BACKGROUND_FIELDS,
    BEACON_ENEMY_FIELDS,
    BEACON_STATUS_FIELDS,
    BEAM_FIELDS,
    BOMB_FIELDS,
    CLOAKING_FIELDS,
    CLONEBAY_FIELDS,
    CREW_IDENTITY_FIELDS,
    CREW_MASTERY_FIELDS,
    CREW_STATUS_FIELDS,
    CREW_TAIL_FIELDS,
    CRYSTAL_CREW_FIELDS,
    DRONE_FIELDS,
    DRONE_MODULE_FIELDS,
    ENCOUNTER_FIELDS,
    ENVIRONMENT_FIELDS,
    ENVIRONMENT_HAZARD_FIELDS,
    EXTENDED_DRONE_FIELDS,
    HACKING_FIELDS,
    LASER_FIELDS,
    MIND_CONTROL_FIELDS,
    NEARBY_SHIP_AI_FIELDS,
    PDS_FIELDS,
    PROJECTILE_FIELDS,
    QUEST_EVENT_FIELDS,
    REBEL_FLAGSHIP_FIELDS,
    SECTOR_FIELDS,
    SECTOR_POSITION_FIELDS,
    SHIELDS_FIELDS,
    SHIP_IDENTITY_FIELDS,
    SHIP_STATUS_FIELDS,
    STARTING_CREW_FIELDS,
    STORE_SUPPLY_FIELDS,
    SYSTEM_FIELDS,
    V8_TO_9,
    WEAPON_FIELDS,
    WEAPON_MODULE_FIELDS,
    blank_record,
    blank_system,
    ordered_system_types,
    read_fields,
    resolve_profile,
    write_fields,
)

logger = logging.getLogger(__name__)

MAX_LIST = 10000
MAX_CREW = 1000
MAX_CREW_HEALTH = 10000
MAX_INLINE_SHIP_STRING = 256
STORE_ITEMS_PER_SHELF = 3
FORMAT_2_SHELVES = 2
CRYSTAL_RACE = "crystal"

PROJECTILE_EXTENSIONS = {
    ProjectileType.LASER_OR_BURST: LASER_FIELDS,
    ProjectileType.BOMB: BOMB_FIELDS,
    ProjectileType.BEAM: BEAM_FIELDS,
    ProjectileType.PDS: PDS_FIELDS,
}


def parse_list(reader: BinaryReader, what: str, parse_item, limit: int = MAX_LIST) -> list:
    count = reader.read_count(limit, what)
    return [parse_item() for _ in range(count)]


def write_list(writer: BinaryWriter, items: list, write_item):
    writer.write_int(len(items))
    for item in items:
        write_item(item)


# ============================================================================
# Ship header
# ============================================================================

def _has_inline_ship_string(data: bytes, pos: int, length: int) -> bool:
    if length <= 12 or length > MAX_INLINE_SHIP_STRING or pos + length > len(data):
        return False
    return is_printable_ascii(data[pos:pos + length])


def parse_ship_header(reader: BinaryReader, fmt: int) -> Ship:
    """Blueprint, names, starting crew, jump state and resources."""
    fields = read_fields(reader, SHIP_IDENTITY_FIELDS, fmt)

    extra = None
    count = reader.peek_int()
    if count is not None and _has_inline_ship_string(reader.data, reader.pos + 4, count):
        reader.pos += 4
        extra = reader.read_bytes(count).decode("utf-8", STRING_ERRORS)
        reader.debug(f"extra ship string '{extra}' before starting crew")
    starting_crew = parse_list(
        reader, "starting crew", lambda: read_fields(reader, STARTING_CREW_FIELDS, fmt))

    fields.update(read_fields(reader, SHIP_STATUS_FIELDS, fmt))
    return Ship(extra_string_before_crew=extra, starting_crew=starting_crew, **fields)


def write_ship_header(writer: BinaryWriter, ship: Ship, fmt: int):
    values = vars(ship)
    write_fields(writer, SHIP_IDENTITY_FIELDS, fmt, values)
    if ship.extra_string_before_crew is not None:
        writer.write_string(ship.extra_string_before_crew)
    write_list(writer, ship.starting_crew,
               lambda member: write_fields(writer, STARTING_CREW_FIELDS, fmt, member))
    write_fields(writer, SHIP_STATUS_FIELDS, fmt, values)


# ============================================================================
# Crew
# ============================================================================

def parse_crew_prefix(reader: BinaryReader, fmt: int) -> dict:
    """Crew fields from the name through universal_death_count."""
    fields = read_fields(reader, CREW_IDENTITY_FIELDS, fmt)
    reader.debug(f"crew '{fields['name']}' race '{fields['race']}'")
    if fmt >= 7:
        fields["sprite_tint_indices"] = parse_list(reader, "sprite tint", reader.read_int)
    fields.update(read_fields(reader, CREW_STATUS_FIELDS, fmt))
    return fields


def parse_crew_suffix(reader: BinaryReader, fmt: int, race: str) -> dict:
    """Crew fields after universal_death_count."""
    fields = read_fields(reader, CREW_MASTERY_FIELDS, fmt)
    fields.update(read_fields(reader, CREW_TAIL_FIELDS, fmt))
    if fmt >= 7 and race == CRYSTAL_RACE:
        fields.update(read_fields(reader, CRYSTAL_CREW_FIELDS, fmt))
    return fields


def parse_crew(reader: BinaryReader, fmt: int) -> Crew:
    start = reader.pos
    fields = parse_crew_prefix(reader, fmt)
    if not 0 <= fields["health"] <= MAX_CREW_HEALTH:
        raise CandidateRejected(
            f"Crew '{fields['name']}' has implausible health {fields['health']} "
            f"(record at byte offset {start})",
            start,
        )
    fields.update(parse_crew_suffix(reader, fmt, fields["race"]))
    return Crew(**fields)


def write_crew(writer: BinaryWriter, crew: Crew, fmt: int, inline_extension: bool = False):
    values = vars(crew)
    write_fields(writer, CREW_IDENTITY_FIELDS, fmt, values)
    if fmt >= 7:
        write_list(writer, crew.sprite_tint_indices, writer.write_int)
    write_fields(writer, CREW_STATUS_FIELDS, fmt, values)
    if inline_extension:
        writer.write_bytes(crew.inline_pre)
        writer.write_string(crew.original_color_race)
        writer.write_string(crew.original_race)
        writer.write_bytes(crew.inline_post)
    write_fields(writer, CREW_MASTERY_FIELDS, fmt, values)
    write_fields(writer, CREW_TAIL_FIELDS, fmt, values)
    if fmt >= 7 and crew.race == CRYSTAL_RACE:
        write_fields(writer, CRYSTAL_CREW_FIELDS, fmt, values)


# ============================================================================
# Systems
# ============================================================================

def parse_system(reader: BinaryReader, system_type: SystemType, fmt: int) -> dict:
    system = {"system_type": system_type.name, "capacity": reader.read_int()}
    if system["capacity"] != 0:
        system.update(read_fields(reader, SYSTEM_FIELDS, fmt))
    return system


def parse_systems(reader: BinaryReader, fmt: int) -> list[dict]:
    systems = [parse_system(reader, system_type, fmt) for system_type in ordered_system_types(fmt)]
    reader.debug(f"{len(systems)} systems")
    return systems


def write_systems(writer: BinaryWriter, systems: list[dict], fmt: int):
    by_type = {system.get("system_type"): system for system in systems}
    for system_type in ordered_system_types(fmt):
        system = by_type.get(system_type.name) or blank_system(system_type)
        capacity = system.get("capacity", 0)
        writer.write_int(capacity)
        if capacity != 0:
            write_fields(writer, SYSTEM_FIELDS, fmt, system)


def parse_subsystem_info(reader: BinaryReader, ship: Ship, fmt: int):
    """Clonebay, battery, shields and cloaking state (format 7+)."""
    if ship.system_capacity(SystemType.CLONEBAY) > 0:
        ship.clonebay_info = read_fields(reader, CLONEBAY_FIELDS, fmt)
    if ship.system_capacity(SystemType.BATTERY) > 0:
        ship.battery_info = read_fields(reader, BATTERY_FIELDS, fmt)
    ship.shields_info = read_fields(reader, SHIELDS_FIELDS, fmt)
    if ship.system_capacity(SystemType.CLOAKING) > 0:
        ship.cloaking_info = read_fields(reader, CLOAKING_FIELDS, fmt)


def write_subsystem_info(writer: BinaryWriter, ship: Ship, fmt: int):
    if ship.system_capacity(SystemType.CLONEBAY) > 0:
        write_fields(writer, CLONEBAY_FIELDS, fmt, ship.clonebay_info or {})
    if ship.system_capacity(SystemType.BATTERY) > 0:
        write_fields(writer, BATTERY_FIELDS, fmt, ship.battery_info or {})
    write_fields(writer, SHIELDS_FIELDS, fmt, ship.shields_info or {})
    if ship.system_capacity(SystemType.CLOAKING) > 0:
        write_fields(writer, CLOAKING_FIELDS, fmt, ship.cloaking_info or {})


# ============================================================================
# Weapons, drones, augments
# ============================================================================

def parse_loadout(reader: BinaryReader, ship: Ship, fmt: int, limit: int = MAX_LIST):
    ship.weapons = parse_list(
        reader, "weapon", lambda: read_fields(reader, WEAPON_FIELDS, fmt), limit)
    ship.drones = parse_list(
        reader, "drone", lambda: read_fields(reader, DRONE_FIELDS, fmt), limit)
    ship.augments = parse_list(reader, "augment", reader.read_string, limit)
    reader.debug(
        f"{len(ship.weapons)} weapons, {len(ship.drones)} drones, {len(ship.augments)} augments")


def write_loadout(writer: BinaryWriter, ship: Ship, fmt: int):
    write_list(writer, ship.weapons, lambda weapon: write_fields(writer, WEAPON_FIELDS, fmt, weapon))
    write_list(writer, ship.drones, lambda drone: write_fields(writer, DRONE_FIELDS, fmt, drone))
    write_list(writer, ship.augments, writer.write_string)


# ============================================================================
# Ship
# ============================================================================

def parse_ship(reader: BinaryReader, fmt: int) -> Ship:
    ship = parse_ship_header(reader, fmt)
    reader.debug(f"ship '{ship.name}' ({ship.blueprint_id}): hull={ship.hull}")
    ship.crew = parse_list(reader, "crew", lambda: parse_crew(reader, fmt), MAX_CREW)
    ship.reserve_power_capacity = reader.read_int()
    ship.systems = parse_systems(reader, fmt)
    if fmt >= 7:
        parse_subsystem_info(reader, ship, fmt)

    room_start = reader.pos
    weapon_pos = find_weapon_section(reader.data, room_start, fmt)
    ship.room_door = reader.read_bytes(weapon_pos - room_start)
    reader.debug(f"kept {len(ship.room_door)} bytes of room/door data")

    parse_loadout(reader, ship, fmt)
    return ship


def write_ship(writer: BinaryWriter, ship: Ship, fmt: int):
    write_ship_header(writer, ship, fmt)
    write_list(writer, ship.crew, lambda crew: write_crew(writer, crew, fmt))
    writer.write_int(ship.reserve_power_capacity)
    write_systems(writer, ship.systems, fmt)
    if fmt >= 7:
        write_subsystem_info(writer, ship, fmt)
    writer.write_bytes(ship.room_door)
    write_loadout(writer, ship, fmt)


# ============================================================================
# Beacons and stores
# ============================================================================

def parse_store_shelf(reader: BinaryReader, fmt: int) -> dict:
    shelf = {"item_type": reader.read_int(), "items": []}
    for _ in range(STORE_ITEMS_PER_SHELF):
        item = {"available": reader.read_int()}
        if item["available"] >= 0:
            item["item_id"] = reader.read_string()
            if fmt >= 8:
                item["extra_data"] = reader.read_int()
        shelf["items"].append(item)
    return shelf


def write_store_shelf(writer: BinaryWriter, shelf: dict, fmt: int):
    writer.write_int(shelf.get("item_type", 0))
    items = list(shelf.get("items", []))
    items += [{"available": -1}] * (STORE_ITEMS_PER_SHELF - len(items))
    for item in items[:STORE_ITEMS_PER_SHELF]:
        available = item.get("available", -1)
        writer.write_int(available)
        if available >= 0:
            writer.write_string(item.get("item_id", ""))
            if fmt >= 8:
                writer.write_int(item.get("extra_data", 0))


def parse_store(reader: BinaryReader, fmt: int) -> dict:
    count = reader.read_count(MAX_LIST, "store shelf") if fmt >= 7 else FORMAT_2_SHELVES
    store = {"shelves": [parse_store_shelf(reader, fmt) for _ in range(count)]}
    store.update(read_fields(reader, STORE_SUPPLY_FIELDS, fmt))
    return store


def write_store(writer: BinaryWriter, store: dict, fmt: int):
    shelves = store.get("shelves", [])
    if fmt >= 7:
        writer.write_int(len(shelves))
    for shelf in shelves:
        write_store_shelf(writer, shelf, fmt)
    write_fields(writer, STORE_SUPPLY_FIELDS, fmt, store)


def parse_beacon(reader: BinaryReader, fmt: int) -> dict:
    beacon = {"visit_count": reader.read_int()}
    if beacon["visit_count"] > 0:
        beacon.update(read_fields(reader, BEACON_BACKGROUND_FIELDS, fmt))
    beacon["seen"] = reader.read_bool()
    beacon["enemy_present"] = reader.read_bool()
    if beacon["enemy_present"]:
        beacon.update(read_fields(reader, BEACON_ENEMY_FIELDS, fmt))
    beacon.update(read_fields(reader, BEACON_STATUS_FIELDS, fmt))
    beacon["store_present"] = reader.read_bool()
    if beacon["store_present"]:
        beacon["store"] = parse_store(reader, fmt)
    if fmt in V8_TO_9:
        beacon["unknown_eta"] = reader.read_bool()
    return beacon


def write_beacon(writer: BinaryWriter, beacon: dict, fmt: int):
    writer.write_int(beacon.get("visit_count", 0))
    if beacon.get("visit_count", 0) > 0:
        write_fields(writer, BEACON_BACKGROUND_FIELDS, fmt, beacon)
    writer.write_bool(beacon.get("seen"))
    writer.write_bool(beacon.get("enemy_present"))
    if beacon.get("enemy_present"):
        write_fields(writer, BEACON_ENEMY_FIELDS, fmt, beacon)
    write_fields(writer, BEACON_STATUS_FIELDS, fmt, beacon)
    writer.write_bool(beacon.get("store_present"))
    if beacon.get("store_present"):
        write_store(writer, beacon.get("store") or {}, fmt)
    if fmt in V8_TO_9:
        writer.write_bool(beacon.get("unknown_eta"))


# ============================================================================
# Encounter, environment, projectiles
# ============================================================================

def parse_encounter(reader: BinaryReader, fmt: int) -> dict:
    encounter = read_fields(reader, ENCOUNTER_FIELDS, fmt)
    encounter["choices"] = parse_list(reader, "encounter choice", reader.read_int)
    return encounter


def write_encounter(writer: BinaryWriter, encounter: dict, fmt: int):
    write_fields(writer, ENCOUNTER_FIELDS, fmt, encounter)
    write_list(writer, encounter.get("choices", []), writer.write_int)


def parse_environment(reader: BinaryReader, fmt: int) -> dict:
    environment = read_fields(reader, ENVIRONMENT_FIELDS, fmt)
    if environment["asteroids_present"]:
        environment["asteroid_field"] = read_fields(reader, ASTEROID_FIELD_FIELDS, fmt)
    environment.update(read_fields(reader, ENVIRONMENT_HAZARD_FIELDS, fmt))
    return environment


def write_environment(writer: BinaryWriter, environment: dict, fmt: int):
    write_fields(writer, ENVIRONMENT_FIELDS, fmt, environment)
    if environment.get("asteroids_present"):
        write_fields(writer, ASTEROID_FIELD_FIELDS, fmt, environment.get("asteroid_field") or {})
    write_fields(writer, ENVIRONMENT_HAZARD_FIELDS, fmt, environment)


def _projectile_extension(projectile_type: int, fmt: int):
    table = PROJECTILE_EXTENSIONS.get(projectile_type)
    if table is None or not resolve_profile(table, fmt):
        return None
    return table


def parse_projectile(reader: BinaryReader, fmt: int) -> dict:
    projectile = {"projectile_type": reader.read_int()}
    if projectile["projectile_type"] == ProjectileType.INVALID:
        return projectile
    projectile.update(read_fields(reader, PROJECTILE_FIELDS, fmt))
    extension = _projectile_extension(projectile["projectile_type"], fmt)
    if extension is not None:
        projectile["extended"] = read_fields(reader, extension, fmt)
    return projectile


def write_projectile(writer: BinaryWriter, projectile: dict, fmt: int):
    projectile_type = projectile.get("projectile_type", ProjectileType.INVALID)
    writer.write_int(projectile_type)
    if projectile_type == ProjectileType.INVALID:
        return
    write_fields(writer, PROJECTILE_FIELDS, fmt, projectile)
    extension = _projectile_extension(projectile_type, fmt)
    if extension is not None:
        write_fields(writer, extension, fmt, projectile.get("extended") or {})


# ============================================================================
# Extended ship info (format 7+)
# ============================================================================

def parse_drone_module(reader: BinaryReader, fmt: int) -> dict:
    module = read_fields(reader, DRONE_MODULE_FIELDS, fmt)
    if module["deployed"]:
        module["extended"] = read_fields(reader, EXTENDED_DRONE_FIELDS, fmt)
    return module


def write_drone_module(writer: BinaryWriter, module: dict, fmt: int):
    write_fields(writer, DRONE_MODULE_FIELDS, fmt, module)
    if module.get("deployed"):
        write_fields(writer, EXTENDED_DRONE_FIELDS, fmt, module.get("extended") or {})


def parse_extended_ship_info(reader: BinaryReader, ship: Ship, fmt: int) -> dict:
    info = {}
    if ship.system_capacity(SystemType.HACKING) > 0:
        info["hacking"] = read_fields(reader, HACKING_FIELDS, fmt)
    if ship.system_capacity(SystemType.MIND_CONTROL) > 0:
        info["mind_control"] = read_fields(reader, MIND_CONTROL_FIELDS, fmt)
    info["weapon_modules"] = [
        read_fields(reader, WEAPON_MODULE_FIELDS, fmt) for _ in ship.weapons]
    info["drone_modules"] = [parse_drone_module(reader, fmt) for _ in ship.drones]
    return info


def write_extended_ship_info(writer: BinaryWriter, info: dict, ship: Ship, fmt: int):
    if ship.system_capacity(SystemType.HACKING) > 0:
        write_fields(writer, HACKING_FIELDS, fmt, info.get("hacking") or {})
    if ship.system_capacity(SystemType.MIND_CONTROL) > 0:
        write_fields(writer, MIND_CONTROL_FIELDS, fmt, info.get("mind_control") or {})
    # One module per weapon/drone; new entries get blank modules
    weapon_modules = info.get("weapon_modules", [])
    for index in range(len(ship.weapons)):
        module = weapon_modules[index] if index < len(weapon_modules) else {}
        write_fields(writer, WEAPON_MODULE_FIELDS, fmt, module)
    drone_modules = info.get("drone_modules", [])
    for index in range(len(ship.drones)):
        module = drone_modules[index] if index < len(drone_modules) else {}
        write_drone_module(writer, module, fmt)


def parse_rebel_flagship(reader: BinaryReader, fmt: int) -> dict:
    flagship = read_fields(reader, REBEL_FLAGSHIP_FIELDS, fmt)
    flagship["previous_occupancy"] = parse_list(reader, "flagship occupancy", reader.read_int)
    return flagship


def write_rebel_flagship(writer: BinaryWriter, flagship: dict, fmt: int):
    write_fields(writer, REBEL_FLAGSHIP_FIELDS, fmt, flagship)
    write_list(writer, flagship.get("previous_occupancy", []), writer.write_int)


# ============================================================================
# Whole save
# ============================================================================

def parse_sector_map(reader: BinaryReader, game: SavedGame):
    fmt = game.file_format
    game.cargo = parse_list(reader, "cargo", reader.read_string)
    game.sector = read_fields(reader, SECTOR_FIELDS, fmt)
    game.sector_visitation = parse_list(reader, "sector visitation", reader.read_bool)
    game.sector_position = read_fields(reader, SECTOR_POSITION_FIELDS, fmt)
    game.beacons = parse_list(reader, "beacon", lambda: parse_beacon(reader, fmt))
    reader.debug(f"{len(game.beacons)} beacons")
    game.quest_events = parse_list(
        reader, "quest event", lambda: read_fields(reader, QUEST_EVENT_FIELDS, fmt))
    game.distant_quest_events = parse_list(reader, "distant quest event", reader.read_string)


def parse_format2_tail(reader: BinaryReader, game: SavedGame):
    game.f2_current_beacon_id = reader.read_int()
    game.nearby_ship_present = reader.read_bool()
    if game.nearby_ship_present:
        game.nearby_ship = parse_ship(reader, game.file_format)
        game.f2_rebel_flagship = parse_rebel_flagship(reader, game.file_format)


def parse_encounter_tail(reader: BinaryReader, game: SavedGame):
    """Encounter, nearby ship, environment, projectiles and the rest (format 7+)."""
    fmt = game.file_format
    game.unknown_mu = reader.read_int()
    game.encounter = parse_encounter(reader, fmt)
    game.nearby_ship_present = reader.read_bool()
    if game.nearby_ship_present:
        game.nearby_ship = parse_ship(reader, fmt)
        game.nearby_ship_ai = read_fields(reader, NEARBY_SHIP_AI_FIELDS, fmt)
    game.environment = parse_environment(reader, fmt)
    game.projectiles = parse_list(reader, "projectile", lambda: parse_projectile(reader, fmt))
    reader.debug(f"{len(game.projectiles)} projectiles")
    game.player_extended_info = parse_extended_ship_info(reader, game.player_ship, fmt)
    if game.nearby_ship is not None:
        game.nearby_extended_info = parse_extended_ship_info(reader, game.nearby_ship, fmt)
    game.unknown_nu = reader.read_int()
    if game.nearby_ship is not None:
        game.unknown_xi = reader.read_int()
    game.autofire = reader.read_bool()
    game.rebel_flagship = parse_rebel_flagship(reader, fmt)


def parse_saved_game(reader: BinaryReader, game: SavedGame):
    """Decode everything after the header into ``game``."""
    fmt = game.file_format
    reader.debug("player ship")
    game.player_ship = parse_ship(reader, fmt)
    parse_sector_map(reader, game)
    if fmt == 2:
        parse_format2_tail(reader, game)
    else:
        parse_encounter_tail(reader, game)
    if reader.remaining:
        reader.debug(f"{reader.remaining} trailing bytes kept opaque")
        game.tail = reader.read_bytes(reader.remaining)


def parse_full(data: bytes, trace: bool = False) -> SavedGame:
    reader = BinaryReader(data, trace=trace)
    game = saved_game_from_header(parse_header(reader))
    parse_saved_game(reader, game)
    return game


def write_full(game: SavedGame) -> bytes:
    fmt = game.file_format
    writer = BinaryWriter()
    write_header(writer, game)
    write_ship(writer, game.player_ship, fmt)
    write_list(writer, game.cargo, writer.write_string)
    write_fields(writer, SECTOR_FIELDS, fmt, game.sector)
    write_list(writer, game.sector_visitation, writer.write_bool)
    write_fields(writer, SECTOR_POSITION_FIELDS, fmt, game.sector_position)
    write_list(writer, game.beacons, lambda beacon: write_beacon(writer, beacon, fmt))
    write_list(writer, game.quest_events,
               lambda event: write_fields(writer, QUEST_EVENT_FIELDS, fmt, event))
    write_list(writer, game.distant_quest_events, writer.write_string)

    nearby = game.nearby_ship if game.nearby_ship_present else None
    if fmt == 2:
        writer.write_int(game.f2_current_beacon_id)
        writer.write_bool(nearby is not None)
        if nearby is not None:
            write_ship(writer, nearby, fmt)
            write_rebel_flagship(writer, game.f2_rebel_flagship or {}, fmt)
    else:
        writer.write_int(game.unknown_mu)
        write_encounter(writer, game.encounter or blank_record(ENCOUNTER_FIELDS, fmt), fmt)
        writer.write_bool(nearby is not None)
        if nearby is not None:
            write_ship(writer, nearby, fmt)
            write_fields(writer, NEARBY_SHIP_AI_FIELDS, fmt, game.nearby_ship_ai or {})
        write_environment(writer, game.environment or {}, fmt)
        write_list(writer, game.projectiles,
                   lambda projectile: write_projectile(writer, projectile, fmt))
        write_extended_ship_info(writer, game.player_extended_info or {}, game.player_ship, fmt)
        if nearby is not None:
            write_extended_ship_info(writer, game.nearby_extended_info or {}, nearby, fmt)
        writer.write_int(game.unknown_nu)
        if nearby is not None:
            writer.write_int(game.unknown_xi or 0)
        writer.write_bool(game.autofire)
        write_rebel_flagship(writer, game.rebel_flagship or {}, fmt)

    writer.write_bytes(game.tail)
    return writer.get_bytes()
