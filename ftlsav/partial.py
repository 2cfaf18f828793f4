"""Partial decoding of modded format-11 saves.

When mod data makes the full schema unusable, the player ship can still be
found by its blueprint id. Its header, weapons, drones and augments are
decoded; the interior (crew, systems, rooms) is either recovered crew by
crew or kept opaque; everything before the ship and after the augments is
kept verbatim.

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
from dataclasses import dataclass
from typing import Optional

from .binary import STRING_ERRORS, BinaryReader, BinaryWriter
from .errors import BoundaryNotFound, CandidateRejected, ParseError
from .header import saved_game_from_header, write_header
from .model import (
    PARTIAL_CAPABILITIES,
    Capability,
    Crew,
    HeaderSnapshot,
    ParseMode,
    SavedGame,
    Ship,
)
from .records import (
    parse_crew_prefix,
    parse_crew_suffix,
    parse_loadout,
    parse_ship_header,
    write_crew,
    write_list,
    write_loadout,
    write_ship_header,
)
from .scanners import (
    aligned_occurrences,
    find_boolean_run,
    find_doubled_string,
    find_weapon_section,
    length_prefixed,
)

logger = logging.getLogger(__name__)

PARTIAL_FORMAT = 11
MAX_PARTIAL_LOADOUT = 20
MAX_RECOVERED_CREW = 100
HULL_RANGE = (1, 200)


@dataclass
class RecoveredShip:
    ship: Ship
    anchor: int
    tail: bytes
    crew_error: Optional[str] = None


# ============================================================================
# Crew recovery
# ============================================================================

def parse_inline_crew(reader: BinaryReader, fmt: int) -> Crew:
    """One crew member whose record carries the inline race extension."""
    fields = parse_crew_prefix(reader, fmt)
    race = fields["race"].encode("utf-8", STRING_ERRORS)

    start = reader.pos
    marker = find_doubled_string(reader.data, race, start)
    if marker is None:
        raise BoundaryNotFound(
            f"No doubled race string '{fields['race']}' for crew '{fields['name']}' "
            f"after byte offset {start}",
            start,
        )
    fields["inline_pre"] = reader.read_bytes(marker - start)
    fields["original_color_race"] = reader.read_string()
    fields["original_race"] = reader.read_string()

    after = reader.pos
    mastery = find_boolean_run(reader.data, after)
    if mastery is None:
        raise BoundaryNotFound(
            f"No mastery flags for crew '{fields['name']}' after byte offset {after}", after)
    fields["inline_post"] = reader.read_bytes(mastery - after)

    fields.update(parse_crew_suffix(reader, fmt, fields["race"]))
    return Crew(**fields)


def parse_recovered_crew(interior: bytes, fmt: int) -> tuple[list[Crew], bytes]:
    """Crew list and the bytes that follow it; offsets are relative to the interior."""
    reader = BinaryReader(interior)
    count = reader.read_count(MAX_RECOVERED_CREW, "crew")
    crew = [parse_inline_crew(reader, fmt) for _ in range(count)]
    return crew, interior[reader.pos:]


# ============================================================================
# Ship candidates
# ============================================================================

def check_ship_candidate(ship: Ship, header: HeaderSnapshot, anchor: int):
    low, high = HULL_RANGE
    if ship.blueprint_id != header.player_ship_blueprint_id:
        problem = f"blueprint '{ship.blueprint_id}'"
    elif not low <= ship.hull <= high:
        problem = f"hull {ship.hull}"
    elif ship.fuel < 0:
        problem = f"fuel {ship.fuel}"
    elif ship.scrap < 0:
        problem = f"scrap {ship.scrap}"
    else:
        return
    raise CandidateRejected(f"Ship candidate at byte offset {anchor} has implausible {problem}", anchor)


def parse_ship_candidate(data: bytes, header: HeaderSnapshot, anchor: int, trace: bool = False) -> RecoveredShip:
    fmt = header.file_format
    reader = BinaryReader(data, anchor, trace)
    ship = parse_ship_header(reader, fmt)
    check_ship_candidate(ship, header, anchor)

    interior_start = reader.pos
    weapon_pos = find_weapon_section(data, interior_start, fmt)
    interior = data[interior_start:weapon_pos]
    reader.pos = weapon_pos
    parse_loadout(reader, ship, fmt, MAX_PARTIAL_LOADOUT)
    recovered = RecoveredShip(ship=ship, anchor=anchor, tail=data[reader.pos:])

    try:
        ship.crew, ship.post_crew = parse_recovered_crew(interior, fmt)
    except ParseError as e:
        logger.debug("crew recovery failed for ship at byte offset %d: %s", anchor, e)
        ship.crew = []
        ship.ship_interior = interior
        recovered.crew_error = str(e)
    return recovered


def try_ship_candidate(
    data: bytes,
    header: HeaderSnapshot,
    anchor: int,
    rejections: list[str],
    trace: bool = False,
) -> Optional[RecoveredShip]:
    """The recovered ship, or None (with the reason appended to ``rejections``)."""
    try:
        return parse_ship_candidate(data, header, anchor, trace)
    except ParseError as e:
        logger.debug("ship candidate at byte offset %d rejected: %s", anchor, e)
        rejections.append(str(e))
        return None


def parse_partial(data: bytes, header: HeaderSnapshot, trace: bool = False) -> SavedGame:
    blueprint = header.player_ship_blueprint_id
    start = header.offset_after_state_vars
    if not blueprint:
        raise BoundaryNotFound(f"No ship blueprint id to anchor on after byte offset {start}", start)

    pattern = length_prefixed(blueprint.encode("utf-8", STRING_ERRORS))
    rejections = []
    for anchor in aligned_occurrences(data, pattern, start):
        recovered = try_ship_candidate(data, header, anchor, rejections, trace)
        if recovered is not None:
            return build_partial(data, header, recovered)

    message = (f"No ship blueprint anchor '{blueprint}' validated after byte offset {start} "
               f"({len(rejections)} candidates rejected)")
    if rejections:
        message += f"; last: {rejections[-1]}"
    raise BoundaryNotFound(message, start)


def build_partial(data: bytes, header: HeaderSnapshot, recovered: RecoveredShip) -> SavedGame:
    game = saved_game_from_header(header)
    game.parse_mode = ParseMode.PARTIAL_PLAYER_SHIP_OPAQUE_TAIL
    game.capabilities = PARTIAL_CAPABILITIES
    game.player_ship = recovered.ship
    game.pre_ship = data[header.offset_after_state_vars:recovered.anchor]
    game.tail = recovered.tail
    if recovered.crew_error is None:
        game.capabilities |= Capability.CREW
    else:
        game.warnings.append(
            f"Crew could not be recovered ({recovered.crew_error}); "
            "ship interior kept as opaque bytes.")
    logger.info(
        "Recovered player ship '%s' at byte offset %d (%d crew)",
        recovered.ship.name, recovered.anchor, len(recovered.ship.crew),
    )
    return game


def write_partial(game: SavedGame) -> bytes:
    fmt = game.file_format
    ship = game.player_ship
    writer = BinaryWriter()
    write_header(writer, game)
    writer.write_bytes(game.pre_ship)
    write_ship_header(writer, ship, fmt)
    if ship.ship_interior is not None:
        writer.write_bytes(ship.ship_interior)
    else:
        write_list(writer, ship.crew, lambda crew: write_crew(writer, crew, fmt, inline_extension=True))
        writer.write_bytes(ship.post_crew or b"")
    write_loadout(writer, ship, fmt)
    writer.write_bytes(game.tail)
    return writer.get_bytes()
