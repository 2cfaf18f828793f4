"""Lossless YAML export/import and a plain-text summary.

Structured fields are written as-is; opaque byte regions are base64 encoded.
Importing an exported document and encoding it reproduces the original save.

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

import base64
from dataclasses import fields
from functools import reduce
from typing import Optional

import yaml

from .model import Capability, Crew, Difficulty, ParseMode, SavedGame, Ship, enum_name

YAML_FORMAT = "FTL Save"

GAME_BLOBS = ("pre_ship", "tail")
SHIP_BLOBS = ("room_door", "ship_interior", "post_crew")
CREW_BLOBS = ("inline_pre", "inline_post")


class _NoAliasDumper(yaml.SafeDumper):
    def ignore_aliases(self, data):
        return True


def _encode_blob(value: Optional[bytes]) -> Optional[str]:
    if value is None:
        return None
    return base64.b64encode(value).decode("ascii")


def _decode_blob(value) -> Optional[bytes]:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected base64 text for a binary field, got {type(value).__name__}")
    return base64.b64decode(value)


def _enum_member(enum_class, name, what: str):
    try:
        return enum_class[name]
    except (KeyError, TypeError):
        raise ValueError(f"Unknown {what} {name!r}") from None


def _known_fields(cls, data) -> dict:
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping for {cls.__name__}, got {type(data).__name__}")
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in data.items() if key in names}


# ============================================================================
# Dataclass <-> plain dict
# ============================================================================

def crew_to_dict(crew: Crew) -> dict:
    result = dict(vars(crew))
    for name in CREW_BLOBS:
        result[name] = _encode_blob(result[name])
    return result


def crew_from_dict(data: dict) -> Crew:
    values = _known_fields(Crew, data)
    for name in CREW_BLOBS:
        if name in values:
            values[name] = _decode_blob(values[name])
    return Crew(**values)


def ship_to_dict(ship: Ship) -> dict:
    result = dict(vars(ship))
    result["crew"] = [crew_to_dict(crew) for crew in ship.crew]
    for name in SHIP_BLOBS:
        result[name] = _encode_blob(result[name])
    return result


def ship_from_dict(data: dict) -> Ship:
    values = _known_fields(Ship, data)
    crew = values.get("crew") or []
    if not isinstance(crew, list):
        raise ValueError(f"Expected a list of crew, got {type(crew).__name__}")
    values["crew"] = [crew_from_dict(member) for member in crew]
    for name in SHIP_BLOBS:
        if name in values:
            values[name] = _decode_blob(values[name])
    return Ship(**values)


def capability_names(capabilities: Capability) -> list[str]:
    return [flag.name for flag in Capability if flag.value and flag in capabilities]


def game_to_dict(game: SavedGame) -> dict:
    result = {
        "_format": YAML_FORMAT,
        "_parse_mode": game.parse_mode.name,
        "_capabilities": capability_names(game.capabilities),
        "_warnings": list(game.warnings),
    }
    for f in fields(SavedGame):
        if f.name in ("parse_mode", "capabilities", "warnings", "diagnostics"):
            continue
        result[f.name] = getattr(game, f.name)
    result["player_ship"] = ship_to_dict(game.player_ship)
    if game.nearby_ship is not None:
        result["nearby_ship"] = ship_to_dict(game.nearby_ship)
    for name in GAME_BLOBS:
        result[name] = _encode_blob(result[name])
    return result


def game_from_dict(data: dict) -> SavedGame:
    values = _known_fields(SavedGame, data)
    values.pop("warnings", None)
    values.pop("diagnostics", None)
    values["parse_mode"] = _enum_member(
        ParseMode, data.get("_parse_mode", ParseMode.FULL.name), "parse mode")
    capabilities = data.get("_capabilities") or []
    if not isinstance(capabilities, list):
        raise ValueError(f"Expected a list of capabilities, got {type(capabilities).__name__}")
    values["capabilities"] = reduce(
        lambda acc, name: acc | _enum_member(Capability, name, "capability"),
        capabilities, Capability.NONE)
    values["player_ship"] = ship_from_dict(values.get("player_ship") or {})
    if values.get("nearby_ship") is not None:
        values["nearby_ship"] = ship_from_dict(values["nearby_ship"])
    for name in GAME_BLOBS:
        if name in values:
            values[name] = _decode_blob(values[name])
    return SavedGame(**values)


# ============================================================================
# YAML Export/Import
# ============================================================================

def export_to_yaml(game: SavedGame) -> str:
    """Export a decoded save to YAML (lossless)."""
    return yaml.dump(
        game_to_dict(game),
        Dumper=_NoAliasDumper,
        allow_unicode=True,
        sort_keys=False,
        default_flow_style=False,
        width=120,
    )


def import_from_yaml(yaml_str: str) -> SavedGame:
    data = yaml.safe_load(yaml_str)
    if not isinstance(data, dict):
        raise ValueError("YAML document does not describe a save")
    if data.get("_format") != YAML_FORMAT:
        raise ValueError(f"Not an exported save (format {data.get('_format')!r})")
    return game_from_dict(data)


# ============================================================================
# Text Export (info command)
# ============================================================================

def export_to_text(game: SavedGame) -> str:
    """Human-readable summary of a decoded save."""
    ship = game.player_ship
    lines = []
    lines.append("=" * 60)
    lines.append(f"FTL Save File (format {game.file_format})")
    lines.append("=" * 60)
    lines.append("")

    lines.append("[Parse]")
    lines.append(f"  Mode: {game.parse_mode.name}")
    lines.append(f"  Editable: {', '.join(capability_names(game.capabilities)) or '(nothing)'}")
    for warning in game.warnings:
        lines.append(f"  Warning: {warning}")
    lines.append("")

    lines.append("[Game]")
    lines.append(f"  Ship: {game.player_ship_name} ({game.player_ship_blueprint_id})")
    lines.append(f"  Sector: {game.one_based_sector_number}")
    lines.append(f"  Difficulty: {enum_name(Difficulty, game.difficulty)}")
    lines.append(f"  Ships Defeated: {game.total_ships_defeated}")
    lines.append(f"  Beacons Explored: {game.total_beacons_explored}")
    lines.append(f"  Scrap Collected: {game.total_scrap_collected}")
    lines.append(f"  Crew Hired: {game.total_crew_hired}")
    lines.append(f"  State Vars: {len(game.state_vars)}")
    lines.append("")

    if game.capabilities & Capability.SHIP:
        lines.append("[Ship]")
        lines.append(f"  Hull: {ship.hull}  Fuel: {ship.fuel}  Missiles: {ship.missiles}  "
                     f"Drone Parts: {ship.drone_parts}  Scrap: {ship.scrap}")
        lines.append("")

    lines.append("[Crew]")
    if ship.crew:
        for crew in ship.crew:
            lines.append(f"  {crew.name} ({crew.race}) HP: {crew.health}")
    elif ship.ship_interior is not None:
        lines.append(f"  (not recovered, {len(ship.ship_interior)} opaque bytes)")
    else:
        lines.append("  (None)")
    lines.append("")

    if game.capabilities & Capability.SYSTEMS:
        lines.append("[Systems]")
        installed = [s for s in ship.systems if s.get("capacity")]
        for system in installed:
            lines.append(f"  {system['system_type']}: {system.get('power', 0)}/{system['capacity']}")
        if not installed:
            lines.append("  (None)")
        lines.append("")

    lines.append("[Weapons]")
    for weapon in ship.weapons:
        lines.append(f"  {weapon['weapon_id']} ({'armed' if weapon.get('armed') else 'unarmed'})")
    if not ship.weapons:
        lines.append("  (None)")
    lines.append("")

    lines.append("[Drones]")
    for drone in ship.drones:
        lines.append(f"  {drone['drone_id']} ({'armed' if drone.get('armed') else 'unarmed'})")
    if not ship.drones:
        lines.append("  (None)")
    lines.append("")

    lines.append("[Augments]")
    lines.extend(f"  {augment}" for augment in ship.augments)
    if not ship.augments:
        lines.append("  (None)")

    if game.capabilities & Capability.CARGO:
        lines.append("")
        lines.append("[Cargo]")
        lines.extend(f"  {item}" for item in game.cargo)
        if not game.cargo:
            lines.append("  (None)")

    return "\n".join(lines)
