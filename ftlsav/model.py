"""Data model for decoded FTL saves.

Top-level containers are dataclasses; fixed-shape sub-records (systems,
weapons, beacons, projectiles, ...) are plain dicts whose keys follow the
field tables in :mod:`ftlsav.schema`.

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

from dataclasses import dataclass, field
from enum import Enum, IntEnum, IntFlag
from typing import Optional, Type


# ============================================================================
# Enums
# ============================================================================

class Difficulty(IntEnum):
    EASY = 0
    NORMAL = 1
    HARD = 2


class SystemType(IntEnum):
    SHIELDS = 0
    ENGINES = 1
    OXYGEN = 2
    WEAPONS = 3
    DRONE_CONTROL = 4
    MEDBAY = 5
    PILOT = 6
    SENSORS = 7
    DOORS = 8
    TELEPORTER = 9
    CLOAKING = 10
    ARTILLERY = 11
    BATTERY = 12
    CLONEBAY = 13
    MIND_CONTROL = 14
    HACKING = 15


class ProjectileType(IntEnum):
    INVALID = 0
    LASER_OR_BURST = 1
    ROCK_OR_EXPLOSION = 2
    MISSILE = 3
    BOMB = 4
    BEAM = 5
    PDS = 6


class ParseMode(Enum):
    """How much of a save was decoded into structured fields."""
    FULL = "full"
    PARTIAL_PLAYER_SHIP_OPAQUE_TAIL = "partial_player_ship_opaque_tail"
    RESTRICTED_OPAQUE_TAIL = "restricted_opaque_tail"


class Capability(IntFlag):
    """Which parts of a decoded save are structured and therefore editable."""
    NONE = 0
    METADATA = 1
    STATE_VARS = 2
    SHIP = 4
    CREW = 8
    SYSTEMS = 16
    WEAPONS = 32
    DRONES = 64
    AUGMENTS = 128
    CARGO = 256
    BEACONS = 512
    MISC = 1024


FULL_CAPABILITIES = (
    Capability.METADATA | Capability.STATE_VARS | Capability.SHIP | Capability.CREW
    | Capability.SYSTEMS | Capability.WEAPONS | Capability.DRONES | Capability.AUGMENTS
    | Capability.CARGO | Capability.BEACONS | Capability.MISC
)
PARTIAL_CAPABILITIES = (
    Capability.METADATA | Capability.STATE_VARS | Capability.SHIP
    | Capability.WEAPONS | Capability.DRONES | Capability.AUGMENTS
)
RESTRICTED_CAPABILITIES = Capability.METADATA | Capability.STATE_VARS


def enum_name(enum_class: Type[IntEnum], value: int, default: str = "UNKNOWN") -> str:
    """Get enum name from value, returning default if not found."""
    try:
        return enum_class(value).name
    except ValueError:
        return f"{default}_{value}"


# ============================================================================
# Records
# ============================================================================

@dataclass(frozen=True)
class Diagnostic:
    """Where and why one decode attempt failed."""
    section: str
    byte_offset: Optional[int]
    message: str
    log_path: Optional[str] = None


@dataclass
class HeaderSnapshot:
    """Leading fields of a save, decodable even when the rest is not."""
    file_format: int = 0
    random_native: bool = False
    dlc_enabled: bool = False
    difficulty: int = 0
    total_ships_defeated: int = 0
    total_beacons_explored: int = 0
    total_scrap_collected: int = 0
    total_crew_hired: int = 0
    player_ship_name: str = ""
    player_ship_blueprint_id: str = ""
    one_based_sector_number: int = 0
    unknown_beta: int = 0
    state_vars: list = field(default_factory=list)
    offset_after_state_vars: int = 0


@dataclass
class Crew:
    name: str = ""
    race: str = ""
    enemy_boarding_drone: bool = False
    health: int = 0
    sprite_x: int = 0
    sprite_y: int = 0
    room_id: int = 0
    room_square: int = 0
    player_controlled: bool = False
    clone_ready: int = 0
    death_order: int = 0
    sprite_tint_indices: list = field(default_factory=list)
    mind_controlled: bool = False
    saved_room_square: int = 0
    saved_room_id: int = 0
    pilot_skill: int = 0
    engine_skill: int = 0
    shield_skill: int = 0
    weapon_skill: int = 0
    repair_skill: int = 0
    combat_skill: int = 0
    male: bool = False
    repairs: int = 0
    combat_kills: int = 0
    piloted_evasions: int = 0
    jumps_survived: int = 0
    skill_masteries_earned: int = 0
    stun_ticks: int = 0
    health_boost: int = 0
    clonebay_priority: int = 0
    damage_boost: int = 0
    unknown_lambda: int = 0
    universal_death_count: int = 0
    pilot_mastery_one: bool = False
    pilot_mastery_two: bool = False
    engine_mastery_one: bool = False
    engine_mastery_two: bool = False
    shield_mastery_one: bool = False
    shield_mastery_two: bool = False
    weapon_mastery_one: bool = False
    weapon_mastery_two: bool = False
    repair_mastery_one: bool = False
    repair_mastery_two: bool = False
    combat_mastery_one: bool = False
    combat_mastery_two: bool = False
    unknown_nu: bool = False
    teleport_anim: Optional[dict] = None
    unknown_phi: bool = False
    lockdown_recharge_ticks: Optional[int] = None
    lockdown_recharge_ticks_goal: Optional[int] = None
    unknown_omega: Optional[int] = None
    # Inline extension found in modded (Hyperspace) crew records
    inline_pre: bytes = b""
    original_color_race: str = ""
    original_race: str = ""
    inline_post: bytes = b""


@dataclass
class Ship:
    blueprint_id: str = ""
    name: str = ""
    gfx_base_name: str = ""
    extra_string_before_crew: Optional[str] = None
    starting_crew: list = field(default_factory=list)
    hostile: bool = False
    jump_charge_ticks: int = 0
    jumping: bool = False
    jump_anim_ticks: int = 0
    hull: int = 0
    fuel: int = 0
    drone_parts: int = 0
    missiles: int = 0
    scrap: int = 0
    crew: list = field(default_factory=list)
    reserve_power_capacity: int = 0
    systems: list = field(default_factory=list)
    clonebay_info: Optional[dict] = None
    battery_info: Optional[dict] = None
    shields_info: Optional[dict] = None
    cloaking_info: Optional[dict] = None
    room_door: bytes = b""
    weapons: list = field(default_factory=list)
    drones: list = field(default_factory=list)
    augments: list = field(default_factory=list)
    # Partial mode: undecoded interior, or the bytes following recovered crew
    ship_interior: Optional[bytes] = None
    post_crew: Optional[bytes] = None

    def system(self, system_type: SystemType) -> Optional[dict]:
        for system in self.systems:
            if system.get("system_type") == system_type.name:
                return system
        return None

    def system_capacity(self, system_type: SystemType) -> int:
        system = self.system(system_type)
        return system.get("capacity", 0) if system else 0


@dataclass
class SavedGame:
    """A decoded save plus what was learned while decoding it."""
    file_format: int = 11
    parse_mode: ParseMode = ParseMode.FULL
    capabilities: Capability = FULL_CAPABILITIES

    # Header
    random_native: bool = False
    dlc_enabled: bool = False
    difficulty: int = 0
    total_ships_defeated: int = 0
    total_beacons_explored: int = 0
    total_scrap_collected: int = 0
    total_crew_hired: int = 0
    player_ship_name: str = ""
    player_ship_blueprint_id: str = ""
    one_based_sector_number: int = 0
    unknown_beta: int = 0
    state_vars: list = field(default_factory=list)

    player_ship: Ship = field(default_factory=Ship)
    cargo: list = field(default_factory=list)

    # Sector map scalars, visitation and beacons
    sector: dict = field(default_factory=dict)
    sector_visitation: list = field(default_factory=list)
    sector_position: dict = field(default_factory=dict)
    beacons: list = field(default_factory=list)
    quest_events: list = field(default_factory=list)
    distant_quest_events: list = field(default_factory=list)

    # Format 2 tail
    f2_current_beacon_id: int = 0
    f2_rebel_flagship: Optional[dict] = None

    # Format 7+ tail
    unknown_mu: int = 0
    encounter: Optional[dict] = None
    nearby_ship_present: bool = False
    nearby_ship: Optional[Ship] = None
    nearby_ship_ai: Optional[dict] = None
    environment: Optional[dict] = None
    projectiles: list = field(default_factory=list)
    player_extended_info: Optional[dict] = None
    nearby_extended_info: Optional[dict] = None
    unknown_nu: int = 0
    unknown_xi: Optional[int] = None
    autofire: bool = False
    rebel_flagship: Optional[dict] = None

    # Opaque regions kept verbatim
    pre_ship: bytes = b""
    tail: bytes = b""

    warnings: list = field(default_factory=list, compare=False)
    diagnostics: list = field(default_factory=list, compare=False)

    def state_var(self, key: str, default: int = 0) -> int:
        for entry in self.state_vars:
            if entry["key"] == key:
                return entry["value"]
        return default

    def set_state_var(self, key: str, value: int):
        for entry in self.state_vars:
            if entry["key"] == key:
                entry["value"] = value
                return
        self.state_vars.append({"key": key, "value": value})
