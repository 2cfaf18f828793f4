"""Per-record field tables and version profiles.

Each table row is ``(name, kind, formats)``: the field name used in the
decoded record, its wire kind, and the set of format versions that carry it.
``resolve_profile`` turns a table into the ordered ``(name, kind)`` list for
one version, so decoder and encoder walk exactly the same fields.

Kinds: ``int``, ``bool``, ``str`` and the nested records ``anim``,
``damage`` and ``pod``.

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

from functools import lru_cache
from typing import Any, Mapping

from .binary import BinaryReader, BinaryWriter
from .model import SystemType

SUPPORTED_FORMATS = (2, 7, 8, 9, 11)


def since(version: int) -> frozenset:
    return frozenset(v for v in SUPPORTED_FORMATS if v >= version)


ALL = frozenset(SUPPORTED_FORMATS)
V2 = frozenset({2})
V7 = since(7)
V8 = since(8)
V9 = since(9)
V11 = since(11)
V8_TO_9 = frozenset({8, 9})


# ============================================================================
# Field tables
# ============================================================================

HEADER_FIELDS = (
    ("random_native", "bool", V11),
    ("dlc_enabled", "bool", V7),
    ("difficulty", "int", ALL),
    ("total_ships_defeated", "int", ALL),
    ("total_beacons_explored", "int", ALL),
    ("total_scrap_collected", "int", ALL),
    ("total_crew_hired", "int", ALL),
    ("player_ship_name", "str", ALL),
    ("player_ship_blueprint_id", "str", ALL),
    ("one_based_sector_number", "int", ALL),
    ("unknown_beta", "int", ALL),
)

SHIP_IDENTITY_FIELDS = (
    ("blueprint_id", "str", ALL),
    ("name", "str", ALL),
    ("gfx_base_name", "str", ALL),
)

STARTING_CREW_FIELDS = (
    ("race", "str", ALL),
    ("name", "str", ALL),
)

SHIP_STATUS_FIELDS = (
    ("hostile", "bool", V7),
    ("jump_charge_ticks", "int", V7),
    ("jumping", "bool", V7),
    ("jump_anim_ticks", "int", V7),
    ("hull", "int", ALL),
    ("fuel", "int", ALL),
    ("drone_parts", "int", ALL),
    ("missiles", "int", ALL),
    ("scrap", "int", ALL),
)

# Crew fields up to the sprite tint list
CREW_IDENTITY_FIELDS = (
    ("name", "str", ALL),
    ("race", "str", ALL),
    ("enemy_boarding_drone", "bool", ALL),
    ("health", "int", ALL),
    ("sprite_x", "int", ALL),
    ("sprite_y", "int", ALL),
    ("room_id", "int", ALL),
    ("room_square", "int", ALL),
    ("player_controlled", "bool", ALL),
    ("clone_ready", "int", V7),
    ("death_order", "int", V7),
)

# Crew fields after the tint list, through universal_death_count
CREW_STATUS_FIELDS = (
    ("mind_controlled", "bool", V7),
    ("saved_room_square", "int", V7),
    ("saved_room_id", "int", V7),
    ("pilot_skill", "int", ALL),
    ("engine_skill", "int", ALL),
    ("shield_skill", "int", ALL),
    ("weapon_skill", "int", ALL),
    ("repair_skill", "int", ALL),
    ("combat_skill", "int", ALL),
    ("male", "bool", ALL),
    ("repairs", "int", ALL),
    ("combat_kills", "int", ALL),
    ("piloted_evasions", "int", ALL),
    ("jumps_survived", "int", ALL),
    ("skill_masteries_earned", "int", ALL),
    ("stun_ticks", "int", V7),
    ("health_boost", "int", V7),
    ("clonebay_priority", "int", V7),
    ("damage_boost", "int", V7),
    ("unknown_lambda", "int", V7),
    ("universal_death_count", "int", V7),
)

CREW_MASTERY_FIELDS = tuple(
    (f"{skill}_mastery_{level}", "bool", V8)
    for skill in ("pilot", "engine", "shield", "weapon", "repair", "combat")
    for level in ("one", "two")
)

CREW_TAIL_FIELDS = (
    ("unknown_nu", "bool", V7),
    ("teleport_anim", "anim", V7),
    ("unknown_phi", "bool", V7),
)

CRYSTAL_CREW_FIELDS = (
    ("lockdown_recharge_ticks", "int", V7),
    ("lockdown_recharge_ticks_goal", "int", V7),
    ("unknown_omega", "int", V7),
)

# Everything after capacity, present only when capacity is nonzero
SYSTEM_FIELDS = (
    ("power", "int", ALL),
    ("damaged_bars", "int", ALL),
    ("ionized_bars", "int", ALL),
    ("deionization_ticks", "int", ALL),
    ("repair_progress", "int", ALL),
    ("damage_progress", "int", ALL),
    ("battery_power", "int", V7),
    ("hack_level", "int", V7),
    ("hacked", "bool", V7),
    ("temporary_capacity_cap", "int", V7),
    ("temporary_capacity_loss", "int", V7),
    ("temporary_capacity_divisor", "int", V7),
)

CLONEBAY_FIELDS = (
    ("build_ticks", "int", ALL),
    ("build_ticks_goal", "int", ALL),
    ("doom_ticks", "int", ALL),
)

BATTERY_FIELDS = (
    ("active", "bool", ALL),
    ("used_battery", "int", ALL),
    ("discharge_ticks", "int", ALL),
)

SHIELDS_FIELDS = (
    ("shield_layers", "int", ALL),
    ("energy_shield_layers", "int", ALL),
    ("energy_shield_max", "int", ALL),
    ("shield_recharge_ticks", "int", ALL),
    ("shield_drop_anim_on", "bool", ALL),
    ("shield_drop_anim_ticks", "int", ALL),
    ("shield_raise_anim_on", "bool", ALL),
    ("shield_raise_anim_ticks", "int", ALL),
    ("energy_shield_anim_on", "bool", ALL),
    ("energy_shield_anim_ticks", "int", ALL),
    ("unknown_lambda", "int", ALL),
    ("unknown_mu", "int", ALL),
)

CLOAKING_FIELDS = (
    ("unknown_alpha", "int", ALL),
    ("unknown_beta", "int", ALL),
    ("cloak_ticks_goal", "int", ALL),
    ("cloak_ticks", "int", ALL),
)

WEAPON_FIELDS = (
    ("weapon_id", "str", ALL),
    ("armed", "bool", ALL),
    ("cooldown_ticks", "int", V2),
)

DRONE_FIELDS = (
    ("drone_id", "str", ALL),
    ("armed", "bool", ALL),
    ("player_controlled", "bool", ALL),
    ("body_x", "int", ALL),
    ("body_y", "int", ALL),
    ("body_room_id", "int", ALL),
    ("body_room_square", "int", ALL),
    ("health", "int", ALL),
)

SECTOR_FIELDS = (
    ("sector_tree_seed", "int", ALL),
    ("sector_layout_seed", "int", ALL),
    ("rebel_fleet_offset", "int", ALL),
    ("rebel_fleet_fudge", "int", ALL),
    ("rebel_pursuit_mod", "int", ALL),
    ("current_beacon_id", "int", V7),
    ("waiting", "bool", V7),
    ("wait_event_seed", "int", V7),
    ("unknown_epsilon", "str", V7),
    ("sector_hazards_visible", "bool", ALL),
    ("rebel_flagship_visible", "bool", ALL),
    ("rebel_flagship_hop", "int", ALL),
    ("rebel_flagship_moving", "bool", ALL),
    ("rebel_flagship_retreating", "bool", V7),
    ("rebel_flagship_base_turns", "int", V7),
)

SECTOR_POSITION_FIELDS = (
    ("sector_number", "int", ALL),
    ("sector_is_hidden_crystal_worlds", "bool", ALL),
)

BEACON_BACKGROUND_FIELDS = (
    ("bg_starscape_image", "str", ALL),
    ("bg_sprite_image", "str", ALL),
    ("bg_sprite_pos_x", "int", ALL),
    ("bg_sprite_pos_y", "int", ALL),
    ("bg_sprite_rotation", "int", ALL),
)

BEACON_ENEMY_FIELDS = (
    ("ship_event_id", "str", ALL),
    ("auto_blueprint_id", "str", ALL),
    ("ship_event_seed", "int", ALL),
)

BEACON_STATUS_FIELDS = (
    ("fleet_presence", "int", ALL),
    ("under_attack", "bool", ALL),
)

STORE_SUPPLY_FIELDS = (
    ("fuel", "int", ALL),
    ("missiles", "int", ALL),
    ("drone_parts", "int", ALL),
)

QUEST_EVENT_FIELDS = (
    ("quest_event_id", "str", ALL),
    ("quest_beacon_id", "int", ALL),
)

ENCOUNTER_FIELDS = (
    ("ship_event_seed", "int", ALL),
    ("surrender_event_id", "str", ALL),
    ("escape_event_id", "str", ALL),
    ("destroyed_event_id", "str", ALL),
    ("dead_crew_event_id", "str", ALL),
    ("got_away_event_id", "str", ALL),
    ("last_event_id", "str", ALL),
    ("unknown_alpha", "int", V11),
    ("text", "str", ALL),
    ("affected_crew_seed", "int", ALL),
)

NEARBY_SHIP_AI_FIELDS = (
    ("surrendered", "bool", ALL),
    ("escaping", "bool", ALL),
    ("destroyed", "bool", ALL),
    ("surrender_threshold", "int", ALL),
    ("escape_threshold", "int", ALL),
    ("escape_ticks", "int", ALL),
    ("stalemate_triggered", "bool", ALL),
    ("stalemate_ticks", "int", ALL),
    ("boarding_attempts", "int", ALL),
    ("boarders_needed", "int", ALL),
)

ENVIRONMENT_FIELDS = (
    ("red_giant_present", "bool", ALL),
    ("pulsar_present", "bool", ALL),
    ("pds_present", "bool", ALL),
    ("vulnerable_ships", "int", ALL),
    ("asteroids_present", "bool", ALL),
)

ASTEROID_FIELD_FIELDS = (
    ("unknown_alpha", "int", ALL),
    ("stray_rock_ticks", "int", ALL),
    ("unknown_gamma", "int", ALL),
    ("bg_drift_ticks", "int", ALL),
    ("current_target", "int", ALL),
)

ENVIRONMENT_HAZARD_FIELDS = (
    ("solar_flare_fade_ticks", "int", ALL),
    ("havoc_ticks", "int", ALL),
    ("pds_ticks", "int", ALL),
)

ANIM_FIELDS = (
    ("playing", "bool", ALL),
    ("looping", "bool", ALL),
    ("current_frame", "int", ALL),
    ("progress_ticks", "int", ALL),
    ("scale", "int", ALL),
    ("x", "int", ALL),
    ("y", "int", ALL),
)

DAMAGE_FIELDS = (
    ("hull_damage", "int", ALL),
    ("shield_piercing", "int", ALL),
    ("fire_chance", "int", ALL),
    ("breach_chance", "int", ALL),
    ("ion_damage", "int", ALL),
    ("system_damage", "int", ALL),
    ("personnel_damage", "int", ALL),
    ("hull_buster", "bool", ALL),
    ("owner_id", "int", ALL),
    ("self_id", "int", ALL),
    ("lockdown", "bool", ALL),
    ("crystal_shard", "bool", ALL),
    ("stun_chance", "int", ALL),
    ("stun_amount", "int", ALL),
)

PROJECTILE_FIELDS = (
    ("current_position_x", "int", ALL),
    ("current_position_y", "int", ALL),
    ("previous_position_x", "int", ALL),
    ("previous_position_y", "int", ALL),
    ("speed", "int", ALL),
    ("goal_position_x", "int", ALL),
    ("goal_position_y", "int", ALL),
    ("heading", "int", ALL),
    ("owner_id", "int", ALL),
    ("self_id", "int", ALL),
    ("damage", "damage", ALL),
    ("lifespan", "int", ALL),
    ("destination_space", "int", ALL),
    ("current_space", "int", ALL),
    ("target_id", "int", ALL),
    ("dead", "bool", ALL),
    ("death_anim_id", "str", ALL),
    ("flight_anim_id", "str", ALL),
    ("death_anim", "anim", ALL),
    ("flight_anim", "anim", ALL),
    ("velocity_x", "int", ALL),
    ("velocity_y", "int", ALL),
    ("missed", "bool", ALL),
    ("hit_target", "bool", ALL),
    ("hit_solid_sound", "str", ALL),
    ("hit_shield_sound", "str", ALL),
    ("miss_sound", "str", ALL),
    ("entry_angle", "int", ALL),
    ("started_dying", "bool", ALL),
    ("passed_target", "bool", ALL),
    ("broadcast_type", "int", ALL),
    ("broadcast_target", "bool", ALL),
)

LASER_FIELDS = (
    ("unknown_alpha", "int", ALL),
    ("spin", "int", ALL),
)

BOMB_FIELDS = (
    ("unknown_alpha", "int", ALL),
    ("fuse_ticks", "int", ALL),
    ("unknown_gamma", "int", ALL),
    ("unknown_delta", "int", ALL),
    ("arrived", "bool", ALL),
)

BEAM_FIELDS = tuple((name, "int", ALL) for name in (
    "emission_end_x", "emission_end_y", "strafe_source_x", "strafe_source_y",
    "strafe_end_x", "strafe_end_y", "unknown_beta_x", "unknown_beta_y",
    "swath_end_x", "swath_end_y", "swath_start_x", "swath_start_y",
    "unknown_gamma", "swath_length", "unknown_delta", "unknown_epsilon_x",
    "unknown_epsilon_y", "unknown_zeta", "unknown_eta", "emission_angle",
)) + tuple((name, "bool", ALL) for name in (
    "unknown_iota", "unknown_kappa", "from_drone_pod", "unknown_mu", "unknown_nu",
))

PDS_FIELDS = (
    ("unknown_alpha", "int", V11),
    ("unknown_beta", "int", V11),
    ("unknown_gamma", "int", V11),
    ("unknown_delta", "int", V11),
    ("unknown_epsilon", "int", V11),
    ("unknown_zeta_anim", "anim", V11),
)

HACKING_FIELDS = (
    ("target_system_type", "int", ALL),
    ("unknown_beta", "int", ALL),
    ("drone_pod_visible", "bool", ALL),
    ("unknown_delta", "int", ALL),
    ("disruption_ticks", "int", ALL),
    ("disruption_ticks_goal", "int", ALL),
    ("disrupting", "bool", ALL),
    ("drone_pod", "pod", ALL),
)

DRONE_POD_FIELDS = tuple((name, "int", ALL) for name in (
    "mourning_ticks", "current_space", "destination_space",
    "current_position_x", "current_position_y", "previous_position_x",
    "previous_position_y", "goal_position_x", "goal_position_y",
    "unknown_epsilon", "unknown_zeta", "next_target_x", "next_target_y",
    "unknown_iota", "unknown_kappa", "buildup_ticks", "stationary_ticks",
    "cooldown_ticks", "orbit_angle", "turret_angle", "unknown_xi",
    "hops_to_live", "unknown_pi", "unknown_rho", "overload_ticks",
    "unknown_tau", "unknown_upsilon", "delta_position_x", "delta_position_y",
)) + (
    ("death_anim", "anim", ALL),
    ("attach_position_x", "int", ALL),
    ("attach_position_y", "int", ALL),
    ("hack_unknown_gamma", "int", ALL),
    ("hack_unknown_delta", "int", ALL),
    ("landing_anim", "anim", ALL),
    ("extension_anim", "anim", ALL),
)

MIND_CONTROL_FIELDS = (
    ("mind_control_ticks", "int", ALL),
    ("mind_control_ticks_goal", "int", ALL),
)

WEAPON_MODULE_FIELDS = (
    ("cooldown_ticks", "int", ALL),
    ("cooldown_goal", "int", ALL),
    ("subcooldown_ticks", "int", ALL),
    ("subcooldown_ticks_goal", "int", ALL),
    ("boost", "int", ALL),
    ("charge", "int", ALL),
    ("current_targets_count", "int", ALL),
    ("weapon_anim", "anim", ALL),
    ("protract_anim_ticks", "int", ALL),
    ("firing", "bool", ALL),
    ("fire_when_ready", "bool", ALL),
    ("target_id", "int", ALL),
    ("hack_anim", "anim", V9),
    ("is_on_fire", "bool", ALL),
    ("fire_id", "int", ALL),
    ("autofire", "bool", ALL),
)

DRONE_MODULE_FIELDS = (
    ("deployed", "bool", ALL),
    ("armed", "bool", ALL),
)

EXTENDED_DRONE_FIELDS = tuple((name, "int", ALL) for name in (
    "body_x", "body_y", "current_space", "destination_space",
    "current_position_x", "current_position_y", "previous_position_x",
    "previous_position_y", "goal_position_x", "goal_position_y",
))

REBEL_FLAGSHIP_FIELDS = (
    ("unknown_alpha", "int", ALL),
    ("pending_stage", "int", ALL),
    ("unknown_gamma", "int", ALL),
    ("unknown_delta", "int", ALL),
)

NESTED_KINDS = {
    "anim": ANIM_FIELDS,
    "damage": DAMAGE_FIELDS,
    "pod": DRONE_POD_FIELDS,
}

BASE_SYSTEM_ORDER = (
    SystemType.SHIELDS, SystemType.ENGINES, SystemType.OXYGEN,
    SystemType.WEAPONS, SystemType.DRONE_CONTROL, SystemType.MEDBAY,
    SystemType.PILOT, SystemType.SENSORS, SystemType.DOORS,
    SystemType.TELEPORTER, SystemType.CLOAKING, SystemType.ARTILLERY,
)
ADVANCED_SYSTEM_ORDER = (
    SystemType.BATTERY, SystemType.CLONEBAY, SystemType.MIND_CONTROL, SystemType.HACKING,
)


def ordered_system_types(fmt: int) -> tuple:
    """System records appear in this fixed order, with no type tags."""
    if fmt >= 7:
        return BASE_SYSTEM_ORDER + ADVANCED_SYSTEM_ORDER
    return BASE_SYSTEM_ORDER


# ============================================================================
# Profile resolution
# ============================================================================

@lru_cache(maxsize=None)
def resolve_profile(table: tuple, fmt: int) -> tuple:
    return tuple((name, kind) for name, kind, formats in table if fmt in formats)


def default_value(kind: str, fmt: int) -> Any:
    if kind == "bool":
        return False
    if kind == "str":
        return ""
    if kind in NESTED_KINDS:
        return blank_record(NESTED_KINDS[kind], fmt)
    return 0


def blank_record(table: tuple, fmt: int) -> dict:
    """A record with every field of the version profile at its default."""
    return {name: default_value(kind, fmt) for name, kind in resolve_profile(table, fmt)}


def read_fields(reader: BinaryReader, table: tuple, fmt: int) -> dict:
    result = {}
    for name, kind in resolve_profile(table, fmt):
        if kind == "int":
            result[name] = reader.read_int()
        elif kind == "bool":
            result[name] = reader.read_bool()
        elif kind == "str":
            result[name] = reader.read_string()
        else:
            result[name] = read_fields(reader, NESTED_KINDS[kind], fmt)
    return result


def write_fields(writer: BinaryWriter, table: tuple, fmt: int, values: Mapping):
    if not isinstance(values, Mapping):
        raise ValueError(f"Expected a mapping of record fields, got {type(values).__name__}")
    for name, kind in resolve_profile(table, fmt):
        value = values.get(name)
        if kind == "int":
            writer.write_int(value or 0)
        elif kind == "bool":
            writer.write_bool(value)
        elif kind == "str":
            writer.write_string(value)
        else:
            write_fields(writer, NESTED_KINDS[kind], fmt, value or {})


def blank_system(system_type: SystemType) -> dict:
    return {"system_type": system_type.name, "capacity": 0}
