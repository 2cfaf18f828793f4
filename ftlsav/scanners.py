"""Heuristic boundary scanners.

Used where a save contains data that cannot be decoded structurally (room
and door layouts, modded extensions) and the next decodable section has to
be found by pattern. Scanners never raise while probing; they only report
whether a position fits.

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
from bisect import bisect_left
from functools import lru_cache
from typing import Iterator, Optional

from .binary import int_at, is_printable_ascii
from .errors import BoundaryNotFound

logger = logging.getLogger(__name__)

MAX_SCAN_WEAPONS = 10
MAX_SCAN_DRONES = 10
MAX_SCAN_AUGMENTS = 20
MAX_SCAN_CARGO = 20
SHORT_ID_LENGTHS = (3, 50)
ID_LENGTHS = (1, 80)
DRONE_BODY_INTS = 5
MASTERY_RUN = 12


def _ascii_string_end(data: bytes, offset: int, lengths: tuple) -> Optional[int]:
    """End offset of a length-prefixed printable-ASCII string, or None."""
    length = int_at(data, offset)
    low, high = lengths
    if length is None or not low <= length <= high:
        return None
    start = offset + 4
    end = start + length
    if end > len(data) or not is_printable_ascii(data[start:end]):
        return None
    return end


def _bounded(value: Optional[int], high: int) -> bool:
    return value is not None and 0 <= value <= high


# ============================================================================
# Weapon section
# ============================================================================

def looks_like_weapon_section(data: bytes, pos: int) -> bool:
    """Cheap local check of the first few words at ``pos``."""
    count = int_at(data, pos)
    if not _bounded(count, MAX_SCAN_WEAPONS):
        return False
    if count > 0:
        end = _ascii_string_end(data, pos + 4, SHORT_ID_LENGTHS)
        return end is not None and int_at(data, end) in (0, 1)
    drones = int_at(data, pos + 4)
    if not _bounded(drones, MAX_SCAN_DRONES):
        return False
    if drones > 0:
        return _ascii_string_end(data, pos + 8, SHORT_ID_LENGTHS) is not None
    augments = int_at(data, pos + 8)
    if not _bounded(augments, MAX_SCAN_AUGMENTS) or augments == 0:
        return False
    return _ascii_string_end(data, pos + 12, SHORT_ID_LENGTHS) is not None


def validate_weapon_section(data: bytes, pos: int, fmt: int, require_cargo: bool) -> bool:
    """Structurally re-walk weapons, drones, augments and optionally cargo."""
    cursor = pos

    count = int_at(data, cursor)
    if not _bounded(count, MAX_SCAN_WEAPONS):
        return False
    cursor += 4
    for _ in range(count):
        cursor = _ascii_string_end(data, cursor, ID_LENGTHS)
        if cursor is None or int_at(data, cursor) not in (0, 1):
            return False
        cursor += 4
        if fmt == 2:
            if int_at(data, cursor) is None:
                return False
            cursor += 4

    count = int_at(data, cursor)
    if not _bounded(count, MAX_SCAN_DRONES):
        return False
    cursor += 4
    for _ in range(count):
        cursor = _ascii_string_end(data, cursor, ID_LENGTHS)
        if cursor is None:
            return False
        if int_at(data, cursor) not in (0, 1) or int_at(data, cursor + 4) not in (0, 1):
            return False
        cursor += 8 + 4 * DRONE_BODY_INTS
        if cursor > len(data):
            return False

    count = int_at(data, cursor)
    if not _bounded(count, MAX_SCAN_AUGMENTS):
        return False
    cursor += 4
    for _ in range(count):
        cursor = _ascii_string_end(data, cursor, ID_LENGTHS)
        if cursor is None:
            return False

    if not require_cargo:
        return True

    count = int_at(data, cursor)
    if not _bounded(count, MAX_SCAN_CARGO):
        return False
    cursor += 4
    for _ in range(count):
        cursor = _ascii_string_end(data, cursor, ID_LENGTHS)
        if cursor is None:
            return False
    return True


@lru_cache(maxsize=4)
def _aligned_candidates(data: bytes, residue: int) -> tuple:
    # One entry per 4-byte alignment of the file being scanned
    return tuple(
        pos for pos in range(residue, len(data) - 20, 4)
        if looks_like_weapon_section(data, pos)
    )


def weapon_section_candidates(data: bytes, start: int) -> tuple:
    """Positions ``start + 4k`` passing the local check.

    The whole file is scanned once per alignment, so repeated searches from
    different ship anchors share the work.
    """
    candidates = _aligned_candidates(bytes(data), start % 4)
    return candidates[bisect_left(candidates, start):]


def find_weapon_section(data: bytes, start: int, fmt: int) -> int:
    """Offset of the weapon section at or after ``start``.

    Candidates are tried in increasing order, first requiring the cargo list
    to follow the augments, then without that requirement.
    """
    candidates = weapon_section_candidates(data, start)
    for require_cargo in (True, False):
        for pos in candidates:
            if validate_weapon_section(data, pos, fmt, require_cargo):
                logger.debug(
                    "weapon section at byte offset %d (%d candidates, cargo check %s)",
                    pos, len(candidates), "on" if require_cargo else "off",
                )
                return pos
    raise BoundaryNotFound(
        f"Could not find weapon section scanning from byte offset {start}", start)


# ============================================================================
# Anchors used by partial recovery
# ============================================================================

def length_prefixed(raw: bytes) -> bytes:
    return len(raw).to_bytes(4, "little", signed=True) + raw


def aligned_occurrences(data: bytes, pattern: bytes, start: int) -> Iterator[int]:
    """Offsets of ``pattern`` at ``start + 4k``, in increasing order."""
    pos = data.find(pattern, start)
    while pos != -1:
        if (pos - start) % 4 == 0:
            yield pos
        pos = data.find(pattern, pos + 1)


def find_doubled_string(data: bytes, raw: bytes, start: int) -> Optional[int]:
    """Offset of the first ``len32 + raw`` immediately repeated, at or after ``start``.

    Returns the offset of the first length prefix.
    """
    if not raw:
        return None
    pair = length_prefixed(raw) * 2
    pos = data.find(pair, start)
    return None if pos == -1 else pos


def find_boolean_run(data: bytes, start: int, run: int = MASTERY_RUN) -> Optional[int]:
    """First offset ``start + 4k`` where ``run`` consecutive words are all 0 or 1."""
    for pos in range(start, len(data) - 4 * run + 1, 4):
        if all(int_at(data, pos + 4 * i) in (0, 1) for i in range(run)):
            return pos
    return None
