"""Decode/encode entry points and the parse-mode fallback cascade.

Full decoding is always tried first. Format-11 saves that fail it fall back
to partial recovery of the player ship and then to a restricted result that
only exposes the header; every other failure is fatal. Each failed attempt
is recorded (and its log written) before the next attempt starts.

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
from typing import Optional

from .binary import BinaryWriter
from .diagnostics import describe_offset, enriched_error, record_failure
from .errors import ParseError
from .header import read_header_snapshot, saved_game_from_header, write_header
from .model import (
    RESTRICTED_CAPABILITIES,
    Diagnostic,
    HeaderSnapshot,
    ParseMode,
    SavedGame,
    Ship,
)
from .partial import PARTIAL_FORMAT, parse_partial, write_partial
from .records import parse_full, write_full

logger = logging.getLogger(__name__)


def fallback_warning(attempt: str, diagnostic: Diagnostic, next_mode: str) -> str:
    return (
        f"{attempt} parse failed ({diagnostic.section}, offset {describe_offset(diagnostic)}). "
        f"Falling back to {next_mode} mode. Log: {diagnostic.log_path or '(not written)'}"
    )


def build_restricted(data: bytes, header: HeaderSnapshot) -> SavedGame:
    """Header fields only; everything after the state vars is one opaque tail."""
    game = saved_game_from_header(header)
    game.parse_mode = ParseMode.RESTRICTED_OPAQUE_TAIL
    game.capabilities = RESTRICTED_CAPABILITIES
    game.player_ship = Ship(
        blueprint_id=header.player_ship_blueprint_id,
        name=header.player_ship_name,
    )
    game.tail = data[header.offset_after_state_vars:]
    return game


def write_restricted(game: SavedGame) -> bytes:
    writer = BinaryWriter()
    write_header(writer, game)
    writer.write_bytes(game.tail)
    return writer.get_bytes()


def decode(data: bytes, debug: bool = False, source_path: Optional[str] = None) -> SavedGame:
    """Decode a save, degrading to partial or restricted mode where needed.

    Raises SaveParseError when the header itself cannot be read or when a
    non-format-11 save fails full decoding.
    """
    data = bytes(data)
    try:
        header = read_header_snapshot(data, trace=debug)
    except ParseError as e:
        raise enriched_error(e, record_failure(e, ParseMode.FULL, source_path)) from e

    try:
        return parse_full(data, trace=debug)
    except ParseError as e:
        full_failure = record_failure(e, ParseMode.FULL, source_path)
        if header.file_format != PARTIAL_FORMAT:
            raise enriched_error(e, full_failure) from e
        logger.warning("Full parse failed at %s: %s", full_failure.section, e)

    diagnostics = [full_failure]
    warnings = [fallback_warning("Full", full_failure, "partial")]
    try:
        game = parse_partial(data, header, trace=debug)
    except ParseError as e:
        partial_failure = record_failure(e, ParseMode.PARTIAL_PLAYER_SHIP_OPAQUE_TAIL, source_path)
        logger.warning("Partial parse failed at %s: %s", partial_failure.section, e)
        diagnostics.append(partial_failure)
        warnings.append(fallback_warning("Partial", partial_failure, "restricted"))
        game = build_restricted(data, header)

    game.warnings = warnings + game.warnings
    game.diagnostics = diagnostics
    return game


def encode(game: SavedGame) -> bytes:
    """Serialize in the same mode the save was decoded in."""
    if game.parse_mode == ParseMode.FULL:
        return write_full(game)
    if game.parse_mode == ParseMode.PARTIAL_PLAYER_SHIP_OPAQUE_TAIL:
        return write_partial(game)
    return write_restricted(game)
