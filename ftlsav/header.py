"""Header snapshot: the leading fields every mode can decode.

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

from .binary import BinaryReader, BinaryWriter
from .errors import UnsupportedFormat
from .model import HeaderSnapshot, SavedGame
from .schema import HEADER_FIELDS, SUPPORTED_FORMATS, read_fields, write_fields

logger = logging.getLogger(__name__)

MAX_STATE_VARS = 100000


def parse_format_version(reader: BinaryReader) -> int:
    start = reader.pos
    fmt = reader.read_int()
    if fmt not in SUPPORTED_FORMATS:
        expected = ", ".join(str(v) for v in SUPPORTED_FORMATS)
        raise UnsupportedFormat(
            f"Unsupported file format version {fmt} at byte offset {start}. Expected one of {expected}.",
            start,
        )
    return fmt


def parse_state_vars(reader: BinaryReader) -> list[dict]:
    count = reader.read_count(MAX_STATE_VARS, "state var")
    return [{"key": reader.read_string(), "value": reader.read_int()} for _ in range(count)]


def parse_header(reader: BinaryReader) -> HeaderSnapshot:
    """Decode format version, header scalars and state vars."""
    fmt = parse_format_version(reader)
    fields = read_fields(reader, HEADER_FIELDS, fmt)
    reader.debug(f"header: format {fmt}, ship '{fields['player_ship_name']}'")
    state_vars = parse_state_vars(reader)
    reader.debug(f"{len(state_vars)} state vars")
    return HeaderSnapshot(
        file_format=fmt,
        state_vars=state_vars,
        offset_after_state_vars=reader.pos,
        **fields,
    )


def read_header_snapshot(data: bytes, trace: bool = False) -> HeaderSnapshot:
    return parse_header(BinaryReader(data, trace=trace))


def write_header(writer: BinaryWriter, source):
    """Emit the header of any object carrying the header attributes."""
    fmt = source.file_format
    writer.write_int(fmt)
    write_fields(writer, HEADER_FIELDS, fmt, vars(source))
    writer.write_int(len(source.state_vars))
    for entry in source.state_vars:
        writer.write_string(entry["key"])
        writer.write_int(entry["value"])


def saved_game_from_header(header: HeaderSnapshot) -> SavedGame:
    fields = dict(vars(header))
    del fields["offset_after_state_vars"]
    return SavedGame(**fields)
