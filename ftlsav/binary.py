"""Little-endian primitive codec for FTL save files.

Every scalar is a signed 32-bit integer. Booleans are integers where any
nonzero value reads as true; strings are an int32 byte length followed by
UTF-8 bytes.

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
import struct
from typing import Optional

from .errors import ImplausibleCount, MalformedLength, Truncated

logger = logging.getLogger(__name__)

MAX_STRING_LENGTH = 10000

# Undecodable bytes survive a decode/encode cycle unchanged
STRING_ERRORS = "surrogateescape"


def int_at(data: bytes, offset: int) -> Optional[int]:
    """Peek an int32 at an absolute offset, or None when out of range."""
    if offset < 0 or offset + 4 > len(data):
        return None
    return struct.unpack_from("<i", data, offset)[0]


def is_printable_ascii(raw: bytes) -> bool:
    return all(0x20 <= b <= 0x7E for b in raw)


class BinaryReader:
    """Cursor over a save buffer."""

    def __init__(self, data: bytes, pos: int = 0, trace: bool = False):
        self.data = data
        self.pos = pos
        self.trace = trace

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def debug(self, message: str):
        if self.trace:
            logger.debug("[parse@%d] %s", self.pos, message)

    def read_bytes(self, n: int) -> bytes:
        if n < 0 or self.pos + n > len(self.data):
            raise Truncated(
                f"Not enough data at byte offset {self.pos}: need {n}, have {self.remaining}",
                self.pos,
            )
        result = self.data[self.pos:self.pos + n]
        self.pos += n
        return result

    def read_int(self) -> int:
        return struct.unpack("<i", self.read_bytes(4))[0]

    def read_bool(self) -> bool:
        return self.read_int() != 0

    def read_string(self) -> str:
        start = self.pos
        length = self.read_int()
        if length < 0:
            raise MalformedLength(
                f"Negative string length {length} at byte offset {start}", start)
        if length > MAX_STRING_LENGTH:
            raise MalformedLength(
                f"String length {length} exceeds {MAX_STRING_LENGTH} at byte offset {start}",
                start,
            )
        if length > self.remaining:
            raise Truncated(
                f"String of {length} bytes at byte offset {start} overruns buffer "
                f"({self.remaining} left)",
                start,
            )
        return self.read_bytes(length).decode("utf-8", STRING_ERRORS)

    def read_count(self, limit: int, what: str = "collection") -> int:
        start = self.pos
        count = self.read_int()
        if count < 0 or count > limit:
            raise ImplausibleCount(
                f"Implausible {what} count {count} at byte offset {start} (expected 0..{limit})",
                start,
            )
        return count

    def peek_int(self, offset: int = 0) -> Optional[int]:
        return int_at(self.data, self.pos + offset)


class BinaryWriter:
    """Accumulates encoded output."""

    def __init__(self):
        self.data = bytearray()

    def __len__(self) -> int:
        return len(self.data)

    def write_bytes(self, data: bytes):
        self.data.extend(data)

    def write_int(self, value: int):
        self.data.extend(struct.pack("<i", int(value)))

    def write_bool(self, value: bool):
        self.write_int(1 if value else 0)

    def write_string(self, value: Optional[str]):
        raw = (value or "").encode("utf-8", STRING_ERRORS)
        self.write_int(len(raw))
        self.data.extend(raw)

    def get_bytes(self) -> bytes:
        return bytes(self.data)
