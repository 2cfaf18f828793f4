"""Exception hierarchy for save decoding failures.

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

from typing import Optional


class ParseError(ValueError):
    """Base class for every structural decode failure."""

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.offset = offset


class UnsupportedFormat(ParseError):
    """The leading format version is not one of the known versions."""


class MalformedLength(ParseError):
    """A string length prefix is negative or larger than allowed."""


class ImplausibleCount(ParseError):
    """A collection count falls outside its sanity bound."""


class Truncated(ParseError):
    """A read would run past the end of the buffer."""


class BoundaryNotFound(ParseError):
    """A heuristic scan found no acceptable section boundary."""


class CandidateRejected(ParseError):
    """Decoded values failed a semantic sanity check."""


class SaveParseError(ParseError):
    """Fatal decode failure, enriched with the recorded diagnostic."""

    def __init__(self, message: str, diagnostic=None, offset: Optional[int] = None):
        super().__init__(message, offset)
        self.diagnostic = diagnostic
