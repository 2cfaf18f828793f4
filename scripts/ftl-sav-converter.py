#!/usr/bin/env python3
"""
FTL: Faster Than Light Save Game Converter

Converts FTL save files (continue.sav) to human-readable YAML format and back.
Structured sections can be edited in the YAML; regions the decoder cannot
interpret are kept as base64 and written back unchanged.

Usage:
    python ftl-sav-converter.py export <continue.sav> <output.yaml>
    python ftl-sav-converter.py import <input.yaml> <continue.sav>
    python ftl-sav-converter.py info <continue.sav>

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

import sys

from ftlsav.cli import main

if __name__ == "__main__":
    sys.exit(main())
