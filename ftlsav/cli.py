"""Command-line front end.

Usage:
    ftlsav info <continue.sav>
    ftlsav export <continue.sav> <continue.yaml>
    ftlsav import <continue.yaml> <continue.sav>

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

import argparse
import logging
import struct
import sys
from pathlib import Path

import yaml

from .parser import decode, encode
from .yaml_io import export_to_text, export_to_yaml, import_from_yaml

logger = logging.getLogger(__name__)


def _load_save(path: Path, debug: bool):
    return decode(path.read_bytes(), debug=debug, source_path=str(path))


def cmd_info(args):
    """Show save file information."""
    save_path = Path(args.input)
    if not save_path.exists():
        print(f"Error: File not found: {save_path}", file=sys.stderr)
        return 1

    try:
        game = _load_save(save_path, args.debug)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(export_to_text(game))
    return 0


def cmd_export(args):
    """Export save file to YAML."""
    save_path = Path(args.input)
    output_path = Path(args.output)

    if not save_path.exists():
        print(f"Error: File not found: {save_path}", file=sys.stderr)
        return 1

    try:
        game = _load_save(save_path, args.debug)
        output_path.write_text(export_to_yaml(game), encoding="utf-8")
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    for warning in game.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    print(f"Exported to: {output_path} ({game.parse_mode.name})")
    return 0


def cmd_import(args):
    """Import YAML and write a save file."""
    yaml_path = Path(args.input)
    output_path = Path(args.output)

    if not yaml_path.exists():
        print(f"Error: File not found: {yaml_path}", file=sys.stderr)
        return 1

    try:
        game = import_from_yaml(yaml_path.read_text(encoding="utf-8"))
        output_path.write_bytes(encode(game))
    except (OSError, ValueError, TypeError, struct.error, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Imported to: {output_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ftlsav",
        description="FTL save file converter (lossless)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s info continue.sav                  Show save file information
  %(prog)s export continue.sav continue.yaml  Export to YAML (lossless)
  %(prog)s import continue.yaml continue.sav  Write YAML back to a save

Regions the decoder cannot interpret (room layouts, mod extensions) are
kept as base64 in the YAML and written back unchanged.
""",
    )
    parser.add_argument("--debug", action="store_true", help="Trace decoding with byte offsets")
    subparsers = parser.add_subparsers(dest="command", required=True)

    info_parser = subparsers.add_parser("info", help="Show save file information")
    info_parser.add_argument("input", help="Input save file")
    info_parser.set_defaults(func=cmd_info)

    export_parser = subparsers.add_parser("export", help="Export save to YAML format (lossless)")
    export_parser.add_argument("input", help="Input save file")
    export_parser.add_argument("output", help="Output YAML file")
    export_parser.set_defaults(func=cmd_export)

    import_parser = subparsers.add_parser("import", help="Import YAML and write a save file")
    import_parser.add_argument("input", help="Input YAML file")
    import_parser.add_argument("output", help="Output save file")
    import_parser.set_defaults(func=cmd_import)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
