"""Recording of failed decode attempts.

Each failure becomes an immutable :class:`Diagnostic` naming the decoder
section that was running, the byte offset involved (when the message names
one) and the log file holding the full traceback.

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
import re
import traceback
import uuid
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Optional

from .errors import SaveParseError
from .model import Diagnostic, ParseMode
from .paths import ensure_log_dir

logger = logging.getLogger(__name__)

UNKNOWN_SECTION = "UnknownSection"
UNKNOWN_SOURCE = "unknown.sav"

_PACKAGE_DIR = Path(__file__).resolve().parent
_BYTE_OFFSET = re.compile(r"byte offset (\d+)", re.IGNORECASE)
_ANY_OFFSET = re.compile(r"offset (\d+)", re.IGNORECASE)


def infer_section(exc: BaseException) -> str:
    """Name of the innermost ``parse_*`` function of this package in the traceback."""
    for frame in reversed(traceback.extract_tb(exc.__traceback__)):
        if not frame.name.startswith("parse_"):
            continue
        if Path(frame.filename).resolve().parent == _PACKAGE_DIR:
            return frame.name
    return UNKNOWN_SECTION


def extract_byte_offset(message: str) -> Optional[int]:
    match = _BYTE_OFFSET.search(message) or _ANY_OFFSET.search(message)
    return int(match.group(1)) if match else None


def build_diagnostic(exc: BaseException) -> Diagnostic:
    message = str(exc)
    return Diagnostic(
        section=infer_section(exc),
        byte_offset=extract_byte_offset(message),
        message=message,
    )


def write_log(
    diagnostic: Diagnostic,
    exc: BaseException,
    mode: ParseMode,
    source_path: Optional[str] = None,
) -> Optional[str]:
    """Persist one failure; returns the log path, or None if it could not be written."""
    now = datetime.now()
    source_name = Path(source_path).name if source_path else UNKNOWN_SOURCE
    file_name = f"{now:%Y%m%d_%H%M%S}_{now.microsecond // 1000:03d}_{uuid.uuid4().hex[:8]}_{source_name}.log"
    offset = diagnostic.byte_offset if diagnostic.byte_offset is not None else -1

    lines = [
        f"Timestamp: {now.isoformat()}",
        f"SourceFile: {source_path or '(unknown)'}",
        f"ParseMode: {mode.name}",
        f"Section: {diagnostic.section}",
        f"ByteOffset: {offset}",
        f"Message: {diagnostic.message}",
        "",
        "Exception:",
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    ]
    try:
        log_path = ensure_log_dir() / file_name
        log_path.write_text("\n".join(lines), encoding="utf-8", errors="backslashreplace")
    except (OSError, ValueError) as e:
        logger.warning("Could not write parse diagnostics log: %s", e)
        return None
    logger.info("Wrote parse diagnostics to %s", log_path)
    return str(log_path)


def record_failure(
    exc: BaseException,
    mode: ParseMode,
    source_path: Optional[str] = None,
) -> Diagnostic:
    diagnostic = build_diagnostic(exc)
    return replace(diagnostic, log_path=write_log(diagnostic, exc, mode, source_path))


def describe_offset(diagnostic: Diagnostic) -> str:
    return "unknown" if diagnostic.byte_offset is None else str(diagnostic.byte_offset)


def enriched_error(exc: BaseException, diagnostic: Diagnostic) -> SaveParseError:
    message = (
        "Failed to parse save file.\n\n"
        f"Section: {diagnostic.section}\n"
        f"Byte offset: {describe_offset(diagnostic)}\n"
        f"Log: {diagnostic.log_path or '(not written)'}\n\n"
        f"{diagnostic.message}"
    )
    return SaveParseError(message, diagnostic, diagnostic.byte_offset)
