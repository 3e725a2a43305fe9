"""Decode JSONL session log files into ordered record lists."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from sessiondash.observability import record_parser_failure

logger = logging.getLogger("sessiondash.parsers")


def decode_records(text: str) -> tuple[list[dict[str, Any]], int]:
    """Parse newline-delimited JSON text.

    Returns the decoded records in file order plus the number of non-empty
    lines that were dropped. Lines that are not valid JSON, or that decode to
    anything other than an object, are skipped; a partially written trailing
    line is just another dropped line.
    """
    records: list[dict[str, Any]] = []
    dropped = 0
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped:
            continue
        try:
            value = json.loads(stripped)
        except ValueError:
            dropped += 1
            continue
        if not isinstance(value, dict):
            dropped += 1
            continue
        records.append(value)
    return records, dropped


def read_session_file(path: Path) -> list[dict[str, Any]]:
    """Read and decode one session log file.

    A missing file yields an empty list, as does any read failure so that one
    unreadable file never blocks processing of the others.
    """
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.error(f"Error reading session file {path}: {e}")
        return []

    records, dropped = decode_records(text)
    if dropped:
        logger.debug(f"Dropped {dropped} malformed line(s) from {path}")
        record_parser_failure("jsonl_line", project=path.parent.name, count=dropped)
    return records
