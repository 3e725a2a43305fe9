"""Closed set of session record types and shared record accessors."""
from __future__ import annotations

import json
from enum import Enum
from typing import Any


class RecordType(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL_USE = "tool_use"
    TOOL_RESULT = "tool_result"
    SUMMARY = "summary"
    OTHER = "other"

    @classmethod
    def of(cls, record: dict[str, Any]) -> "RecordType":
        raw = record.get("type")
        if isinstance(raw, str):
            try:
                return cls(raw)
            except ValueError:
                pass
        return cls.OTHER


def message_of(record: dict[str, Any]) -> dict[str, Any]:
    """Return ``record.message`` when it is a mapping, else an empty dict."""
    message = record.get("message")
    return message if isinstance(message, dict) else {}


def block_type(block: Any) -> str:
    if isinstance(block, dict):
        value = block.get("type")
        return value if isinstance(value, str) else ""
    return ""


def compact_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def pretty_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, indent=2, default=str)
