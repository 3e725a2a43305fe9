"""Aggregate decoded JSONL session records into SessionSummary models."""
from __future__ import annotations

from typing import Any, Iterable

from sessiondash.models import SessionSummary
from sessiondash.parsers.record_types import RecordType, block_type, compact_json, message_of

_FIRST_MESSAGE_LIMIT = 200
_NO_SUMMARY = "No summary"
_USAGE_INPUT_KEYS = (
    "input_tokens",
    "cache_creation_input_tokens",
    "cache_read_input_tokens",
)


def _coerce_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        # OverflowError: JSON numbers like 1e999 decode to float("inf").
        return default


def decode_project_name(encoded: str) -> str:
    """Decode a project directory name back into the path it encodes.

    Every hyphen becomes a path separator, so ``-home-user-my-app`` decodes to
    ``/home/user/my/app``. Hyphens inside original path segments are not
    recoverable.
    """
    return encoded.replace("-", "/")


def session_id_from_filename(filename: str, suffix: str = ".jsonl") -> str:
    if suffix and filename.endswith(suffix):
        return filename[: -len(suffix)]
    return filename


def _usage_of(record: dict[str, Any]) -> dict[str, Any]:
    # First non-empty mapping wins; the two locations are never summed.
    usage = record.get("usage")
    if isinstance(usage, dict) and usage:
        return usage
    usage = message_of(record).get("usage")
    if isinstance(usage, dict) and usage:
        return usage
    return {}


def _first_user_text(record: dict[str, Any]) -> str:
    message = record.get("message")
    if not message:
        return ""
    if isinstance(message, str):
        text = message
    elif isinstance(message, dict) and message.get("content"):
        content = message["content"]
        if isinstance(content, str):
            text = content
        elif isinstance(content, list):
            text = " ".join(
                str(block.get("text") or "")
                for block in content
                if block_type(block) == "text"
            )
        else:
            text = compact_json(content)
    else:
        text = compact_json(message)
    return text[:_FIRST_MESSAGE_LIMIT]


def _summary_text(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict) and raw.get("content"):
        content = raw["content"]
        return content if isinstance(content, str) else compact_json(content)
    return compact_json(raw)


def _add_unique(items: list[str], seen: set[str], value: str) -> None:
    if value in seen:
        return
    seen.add(value)
    items.append(value)


def summarize_records(
    records: Iterable[dict[str, Any]],
    project_raw: str,
    filename: str,
    suffix: str = ".jsonl",
) -> SessionSummary:
    """Reduce a decoded record sequence to a SessionSummary in one pass."""
    total_input = 0
    total_output = 0
    message_count = 0
    entry_count = 0
    first_user_message = ""
    summary = ""
    model = ""
    tool_uses: list[str] = []
    seen_tools: set[str] = set()

    for record in records:
        entry_count += 1
        kind = RecordType.of(record)
        message = message_of(record)

        usage = _usage_of(record)
        if usage:
            total_input += sum(_coerce_int(usage.get(key)) for key in _USAGE_INPUT_KEYS)
            total_output += _coerce_int(usage.get("output_tokens"))

        if kind in (RecordType.USER, RecordType.ASSISTANT):
            message_count += 1

        if kind == RecordType.USER:
            if not first_user_message:
                first_user_message = _first_user_text(record)
        elif kind == RecordType.SUMMARY:
            if record.get("summary"):
                summary = _summary_text(record["summary"])
        elif kind == RecordType.ASSISTANT:
            content = message.get("content")
            if isinstance(content, list):
                for block in content:
                    if block_type(block) == "tool_use" and block.get("name"):
                        _add_unique(tool_uses, seen_tools, str(block["name"]))

        if kind == RecordType.TOOL_USE or record.get("tool"):
            name = record.get("tool") or record.get("name") or "unknown"
            _add_unique(tool_uses, seen_tools, str(name))

        if not model:
            candidate = record.get("model") or message.get("model") or ""
            model = candidate if isinstance(candidate, str) else str(candidate)

    return SessionSummary(
        id=session_id_from_filename(filename, suffix),
        project=decode_project_name(project_raw),
        projectRaw=project_raw,
        summary=summary or first_user_message or _NO_SUMMARY,
        messageCount=message_count,
        totalInputTokens=total_input,
        totalOutputTokens=total_output,
        totalTokens=total_input + total_output,
        toolUses=tool_uses,
        model=model,
        entryCount=entry_count,
    )
