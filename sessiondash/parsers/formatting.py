"""Render raw session records into content the dashboard can display."""
from __future__ import annotations

from typing import Any, Callable

from sessiondash.models import EntryContent, ToolResultItem, ToolResultsContent
from sessiondash.parsers.record_types import RecordType, block_type, compact_json, message_of, pretty_json

_THINKING_LIMIT = 500
_BLOCK_INPUT_LIMIT = 300
_TOOL_INPUT_LIMIT = 500
_TOOL_RESULT_LIMIT = 500
_OTHER_LIMIT = 300


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _flatten_tool_result(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for item in content:
            if block_type(item) == "text" and item.get("text"):
                parts.append(str(item["text"]))
            elif isinstance(item, str):
                parts.append(item)
            else:
                parts.append(compact_json(item))
        return "\n".join(parts)
    return compact_json(content)


def _joined_texts(blocks: list[Any]) -> str:
    texts = []
    for block in blocks:
        if block_type(block) == "text" and block.get("text"):
            texts.append(str(block["text"]))
        elif isinstance(block, str) and block:
            texts.append(block)
    return "\n".join(texts)


def _text_or_blocks(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return _joined_texts(content)
    return ""


def _format_user(record: dict[str, Any]) -> EntryContent:
    raw_message = record.get("message")
    if isinstance(raw_message, str):
        return raw_message

    content = message_of(record).get("content")
    if content:
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            tool_results = [block for block in content if block_type(block) == "tool_result"]
            if tool_results:
                return ToolResultsContent(
                    results=[
                        ToolResultItem(
                            tool_use_id=_optional_str(block.get("tool_use_id")),
                            content=_flatten_tool_result(block.get("content")),
                        )
                        for block in tool_results
                    ]
                )
            texts = _joined_texts(content)
            if texts:
                return texts

    direct = record.get("content")
    if direct:
        text = _text_or_blocks(direct)
        if text:
            return text

    if raw_message:
        return pretty_json(raw_message)
    return pretty_json(record)


def _format_assistant(record: dict[str, Any]) -> EntryContent:
    raw_message = record.get("message")
    if isinstance(raw_message, str):
        return raw_message

    content = message_of(record).get("content")
    if content:
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts = []
            for block in content:
                kind = block_type(block)
                if kind == "text" and block.get("text"):
                    parts.append(str(block["text"]))
                elif kind == "thinking" and block.get("thinking"):
                    thinking = str(block["thinking"])[:_THINKING_LIMIT]
                    parts.append(f"💭 Thinking:\n{thinking}...")
                elif kind == "tool_use":
                    name = block.get("name") or "unknown"
                    tool_input = pretty_json(block.get("input"))[:_BLOCK_INPUT_LIMIT]
                    parts.append(f"🔧 Tool: {name}\nInput: {tool_input}")
            return "\n\n".join(parts) or "[Processing...]"

    direct = record.get("content")
    if direct:
        if isinstance(direct, str):
            return direct
        if isinstance(direct, list):
            texts = [
                str(block.get("text") or "")
                for block in direct
                if block_type(block) == "text"
            ]
            return "\n".join(texts) or "[Response]"

    if raw_message:
        return pretty_json(raw_message)
    return "[Empty response]"


def _format_tool_use(record: dict[str, Any]) -> EntryContent:
    name = record.get("name") or record.get("tool") or "unknown"
    tool_input = record.get("input") or record.get("arguments") or {}
    return f"🔧 Tool: {name}\nInput: {pretty_json(tool_input)[:_TOOL_INPUT_LIMIT]}"


def _format_tool_result(record: dict[str, Any]) -> EntryContent:
    result = record.get("result") or record.get("output") or record.get("content") or ""
    text = result if isinstance(result, str) else compact_json(result)
    ellipsis = "..." if len(text) > _TOOL_RESULT_LIMIT else ""
    return f"📤 Result: {text[:_TOOL_RESULT_LIMIT]}{ellipsis}"


def _format_summary(record: dict[str, Any]) -> EntryContent:
    summary = record.get("summary") or ""
    text = summary if isinstance(summary, str) else compact_json(summary)
    return f"📝 Summary: {text}"


def _format_other(record: dict[str, Any]) -> EntryContent:
    label = record.get("type") or "unknown"
    return f"ℹ️ {label}: {pretty_json(record)[:_OTHER_LIMIT]}"


_FORMATTERS: dict[RecordType, Callable[[dict[str, Any]], EntryContent]] = {
    RecordType.USER: _format_user,
    RecordType.ASSISTANT: _format_assistant,
    RecordType.TOOL_USE: _format_tool_use,
    RecordType.TOOL_RESULT: _format_tool_result,
    RecordType.SUMMARY: _format_summary,
    RecordType.OTHER: _format_other,
}


def format_entry_content(record: dict[str, Any]) -> EntryContent:
    """Render one record for display. Never raises on malformed records."""
    formatter = _FORMATTERS.get(RecordType.of(record), _format_other)
    return formatter(record)
