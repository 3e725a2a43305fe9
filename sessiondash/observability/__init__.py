"""Observability helpers."""

from sessiondash.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_broadcast,
    record_ingestion,
    record_parser_failure,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_broadcast",
    "record_ingestion",
    "record_parser_failure",
]
