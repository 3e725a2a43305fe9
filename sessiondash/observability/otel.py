"""OpenTelemetry + Prometheus fallback wiring for the session dashboard."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, NamedTuple

from fastapi import FastAPI

from sessiondash import config

logger = logging.getLogger("sessiondash.observability")


class _Metric(NamedTuple):
    name: str
    description: str
    labels: tuple[str, ...]
    histogram: bool = False


# Same names and label sets on both backends.
_METRICS: dict[str, _Metric] = {
    "ingestion": _Metric(
        "sessiondash_ingestion_events_total",
        "Count of session file ingestion operations",
        ("entity", "result", "project"),
    ),
    "ingestion_latency": _Metric(
        "sessiondash_ingestion_latency_ms",
        "Latency for session decode and aggregation",
        ("entity", "result", "project"),
        histogram=True,
    ),
    "parser_failures": _Metric(
        "sessiondash_parser_failures_total",
        "Count of session log lines dropped as malformed",
        ("parser", "project"),
    ),
    "broadcast": _Metric(
        "sessiondash_broadcast_deliveries_total",
        "Live event deliveries by outcome",
        ("event", "outcome", "project"),
    ),
}

_initialized = False
_tracer: Any | None = None
_providers: list[Any] = []
_fastapi_instrumentor: Any | None = None

# Populated only while the matching backend is live.
_otel_instruments: dict[str, Any] = {}
_prom_instruments: dict[str, Any] = {}


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip().rstrip("/")
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def _init_otel(app: FastAPI | None) -> None:
    global _tracer, _fastapi_instrumentor

    try:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        logger.warning("OpenTelemetry dependencies unavailable: %s", exc)
        return

    resource = Resource.create(
        {"service.name": config.OTEL_SERVICE_NAME or "sessiondash-backend", "service.namespace": "sessiondash"}
    )

    trace_provider = TracerProvider(resource=resource)
    trace_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces")
    trace_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=trace_endpoint or None)))
    trace.set_tracer_provider(trace_provider)

    metric_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    reader = PeriodicExportingMetricReader(OTLPMetricExporter(endpoint=metric_endpoint or None))
    meter_provider = MeterProvider(resource=resource, metric_readers=[reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("sessiondash.backend")

    for key, metric in _METRICS.items():
        create = meter.create_histogram if metric.histogram else meter.create_counter
        _otel_instruments[key] = create(
            metric.name,
            unit="ms" if metric.histogram else "1",
            description=metric.description,
        )

    _providers[:] = [meter_provider, trace_provider]
    _tracer = trace.get_tracer("sessiondash.backend")
    _fastapi_instrumentor = FastAPIInstrumentor()
    if app:
        _fastapi_instrumentor.instrument_app(app)
    logger.info("OpenTelemetry exporting to %s", config.OTEL_ENDPOINT)


def _init_prometheus(port: int, registry: Any | None = None) -> None:
    """Register the Prometheus fallback metrics and serve them on ``port``."""
    from prometheus_client import REGISTRY, Counter, Histogram, start_http_server

    registry = registry if registry is not None else REGISTRY
    start_http_server(port, registry=registry)
    for key, metric in _METRICS.items():
        kind = Histogram if metric.histogram else Counter
        _prom_instruments[key] = kind(metric.name, metric.description, list(metric.labels), registry=registry)
    logger.info("Prometheus fallback metrics server listening on port %s", port)


def initialize(app: FastAPI | None = None) -> None:
    global _initialized

    if _initialized:
        if app and _fastapi_instrumentor:
            _fastapi_instrumentor.instrument_app(app)
        return
    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled (SESSIONDASH_OTEL_ENABLED=false)")
        return

    _init_otel(app)
    if config.PROM_PORT > 0:
        try:
            _init_prometheus(config.PROM_PORT)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Prometheus fallback not started: %s", exc)
            _prom_instruments.clear()


def shutdown(app: FastAPI | None = None) -> None:
    if not _initialized:
        return
    try:
        if app and _fastapi_instrumentor:
            _fastapi_instrumentor.uninstrument_app(app)
    except Exception:
        logger.debug("FastAPI uninstrumentation failed", exc_info=True)
    for provider in _providers:
        try:
            provider.shutdown()
        except Exception:
            logger.debug("Telemetry provider shutdown failed", exc_info=True)
    _otel_instruments.clear()


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _otel_instruments or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        yield span


def _emit(key: str, value: float, **labels: str) -> None:
    labels = {name: (text or "").strip() or "unknown" for name, text in labels.items()}
    histogram = _METRICS[key].histogram
    otel = _otel_instruments.get(key)
    if otel is not None:
        if histogram:
            otel.record(value, labels)
        else:
            otel.add(value, labels)
    prom = _prom_instruments.get(key)
    if prom is not None:
        if histogram:
            prom.labels(**labels).observe(value)
        else:
            prom.labels(**labels).inc(value)


def record_ingestion(entity: str, result: str, duration_ms: float, *, project: str) -> None:
    _emit("ingestion", 1, entity=entity, result=result, project=project)
    _emit("ingestion_latency", max(0.0, float(duration_ms)), entity=entity, result=result, project=project)


def record_parser_failure(parser: str, *, project: str, count: int = 1) -> None:
    if count > 0:
        _emit("parser_failures", count, parser=parser, project=project)


def record_broadcast(event: str, *, delivered: int, skipped: int, project: str = "") -> None:
    for outcome, count in (("delivered", delivered), ("skipped", skipped)):
        if count > 0:
            _emit("broadcast", count, event=event, outcome=outcome, project=project)
