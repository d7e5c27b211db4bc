"""OpenTelemetry + Prometheus fallback wiring for TaskHub backend."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from fastapi import FastAPI

from taskhub import config

logger = logging.getLogger("taskhub.observability")


_initialized = False
_enabled = False
_tracer: Any | None = None
_trace_provider: Any | None = None
_meter_provider: Any | None = None
_fastapi_instrumentor: Any | None = None

_request_counter: Any | None = None
_request_latency_hist: Any | None = None
_section_latency_hist: Any | None = None

_prom_enabled = False
_prom_request_counter: Any | None = None
_prom_request_latency_hist: Any | None = None
_prom_section_latency_hist: Any | None = None


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def _labels(**values: str) -> dict[str, str]:
    return {key: (value or "").strip() or "unknown" for key, value in values.items()}


def initialize(app: FastAPI | None = None) -> None:
    global _initialized, _enabled, _tracer, _trace_provider, _meter_provider, _fastapi_instrumentor
    global _request_counter, _request_latency_hist, _section_latency_hist
    global _prom_enabled, _prom_request_counter, _prom_request_latency_hist, _prom_section_latency_hist

    if _initialized:
        if _enabled and app and _fastapi_instrumentor:
            _fastapi_instrumentor.instrument_app(app)
        return

    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled (TASKHUB_OTEL_ENABLED=false)")
        return

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

    traces_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces")
    metrics_endpoint = _normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics")
    service_name = config.OTEL_SERVICE_NAME or "taskhub-backend"

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "taskhub",
        }
    )

    trace_provider = TracerProvider(resource=resource)
    trace_exporter = OTLPSpanExporter(endpoint=traces_endpoint or None)
    trace_provider.add_span_processor(BatchSpanProcessor(trace_exporter))
    trace.set_tracer_provider(trace_provider)
    tracer = trace.get_tracer("taskhub.backend")

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=metrics_endpoint or None)
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("taskhub.backend")

    _request_counter = meter.create_counter(
        "taskhub_dashboard_requests_total",
        unit="1",
        description="Dashboard snapshots served, by caller role and outcome",
    )
    _request_latency_hist = meter.create_histogram(
        "taskhub_dashboard_latency_ms",
        unit="ms",
        description="End-to-end dashboard aggregation latency",
    )
    _section_latency_hist = meter.create_histogram(
        "taskhub_dashboard_section_latency_ms",
        unit="ms",
        description="Latency of individual dashboard sections",
    )

    _trace_provider = trace_provider
    _meter_provider = meter_provider
    _tracer = tracer
    _fastapi_instrumentor = FastAPIInstrumentor()
    _enabled = True

    if app:
        _fastapi_instrumentor.instrument_app(app)

    if config.PROM_PORT > 0:
        try:
            from prometheus_client import Counter, Histogram, start_http_server

            start_http_server(config.PROM_PORT)
            _prom_enabled = True
            _prom_request_counter = Counter(
                "taskhub_dashboard_requests_total",
                "Dashboard snapshots served, by caller role and outcome",
                ["role", "result"],
            )
            _prom_request_latency_hist = Histogram(
                "taskhub_dashboard_latency_ms",
                "End-to-end dashboard aggregation latency",
                ["role", "result"],
            )
            _prom_section_latency_hist = Histogram(
                "taskhub_dashboard_section_latency_ms",
                "Latency of individual dashboard sections",
                ["section", "result"],
            )
            logger.info("Prometheus fallback metrics server listening on port %s", config.PROM_PORT)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Prometheus fallback not started: %s", exc)
            _prom_enabled = False

    logger.info(
        "OpenTelemetry initialized (service=%s endpoint=%s)",
        service_name,
        config.OTEL_ENDPOINT,
    )


def shutdown(app: FastAPI | None = None) -> None:
    global _enabled
    if not _initialized:
        return
    try:
        if app and _fastapi_instrumentor:
            _fastapi_instrumentor.uninstrument_app(app)
    except Exception:  # noqa: BLE001
        logger.debug("FastAPI uninstrumentation failed", exc_info=True)
    for provider in (_meter_provider, _trace_provider):
        try:
            if provider is not None:
                provider.shutdown()
        except Exception:  # noqa: BLE001
            logger.debug("Telemetry provider shutdown failed", exc_info=True)
    _enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span


def record_dashboard_request(role: str, result: str, duration_ms: float) -> None:
    labels = _labels(role=role, result=result)
    duration = max(0.0, float(duration_ms))
    if _enabled and _request_counter is not None:
        _request_counter.add(1, labels)
    if _enabled and _request_latency_hist is not None:
        _request_latency_hist.record(duration, labels)
    if _prom_enabled and _prom_request_counter is not None:
        _prom_request_counter.labels(**labels).inc()
    if _prom_enabled and _prom_request_latency_hist is not None:
        _prom_request_latency_hist.labels(**labels).observe(duration)


def record_dashboard_section(section: str, result: str, duration_ms: float) -> None:
    labels = _labels(section=section, result=result)
    duration = max(0.0, float(duration_ms))
    if _enabled and _section_latency_hist is not None:
        _section_latency_hist.record(duration, labels)
    if _prom_enabled and _prom_section_latency_hist is not None:
        _prom_section_latency_hist.labels(**labels).observe(duration)
