"""Observability setup for OpenTelemetry, metrics, and structured logging."""

import logging

from opentelemetry import trace, metrics
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from prometheus_client import Counter, Gauge, generate_latest, CollectorRegistry
import structlog

from .config import settings

SERVICE_NAME = "tramboory-api"

# Prometheus metrics
REGISTRY = CollectorRegistry()

RESERVATIONS_CREATED = Counter(
    'tramboory_reservations_created_total',
    'Total reservations created',
    ['package'],
    registry=REGISTRY
)

RESERVATIONS_CONFIRMED = Counter(
    'tramboory_reservations_confirmed_total',
    'Total reservations confirmed',
    registry=REGISTRY
)

FINANCE_RECORDS_GENERATED = Counter(
    'tramboory_finance_records_generated_total',
    'Finance records generated from reservations',
    ['source', 'type'],
    registry=REGISTRY
)

POSTS_PUBLISHED = Counter(
    'tramboory_posts_published_total',
    'Scheduled posts published',
    ['platform'],
    registry=REGISTRY
)

POSTS_FAILED = Counter(
    'tramboory_posts_failed_attempts_total',
    'Failed scheduled post publish attempts',
    registry=REGISTRY
)

STOCK_MOVEMENTS = Counter(
    'tramboory_stock_movements_total',
    'Inventory movements recorded',
    ['type'],
    registry=REGISTRY
)

STOCK_ALERTS_CREATED = Counter(
    'tramboory_stock_alerts_created_total',
    'Inventory alerts raised',
    ['type', 'priority'],
    registry=REGISTRY
)

ACTIVE_STOCK_ALERTS = Gauge(
    'tramboory_stock_alerts_active',
    'Active inventory alerts after the last sweep',
    registry=REGISTRY
)


def setup_structured_logging():
    """Configure structured logging with structlog."""

    def add_trace_context(logger, method_name, event_dict):
        """Add trace context to log events."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict['trace_id'] = format(ctx.trace_id, '032x')
            event_dict['span_id'] = format(ctx.span_id, '016x')
        return event_dict

    if settings.debug:
        renderers = [structlog.dev.ConsoleRenderer()]
    else:
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            *renderers,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _resource(app_name: str) -> Resource:
    return Resource.create({
        "service.name": app_name,
        "service.version": "1.0.0",
        "environment": settings.environment,
    })


def setup_tracing(app_name: str = SERVICE_NAME):
    """Setup OpenTelemetry tracing; spans are exported only when OTLP is configured."""
    provider = TracerProvider(resource=_resource(app_name))
    if settings.otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint)))
    trace.set_tracer_provider(provider)
    return trace.get_tracer(__name__)


def setup_metrics(app_name: str = SERVICE_NAME):
    """Setup OpenTelemetry metrics."""
    if settings.otlp_endpoint:
        otlp_exporter = OTLPMetricExporter(endpoint=settings.otlp_endpoint)
        reader = PeriodicExportingMetricReader(exporter=otlp_exporter, export_interval_millis=60000)
        metrics.set_meter_provider(MeterProvider(resource=_resource(app_name), metric_readers=[reader]))
    return metrics.get_meter(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy():
    """Instrument SQLAlchemy with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument()


class MetricsCollector:
    """Collector for business metrics."""

    @staticmethod
    def record_reservation_created(package_name: str):
        RESERVATIONS_CREATED.labels(package=package_name).inc()

    @staticmethod
    def record_reservation_confirmed():
        RESERVATIONS_CONFIRMED.inc()

    @staticmethod
    def record_finance_generated(source: str, finance_type: str):
        """Record a finance entry created from a reservation (``auto`` or ``bulk``)."""
        FINANCE_RECORDS_GENERATED.labels(source=source, type=finance_type).inc()

    @staticmethod
    def record_post_published(platform: str):
        POSTS_PUBLISHED.labels(platform=platform).inc()

    @staticmethod
    def record_post_failed():
        POSTS_FAILED.inc()

    @staticmethod
    def record_stock_movement(movement_type: str):
        STOCK_MOVEMENTS.labels(type=movement_type).inc()

    @staticmethod
    def record_stock_alert(alert_type: str, priority: str):
        STOCK_ALERTS_CREATED.labels(type=alert_type, priority=priority).inc()

    @staticmethod
    def set_active_stock_alerts(count: int):
        ACTIVE_STOCK_ALERTS.set(count)


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()


class StructuredLogger:
    """Structured logger with business context."""

    def __init__(self, name_or_logger):
        if isinstance(name_or_logger, str):
            self.logger = structlog.get_logger(name_or_logger)
        else:
            self.logger = name_or_logger

    def info(self, message: str, **kwargs):
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        self.logger.error(message, **kwargs)

    def debug(self, message: str, **kwargs):
        self.logger.debug(message, **kwargs)

    def with_context(self, **kwargs):
        """Return a logger that adds the given fields to every event."""
        return StructuredLogger(self.logger.bind(**kwargs))


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)
