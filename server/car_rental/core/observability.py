"""Observability setup for OpenTelemetry, metrics, and structured logging."""

import logging

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from .config import settings

SERVICE_NAME = "car-rental-booking-api"

# Prometheus metrics
REGISTRY = CollectorRegistry()

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

# Business metrics
QUOTES_COMPUTED = Counter(
    'rental_quotes_computed_total',
    'Total per-car trip prices computed',
    ['tier'],
    registry=REGISTRY
)

AVAILABILITY_QUERIES = Counter(
    'rental_availability_queries_total',
    'Total availability listings served',
    ['transmission'],
    registry=REGISTRY
)

STEP_REDIRECTS = Counter(
    'booking_step_redirects_total',
    'Booking step entries redirected to an earlier step',
    ['requested', 'resolved'],
    registry=REGISTRY
)

PAYMENTS = Counter(
    'booking_payments_total',
    'Advance payment attempts by outcome',
    ['outcome'],
    registry=REGISTRY
)

NOTIFICATIONS = Counter(
    'booking_notifications_total',
    'Outbound notifications by kind and outcome',
    ['kind', 'outcome'],
    registry=REGISTRY
)

ENQUIRIES_REJECTED = Counter(
    'booking_enquiries_rejected_total',
    'Enquiry writes rejected by server-side checks',
    ['reason'],
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

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_tracing(app_name: str = SERVICE_NAME):
    """Setup OpenTelemetry tracing."""
    resource = Resource.create({
        "service.name": app_name,
        "service.version": "1.0.0",
        "environment": settings.environment,
    })

    provider = TracerProvider(resource=resource)
    if settings.otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint))
        )
    trace.set_tracer_provider(provider)

    return trace.get_tracer(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine):
    """Instrument SQLAlchemy with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


class MetricsCollector:
    """Collector for business metrics."""

    @staticmethod
    def record_quote(tier: str):
        """Record a computed trip price."""
        QUOTES_COMPUTED.labels(tier=tier).inc()

    @staticmethod
    def record_availability_query(transmission: str):
        """Record an availability listing."""
        AVAILABILITY_QUERIES.labels(transmission=transmission).inc()

    @staticmethod
    def record_step_redirect(requested: str, resolved: str):
        """Record a step entry that was sent back to an earlier step."""
        STEP_REDIRECTS.labels(requested=requested, resolved=resolved).inc()

    @staticmethod
    def record_payment(outcome: str):
        """Record a payment lifecycle event (initiated, succeeded, failed, cancelled)."""
        PAYMENTS.labels(outcome=outcome).inc()

    @staticmethod
    def record_notification(kind: str, outcome: str):
        """Record an outbound notification attempt."""
        NOTIFICATIONS.labels(kind=kind, outcome=outcome).inc()

    @staticmethod
    def record_enquiry_rejected(reason: str):
        """Record a rejected enquiry write."""
        ENQUIRIES_REJECTED.labels(reason=reason).inc()


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()
