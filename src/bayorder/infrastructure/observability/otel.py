from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

logger = logging.getLogger(__name__)

_TRACER_NAME = "bayorder"
_EXCLUDED_URLS = "health/live,health/ready,metrics"

_provider: TracerProvider | None = None
_instrumented_apps: set[int] = set()


def get_tracer() -> trace.Tracer:
    """Tracer for store and use-case spans; a no-op until a provider is installed."""
    return trace.get_tracer(_TRACER_NAME)


def configure_tracer_provider() -> TracerProvider:
    global _provider
    if _provider is not None:
        return _provider

    resource = Resource.create(
        {
            SERVICE_NAME: os.getenv("OTEL_SERVICE_NAME", "bayorder"),
            "deployment.environment": os.getenv("APP_ENV", "dev"),
        }
    )
    provider = TracerProvider(resource=resource)
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        try:
            exporter = OTLPSpanExporter(endpoint=endpoint, insecure=endpoint.startswith("http://"))
            provider.add_span_processor(BatchSpanProcessor(exporter))
        except Exception:
            logger.exception("otel_exporter_setup_failed", extra={"endpoint": endpoint})

    trace.set_tracer_provider(provider)
    set_global_textmap(TraceContextTextMapPropagator())
    _provider = provider
    return provider


def configure_otel(app: FastAPI) -> None:
    if id(app) in _instrumented_apps:
        return
    provider = configure_tracer_provider()
    FastAPIInstrumentor.instrument_app(app, tracer_provider=provider, excluded_urls=_EXCLUDED_URLS)
    _instrumented_apps.add(id(app))
