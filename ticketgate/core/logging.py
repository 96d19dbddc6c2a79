"""Logging and tracing setup for the Ticketgate API.

Gate activity (verdicts, check-ins, scanner sessions) is logged under the
``ticketgate`` logger tree at ``log_level``. Third-party libraries propagate to
the root logger, which stays at ``library_log_level`` so that asyncpg and the
exporter do not drown the gate log.
"""

from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any
from urllib.parse import unquote

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from ticketgate import __version__
from ticketgate.core.config import Settings

APP_LOGGER = "ticketgate"

_TRACER_INITIALISED = False


def _level(name: str, default: int = logging.INFO) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def parse_headers(header_string: str | None) -> dict[str, str]:
    """Parse OTLP exporter headers (``key=value,key2=value2``, values percent-encoded)."""

    headers: dict[str, str] = {}
    for item in (header_string or "").split(","):
        key, sep, value = item.partition("=")
        if sep and key.strip():
            headers[key.strip()] = unquote(value.strip())
    return headers


def build_logging_config(settings: Settings) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "gate": {"format": settings.log_format},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "gate",
            }
        },
        "loggers": {
            APP_LOGGER: {"level": _level(settings.log_level)},
        },
        "root": {
            "handlers": ["console"],
            "level": _level(settings.library_log_level, logging.WARNING),
        },
    }


def configure_logging(settings: Settings) -> logging.Logger:
    """Apply the logging config and return the ``ticketgate`` logger."""

    dictConfig(build_logging_config(settings))
    logger = logging.getLogger(APP_LOGGER)
    logger.debug("Logging configured for %s environment", settings.environment)
    return logger


def tracer_resource(settings: Settings) -> Resource:
    return Resource(
        attributes={
            "service.name": settings.otel_service_name,
            "service.version": __version__,
            "deployment.environment": settings.environment,
        }
    )


def init_tracer(settings: Settings) -> TracerProvider | None:
    """Install an OTLP-exporting tracer provider when tracing is enabled."""

    global _TRACER_INITIALISED

    if _TRACER_INITIALISED or not settings.otel_enabled:
        return None

    exporter_kwargs: dict[str, object] = {}
    if settings.otel_exporter_otlp_endpoint:
        exporter_kwargs["endpoint"] = settings.otel_exporter_otlp_endpoint
    headers = parse_headers(settings.otel_exporter_otlp_headers)
    if headers:
        exporter_kwargs["headers"] = headers

    provider = TracerProvider(resource=tracer_resource(settings))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(**exporter_kwargs)))
    trace.set_tracer_provider(provider)
    _TRACER_INITIALISED = True
    logging.getLogger(APP_LOGGER).info("Exporting traces as %s", settings.otel_service_name)
    return provider


def shutdown_tracer(provider: TracerProvider | None) -> None:
    """Flush pending spans and shut down the provider from :func:`init_tracer`."""

    if provider is None:
        return

    global _TRACER_INITIALISED
    provider.shutdown()
    _TRACER_INITIALISED = False
