# socdash/core/tracing.py - Structured logging with trace context

import os
import socket
import traceback
import sys
import json
import random
from datetime import datetime, timezone
from typing import Optional, Dict
from contextvars import ContextVar

from loguru import logger
from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

from socdash import __version__
from socdash.core.config import settings

SERVICE = "socdash"

_trace_id_context: ContextVar[str] = ContextVar('trace_id', default='no-trace')
_span_id_context: ContextVar[str] = ContextVar('span_id', default='no-span')

_tracer = None
_tracer_provider = None


def generate_trace_id() -> str:
    """Generate a 128-bit trace ID as 32-character hex string"""
    return f"{random.getrandbits(128):032x}"


def generate_span_id() -> str:
    """Generate a 64-bit span ID as 16-character hex string"""
    return f"{random.getrandbits(64):016x}"


def _ids_from_span(span) -> Optional[tuple[str, str]]:
    if span is None or not hasattr(span, "get_span_context"):
        return None
    span_context = span.get_span_context()
    if not span_context or span_context.trace_id == 0:
        return None
    return f"{span_context.trace_id:032x}", f"{span_context.span_id:016x}"


class TracingMiddleware:
    """Pure ASGI middleware that gives every HTTP request a trace context"""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        ids = None
        if settings.ENABLE_OTEL_EXPORTER:
            ids = _ids_from_span(trace.get_current_span())
        trace_id, span_id = ids or (generate_trace_id(), generate_span_id())

        trace_token = _trace_id_context.set(trace_id)
        span_token = _span_id_context.set(span_id)

        async def send_with_trace_header(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((b"x-trace-id", trace_id.encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_trace_header)
        finally:
            _trace_id_context.reset(trace_token)
            _span_id_context.reset(span_token)


def setup_tracing(app, db_engine=None) -> bool:
    """Install trace-id middleware, logging sinks and, when enabled, OpenTelemetry"""
    global _tracer, _tracer_provider

    app.add_middleware(TracingMiddleware)
    setup_structured_logging(enable_json=settings.should_use_json_logging)

    if not settings.ENABLE_OTEL_EXPORTER:
        info("OpenTelemetry disabled in config - using local trace IDs only")
        return True

    try:
        resource = Resource.create({
            SERVICE_NAME: SERVICE,
            "service.version": __version__,
            "service.environment": settings.ENVIRONMENT,
        })
        _tracer_provider = TracerProvider(resource=resource, sampler=ALWAYS_ON)
        trace.set_tracer_provider(_tracer_provider)
        _tracer = trace.get_tracer(__name__)

        if settings.ENABLE_OTEL_CONSOLE_EXPORT:
            _tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
            info("Console span exporter enabled")

        if settings.ENABLE_EXTERNAL_TRACING:
            exporter = OTLPSpanExporter(endpoint=settings.OTLP_ENDPOINT, insecure=True)
            _tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
            info("OTLP exporter enabled", endpoint=settings.OTLP_ENDPOINT)

        FastAPIInstrumentor.instrument_app(
            app,
            tracer_provider=_tracer_provider,
            excluded_urls="/health,/metrics,/docs,/redoc,/openapi.json"
        )

        if db_engine is not None:
            SQLAlchemyInstrumentor().instrument(
                engine=getattr(db_engine, "sync_engine", db_engine),
                tracer_provider=_tracer_provider,
            )

        info("OpenTelemetry tracing setup complete")
        return True

    except Exception as e:
        logger.bind(trace_id="setup-error", span_id="setup-error").exception(
            f"OpenTelemetry setup failed, falling back to local trace IDs: {e}"
        )
        return False


def format_stack_trace(exception_info) -> Optional[str]:
    """Format exception stack trace for logging"""
    if not exception_info or not exception_info.traceback:
        return None
    return ''.join(traceback.format_exception(
        exception_info.type,
        exception_info.value,
        exception_info.traceback
    ))


def setup_structured_logging(enable_json: Optional[bool] = None):
    """Replace loguru's default sink with a trace-aware one"""
    if enable_json is None:
        enable_json = settings.should_use_json_logging

    logger.remove()

    hostname = socket.gethostname()
    pid = os.getpid()
    environment = settings.ENVIRONMENT

    if enable_json:
        def json_sink(message):
            record = message.record
            extra = record["extra"]
            trace_id = extra.get("trace_id", "no-trace")
            span_id = extra.get("span_id", "no-span")

            log_entry = {
                "@timestamp": datetime.now(timezone.utc).isoformat(),
                "level": record["level"].name,
                "message": record["message"],
                "service": {
                    "name": SERVICE,
                    "version": __version__,
                    "environment": environment,
                },
                "host": {"hostname": hostname},
                "process": {"pid": pid},
                "log": {
                    "origin": {
                        "file": {"name": record["file"].name, "line": record["line"]},
                        "function": record["function"]
                    },
                    "logger": record["name"]
                },
                "trace": {"id": trace_id, "span_id": span_id},
            }

            custom = {k: v for k, v in extra.items()
                      if k not in ("trace_id", "span_id") and not k.startswith("_")}
            if custom:
                log_entry["custom"] = custom

            if record["exception"]:
                log_entry["error"] = {
                    "type": record["exception"].type.__name__ if record["exception"].type else "UnknownError",
                    "message": str(record["exception"].value),
                    "stack_trace": format_stack_trace(record["exception"]),
                }

            sys.stderr.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
            sys.stderr.flush()

        logger.add(json_sink, level=settings.LOG_LEVEL, enqueue=True, catch=True)
    else:
        def format_with_trace(record):
            trace_id = record["extra"].get("trace_id", "no-trace")
            trace_info = f" [trace:{trace_id[:8]}]" if trace_id != "no-trace" else ""
            return (
                "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
                "<cyan>{name}:{function}:{line}</cyan>" + trace_info + " - <level>{message}</level>\n{exception}"
            )

        logger.add(
            sys.stderr,
            format=format_with_trace,
            level=settings.LOG_LEVEL,
            colorize=True,
            enqueue=True,
            catch=True
        )


def get_current_trace_span_ids() -> tuple[str, str]:
    """Current trace_id and span_id, generated when no request context exists"""
    trace_id = _trace_id_context.get()
    span_id = _span_id_context.get()
    if trace_id != "no-trace":
        return trace_id, span_id

    if settings.ENABLE_OTEL_EXPORTER:
        ids = _ids_from_span(trace.get_current_span())
        if ids:
            return ids

    return generate_trace_id(), generate_span_id()


def get_current_trace_id() -> str:
    trace_id, _ = get_current_trace_span_ids()
    return trace_id


def get_trace_context() -> Dict[str, str]:
    trace_id, span_id = get_current_trace_span_ids()
    return {"trace_id": trace_id, "span_id": span_id}


def log_with_trace(level: str, message: str, **kwargs):
    """Log through loguru with the trace context and structured fields bound"""
    trace_id, span_id = get_current_trace_span_ids()
    bound = logger.bind(trace_id=trace_id, span_id=span_id, **kwargs)
    getattr(bound, level.lower())(message)


def info(message: str, **kwargs):
    log_with_trace("info", message, **kwargs)


def debug(message: str, **kwargs):
    log_with_trace("debug", message, **kwargs)


def warning(message: str, **kwargs):
    log_with_trace("warning", message, **kwargs)


def error(message: str, **kwargs):
    log_with_trace("error", message, **kwargs)


__all__ = [
    'setup_tracing', 'setup_structured_logging', 'get_current_trace_span_ids',
    'get_current_trace_id', 'get_trace_context', 'log_with_trace',
    'info', 'debug', 'warning', 'error'
]
