"""Telemetry utilities: request timing, operation spans, and business metrics."""

import asyncio
import os
import time
import uuid
from collections.abc import Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar, cast

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.logger import get_logger
from core.wide_event import clear_wide_event, get_wide_event, init_wide_event

logger = get_logger(__name__)

# Spans are only recorded when an OTel exporter is configured for the process
TELEMETRY_ENABLED = bool(os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"))

SERVICE_NAME = os.getenv("SERVICE_NAME", "ecotrack-api")
SERVICE_VERSION = os.getenv("SERVICE_VERSION", "0.1.0")

# Requests slower than this are always emitted
SLOW_REQUEST_MS = 1000

tracer = trace.get_tracer(__name__)

P = ParamSpec("P")
R = TypeVar("R")


class RequestTimingMiddleware:
    """Times each request and emits its wide event as one canonical log line.

    Errors, slow requests, and authenticated requests are always emitted;
    anonymous fast successes (health probes, mostly) are dropped.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        path = scope.get("path", "")
        request_id = str(uuid.uuid4())

        event = init_wide_event()
        event["service_name"] = SERVICE_NAME
        event["service_version"] = SERVICE_VERSION
        event["request_id"] = request_id
        event["http_method"] = scope.get("method", "UNKNOWN")
        event["http_path"] = path

        response_status: int | None = None

        async def send_wrapper(message: Message) -> None:
            nonlocal response_status

            if message.get("type") == "http.response.start":
                response_status = int(message.get("status", 0))
                headers: list[tuple[bytes, bytes]] = list(message.get("headers", []))
                duration_ms = (time.perf_counter() - start_time) * 1000
                headers.append(
                    (b"x-request-duration-ms", f"{duration_ms:.2f}".encode())
                )
                headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = headers

            elif message.get("type") == "http.response.body" and not message.get(
                "more_body", False
            ):
                duration_ms = (time.perf_counter() - start_time) * 1000
                route = scope.get("route")

                wide = get_wide_event()
                wide["http_route"] = getattr(route, "path", None) or path
                wide["http_status_code"] = response_status
                wide["duration_ms"] = round(duration_ms, 2)
                wide["outcome"] = (
                    "success" if response_status and response_status < 400 else "error"
                )

                if (
                    response_status is None
                    or response_status >= 400
                    or duration_ms > SLOW_REQUEST_MS
                    or wide.get("user_id")
                ):
                    logger.info("request.completed", **wide)

                clear_wide_event()

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            wide = get_wide_event()
            wide["duration_ms"] = round((time.perf_counter() - start_time) * 1000, 2)
            wide["outcome"] = "exception"
            wide["exception_type"] = type(exc).__name__
            logger.info("request.completed", **wide)
            clear_wide_event()
            raise


def track_operation(operation_name: str):
    """Decorator to wrap a business operation in an OpenTelemetry span."""

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        if not asyncio.iscoroutinefunction(func):
            raise TypeError("track_operation only supports async functions")

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs):
            if not TELEMETRY_ENABLED:
                return await func(*args, **kwargs)

            with tracer.start_as_current_span(
                operation_name, attributes={"operation.name": operation_name}
            ) as span:
                start_time = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                    span.set_attribute("operation.success", True)
                    return result
                except Exception as e:
                    span.set_attribute("operation.success", False)
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise
                finally:
                    duration_ms = (time.perf_counter() - start_time) * 1000
                    span.set_attribute("operation.duration_ms", duration_ms)

        return cast(Callable[P, R], wrapper)

    return decorator


def add_custom_attribute(key: str, value: str | int | float | bool) -> None:
    """Add a custom attribute to the current span."""
    if not TELEMETRY_ENABLED:
        return

    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute(key, value)


def log_metric(
    name: str, value: float, properties: dict[str, Any] | None = None
) -> None:
    """Emit a business metric as a structured log line."""
    logger.info("business.metric", metric_name=name, value=value, **(properties or {}))
