"""OpenTelemetry tracing and metrics for outgoing requests.

Wraps a transport so each request runs inside an HTTP client span, with trace
context propagated to the server through the request headers.

Install with: uv add "sdktree[otel]"
"""

from __future__ import annotations

import dataclasses
import time
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from collections.abc import Callable

    from sdktree.transport import Transport
    from sdktree.types import ResponseEnvelope, SentRequest

try:
    from opentelemetry import metrics, trace
    from opentelemetry.propagate import inject
    from opentelemetry.trace import (
        SpanKind,
        StatusCode,
        TracerProvider,
    )
except ImportError as e:
    msg = (
        "OpenTelemetry middleware requires the 'otel' extra. "
        "Install with: uv add 'sdktree[otel]'"
    )
    raise ImportError(msg) from e

from sdktree.errors import TransportError

_DURATION_BUCKETS = (
    0.005,
    0.01,
    0.025,
    0.05,
    0.075,
    0.1,
    0.25,
    0.5,
    0.75,
    1.0,
    2.5,
    5.0,
    7.5,
    10.0,
)


class _TracingTransport:
    """Transport wrapper that records a client span per request."""

    __slots__ = ("_active_requests", "_duration", "_tracer", "_transport")

    def __init__(
        self,
        transport: Transport,
        tracer: trace.Tracer,
        duration: metrics.Histogram,
        active_requests: metrics.UpDownCounter,
    ) -> None:
        self._transport = transport
        self._tracer = tracer
        self._duration = duration
        self._active_requests = active_requests

    async def send(self, request: SentRequest) -> ResponseEnvelope:
        url = urlsplit(request.url)
        method = request.method
        span_name = f"{method} {request.template}" if request.template else method

        # Span attributes (stable HTTP client semantic conventions)
        attributes: dict[str, str | int] = {
            "http.request.method": method,
            "url.full": request.url,
            "server.address": url.hostname or "",
        }
        if url.port is not None:
            attributes["server.port"] = url.port
        if request.template:
            attributes["url.template"] = request.template

        # Metric attributes (required by the HTTP client semantic conventions)
        metric_attrs: dict[str, str | int] = {
            "http.request.method": method,
            "server.address": url.hostname or "",
        }

        self._active_requests.add(1, metric_attrs)
        start = time.perf_counter()
        status: int | None = None

        with self._tracer.start_as_current_span(
            span_name,
            kind=SpanKind.CLIENT,
            attributes=attributes,
            record_exception=True,
            set_status_on_exception=True,
        ) as span:
            headers = dict(request.headers)
            inject(headers)  # traceparent of the span above
            try:
                envelope = await self._transport.send(
                    dataclasses.replace(request, headers=headers)
                )
                status = envelope.status
                return envelope
            except TransportError as e:
                status = e.status
                if status is None:
                    cause = e.__cause__ or e
                    span.set_attribute("error.type", type(cause).__qualname__)
                raise
            finally:
                duration = time.perf_counter() - start
                self._active_requests.add(-1, metric_attrs)
                duration_attrs = dict(metric_attrs)
                if status is not None:
                    span.set_attribute("http.response.status_code", status)
                    duration_attrs["http.response.status_code"] = status
                    if status >= 400:
                        span.set_status(StatusCode.ERROR)
                self._duration.record(duration, duration_attrs)


def otel(
    *,
    tracer_provider: TracerProvider | None = None,
    meter_provider: metrics.MeterProvider | None = None,
) -> Callable[[Transport], Transport]:
    """Create OpenTelemetry tracing and metrics transport middleware.

    Creates client spans and metrics with HTTP semantic conventions for each
    request and injects the trace context (e.g. ``traceparent``) into the
    outgoing headers. Only depends on ``opentelemetry-api``; users bring their
    own SDK and exporters.

    Metrics emitted:
        - ``http.client.request.duration`` (histogram, seconds)
        - ``http.client.active_requests`` (up-down counter)

    Args:
        tracer_provider: Optional TracerProvider. If None, uses the global provider.
        meter_provider: Optional MeterProvider. If None, uses the global provider.

    Returns:
        Function that wraps a transport with tracing and metrics.

    Example:
        api = create_client(url, transport=otel()(HTTPXTransport()))

        # With custom providers
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.metrics import MeterProvider
        traced = otel(
            tracer_provider=TracerProvider(),
            meter_provider=MeterProvider(),
        )
        api = create_client(url, transport=traced(HTTPXTransport()))
    """
    tracer = trace.get_tracer(
        "sdktree",
        tracer_provider=tracer_provider,
    )
    meter = metrics.get_meter(
        "sdktree",
        meter_provider=meter_provider,
    )
    duration_histogram = meter.create_histogram(
        "http.client.request.duration",
        unit="s",
        description="Duration of HTTP client requests.",
        explicit_bucket_boundaries_advisory=_DURATION_BUCKETS,
    )
    active_requests_counter = meter.create_up_down_counter(
        "http.client.active_requests",
        unit="{request}",
        description="Number of active HTTP client requests.",
    )

    def middleware(transport: Transport) -> Transport:
        return _TracingTransport(
            transport, tracer, duration_histogram, active_requests_counter
        )

    return middleware
