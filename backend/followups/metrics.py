"""Request counters exposed in the Prometheus text format."""
from __future__ import annotations

import time

from prometheus_client import CollectorRegistry, Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


class RequestMetrics:
    """Counters for one application, kept in their own registry."""

    def __init__(self, namespace: str = "followups") -> None:
        self.registry = CollectorRegistry()
        self.requests_received = Counter(
            "requests_received",
            "Requests accepted by the server",
            namespace=namespace,
            registry=self.registry,
        )
        self.responses_sent = Counter(
            "responses_sent",
            "Responses written back to clients",
            namespace=namespace,
            registry=self.registry,
        )
        self.responses_by_status = Counter(
            "responses_by_status",
            "Responses sent, by HTTP status code",
            ["status"],
            namespace=namespace,
            registry=self.registry,
        )
        self.processing_time = Counter(
            "processing_time_microseconds",
            "Cumulative time spent handling requests",
            namespace=namespace,
            registry=self.registry,
        )
        self.request_duration = Histogram(
            "request_duration_seconds",
            "Request duration in seconds",
            ["method"],
            namespace=namespace,
            registry=self.registry,
        )

    def observe(self, method: str, status_code: int, elapsed: float) -> None:
        self.responses_sent.inc()
        self.responses_by_status.labels(status=str(status_code)).inc()
        self.processing_time.inc(elapsed * 1_000_000)
        self.request_duration.labels(method=method).observe(elapsed)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Outermost layer: every request is counted, rejected ones included."""

    def __init__(self, app, metrics: RequestMetrics) -> None:
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        self.metrics.requests_received.inc()
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Turned into a 500 by the server error handler further out.
            self.metrics.observe(request.method, 500, time.perf_counter() - started)
            raise
        self.metrics.observe(request.method, response.status_code, time.perf_counter() - started)
        return response
