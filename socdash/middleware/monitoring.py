from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from prometheus_client import Counter, Histogram, Gauge
import time
from typing import Callable

REQUEST_COUNT = Counter(
    'socdash_http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

REQUEST_DURATION = Histogram(
    'socdash_http_request_duration_seconds',
    'HTTP request duration',
    ['method', 'endpoint']
)

ACTIVE_REQUESTS = Gauge(
    'socdash_http_requests_active',
    'Active HTTP requests'
)


def _endpoint_label(request: Request) -> str:
    # Route template keeps alert and incident ids out of the label set
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class MonitoringMiddleware(BaseHTTPMiddleware):
    """
    Per-route request counters and latency histograms
    """

    async def dispatch(self, request: Request, call_next: Callable):
        method = request.method
        ACTIVE_REQUESTS.inc()
        start_time = time.time()
        status = 500

        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            endpoint = _endpoint_label(request)
            REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
            REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(time.time() - start_time)
            ACTIVE_REQUESTS.dec()
