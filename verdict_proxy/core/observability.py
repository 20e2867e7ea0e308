from collections.abc import Callable
import time
from typing import Any

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
import psutil
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response as StarletteResponse
from starlette.routing import Match

from verdict_proxy.__version__ import __version__
from verdict_proxy.constants import APP_NAME

UNMATCHED_PATH = "<unmatched>"


class ProxyMetrics:
    """
    Prometheus collectors for the proxy.

    Collectors live in the default registry, so one instance per process
    (see get_metrics) no matter how many apps are created.
    """

    def __init__(self, app_name: str = APP_NAME) -> None:
        self.app_name = app_name

        self.REQUEST_COUNT = Counter(
            "verdict_proxy_requests_total",
            "Total requests processed",
            ["method", "path", "app_name"],
        )

        self.RESPONSE_COUNT = Counter(
            "verdict_proxy_responses_total",
            "Total responses sent",
            ["method", "path", "status_code", "app_name"],
        )

        self.REQUEST_DURATION = Histogram(
            "verdict_proxy_requests_duration_seconds",
            "Request processing time including queue wait",
            ["method", "path", "app_name"],
            buckets=[0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0],
        )

        self.REQUESTS_IN_PROGRESS = Gauge(
            "verdict_proxy_requests_in_progress",
            "Active requests being processed",
            ["method", "path", "app_name"],
        )

        self.EXCEPTION_COUNT = Counter(
            "verdict_proxy_exceptions_total",
            "Total exceptions raised during request processing",
            ["exception_type", "method", "path", "app_name"],
        )

        # Queue metrics
        self.QUEUE_DEPTH = Gauge(
            "verdict_proxy_queue_depth",
            "Tasks admitted but not yet finished, including the active one",
            ["app_name"],
        )

        self.QUEUE_WAIT_DURATION = Histogram(
            "verdict_proxy_queue_wait_seconds",
            "Time between admission and start of the backend call",
            ["app_name"],
            buckets=[0.001, 0.01, 0.1, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0, 1800.0],
        )

        # Backend metrics
        self.BACKEND_CALL_DURATION = Histogram(
            "verdict_proxy_backend_call_seconds",
            "Backend generate call duration",
            ["model", "outcome", "app_name"],
            buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0, 300.0, 600.0],
        )

        self.BACKEND_ERRORS = Counter(
            "verdict_proxy_backend_errors_total",
            "Backend call failures by type",
            ["error_type", "model", "app_name"],
        )

        self.IMAGE_PAYLOAD_BYTES = Histogram(
            "verdict_proxy_image_payload_bytes",
            "Size of base64 image data per request",
            ["app_name"],
            buckets=[1e4, 1e5, 5e5, 1e6, 2.5e6, 5e6, 1e7, 2.5e7, 5e7],
        )

        self.SYSTEM_CPU_USAGE = Gauge(
            "verdict_proxy_cpu_usage_percent",
            "CPU usage percentage",
            ["app_name"],
        )

        self.SYSTEM_MEMORY_USAGE = Gauge(
            "verdict_proxy_memory_usage_bytes",
            "Memory usage in bytes",
            ["memory_type", "app_name"],  # rss, vms
        )

        self.APP_INFO = Gauge(
            "verdict_proxy_app_info",
            "Application information",
            ["app_name", "version"],
        )
        self.APP_INFO.labels(app_name=self.app_name, version=__version__).set(1)

    def record_queue_depth(self, depth: int) -> None:
        self.QUEUE_DEPTH.labels(app_name=self.app_name).set(depth)

    def record_queue_wait(self, duration: float) -> None:
        self.QUEUE_WAIT_DURATION.labels(app_name=self.app_name).observe(duration)

    def record_backend_call(self, duration: float, model: str, outcome: str) -> None:
        self.BACKEND_CALL_DURATION.labels(model=model, outcome=outcome, app_name=self.app_name).observe(duration)

    def record_backend_error(self, error_type: str, model: str) -> None:
        self.BACKEND_ERRORS.labels(error_type=error_type, model=model, app_name=self.app_name).inc()

    def record_image_payload(self, size: int) -> None:
        self.IMAGE_PAYLOAD_BYTES.labels(app_name=self.app_name).observe(size)

    def update_system_metrics(self) -> None:
        """Update process resource metrics - called periodically"""
        self.SYSTEM_CPU_USAGE.labels(app_name=self.app_name).set(psutil.cpu_percent())

        memory_info = psutil.Process().memory_info()
        self.SYSTEM_MEMORY_USAGE.labels(memory_type="rss", app_name=self.app_name).set(memory_info.rss)
        self.SYSTEM_MEMORY_USAGE.labels(memory_type="vms", app_name=self.app_name).set(memory_info.vms)


_metrics: ProxyMetrics | None = None


def get_metrics() -> ProxyMetrics:
    """Get the process-wide metrics instance"""
    global _metrics  # noqa: PLW0603
    if _metrics is None:
        _metrics = ProxyMetrics()
    return _metrics


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Prometheus middleware for FastAPI request metrics
    """

    def __init__(self, app: Any, app_name: str = APP_NAME) -> None:
        super().__init__(app)
        self.app_name = app_name
        self.metrics = get_metrics()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process HTTP request with metrics collection"""
        method = request.method
        path = self._resolve_path(request)
        metrics = self.metrics

        start_time = time.time()
        metrics.REQUEST_COUNT.labels(method=method, path=path, app_name=self.app_name).inc()
        metrics.REQUESTS_IN_PROGRESS.labels(method=method, path=path, app_name=self.app_name).inc()

        response = None
        try:
            response = await call_next(request)
            status_code = response.status_code

        except Exception as e:
            metrics.EXCEPTION_COUNT.labels(
                exception_type=type(e).__name__,
                method=method,
                path=path,
                app_name=self.app_name,
            ).inc()
            raise

        finally:
            metrics.REQUESTS_IN_PROGRESS.labels(method=method, path=path, app_name=self.app_name).dec()

            if response is not None:
                duration = time.time() - start_time
                metrics.REQUEST_DURATION.labels(method=method, path=path, app_name=self.app_name).observe(duration)
                metrics.RESPONSE_COUNT.labels(
                    method=method,
                    path=path,
                    status_code=status_code,
                    app_name=self.app_name,
                ).inc()

        return response

    def _resolve_path(self, request: Request) -> str:
        """Route template for the request; unknown paths share one label"""
        for route in request.app.router.routes:
            match, _ = route.matches(request.scope)
            if match == Match.FULL:
                return getattr(route, "path", request.url.path)
        return UNMATCHED_PATH


def metrics_endpoint(request: Request) -> StarletteResponse:
    """Prometheus metrics endpoint"""
    return StarletteResponse(generate_latest(), media_type=CONTENT_TYPE_LATEST)
