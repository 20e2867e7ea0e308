import asyncio
from contextlib import asynccontextmanager
import contextlib

from fastapi import FastAPI
from starlette.responses import JSONResponse

from verdict_proxy import proxy, system
from verdict_proxy.config.settings import AppSettings, settings
from verdict_proxy.constants import APP_NAME, APP_TITLE, PATH_PREFIX
from verdict_proxy.core.backend_client import BackendClient
from verdict_proxy.core.metrics_recorder import MetricsRecorder
from verdict_proxy.core.middleware import BodySizeLimitMiddleware, PermissiveCORSMiddleware
from verdict_proxy.core.observability import PrometheusMiddleware, get_metrics, metrics_endpoint
from verdict_proxy.core.request_queue import SerialRequestQueue
from verdict_proxy.log import get_logger, setup_logging
from verdict_proxy.proxy.handler import ProxyHandler

setup_logging(settings.log_level)
logger = get_logger(__name__)


async def update_system_metrics(interval: float) -> None:
    """Refresh process metrics until cancelled"""
    while True:
        try:
            get_metrics().update_system_metrics()
        except Exception as e:
            logger.debug(f"System metrics update failed: {e}")
        await asyncio.sleep(interval)


def create_app(app_settings: AppSettings | None = None, backend_client: BackendClient | None = None) -> FastAPI:
    """
    Build the proxy application.

    Args:
        app_settings: Settings to use, defaults to the environment-derived settings
        backend_client: Backend client to use instead of one built from settings
    """
    app_settings = app_settings or settings
    observability = app_settings.observability

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = backend_client or BackendClient(
            app_settings.backend.generate_url, timeout_ms=app_settings.backend.timeout_ms
        )
        async with client:
            queue = SerialRequestQueue(client.call, MetricsRecorder(enabled=observability.enable_metrics))
            await queue.start()
            app.state.request_queue = queue
            app.state.proxy_handler = ProxyHandler(queue, app_settings.backend)
            logger.info(
                "%s started, forwarding requests serially to %s",
                APP_TITLE,
                app_settings.backend.generate_url,
            )

            metrics_task = None
            if observability.enable_metrics:
                metrics_task = asyncio.create_task(update_system_metrics(observability.system_metrics_interval_s))
            try:
                yield
            finally:
                if metrics_task is not None:
                    metrics_task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await metrics_task
                await queue.stop()
                logger.info("%s shut down", APP_TITLE)

    app = FastAPI(
        title=APP_TITLE,
        docs_url=f"{PATH_PREFIX}/docs",
        redoc_url=f"{PATH_PREFIX}/redoc",
        openapi_url=f"{PATH_PREFIX}/openapi.json",
        description="Serializing proxy in front of a local vision-language inference backend",
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    if observability.enable_metrics:
        app.add_middleware(PrometheusMiddleware, app_name=APP_NAME)
        app.add_route(f"{PATH_PREFIX}/metrics", metrics_endpoint)
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=app_settings.proxy.max_body_bytes)
    # Added last so it wraps everything else
    app.add_middleware(PermissiveCORSMiddleware)

    app.include_router(proxy.router)
    app.include_router(proxy.health_router, prefix=PATH_PREFIX)
    app.include_router(system.router, prefix=PATH_PREFIX)

    @app.get(f"{PATH_PREFIX}/health")
    async def health():
        """Basic health check endpoint"""
        return JSONResponse(content={"status": "available", "service": APP_NAME})

    @app.get("/")
    async def root():
        """Root endpoint"""
        return JSONResponse(
            content={
                "message": f"Welcome to {APP_TITLE}",
                "generate": "/api/generate",
                "docs": f"{PATH_PREFIX}/docs",
                "health": f"{PATH_PREFIX}/health",
            }
        )

    return app


app = create_app()
