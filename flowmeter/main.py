"""FastAPI application factory."""
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import time
from uuid import uuid4

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.datastructures import MutableHeaders
from starlette.requests import Request

from flowmeter.api.error_handlers import register_exception_handlers
from flowmeter.api.router import api_router
from flowmeter.core.config import Settings, get_settings
from flowmeter.core.logging import configure_logging
from flowmeter.core.metrics import MetricsCollector, metrics as default_metrics
from flowmeter.core.request_context import clear_request_id, set_request_id
from flowmeter.services.registry import ServiceRegistry
from flowmeter.web.routes import STATIC_DIR, router as web_router

logger = logging.getLogger("flowmeter")


class RequestIdMiddleware:
    """Tag each HTTP request with an id and record its latency."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive=receive)
        path = scope.get("path") or ""
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        set_request_id(request_id)
        start = time.perf_counter()
        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 500)
                headers = MutableHeaders(scope=message)
                headers["X-Request-ID"] = request_id
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            clear_request_id()

        duration_ms = int((time.perf_counter() - start) * 1000)
        collector: MetricsCollector = getattr(scope["app"].state, "metrics", None) or default_metrics
        metric_name = f"api.{path}"
        collector.record(metric_name, ok=status_code < 400, duration_ms=duration_ms)
        if collector.should_alert(metric_name):
            logger.warning("Metric alert for %s (slow or error rate)", metric_name)


def create_app(
    settings: Settings | None = None,
    *,
    metrics: MetricsCollector | None = None,
    setup_logging: bool = True,
) -> FastAPI:
    """Build the application around a single ServiceRegistry."""

    settings = settings or get_settings()
    if setup_logging:
        configure_logging(settings)
    if settings.using_defaults:
        logger.info("There is no config file [%s], using defaults", settings.config_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage startup and shutdown of background services."""

        registry = ServiceRegistry(settings, metrics=app.state.metrics)
        app.state.services = registry

        await registry.startup()
        logger.info("flowmeter started, http on %s:%d", settings.http_ip, settings.http_port)
        try:
            yield
        finally:
            await registry.shutdown()
            logger.info("flowmeter stopped")

    app = FastAPI(
        title="flowmeter",
        description="Moving averages over per-second aggregates of UDP sample flows",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.metrics = metrics or default_metrics

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    app.include_router(web_router)
    app.include_router(api_router)
    register_exception_handlers(app)
    return app
