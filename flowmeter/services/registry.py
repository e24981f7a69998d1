"""Service registry that wires all application services together."""
import asyncio
import logging

from flowmeter.core.config import Settings
from flowmeter.core.metrics import MetricsCollector, metrics as default_metrics
from flowmeter.core.request_context import background_context
from flowmeter.core.tasks import LifecycleManager
from flowmeter.services.clock_driver import ClockDriver
from flowmeter.services.flow_registry import FlowRegistry
from flowmeter.services.ingestion_service import IngestionService
from flowmeter.services.query_service import QueryService
from flowmeter.services.udp_listener import UdpListener

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Container object for dependency injection.

    Built once per process from the resolved settings; every request handler
    and background task reaches shared state through it.
    """

    def __init__(self, settings: Settings, *, metrics: MetricsCollector | None = None) -> None:
        self.settings = settings
        self.metrics = metrics or default_metrics
        self.flow_registry = FlowRegistry(
            implicit_create=settings.implicit_create,
            default_expire=settings.default_expire,
        )
        self.clock_driver = ClockDriver(self.flow_registry, interval=settings.tick_interval)
        self.ingestion_service = IngestionService(
            self.flow_registry,
            workers=settings.ingest_workers,
            queue_size=settings.ingest_queue_size,
            metrics=self.metrics,
        )
        self.udp_listener = UdpListener(
            self.ingestion_service,
            host=settings.receive_ip,
            port=settings.receive_port,
            max_payload_size=settings.max_payload_size,
        )
        self.query_service = QueryService(self.flow_registry)
        self._startup_lock = asyncio.Lock()
        self._shutdown_lock = asyncio.Lock()
        self._lifecycle = LifecycleManager(name="service-registry", logger=logger)

    async def register_predefined_flows(self) -> None:
        for predefined in self.settings.predefined_flows:
            await self.flow_registry.create_flow(predefined.name, predefined.expire)

    async def _noop(self) -> None:
        return None

    async def startup(self) -> None:
        async with self._startup_lock:
            with background_context("registry"):
                logger.info("Starting background services")
                await self._lifecycle.start(
                    [
                        (self.register_predefined_flows, self._noop),
                        (self.clock_driver.start, self.clock_driver.stop),
                        (self.ingestion_service.start, self.ingestion_service.stop),
                        (self.udp_listener.start, self.udp_listener.stop),
                    ]
                )
                logger.info("Background services started")

    async def shutdown(self) -> None:
        async with self._shutdown_lock:
            with background_context("registry"):
                logger.info("Stopping background services")
                await self._lifecycle.stop()
                logger.info("Background services stopped")
