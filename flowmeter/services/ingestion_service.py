"""Ingestion path: route parsed samples into their flow rings."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from flowmeter.core.exceptions import UnknownFlowError
from flowmeter.core.metrics import MetricsCollector, metrics as default_metrics
from flowmeter.core.request_context import background_context
from flowmeter.core.tasks import cancel_task, monitor_task
from flowmeter.services.flow_registry import FlowRegistry
from flowmeter.services.parsers.sample_parser import Sample

logger = logging.getLogger(__name__)

COUNTER_PREFIX = "ingest."


class IngestionService:
    """Record samples, resolving or creating their flow on the way.

    Transports hand samples over with :meth:`submit`, which never blocks: the
    sample goes into a bounded queue drained by ``workers`` tasks. A full
    queue drops the sample.
    """

    def __init__(
        self,
        registry: FlowRegistry,
        *,
        workers: int = 4,
        queue_size: int = 10_000,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._registry = registry
        self._workers_count = max(1, workers)
        self._queue_size = max(1, queue_size)
        self._metrics = metrics or default_metrics
        self._queue: Optional[asyncio.Queue[Sample]] = None
        self._workers: list[asyncio.Task] = []

    @property
    def is_running(self) -> bool:
        return bool(self._workers)

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue else 0

    def count(self, outcome: str, amount: int = 1) -> None:
        self._metrics.increment(COUNTER_PREFIX + outcome, amount)

    def counters(self) -> dict[str, int]:
        return self._metrics.counters(COUNTER_PREFIX)

    async def ingest(self, name: str, value: float) -> bool:
        """Add one sample to ``name``; False when the flow is unknown."""

        try:
            flow = await self._registry.get_or_create(name)
        except UnknownFlowError as exc:
            logger.warning("Can't store data: %s", exc.detail)
            self.count("unknown_flow")
            return False
        await flow.add_sample(value)
        self.count("accepted")
        return True

    def submit(self, sample: Sample) -> bool:
        """Queue a sample for the workers; False when it had to be dropped."""

        if self._queue is None:
            raise RuntimeError("Ingestion service not started")
        try:
            self._queue.put_nowait(sample)
        except asyncio.QueueFull:
            logger.warning("Ingestion queue full, dropping sample for flow [%s]", sample.flow)
            self.count("queue_full")
            return False
        return True

    async def drain(self) -> None:
        """Wait until every queued sample has been recorded."""
        if self._queue is not None:
            await self._queue.join()

    async def start(self) -> None:
        if self._workers:
            return
        self._queue = asyncio.Queue(maxsize=self._queue_size)
        self._workers = [
            monitor_task(
                asyncio.create_task(self._worker(self._queue), name=f"ingest-worker-{idx}"),
                name=f"ingest-worker-{idx}",
                logger=logger,
            )
            for idx in range(self._workers_count)
        ]
        logger.info("Ingestion started with %d worker(s)", self._workers_count)

    async def stop(self) -> None:
        workers, self._workers = self._workers, []
        for task in workers:
            await cancel_task(task)
        dropped = self.pending
        if dropped:
            logger.warning("Ingestion stopped with %d queued sample(s) discarded", dropped)
        self._queue = None
        logger.info("Ingestion stopped")

    async def _worker(self, queue: asyncio.Queue[Sample]) -> None:
        with background_context("ingest"):
            while True:
                sample = await queue.get()
                try:
                    await self.ingest(sample.flow, sample.value)
                except Exception as exc:  # noqa: BLE001
                    logger.error("Failed to record sample for flow [%s]: %s", sample.flow, exc, exc_info=exc)
                finally:
                    queue.task_done()
