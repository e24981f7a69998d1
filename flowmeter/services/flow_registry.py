"""Registry that owns every flow ring buffer and its access lock."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

from flowmeter.core.exceptions import FlowAlreadyExistsError, UnknownFlowError
from flowmeter.models import FlowBuffer, WindowStats
from flowmeter.schemas import FlowInfo

logger = logging.getLogger(__name__)


class Flow:
    """Named ring buffer plus the lock serializing access to it."""

    __slots__ = ("name", "_buffer", "_lock")

    def __init__(self, name: str, capacity: int) -> None:
        self.name = name
        self._buffer = FlowBuffer(capacity)
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"Flow(name={self.name!r}, capacity={self.capacity})"

    @property
    def capacity(self) -> int:
        return self._buffer.capacity

    async def add_sample(self, value: float) -> None:
        async with self._lock:
            self._buffer.add_sample(value)

    async def advance(self) -> None:
        async with self._lock:
            self._buffer.advance()

    async def window_stats(self, window: int) -> WindowStats:
        async with self._lock:
            return self._buffer.window_stats(window)

    async def window_average(self, window: int) -> Optional[float]:
        return (await self.window_stats(window)).average

    def info(self) -> FlowInfo:
        return FlowInfo(name=self.name, capacity=self.capacity)


class FlowRegistry:
    """Map flow names to Flow instances and apply the creation policy.

    Lookups never take the registry lock. Inserting a new name does, and
    re-checks under it, so concurrent first samples for the same name end up
    sharing a single Flow.
    """

    def __init__(self, *, implicit_create: bool, default_expire: int) -> None:
        if default_expire < 1:
            raise ValueError(f"default_expire must be at least 1, got {default_expire}")
        self._flows: Dict[str, Flow] = {}
        self._flows_lock = asyncio.Lock()
        self.implicit_create = implicit_create
        self.default_expire = default_expire

    def __len__(self) -> int:
        return len(self._flows)

    def __contains__(self, name: object) -> bool:
        return name in self._flows

    def _capacity_for(self, expire: int) -> int:
        return expire if expire > 0 else self.default_expire

    async def create_flow(self, name: str, expire: int = 0) -> Flow:
        """Register a new flow; registering the same name twice is an error."""

        async with self._flows_lock:
            if name in self._flows:
                raise FlowAlreadyExistsError(name)
            flow = Flow(name, self._capacity_for(expire))
            self._flows[name] = flow
        logger.info("Registered flow [%s] with expire [%d] seconds", name, flow.capacity)
        return flow

    async def get_or_create(self, name: str) -> Flow:
        flow = self._flows.get(name)
        if flow is not None:
            return flow
        if not self.implicit_create:
            raise UnknownFlowError(name, f"flow [{name}] is unknown and implicit flow creation is disabled")

        async with self._flows_lock:
            flow = self._flows.get(name)
            if flow is None:
                flow = Flow(name, self.default_expire)
                self._flows[name] = flow
                logger.info(
                    "Received unknown flow [%s], implicitly adding to storage with expire [%d] seconds",
                    name,
                    self.default_expire,
                )
            return flow

    def get(self, name: str) -> Optional[Flow]:
        return self._flows.get(name)

    def snapshot(self) -> list[Flow]:
        return list(self._flows.values())

    def describe(self) -> list[FlowInfo]:
        return [flow.info() for flow in sorted(self.snapshot(), key=lambda f: f.name)]
