"""Periodic task rotating every flow ring once per tick.

The driver sleeps on a monotonic schedule rather than a fixed delay so the
per-tick sweep does not make the schedule drift. When the event loop stalls
for longer than a tick the missed ticks are logged and coalesced into one
rotation: the samples of the stalled period land in a single bucket, but no
bucket is skipped or corrupted.
"""
import asyncio
import logging
import time
from typing import Callable, Optional

from flowmeter.core.request_context import background_context
from flowmeter.core.tasks import cancel_task, monitor_task
from flowmeter.services.flow_registry import FlowRegistry

logger = logging.getLogger(__name__)


class ClockDriver:
	"""Advance all registered flows once per ``interval`` seconds."""

	def __init__(
		self,
		registry: FlowRegistry,
		*,
		interval: float = 1.0,
		clock: Callable[[], float] = time.monotonic,
	) -> None:
		if interval <= 0:
			raise ValueError("interval must be positive")
		self._registry = registry
		self._interval = interval
		self._clock = clock
		self._is_running = False
		self._current_task: Optional[asyncio.Task[None]] = None
		self.ticks = 0
		self.missed_ticks = 0

	@property
	def interval(self) -> float:
		return self._interval

	@property
	def is_running(self) -> bool:
		return self._is_running

	async def start(self) -> None:
		if self._is_running:
			return

		with background_context("clock"):
			self._is_running = True
			self._current_task = monitor_task(
				asyncio.create_task(self._clock_loop(), name="clock-driver"),
				name="clock-driver",
				logger=logger,
				on_error=self._handle_task_crash,
			)
			logger.info("Clock driver started with %.3fs interval", self._interval)

	async def stop(self) -> None:
		self._is_running = False
		task, self._current_task = self._current_task, None
		await cancel_task(task)
		logger.info("Clock driver stopped after %d ticks", self.ticks)

	async def tick(self) -> int:
		"""Rotate every flow currently registered; return how many were advanced."""

		flows = self._registry.snapshot()
		for flow in flows:
			await flow.advance()
		self.ticks += 1
		return len(flows)

	def _handle_task_crash(self, exc: BaseException) -> None:
		if not self._is_running:
			return
		logger.error("Clock driver crashed, scheduling restart")
		self._is_running = False
		asyncio.create_task(self.start())

	async def _clock_loop(self) -> None:
		with background_context("clock"):
			next_tick = self._clock() + self._interval
			while self._is_running:
				delay = next_tick - self._clock()
				if delay > 0:
					await asyncio.sleep(delay)

				now = self._clock()
				behind = int((now - next_tick) // self._interval)
				if behind > 0:
					self.missed_ticks += behind
					logger.warning(
						"Clock driver fell behind by %d tick(s), rotating once for the whole period",
						behind,
					)
					next_tick += behind * self._interval

				advanced = await self.tick()
				logger.debug("Tick %d advanced %d flow(s)", self.ticks, advanced)
				next_tick += self._interval
