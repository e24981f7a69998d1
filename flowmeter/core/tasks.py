"""Utilities for running and monitoring background asyncio tasks."""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Sequence

Logger = logging.Logger
Step = Callable[[], Awaitable[None]]


def monitor_task(task: asyncio.Task, *, name: str, logger: Logger, on_error: Callable[[BaseException], None] | None = None) -> asyncio.Task:
    """Attach a callback to log unexpected task termination."""

    def _callback(finished: asyncio.Task) -> None:
        with contextlib.suppress(asyncio.CancelledError):
            exc = finished.exception()
            if exc is None:
                return
            logger.error("Background task %s crashed: %s", name, exc, exc_info=exc)
            if on_error:
                on_error(exc)

    task.add_done_callback(_callback)
    return task


async def cancel_task(task: asyncio.Task | None) -> None:
    """Cancel ``task`` and wait for it to unwind."""

    if task is None or task.done():
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


class LifecycleManager:
    """Start services in order and stop them in reverse order.

    A failing start step aborts startup: the steps that already ran are
    stopped again before the error propagates.
    """

    def __init__(self, *, name: str, logger: Logger) -> None:
        self._name = name
        self._logger = logger
        self._started: list[tuple[Step, Step]] = []

    async def start(self, steps: Sequence[tuple[Step, Step]]) -> None:
        if self._started:
            return
        for start, stop in steps:
            try:
                await start()
            except BaseException:
                await self.stop()
                raise
            self._started.append((start, stop))

    async def stop(self) -> None:
        started, self._started = self._started, []
        for _, stop in reversed(started):
            try:
                await stop()
            except Exception as exc:  # noqa: BLE001
                self._logger.error("%s stop failed: %s", self._name, exc, exc_info=exc)
