"""UDP endpoint receiving ``<flow> <value>`` datagrams."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from flowmeter.core.config import MAX_PAYLOAD_SIZE
from flowmeter.core.exceptions import MalformedSampleError, PayloadTooLargeError, ServiceError
from flowmeter.core.request_context import background_context
from flowmeter.services.ingestion_service import IngestionService
from flowmeter.services.parsers.sample_parser import parse_sample

logger = logging.getLogger(__name__)


class _SampleProtocol(asyncio.DatagramProtocol):
    def __init__(self, ingestion: IngestionService, max_payload_size: int) -> None:
        self._ingestion = ingestion
        self._max_payload_size = max_payload_size

    def datagram_received(self, data: bytes, addr) -> None:
        with background_context("udp"):
            try:
                sample = parse_sample(data, max_size=self._max_payload_size)
            except PayloadTooLargeError as exc:
                logger.warning("%s", exc.reason)
                self._ingestion.count("too_large")
                return
            except MalformedSampleError as exc:
                logger.warning("Dropping sample from %s: %s", addr, exc.reason)
                self._ingestion.count("malformed")
                return
            self._ingestion.submit(sample)

    def error_received(self, exc: Exception) -> None:
        with background_context("udp"):
            logger.warning("udp read error: %s", exc)


class UdpListener:
    """Bind the sample socket and feed datagrams to the ingestion service."""

    def __init__(
        self,
        ingestion: IngestionService,
        *,
        host: str,
        port: int,
        max_payload_size: int = MAX_PAYLOAD_SIZE,
    ) -> None:
        self._ingestion = ingestion
        self._host = host
        self._port = port
        self._max_payload_size = max_payload_size
        self._transport: Optional[asyncio.DatagramTransport] = None

    @property
    def is_listening(self) -> bool:
        return self._transport is not None and not self._transport.is_closing()

    @property
    def address(self) -> tuple[str, int] | None:
        """Bound (host, port); useful when configured with port 0."""
        if self._transport is None:
            return None
        sockname = self._transport.get_extra_info("sockname")
        return sockname[0], sockname[1]

    async def start(self) -> None:
        if self._transport is not None:
            return
        loop = asyncio.get_running_loop()
        try:
            transport, _ = await loop.create_datagram_endpoint(
                lambda: _SampleProtocol(self._ingestion, self._max_payload_size),
                local_addr=(self._host, self._port),
            )
        except OSError as exc:
            raise ServiceError(
                "udp-listener",
                f"can't bind to udp port [{self._host}:{self._port}]: {exc}",
                extra={"host": self._host, "port": self._port},
            ) from exc
        self._transport = transport
        host, port = self.address
        logger.info("Listening udp on %s:%d", host, port)

    async def stop(self) -> None:
        if self._transport is None:
            return
        self._transport.close()
        self._transport = None
        logger.info("UDP listener closed")
