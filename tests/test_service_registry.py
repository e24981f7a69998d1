"""Startup and shutdown of the wired services."""
from __future__ import annotations

import socket
from typing import Callable

import pytest

from flowmeter.core.config import PredefinedFlow, Settings
from flowmeter.core.exceptions import FlowAlreadyExistsError, ServiceError
from flowmeter.core.metrics import MetricsCollector
from flowmeter.services import ServiceRegistry


class TestServiceRegistry:
    @pytest.mark.asyncio
    async def test_startup_registers_predefined_flows(self, make_settings: Callable[..., Settings]) -> None:
        settings = make_settings(
            predefined_flows=[PredefinedFlow(name="cpu", expire=5), PredefinedFlow(name="mem")],
        )
        registry = ServiceRegistry(settings, metrics=MetricsCollector())

        await registry.startup()
        try:
            assert registry.flow_registry.get("cpu").capacity == 5
            assert registry.flow_registry.get("mem").capacity == settings.default_expire
            assert registry.clock_driver.is_running
            assert registry.ingestion_service.is_running
            assert registry.udp_listener.is_listening
        finally:
            await registry.shutdown()

        assert not registry.clock_driver.is_running
        assert not registry.ingestion_service.is_running
        assert not registry.udp_listener.is_listening

    @pytest.mark.asyncio
    async def test_duplicate_predefined_flow_is_fatal(self, make_settings: Callable[..., Settings]) -> None:
        settings = make_settings(
            predefined_flows=[PredefinedFlow(name="cpu", expire=5), PredefinedFlow(name="cpu", expire=9)],
        )
        registry = ServiceRegistry(settings, metrics=MetricsCollector())

        with pytest.raises(FlowAlreadyExistsError):
            await registry.startup()

        assert not registry.clock_driver.is_running

    @pytest.mark.asyncio
    async def test_bind_failure_is_fatal_and_rolls_back(self, make_settings: Callable[..., Settings]) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as taken:
            taken.bind(("127.0.0.1", 0))
            port = taken.getsockname()[1]
            registry = ServiceRegistry(make_settings(receive_port=port), metrics=MetricsCollector())

            with pytest.raises(ServiceError) as excinfo:
                await registry.startup()

        assert excinfo.value.service_name == "udp-listener"
        assert not registry.clock_driver.is_running
        assert not registry.ingestion_service.is_running
