"""Tests for flow creation policy and per-flow locking."""
from __future__ import annotations

import asyncio

import pytest

from flowmeter.core.exceptions import FlowAlreadyExistsError, UnknownFlowError
from flowmeter.services.flow_registry import Flow, FlowRegistry


class TestCreateFlow:
    @pytest.mark.asyncio
    async def test_uses_explicit_expire(self) -> None:
        registry = FlowRegistry(implicit_create=False, default_expire=60)
        flow = await registry.create_flow("cpu", 5)
        assert flow.capacity == 5
        assert "cpu" in registry

    @pytest.mark.asyncio
    async def test_zero_expire_falls_back_to_default(self) -> None:
        registry = FlowRegistry(implicit_create=False, default_expire=60)
        flow = await registry.create_flow("cpu", 0)
        assert flow.capacity == 60

    @pytest.mark.asyncio
    async def test_duplicate_registration_fails(self) -> None:
        registry = FlowRegistry(implicit_create=False, default_expire=60)
        original = await registry.create_flow("cpu", 5)

        with pytest.raises(FlowAlreadyExistsError):
            await registry.create_flow("cpu", 10)

        assert registry.get("cpu") is original
        assert original.capacity == 5

    def test_rejects_invalid_default_expire(self) -> None:
        with pytest.raises(ValueError):
            FlowRegistry(implicit_create=True, default_expire=0)


class TestGetOrCreate:
    @pytest.mark.asyncio
    async def test_returns_same_instance(self) -> None:
        registry = FlowRegistry(implicit_create=True, default_expire=10)
        first = await registry.get_or_create("cpu")
        second = await registry.get_or_create("cpu")

        await first.add_sample(7.0)

        assert first is second
        assert await second.window_average(1) == 7.0

    @pytest.mark.asyncio
    async def test_never_resizes_existing_flow(self) -> None:
        registry = FlowRegistry(implicit_create=True, default_expire=10)
        created = await registry.create_flow("cpu", 3)
        assert await registry.get_or_create("cpu") is created
        assert created.capacity == 3

    @pytest.mark.asyncio
    async def test_unknown_flow_when_implicit_create_disabled(self) -> None:
        registry = FlowRegistry(implicit_create=False, default_expire=10)
        with pytest.raises(UnknownFlowError) as excinfo:
            await registry.get_or_create("gpu")
        assert excinfo.value.flow == "gpu"
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_implicit_flow_uses_default_expire(self) -> None:
        registry = FlowRegistry(implicit_create=True, default_expire=42)
        flow = await registry.get_or_create("disk")
        assert flow.capacity == 42

    @pytest.mark.asyncio
    async def test_concurrent_first_samples_share_one_flow(self) -> None:
        registry = FlowRegistry(implicit_create=True, default_expire=10)

        flows = await asyncio.gather(*(registry.get_or_create("net") for _ in range(50)))

        assert len(registry) == 1
        assert all(flow is flows[0] for flow in flows)


class TestLookups:
    @pytest.mark.asyncio
    async def test_get_never_creates(self) -> None:
        registry = FlowRegistry(implicit_create=True, default_expire=10)
        assert registry.get("cpu") is None
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_snapshot_is_a_copy(self) -> None:
        registry = FlowRegistry(implicit_create=True, default_expire=10)
        await registry.create_flow("a")
        snapshot = registry.snapshot()
        await registry.create_flow("b")

        assert [flow.name for flow in snapshot] == ["a"]
        assert len(registry.snapshot()) == 2

    @pytest.mark.asyncio
    async def test_describe_is_sorted(self) -> None:
        registry = FlowRegistry(implicit_create=True, default_expire=10)
        await registry.create_flow("mem", 3)
        await registry.create_flow("cpu", 5)

        described = registry.describe()

        assert [(info.name, info.capacity) for info in described] == [("cpu", 5), ("mem", 3)]


class TestFlowConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_samples_are_not_lost(self) -> None:
        flow = Flow("cpu", 5)
        k, value = 500, 0.25

        await asyncio.gather(*(flow.add_sample(value) for _ in range(k)))

        stats = await flow.window_stats(1)
        assert stats.count == k
        assert stats.sum == pytest.approx(k * value)

    @pytest.mark.asyncio
    async def test_samples_interleaved_with_rotations(self) -> None:
        flow = Flow("cpu", 100)

        async def writer() -> None:
            for _ in range(20):
                await flow.add_sample(1.0)
                await asyncio.sleep(0)

        async def rotator() -> None:
            for _ in range(10):
                await flow.advance()
                await asyncio.sleep(0)

        await asyncio.gather(writer(), writer(), rotator())

        stats = await flow.window_stats(100)
        assert stats.count == 40
        assert stats.sum == 40.0
