"""Shared fixtures for flowmeter tests."""
from __future__ import annotations

from typing import Any, Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from flowmeter.core.config import PredefinedFlow, Settings
from flowmeter.core.metrics import MetricsCollector
from flowmeter.main import create_app


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Settings bound to loopback with an ephemeral UDP port and a slow clock."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "receive_ip": "127.0.0.1",
            "receive_port": 0,
            "tick_interval": 3600.0,
            "ingest_workers": 2,
            "implicit_create": False,
            "default_expire": 60,
            "predefined_flows": [PredefinedFlow(name="cpu", expire=5)],
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def app(make_settings: Callable[..., Settings], metrics: MetricsCollector) -> FastAPI:
    return create_app(make_settings(), metrics=metrics, setup_logging=False)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
