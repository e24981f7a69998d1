"""FastAPI dependency providers."""
from fastapi import Depends, Request

from flowmeter.services.flow_registry import FlowRegistry
from flowmeter.services.health_service import HealthService
from flowmeter.services.query_service import QueryService
from flowmeter.services.registry import ServiceRegistry


def get_service_registry(request: Request) -> ServiceRegistry:
    """Return the service registry stored on the FastAPI application state."""

    registry = getattr(request.app.state, "services", None)
    if not isinstance(registry, ServiceRegistry):
        raise RuntimeError("Service registry not initialised")
    return registry


def get_flow_registry(registry: ServiceRegistry = Depends(get_service_registry)) -> FlowRegistry:
    return registry.flow_registry


def get_query_service(registry: ServiceRegistry = Depends(get_service_registry)) -> QueryService:
    return registry.query_service


def get_health_service(registry: ServiceRegistry = Depends(get_service_registry)) -> HealthService:
    return HealthService(registry=registry)
