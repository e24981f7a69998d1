"""Metrics endpoint for operational visibility."""
from fastapi import APIRouter, Depends

from flowmeter.api.dependencies import get_service_registry
from flowmeter.services.registry import ServiceRegistry

router = APIRouter()


@router.get("/metrics", summary="Return aggregated API and ingestion metrics")
async def read_metrics(registry: ServiceRegistry = Depends(get_service_registry)) -> dict:
    return {
        "metrics": registry.metrics.snapshot(),
        "ingestion": registry.ingestion_service.counters(),
    }
