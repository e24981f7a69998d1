"""Health check endpoint."""
from fastapi import APIRouter, Depends

from flowmeter.api.dependencies import get_health_service
from flowmeter.services.health_service import HealthService

router = APIRouter()


@router.get("/health", summary="Health probe")
async def health_check(
    health_service: HealthService = Depends(get_health_service),
) -> dict:
    return await health_service.check()
