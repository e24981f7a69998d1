"""Root API router that aggregates all endpoint modules."""
from fastapi import APIRouter

from flowmeter.api.routes import flows, health, metrics

api_router = APIRouter(prefix="/api")
api_router.include_router(flows.router, tags=["flows"])
api_router.include_router(health.router, tags=["health"])
api_router.include_router(metrics.router, tags=["metrics"])
