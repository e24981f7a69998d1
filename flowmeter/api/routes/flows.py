"""Flow listing and moving-average endpoints."""
from fastapi import APIRouter, Depends, Query

from flowmeter.api.dependencies import get_flow_registry, get_query_service
from flowmeter.api.params import parse_window
from flowmeter.core.exceptions import UnknownFlowError
from flowmeter.schemas import FlowInfo, MeterReading
from flowmeter.services.flow_registry import FlowRegistry
from flowmeter.services.query_service import QueryService

router = APIRouter()


@router.get("/flows", response_model=list[FlowInfo], summary="List registered flows")
async def list_flows(registry: FlowRegistry = Depends(get_flow_registry)) -> list[FlowInfo]:
    return registry.describe()


@router.get("/flows/{name}", response_model=FlowInfo, summary="Describe a single flow")
async def read_flow(name: str, registry: FlowRegistry = Depends(get_flow_registry)) -> FlowInfo:
    flow = registry.get(name)
    if flow is None:
        raise UnknownFlowError(name)
    return flow.info()


@router.get(
    "/flows/{name}/average",
    response_model=MeterReading,
    summary="Moving average of a flow over the trailing window",
)
async def read_average(
    name: str,
    window: str = Query(..., description="Window length in seconds"),
    service: QueryService = Depends(get_query_service),
) -> MeterReading:
    return await service.query(name, parse_window(window))
