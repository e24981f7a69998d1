"""Query engine answering moving-average requests."""
from flowmeter.core.exceptions import NoDataError, UnknownFlowError
from flowmeter.schemas import MeterReading
from flowmeter.services.flow_registry import FlowRegistry


class QueryService:
    """Compute windowed averages without ever creating flows."""

    def __init__(self, registry: FlowRegistry) -> None:
        self._registry = registry

    async def query(self, name: str, window: int) -> MeterReading:
        flow = self._registry.get(name)
        if flow is None:
            raise UnknownFlowError(name)

        stats = await flow.window_stats(window)
        if stats.average is None:
            raise NoDataError(name, window)
        return MeterReading(flow=name, window=window, average=stats.average, samples=stats.count)
