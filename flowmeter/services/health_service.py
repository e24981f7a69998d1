"""Health check service."""
from datetime import datetime, timezone

from flowmeter.core.server_info import get_server_start_time, get_uptime_seconds
from flowmeter.services.registry import ServiceRegistry


class HealthService:
    """Encapsulates health probe logic for the API layer."""

    def __init__(self, registry: ServiceRegistry) -> None:
        self._registry = registry

    async def check(self) -> dict:
        clock = self._registry.clock_driver
        listener = self._registry.udp_listener
        ingestion = self._registry.ingestion_service
        healthy = clock.is_running and listener.is_listening

        address = listener.address
        return {
            "status": "healthy" if healthy else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "started_at": get_server_start_time().isoformat(),
            "uptime_seconds": round(get_uptime_seconds(), 3),
            "flows": len(self._registry.flow_registry),
            "implicit_create": self._registry.flow_registry.implicit_create,
            "clock": {
                "running": clock.is_running,
                "interval": clock.interval,
                "ticks": clock.ticks,
                "missed_ticks": clock.missed_ticks,
            },
            "ingestion": {
                "listening": listener.is_listening,
                "address": f"{address[0]}:{address[1]}" if address else None,
                "pending": ingestion.pending,
                "counters": ingestion.counters(),
            },
        }
