"""Response schemas for flow and meter endpoints."""
from pydantic import BaseModel, ConfigDict, Field


class MeterReading(BaseModel):
    """Moving average of a flow over a trailing window."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"flow": "cpu", "window": 60, "average": 11.667, "samples": 3}
        }
    )

    flow: str
    window: int = Field(..., ge=0, description="Requested window in seconds")
    average: float
    samples: int = Field(..., ge=0, description="Samples covered by the average")


class FlowInfo(BaseModel):
    """Registered flow and its ring capacity."""

    name: str
    capacity: int = Field(..., ge=1, description="Seconds of history kept")
