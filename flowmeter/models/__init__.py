"""Domain models shared across services."""
from .domain import Bucket, FlowBuffer, WindowStats

__all__ = [
    "Bucket",
    "FlowBuffer",
    "WindowStats",
]
