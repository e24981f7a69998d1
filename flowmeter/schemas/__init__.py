"""Pydantic schemas exposed by the application API."""
from .flows import FlowInfo, MeterReading

__all__ = [
    "FlowInfo",
    "MeterReading",
]
