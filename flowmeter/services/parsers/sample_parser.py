"""Parse ``<flow> <value>`` datagram payloads into samples."""
from __future__ import annotations

import math
from typing import NamedTuple

from flowmeter.core.config import MAX_PAYLOAD_SIZE
from flowmeter.core.exceptions import MalformedSampleError, PayloadTooLargeError


class Sample(NamedTuple):
    flow: str
    value: float


def _preview(payload: bytes, limit: int = 64) -> str:
    text = payload[:limit].decode("utf-8", errors="replace")
    return text + "..." if len(payload) > limit else text


def parse_sample(payload: bytes, *, max_size: int = MAX_PAYLOAD_SIZE) -> Sample:
    """Split the payload on its first space and parse the value as a float.

    Raises:
        PayloadTooLargeError: payload longer than ``max_size`` bytes.
        MalformedSampleError: anything else that is not a valid sample.
    """

    if len(payload) > max_size:
        raise PayloadTooLargeError(
            f"payload [{_preview(payload)}] longer than max payload size [{max_size}], rejecting",
            payload,
        )

    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedSampleError(f"payload is not valid utf-8: {exc}", payload) from exc

    name, sep, raw_value = text.partition(" ")
    if not sep or not name:
        raise MalformedSampleError(f"broken udp payload [{text}]", payload)

    raw_value = raw_value.strip()
    # float() accepts digit separators, the wire format does not
    if not raw_value or "_" in raw_value:
        raise MalformedSampleError(f"can't parse value [{raw_value}] into float", payload)
    try:
        value = float(raw_value)
    except ValueError as exc:
        raise MalformedSampleError(f"can't parse value [{raw_value}] into float: {exc}", payload) from exc
    if not math.isfinite(value):
        raise MalformedSampleError(f"value [{raw_value}] is not a finite number", payload)

    return Sample(name, value)
