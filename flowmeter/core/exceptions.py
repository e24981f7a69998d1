"""Common exception helpers for the flowmeter services."""
from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base exception for application specific errors."""

    status_code = 500
    error_code = "app_error"
    default_detail = "An unexpected error occurred."

    def __init__(self, detail: str | None = None, *, extra: dict[str, Any] | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail
        self.extra = extra or {}


class ServiceError(AppError):
    """Raised when a background service fails to start or crashes."""

    error_code = "service_error"

    def __init__(self, service_name: str, detail: str | None = None, *, extra: dict[str, Any] | None = None) -> None:
        self.service_name = service_name
        message = detail or f"{service_name} failed"
        payload = {"service": service_name}
        if extra:
            payload.update(extra)
        super().__init__(message, extra=payload)


class DomainError(AppError):
    """Normalized domain error surfaced to API handlers."""


class BadRequestError(DomainError):
    status_code = 400
    error_code = "bad_request"
    default_detail = "Invalid request."


class NotFoundError(DomainError):
    status_code = 404
    error_code = "not_found"
    default_detail = "Resource not found."


class ConflictError(DomainError):
    status_code = 409
    error_code = "conflict"
    default_detail = "Request conflict."


class MissingParametersError(BadRequestError):
    error_code = "missing_parameters"
    default_detail = "flow and window are required parameters"


class InvalidWindowError(BadRequestError):
    error_code = "invalid_window"
    default_detail = "window must be a non-negative integer"


class UnknownFormatError(BadRequestError):
    error_code = "unknown_format"
    default_detail = "Unknown response format."


class UnknownFlowError(NotFoundError):
    error_code = "unknown_flow"
    default_detail = "unknown flow"

    def __init__(self, flow: str, detail: str | None = None) -> None:
        self.flow = flow
        super().__init__(detail or f"unknown flow [{flow}]", extra={"flow": flow})


class NoDataError(NotFoundError):
    """The flow exists but the requested window holds no samples."""

    error_code = "no_data"
    default_detail = "no data in window"

    def __init__(self, flow: str, window: int) -> None:
        self.flow = flow
        self.window = window
        super().__init__(
            f"flow [{flow}] has no data in the last {window} seconds",
            extra={"flow": flow, "window": window},
        )


class FlowAlreadyExistsError(ConflictError):
    error_code = "flow_exists"
    default_detail = "flow already exists"

    def __init__(self, flow: str) -> None:
        self.flow = flow
        super().__init__(f"flow [{flow}] is already registered", extra={"flow": flow})


class MalformedSampleError(ValueError):
    """Raised when a datagram payload cannot be turned into a sample."""

    def __init__(self, reason: str, payload: bytes | str = b"") -> None:
        super().__init__(reason)
        self.reason = reason
        self.payload = payload


class PayloadTooLargeError(MalformedSampleError):
    """Raised for payloads longer than the accepted datagram size."""
