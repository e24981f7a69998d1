"""Routes serving the status probe and the meter page."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.templating import Jinja2Templates

from flowmeter.api.dependencies import get_query_service
from flowmeter.api.error_handlers import error_payload
from flowmeter.api.params import parse_window
from flowmeter.core.exceptions import DomainError, MissingParametersError, UnknownFormatError
from flowmeter.services.query_service import QueryService

BASE_DIR = Path(__file__).resolve().parent
STATIC_DIR = BASE_DIR / "static"
TEMPLATES = Jinja2Templates(directory=str(BASE_DIR / "templates"))

FORMATS = ("html", "json")
CHART_POINTS = 50

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def status_probe() -> str:
    return "I'm fine, thanks!\n"


def _render(request: Request, fmt: str, status_code: int, data: Dict[str, Any], success: bool) -> Response:
    if fmt == "json":
        content = {"success": True, "data": data} if success else {"success": False, **data}
        return JSONResponse(status_code=status_code, content=content)
    context: Dict[str, Any] = {"chart_points": CHART_POINTS, **data}
    return TEMPLATES.TemplateResponse(request, "meter.html", context, status_code=status_code)


@router.get("/meter", include_in_schema=False)
async def meter(
    request: Request,
    flow: Optional[str] = Query(default=None),
    window: Optional[str] = Query(default=None),
    fmt: str = Query(default="html", alias="format"),
    service: QueryService = Depends(get_query_service),
) -> Response:
    """Moving average of a flow, as a live chart page or a JSON envelope."""

    fmt = fmt or "html"
    render_as = fmt if fmt in FORMATS else "html"
    try:
        if fmt not in FORMATS:
            raise UnknownFormatError(f"requested unknown format [{fmt}]")
        if not flow or not window:
            raise MissingParametersError()
        reading = await service.query(flow, parse_window(window))
    except DomainError as exc:
        logger.info("Meter request failed: %s", exc.detail)
        return _render(request, render_as, exc.status_code, error_payload(exc), success=False)

    logger.debug("%s", reading)
    return _render(request, render_as, 200, reading.model_dump(), success=True)
