"""
Exception handlers for the VoxPlan proxy.

Every failure leaves the API as the same envelope::

    {"detail": ..., "code": ..., "timestamp": ..., "details": ...}

``details`` is only present when an upstream provider supplied a payload.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from voxplan.core.exceptions import VoxPlanError
from voxplan.core.models import ErrorResponse

logger = logging.getLogger(__name__)


def _envelope(
    status_code: int,
    detail: str,
    code: str,
    timestamp: str | None = None,
    details: Any = None,
) -> JSONResponse:
    body = ErrorResponse(
        detail=detail,
        code=code,
        timestamp=timestamp or datetime.now(UTC).isoformat(),
        details=jsonable_encoder(details),
    )
    content = body.model_dump(mode="json")
    if body.details is None:
        del content["details"]
    return JSONResponse(status_code=status_code, content=content)


def register_error_handlers(app: FastAPI) -> None:
    """Install the domain, validation and catch-all handlers on ``app``.

    Domain errors keep their own status code (e.g. 502 for upstream
    failures, 504 for gateway timeouts). Request validation failures become
    422 ``VALIDATION_ERROR``; anything else is a 500 ``INTERNAL_ERROR``
    whose traceback is logged, never returned.
    """

    @app.exception_handler(VoxPlanError)
    async def voxplan_error_handler(request: Request, exc: VoxPlanError) -> JSONResponse:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.detail, exc.code)
        return _envelope(exc.status_code, exc.detail, exc.code, exc.timestamp, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _envelope(422, str(exc), "VALIDATION_ERROR")

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, _exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _envelope(500, "Internal server error", "INTERNAL_ERROR")
