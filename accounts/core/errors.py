"""Service error base class and the shared error responder used by controllers."""

from __future__ import annotations

import logging
from typing import Optional

from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse

from .validation import ValidationError

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Business-rule failure raised by services; subclasses pick the HTTP status."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


def return_error(error: BaseException) -> JSONResponse:
    """Map any error raised inside a handler to a JSON error response."""
    if isinstance(error, ValidationError):
        return JSONResponse(
            {"message": "Validation failed", "errors": [e.as_dict() for e in error.errors]},
            status_code=error.status_code,
        )
    if isinstance(error, ServiceError):
        errors = [{"field": error.field, "message": error.message}] if error.field else []
        return JSONResponse({"message": error.message, "errors": errors}, status_code=error.status_code)
    if isinstance(error, HTTPException):
        return JSONResponse({"message": error.detail, "errors": []}, status_code=error.status_code, headers=error.headers)
    logger.error("Unhandled error while processing request", exc_info=error)
    return JSONResponse({"message": "Internal server error", "errors": []}, status_code=500)
