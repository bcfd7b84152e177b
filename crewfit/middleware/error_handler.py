import logging

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from crewfit.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    SocialError,
    TransientFetchError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[SocialError], int]] = [
    (ConflictError, 409),
    (NotFoundError, 404),
    (PermissionDeniedError, 403),
    (ValidationError, 400),
    (TransientFetchError, 503),
]


def status_for(exc: SocialError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def register_error_handlers(app: FastAPI):
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        sentry_sdk.capture_exception(exc)
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "type": type(exc).__name__,
            },
        )

    @app.exception_handler(SocialError)
    async def social_error_handler(request: Request, exc: SocialError):
        status_code = status_for(exc)
        if status_code >= 500:
            sentry_sdk.capture_exception(exc)
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.detail, "code": exc.code},
        )
