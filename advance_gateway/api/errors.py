"""Mapping from domain exceptions to HTTP responses"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from advance_gateway.api.dependencies import get_request_id
from advance_gateway.config import settings
from advance_gateway.domain.exceptions import (
    AlreadySettledError,
    ExtractionFailedError,
    NotFoundError,
    OfferAlreadyAcceptedError,
    StoreUnavailableError,
    ValidationError,
)
from advance_gateway.infrastructure.observability.metrics import store_unavailable_counter


def register_exception_handlers(app: FastAPI) -> None:
    """Attach handlers so endpoints can let domain errors propagate"""

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        logging.warning(f"Validation failed: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(OfferAlreadyAcceptedError)
    @app.exception_handler(AlreadySettledError)
    async def conflict(request: Request, exc: Exception):
        logging.warning(f"Transition rejected: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(ExtractionFailedError)
    async def extraction_failed(request: Request, exc: ExtractionFailedError):
        logging.warning(f"Extraction failed: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "fallback": "manual_entry", "draft": exc.draft},
        )

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable(request: Request, exc: StoreUnavailableError):
        store_unavailable_counter.inc()
        logging.error(f"Store unavailable: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(
            status_code=503,
            content={"detail": "Storage temporarily unavailable"},
            headers={"Retry-After": str(settings.store_retry_after_seconds)},
        )

    @app.exception_handler(Exception)
    async def unexpected(request: Request, exc: Exception):
        logging.error(f"Unexpected error: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
