"""Translation of domain errors into JSON responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from photo_print_store.domain.errors import (
    CatalogUnavailable,
    InvalidAmount,
    PhotoStoreError,
    SessionCreationFailed,
    SessionRetrievalFailed,
    StaleSelection,
    StorageUnavailable,
    UnknownSizeTier,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[PhotoStoreError], int]] = [
    (InvalidAmount, status.HTTP_400_BAD_REQUEST),
    (UnknownSizeTier, status.HTTP_400_BAD_REQUEST),
    (StaleSelection, status.HTTP_400_BAD_REQUEST),
    (SessionCreationFailed, status.HTTP_502_BAD_GATEWAY),
    (CatalogUnavailable, status.HTTP_502_BAD_GATEWAY),
    (StorageUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def status_for(exc: PhotoStoreError) -> int:
    """Return the HTTP status code for a domain error."""
    if isinstance(exc, SessionRetrievalFailed):
        if exc.retryable:
            return status.HTTP_503_SERVICE_UNAVAILABLE
        return status.HTTP_400_BAD_REQUEST
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def register_exception_handlers(app: FastAPI) -> None:
    """Render every PhotoStoreError as `{"message": ...}`."""

    @app.exception_handler(PhotoStoreError)
    async def photo_store_error(request: Request, exc: PhotoStoreError) -> JSONResponse:
        status_code = status_for(exc)
        content: dict[str, object] = {"message": exc.message}
        if isinstance(exc, SessionRetrievalFailed):
            content["retryable"] = exc.retryable
        if isinstance(exc, StorageUnavailable):
            content["retryable"] = True
        if isinstance(exc, StaleSelection):
            content["redirect"] = "/print-store"
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.warning(
                "Request failed: %s",
                exc.message,
                extra={"path": request.url.path, "status_code": status_code},
            )
        return JSONResponse(status_code=status_code, content=content)
