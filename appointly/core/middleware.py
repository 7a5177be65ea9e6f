# appointly/core/middleware.py
"""Request tracing middleware and booking error translation"""
import uuid
import time
import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.requests import Request

from appointly.core.exceptions import (
    BookingError,
    BusinessNotConfiguredError,
    ConfirmationExpiredError,
    ConflictError,
    InputValidationError,
    InvalidStatusTransitionError,
    NotFoundError,
    PersistenceError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins
ERROR_STATUS_CODES = (
    (InputValidationError, 422),
    (BusinessNotConfiguredError, 404),
    (NotFoundError, 404),
    (ConflictError, 409),
    (InvalidStatusTransitionError, 409),
    (ConfirmationExpiredError, 410),
    (PersistenceError, 503),
)


def status_code_for(error: BookingError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 400


def status_code_for_code(error_code: str) -> int:
    """Same mapping, keyed by the error_code carried on a BookingResult"""
    for error_type, status_code in ERROR_STATUS_CODES:
        if error_type.error_code == error_code:
            return status_code
    return 400


async def booking_error_handler(request: Request, exc: BookingError):
    """Render a BookingError as {success: false, error, error_code}"""
    status_code = status_code_for(exc)
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    log = logger.error if status_code >= 500 else logger.info
    log(
        f"Booking request rejected: {exc.error_code}: {exc.message}",
        extra={"correlation_id": correlation_id, "path": request.url.path},
    )

    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": exc.message, "error_code": exc.error_code},
    )


async def tracing_middleware(request: Request, call_next):
    """Attach a correlation ID and log start/finish of every request"""
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    request.state.correlation_id = correlation_id
    start_time = time.time()

    logger.info(
        "Request started",
        extra={
            "correlation_id": correlation_id,
            "method": request.method,
            "url": str(request.url),
            "client": request.client.host if request.client else "unknown",
        }
    )

    response = await call_next(request)

    logger.info(
        "Request completed",
        extra={
            "correlation_id": correlation_id,
            "method": request.method,
            "url": str(request.url),
            "status_code": response.status_code,
            "duration_ms": round((time.time() - start_time) * 1000, 2),
        }
    )

    response.headers["X-Correlation-ID"] = correlation_id
    return response


def register_booking_handlers(app: FastAPI) -> None:
    app.middleware("http")(tracing_middleware)
    app.add_exception_handler(BookingError, booking_error_handler)
