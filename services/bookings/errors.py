"""Error taxonomy raised by the booking core."""
from fastapi import Request, status
from fastapi.responses import JSONResponse


class BookingError(Exception):
    """Base class for booking failures; carries the HTTP status it maps to."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(BookingError):
    status_code = status.HTTP_409_CONFLICT


class PersistenceError(BookingError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def booking_error_handler(_: Request, exc: BookingError) -> JSONResponse:
    # Storage faults are logged by the store; callers only see a generic message.
    detail = "internal server error" if isinstance(exc, PersistenceError) else exc.detail
    return JSONResponse(status_code=exc.status_code, content={"detail": detail})
