from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int
    conflicts: list[str] | None = None


class AppError(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: list[str] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class InputValidationError(AppError):
    """Malformed input rejected before any mutation."""

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class InvalidDateRangeError(InputValidationError):
    pass


class NoWorkingDaysError(InputValidationError):
    pass


class NonWorkingBoundaryError(InputValidationError):
    pass


class MissingReasonError(InputValidationError):
    pass


class InsufficientBalanceError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class NotFoundError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class ForbiddenError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class ConflictError(AppError):
    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


class StateConflictError(ConflictError):
    """Operation attempted from a status that does not allow it."""


class OverlapError(ConflictError):
    """New leave dates intersect an active request; ``details`` lists the conflicts."""


class HolidayProviderError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_502_BAD_GATEWAY)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
            conflicts=exc.details,
        ).model_dump(exclude_none=True),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(exclude_none=True),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
