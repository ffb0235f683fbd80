from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .logger import logger


class PrepError(Exception):
    """Base for errors that surface to API clients with a stable kind."""

    kind = "Error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(PrepError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(PrepError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidAttemptStateError(PrepError):
    kind = "InvalidAttemptState"
    status_code = status.HTTP_409_CONFLICT


class PayloadValidationError(PrepError):
    kind = "ValidationError"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class UnauthorizedError(PrepError):
    kind = "Unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


async def _prep_error_handler(request: Request, exc: PrepError) -> JSONResponse:
    logger.info(
        "Request rejected",
        kind=exc.kind,
        path=request.url.path,
        detail=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind},
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Malformed request payload",
            "kind": PayloadValidationError.kind,
            "errors": _jsonable_errors(exc),
        },
    )


def _jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


def setup_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PrepError, _prep_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
