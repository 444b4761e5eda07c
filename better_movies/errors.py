import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ListError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ListError):
    """The request is missing fields or carries invalid values."""

    status_code = 400


class AuthorizationError(ListError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class InternalError(ListError):
    """The store failed. The message is safe to show; the cause is only logged."""

    status_code = 500


def _field_name(loc: tuple) -> str:
    # JSON decode errors carry a character offset instead of a field name.
    parts = [
        part for part in loc
        if isinstance(part, str) and part not in ("body", "query", "path", "header", "cookie")
    ]
    return ".".join(parts) or "body"


def invalid_fields_message(errors: list[dict]) -> str:
    fields = []
    for error in errors:
        name = _field_name(tuple(error.get("loc") or ()))
        if name not in fields:
            fields.append(name)
    return f"Invalid or missing fields: {', '.join(fields)}"


async def list_error_handler(request: Request, exc: ListError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.debug("Rejected request %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"detail": invalid_fields_message(exc.errors())},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ListError, list_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
