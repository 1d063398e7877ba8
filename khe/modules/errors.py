"""
API Errors

Every error leaves the service in the same envelope:

    {"errors": ["message", ...]}

Single-message errors carry one entry, validation failures carry one entry
per failed field.
"""
import logging
from typing import List, Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("khe.errors")


class ApiError(Exception):
    """Base class for errors that map directly to an HTTP response."""
    status_code = 400
    default_message = "Bad request"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.messages = [message or self.default_message]
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.messages[0])

    def to_dict(self) -> dict:
        return {"errors": list(self.messages)}


class ValidationFailed(ApiError):
    """Multi-field validation failure."""
    status_code = 400
    default_message = "Invalid request"

    def __init__(self, errors: List[str]):
        super().__init__(errors[0] if errors else None)
        if errors:
            self.messages = list(errors)


class AuthenticationError(ApiError):
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "Insufficient permissions"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Conflict"


class InternalError(ApiError):
    status_code = 500
    default_message = "Internal server error"


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc}")
    else:
        logger.debug(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.messages}")
    headers = {"WWW-Authenticate": "Basic"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies through the multi-error envelope."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return JSONResponse(status_code=400, content=ValidationFailed(messages).to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content=InternalError().to_dict())


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
