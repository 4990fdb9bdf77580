"""
Order service error taxonomy.

Every failure in the create workflow or the read endpoints is an OrderError
carrying a human-readable message and the HTTP status to answer with. The
handlers below turn them, and framework errors, into the `{"error": "..."}`
body every client of this service expects.
"""
import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)


class OrderError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    reason = "internal"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequest(OrderError):
    status_code = status.HTTP_400_BAD_REQUEST
    reason = "bad_request"


class UpstreamNotFound(OrderError):
    """User or product rejected by its service; carries the downstream status."""
    status_code = status.HTTP_404_NOT_FOUND
    reason = "upstream_not_found"

    def __init__(self, message: str, status_code: int | None = None):
        # A 2xx/3xx other than 200 can't be relayed as an error response
        if status_code is not None and status_code < 400:
            status_code = status.HTTP_502_BAD_GATEWAY
        super().__init__(message, status_code)


class UpstreamUnavailable(OrderError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    reason = "upstream_unavailable"


class UpstreamDecodeError(OrderError):
    reason = "upstream_decode_error"


class PersistenceError(OrderError):
    reason = "persistence_error"


class NotFoundAfterCommit(OrderError):
    reason = "not_found_after_commit"


class OrderNotFound(OrderError):
    status_code = status.HTTP_404_NOT_FOUND
    reason = "order_not_found"


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def order_error_handler(request: Request, exc: OrderError):
    logger.warning(
        "request_failed",
        path=request.url.path,
        status_code=exc.status_code,
        reason=exc.reason,
        error=exc.message,
    )
    return error_response(exc.message, exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    logger.info("request_rejected", path=request.url.path, error=message)
    return error_response(message, status.HTTP_400_BAD_REQUEST)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(str(exc.detail), exc.status_code)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("unhandled_error", path=request.url.path, error=repr(exc))
    return error_response("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)
