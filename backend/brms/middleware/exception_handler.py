"""Exception handlers producing the ``{error, code, details}`` envelope."""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, OperationalError, TimeoutError as PoolTimeoutError

from ..exceptions import BrmsException, DatabaseError, ErrorCode

logger = logging.getLogger(__name__)


async def brms_exception_handler(request: Request, exc: BrmsException) -> JSONResponse:
    """
    Handle custom exceptions and return structured JSON responses.

    Client errors are logged at info, server errors at error.
    """
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        f"BrmsException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Unexpected database failure. The statement text stays in the server log."""
    retryable = isinstance(exc, (OperationalError, PoolTimeoutError))
    logger.error(
        "Database error: %s", exc.__class__.__name__,
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method, "retryable": retryable},
    )
    error = DatabaseError(retryable=retryable)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters, in the same envelope as ValidationError."""
    errors = exc.errors()
    field = None
    if errors:
        loc = [str(part) for part in errors[0].get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or None
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    details = {"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors]}
    if field:
        details["field"] = field
    return JSONResponse(
        status_code=400,
        content={"error": message, "code": ErrorCode.VALIDATION_ERROR.value, "details": details},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything not mapped above. The traceback stays in the server log."""
    logger.error(
        "Unhandled exception: %s", exc.__class__.__name__,
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "code": ErrorCode.INTERNAL_ERROR.value, "details": {}},
    )
