"""
Exception handlers.

Every error leaves the API in the same envelope:
{"success": false, "error": {"code", "message", "details"}}.
Endpoints raise AccountingError subclasses and never build
error responses themselves.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ledger_engine.errors import AccountingError, InternalError
from ledger_engine.logging_config import get_logger

logger = get_logger("api.errors")


def error_response(error: AccountingError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, "error": error.to_dict()},
    )


async def accounting_error_handler(request: Request, exc: AccountingError):
    if isinstance(exc, InternalError):
        logger.error(
            "internal_error",
            exc_info=exc,
            extra={"path": request.url.path},
        )
    return error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies answer 400, not FastAPI's default 422."""
    errors = jsonable_encoder([
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ])
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": {"errors": errors},
            },
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", extra={"path": request.url.path})
    return error_response(InternalError("Internal server error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AccountingError, accounting_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
