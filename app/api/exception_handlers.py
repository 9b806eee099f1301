"""
Global exception handlers for the API layer.

Every exception raised while handling a request is translated here, exactly
once, into a ``Result`` envelope plus an HTTP status:

    BizException                      -> 200, the exception's own code/message
    RequestValidationError            -> 400, VALIDATION_FAILED or BAD_REQUEST
    ConstraintViolationError          -> 400, VALIDATION_FAILED
    HTTPException (routing 404 / 405) -> 404 / 405, NOT_FOUND / METHOD_NOT_ALLOWED
    HTTPException (raised by code)    -> its status, its detail
    Exception                         -> 500, generic INTERNAL_SERVER_ERROR
                                         (including pydantic errors on internal data)

Business errors always answer HTTP 200; the envelope code carries the failure.
Only the catch-all logs at ERROR, with the traceback; the client never sees it.
"""

from http import HTTPStatus
from typing import Any, Iterable, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import BizException, ConstraintViolationError
from app.core.result_code import ResultCode
from app.schemas.common import Result
from app.utils.logger import get_logger

logger = get_logger(__name__)

PARAM_LOCATIONS = ("query", "path", "header", "cookie")

# pydantic error type -> type name shown to clients
_PARSE_ERROR_TYPES = {
    "int_parsing": "int",
    "int_type": "int",
    "int_from_float": "int",
    "float_parsing": "float",
    "float_type": "float",
    "decimal_parsing": "Decimal",
    "bool_parsing": "bool",
    "bool_type": "bool",
    "uuid_parsing": "UUID",
    "uuid_type": "UUID",
    "date_parsing": "date",
    "date_from_datetime_parsing": "date",
    "datetime_parsing": "datetime",
    "datetime_from_date_parsing": "datetime",
    "time_parsing": "time",
    "enum": "enum",
}


def _status_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return str(status_code)


def _envelope(status_code: int, result: Result) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


def _error_message(error: dict[str, Any]) -> str:
    """Return the human message of one pydantic error entry."""
    if error.get("type") == "value_error":
        cause = (error.get("ctx") or {}).get("error")
        if cause is not None:
            return str(cause)
    return str(error.get("msg", ""))


def join_error_messages(errors: Iterable[dict[str, Any]]) -> str:
    """Join pydantic error messages with "; ", keeping their order."""
    return "; ".join(_error_message(error) for error in errors)


def _param_name(error: dict[str, Any]) -> str:
    loc = error.get("loc") or ()
    return str(loc[-1]) if len(loc) > 1 else ".".join(str(part) for part in loc)


def _find_param_error(errors: list[dict[str, Any]], predicate) -> Optional[dict[str, Any]]:
    for error in errors:
        loc = error.get("loc") or ()
        if loc and loc[0] in PARAM_LOCATIONS and predicate(error):
            return error
    return None


async def biz_exception_handler(request: Request, exc: BizException) -> JSONResponse:
    """
    Business rule violation. Transport stays 200; the envelope carries the code.
    """
    logger.warning("Business exception: code=%s, message=%s", exc.code, exc.message)
    return _envelope(status.HTTP_200_OK, Result.error(exc.code, exc.message))


async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Request body or bound parameter failed validation.

    Missing parameters and parameter type mismatches map to BAD_REQUEST with a
    message naming the parameter; every other failure maps to VALIDATION_FAILED
    with all field messages joined.
    """
    errors = list(exc.errors())

    missing = _find_param_error(
        errors, lambda e: e.get("type") == "missing" and e["loc"][0] != "path"
    )
    if missing is not None:
        message = f"Missing required parameter: {_param_name(missing)}"
        logger.warning(message)
        return _envelope(status.HTTP_400_BAD_REQUEST, Result.error(ResultCode.BAD_REQUEST, message))

    mismatch = _find_param_error(errors, lambda e: e.get("type") in _PARSE_ERROR_TYPES)
    if mismatch is not None:
        message = "Parameter type mismatch: {} should be of type {}".format(
            _param_name(mismatch), _PARSE_ERROR_TYPES[mismatch["type"]]
        )
        logger.warning(message)
        return _envelope(status.HTTP_400_BAD_REQUEST, Result.error(ResultCode.BAD_REQUEST, message))

    message = join_error_messages(errors)
    in_body = any((e.get("loc") or ("",))[0] == "body" for e in errors)
    if in_body:
        logger.warning("Request body validation failed: %s", message)
    else:
        logger.warning(
            "Parameter binding failed: fields=%s, message=%s",
            [_param_name(e) for e in errors],
            message,
        )
    return _envelope(
        status.HTTP_400_BAD_REQUEST, Result.error(ResultCode.VALIDATION_FAILED, message)
    )


async def constraint_violation_handler(
        request: Request, exc: ConstraintViolationError
) -> JSONResponse:
    """
    Arguments of a service call decorated with ``@validated`` broke their constraints.
    """
    message = join_error_messages(exc.errors)
    logger.warning(
        "Constraint violation: fields=%s, message=%s",
        [_param_name(e) for e in exc.errors],
        message,
    )
    return _envelope(
        status.HTTP_400_BAD_REQUEST, Result.error(ResultCode.VALIDATION_FAILED, message)
    )


async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """
    Routing failures and HTTPExceptions raised explicitly by endpoints.
    """
    default_detail = _status_phrase(exc.status_code)
    explicit_detail = exc.detail if exc.detail and exc.detail != default_detail else None

    if exc.status_code == status.HTTP_404_NOT_FOUND and explicit_detail is None:
        message = f"No route found: {request.method} {request.url.path}"
        logger.warning(message)
        return _envelope(exc.status_code, Result.error(ResultCode.NOT_FOUND, message))

    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        message = f"Request method '{request.method}' not supported"
        logger.warning("%s: path=%s", message, request.url.path)
        response = _envelope(exc.status_code, Result.error(ResultCode.METHOD_NOT_ALLOWED, message))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    entry = ResultCode.from_code(exc.status_code)
    code = entry.code if entry else exc.status_code
    message = str(explicit_detail) if explicit_detail is not None else (
        entry.message if entry else default_detail
    )
    logger.warning(
        "HTTP exception: status=%s, path=%s, message=%s",
        exc.status_code, request.url.path, message,
    )
    response = _envelope(exc.status_code, Result.error(code, message))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Fallback for anything not handled above. The full traceback is logged
    server-side; the client only ever receives the generic message.
    """
    logger.error(
        "Unhandled exception: %s %s (%s)",
        request.method, request.url.path, type(exc).__name__,
        exc_info=exc,
    )
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR, Result.error(ResultCode.INTERNAL_SERVER_ERROR)
    )


# Ordered most specific first; Exception must stay last.
EXCEPTION_HANDLERS = {
    BizException: biz_exception_handler,
    RequestValidationError: request_validation_exception_handler,
    ConstraintViolationError: constraint_violation_handler,
    StarletteHTTPException: http_exception_handler,
    Exception: unhandled_exception_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    """Register every handler of EXCEPTION_HANDLERS on the application."""
    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)
