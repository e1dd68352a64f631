"""
Application errors and the handler that turns any error into the JSON error shape

    {"success": false, "message": "...", "errors": [...]}

Routes never build error responses themselves. They raise, and the handlers
registered by ``register_error_handlers`` decide the status code.
"""
import enum
import logging
import traceback
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bson.errors import InvalidId
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SchemaValidationError
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

import config

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    API = "api"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    BAD_REQUEST = "bad_request"


STATUS_CODES = {
    ErrorKind.API: 500,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 422,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.BAD_REQUEST: 400,
}


class ApiError(Exception):
    """An expected failure. ``kind`` fixes the status code unless one is given."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code or STATUS_CODES[kind]
        self.errors = errors
        self.is_operational = True

    @property
    def status(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"

    def __repr__(self):
        return f"ApiError({self.kind.value!r}, {self.message!r}, {self.status_code})"


def not_found(message: str = "resource not found") -> ApiError:
    return ApiError(ErrorKind.NOT_FOUND, message)


def bad_request(message: str = "invalid request") -> ApiError:
    return ApiError(ErrorKind.BAD_REQUEST, message)


def validation(message: str = "validation error", errors: Optional[List[Dict[str, Any]]] = None) -> ApiError:
    return ApiError(ErrorKind.VALIDATION, message, errors=errors if errors is not None else [])


def unauthorized(message: str = "unauthorized") -> ApiError:
    return ApiError(ErrorKind.UNAUTHORIZED, message)


def forbidden(message: str = "access denied") -> ApiError:
    return ApiError(ErrorKind.FORBIDDEN, message)


def field_errors(details: Iterable[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic error details into ``[{field, message}]``."""
    out = []
    for d in details:
        loc = [str(p) for p in d.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        out.append({"field": ".".join(loc) or "body", "message": d.get("msg", "invalid value")})
    return out


def _body(message: str, **extra) -> Dict[str, Any]:
    body = {"success": False, "message": message}
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


def _duplicate_field(exc: DuplicateKeyError) -> str:
    details = exc.details or {}
    keys = details.get("keyValue") or details.get("keyPattern") or {}
    return next(iter(keys), "value")


def normalize_error(exc: Exception) -> Tuple[int, Dict[str, Any]]:
    """Map any error to ``(status_code, body)``. The first matching rule wins."""
    if isinstance(exc, RequestValidationError):
        exc = validation(errors=field_errors(exc.errors()))

    if isinstance(exc, SchemaValidationError):
        return 400, _body("validation error", errors=field_errors(exc.errors()))

    if isinstance(exc, InvalidId):
        path = getattr(exc, "path", "_id")
        value = getattr(exc, "value", str(exc))
        return 400, _body(f"invalid value for {path}: {value}")

    if isinstance(exc, ApiError) and exc.kind is ErrorKind.NOT_FOUND:
        return exc.status_code, _body(exc.message or "resource not found")

    if isinstance(exc, ApiError) and exc.kind is ErrorKind.BAD_REQUEST:
        return exc.status_code, _body(exc.message or "invalid request")

    if isinstance(exc, DuplicateKeyError):
        return 409, _body(f"a record with this {_duplicate_field(exc)} already exists")

    if isinstance(exc, StarletteHTTPException):
        if exc.status_code in (404, 405):
            return 404, _body("route not found")
        return exc.status_code, _body(str(exc.detail))

    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        message = getattr(exc, "message", None) or str(exc)
        return status_code, _body(message, errors=getattr(exc, "errors", None))

    stack = None
    if not config.is_production():
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return 500, _body("an unexpected error occurred", stack=stack)


async def error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code, body = normalize_error(exc)
    if status_code >= 500:
        logger.error("%s %s failed", request.method, request.url.path, exc_info=exc)
    else:
        logger.warning("%s %s -> %s %s", request.method, request.url.path, status_code, body["message"])
    return JSONResponse(status_code=status_code, content=body)


async def catch_unhandled_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as exc:
        return await error_handler(request, exc)


def register_error_handlers(app: FastAPI) -> None:
    for exc_type in (
        ApiError,
        RequestValidationError,
        SchemaValidationError,
        InvalidId,
        DuplicateKeyError,
        StarletteHTTPException,
    ):
        app.add_exception_handler(exc_type, error_handler)
    app.middleware("http")(catch_unhandled_errors)
