# -*- coding: utf-8 -*-
"""Domain errors and the single translator that turns them into JSON envelopes."""

from __future__ import annotations

import logging
import re
import sqlite3
from typing import Any, Dict, Iterable, List, Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


class ApiError(Exception):
    status_code = 500
    default_message = "Server Error"

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


class ValidationFailed(ApiError):
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: Sequence[Dict[str, str]], message: Optional[str] = None) -> None:
        super().__init__(message)
        self.errors: List[Dict[str, str]] = list(errors)

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["errors"] = self.errors
        return body


class Unauthenticated(ApiError):
    status_code = 401
    default_message = "Not authorized to access this route"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(ApiError):
    status_code = 400
    default_message = "Duplicate field value entered"


class PredictionServiceError(ApiError):
    status_code = 502
    default_message = "ML service error"

    def __init__(self, message: Optional[str] = None, *, upstream_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["upstream_status"] = self.upstream_status
        return body


class PredictionServiceUnreachable(ApiError):
    status_code = 503
    default_message = "ML service is unreachable"


class PredictionRequestError(ApiError):
    status_code = 500
    default_message = "Error processing ML request"


class InternalError(ApiError):
    status_code = 500
    default_message = "Server Error"


def _field_name(loc: Iterable[Any], strip: int = 0) -> str:
    parts = [str(p) for p in list(loc)[strip:]]
    while parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts) or "body"


def _message(err: Dict[str, Any], field: str) -> str:
    if err.get("type") == "extra_forbidden":
        return f"'{field}' is not allowed for this record type."
    if err.get("type") == "missing":
        return f"'{field}' is required."
    msg = str(err.get("msg") or "Invalid value")
    # Drop pydantic's "Value error, " prefix from custom validators.
    return re.sub(r"^(Value|Assertion) error, ", "", msg)


def _union_tag_message(err: Dict[str, Any], field: str) -> str:
    if err.get("type") == "union_tag_not_found":
        return f"'{field}' is required."
    expected = str((err.get("ctx") or {}).get("expected_tags") or "")
    return f"Invalid {field}. Expected one of: {expected}."


def field_errors(raw_errors: Iterable[Dict[str, Any]], *, strip: int = 0) -> List[Dict[str, str]]:
    out: List[Dict[str, str]] = []
    for err in raw_errors:
        if str(err.get("type") or "").startswith("union_tag"):
            discriminator = str((err.get("ctx") or {}).get("discriminator") or "type").strip("'")
            out.append({"field": discriminator, "message": _union_tag_message(err, discriminator)})
            continue
        loc = tuple(err.get("loc") or ())
        field = _field_name(loc, strip=strip if len(loc) > strip else 0)
        out.append({"field": field, "message": _message(err, field)})
    return out


def _json(exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


def _duplicate_field(exc: sqlite3.IntegrityError) -> Optional[str]:
    match = re.search(r"UNIQUE constraint failed: \w+\.(\w+)", str(exc))
    return match.group(1) if match else None


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _json(exc)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        return _json(ValidationFailed(field_errors(exc.errors())))

    @app.exception_handler(ValidationError)
    async def _pydantic_validation(request: Request, exc: ValidationError):
        return _json(ValidationFailed(field_errors(exc.errors())))

    @app.exception_handler(sqlite3.IntegrityError)
    async def _integrity(request: Request, exc: sqlite3.IntegrityError):
        field = _duplicate_field(exc)
        if field:
            return _json(Conflict(f"Duplicate field value entered for {field}"))
        logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc)
        return _json(Conflict("Invalid reference or duplicate value"))

    @app.exception_handler(StarletteHTTPException)
    async def _http(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"success": False, "error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _json(InternalError())
