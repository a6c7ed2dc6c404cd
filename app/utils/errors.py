from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status


class AppError(Exception):
    def __init__(self, code: str, message: str, http_status: int, fields: Optional[dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.fields = fields or {}
        super().__init__(message)


class NotFoundError(AppError):
    """Referenced work item does not exist."""

    def __init__(self, message: str = "Gift not found", fields: Optional[dict[str, Any]] = None):
        super().__init__("not_found", message, status.HTTP_404_NOT_FOUND, fields)


class ValidationFailure(AppError):
    """Required linkage is missing, e.g. checkout without a product link."""

    def __init__(self, message: str, fields: Optional[dict[str, Any]] = None):
        super().__init__("validation_failure", message, status.HTTP_400_BAD_REQUEST, fields)


def error_response(code: str, message: str, http_status: int, fields: Optional[dict[str, Any]] = None) -> JSONResponse:
    payload = {"error": {"code": code, "message": message}}
    if fields:
        payload["error"]["fields"] = fields
    return JSONResponse(status_code=http_status, content=payload)


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
        return error_response(exc.code, exc.message, exc.http_status, exc.fields)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
        code = "http_error"
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        fields = exc.detail if isinstance(exc.detail, dict) else None
        return error_response(code, message, exc.status_code, fields)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(
            "validation_error",
            "Invalid request",
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            {"details": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
        return error_response("internal_error", "Unexpected error", status.HTTP_500_INTERNAL_SERVER_ERROR)


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    # ctx may hold raw exception objects which JSONResponse cannot encode
    cleaned = []
    for err in exc.errors():
        item = {k: v for k, v in err.items() if k != "ctx"}
        if "ctx" in err:
            item["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        cleaned.append(item)
    return cleaned
