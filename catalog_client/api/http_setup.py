"""HTTP middleware and exception handler wiring for the client agent."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from catalog_client.api.contracts import ApiErrorResponse
from catalog_client.api.errors import (
    ClientErrorCode,
    ClientFailure,
    failure_status,
    to_error_payload,
)
from catalog_client.core.logging import set_correlation_id


def register_http_middleware(app: FastAPI, *, logger: Any) -> None:
    """Attach request correlation and logging middleware."""

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        correlation_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        set_correlation_id(correlation_id)
        response = await call_next(request)
        response.headers["X-Request-ID"] = correlation_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        logger.info(
            "request_completed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
            },
        )
        return response


def register_exception_handlers(app: FastAPI, *, logger: Any) -> None:
    """Attach handlers that turn client failures into stable error payloads."""

    @app.exception_handler(ClientFailure)
    async def handle_client_failure(
        request: Request, exc: ClientFailure
    ) -> JSONResponse:
        status_code = failure_status(exc)
        logger.warning(
            "client_failure",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status_code": status_code,
            },
        )
        return JSONResponse(
            status_code=status_code,
            content=ApiErrorResponse(**to_error_payload(exc)).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_exception(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        logger.warning(
            "validation_exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status_code": 422,
            },
        )
        return JSONResponse(
            status_code=422,
            content=ApiErrorResponse(
                error_code=ClientErrorCode.VALIDATION_ERROR,
                message=str(exc),
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_exception(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.exception(
            "unexpected_exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status_code": 500,
            },
        )
        return JSONResponse(
            status_code=500,
            content=ApiErrorResponse(
                error_code=ClientErrorCode.INTERNAL_ERROR,
                message=str(exc) or "Internal error",
            ).model_dump(),
        )
