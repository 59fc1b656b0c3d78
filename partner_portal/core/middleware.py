"""
Request logging and error handling middleware.

Health checks and the metrics scrape are not logged unless they fail.
"""
import contextvars
import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.middleware.base import BaseHTTPMiddleware

from partner_portal.api.errors import build_error_payload
from partner_portal.core.logging import get_logger

logger = get_logger(__name__)

request_id_ctx_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)
correlation_id_ctx_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("correlation_id", default=None)

_QUIET_PREFIXES = ("/health", "/metrics")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Binds request/correlation IDs and logs one line per finished request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        correlation_id = request.headers.get("X-Correlation-ID") or request_id
        request.state.request_id = request_id
        request.state.correlation_id = correlation_id
        request_id_ctx_var.set(request_id)
        correlation_id_ctx_var.set(correlation_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, correlation_id=correlation_id)

        path = request.url.path
        quiet = path.startswith(_QUIET_PREFIXES)
        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("request_failed", method=request.method, path=path, error=str(e))
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        if response.status_code >= 500:
            logger.warning(
                "request_completed",
                method=request.method,
                path=path,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
        elif not quiet:
            logger.info(
                "request_completed",
                method=request.method,
                path=path,
                status_code=response.status_code,
                duration_ms=duration_ms,
                client_ip=request.client.host if request.client else None,
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Last-resort handler. A dropped database connection becomes a 503 so
    load balancers retry; anything else is a 500.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except OperationalError as e:
            logger.error("database_unavailable", method=request.method, path=request.url.path, error=str(e))
            return JSONResponse(
                status_code=503,
                content=build_error_payload(
                    code="database_unavailable",
                    message="Database unavailable",
                    detail="Try again shortly",
                    request=request,
                ),
            )
        except Exception as e:
            logger.exception(
                "unhandled_error",
                method=request.method,
                path=request.url.path,
                error=str(e),
            )
            debug = getattr(request.app.state, "debug", False)
            return JSONResponse(
                status_code=500,
                content=build_error_payload(
                    code="internal_error",
                    message="Internal server error",
                    detail=str(e) if debug else "An error occurred",
                    request=request,
                ),
            )
