"""
Custom middleware for the SkyCart supplier backend.
"""

import time
import uuid
from typing import Callable
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from core.logging import get_logger
from core.exceptions import SkyCartException

logger = get_logger(__name__)

# Paths polled by monitors; logged at debug level only
QUIET_PATHS = {"/health"}


def error_body(exc: SkyCartException, request_id: str) -> dict:
    """JSON envelope shared by the middleware and the app's exception handler."""
    return {
        "error": exc.error_code,
        "message": exc.message,
        "details": exc.details,
        "request_id": request_id
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags every request with a short id and logs method, path, status and timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        log = logger.debug if request.url.path in QUIET_PATHS else logger.info
        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"
        log(f"[{request_id}] {request.method} {request.url.path} - Client: {client_ip}")

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"[{request_id}] Error: {str(e)} - "
                f"Processing time: {time.time() - start_time:.4f}s"
            )
            raise

        log(
            f"[{request_id}] Response: {response.status_code} - "
            f"Processing time: {time.time() - start_time:.4f}s"
        )
        response.headers["X-Request-ID"] = request_id
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns exceptions that escaped the routes into the standard error envelope."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except SkyCartException as e:
            request_id = getattr(request.state, 'request_id', 'unknown')
            logger.error(
                f"[{request_id}] SkyCart Exception: {e.error_code} - {e.message}",
                extra={"details": e.details}
            )
            return JSONResponse(status_code=e.status_code, content=error_body(e, request_id))

        except Exception as e:
            request_id = getattr(request.state, 'request_id', 'unknown')
            logger.error(f"[{request_id}] Unexpected error: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={
                    "error": "INTERNAL_SERVER_ERROR",
                    "message": "An unexpected error occurred",
                    "request_id": request_id
                }
            )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security headers; preview bytes are additionally marked uncacheable."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.path.endswith("/preview"):
            response.headers["Cache-Control"] = "no-store"

        return response
