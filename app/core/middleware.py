"""
HTTP middleware: correlation ids and structured request logging.
"""
import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.core.logging import request_id_var

logger = logging.getLogger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Propagates X-Request-ID (or mints one) into the logging context and the response."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(settings.request_id_header) or str(uuid.uuid4())
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[settings.request_id_header] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        method = request.method
        path = request.url.path

        # Skip health checks (too noisy)
        if path in ("/health", "/liveness", "/readiness"):
            return await call_next(request)

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"{method} {path} failed",
                extra={"http.method": method, "http.url": path, "duration_ms": round(duration_ms, 2)},
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"
        logger.info(
            f"{method} {path} {response.status_code}",
            extra={
                "http.method": method,
                "http.url": path,
                "http.status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response
