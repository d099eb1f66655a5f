"""Request correlation and access logging."""

import logging
import time
import uuid
from typing import Callable, Iterable, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..services.booking_store import SESSION_HEADER
from .config import settings
from .observability import REQUEST_DURATION

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = ("/health", "/ready", "/metrics", "/favicon.ico")


def client_ip(request: Request) -> str:
    """First hop of ``X-Forwarded-For``, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or (request.client.host if request.client else "unknown")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Adopt the caller's request id or mint one, and echo it on the response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """
    One log line per request plus a latency observation.

    The booking session header is logged so a customer's whole flow can be
    followed across requests.
    """

    def __init__(self, app: ASGIApp, quiet_paths: Optional[Iterable[str]] = None):
        super().__init__(app)
        self.quiet_paths = frozenset(quiet_paths or ())

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        REQUEST_DURATION.labels(method=request.method, endpoint=path).observe(elapsed)
        if path in self.quiet_paths:
            return response

        fields = {
            "request_id": getattr(request.state, "request_id", None),
            "booking_session": request.headers.get(SESSION_HEADER),
            "method": request.method,
            "path": path,
            "client_ip": client_ip(request),
            "status_code": response.status_code,
            "duration_ms": round(elapsed * 1000, 2),
        }
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(level, "%s %s -> %s", request.method, path, response.status_code, extra=fields)
        return response


def setup_middleware(app: FastAPI) -> None:
    # Starlette runs the last-added middleware first
    app.add_middleware(
        AccessLogMiddleware,
        quiet_paths=() if settings.is_production else QUIET_PATHS,
    )
    app.add_middleware(RequestIDMiddleware)
