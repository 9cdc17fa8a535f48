"""Access log and API-key guard for the booking API."""

import hmac
import logging
import time
from typing import Callable, Iterable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Set on 409 slot refusals so the access log can name the rule that refused.
REJECTION_REASON_HEADER = "X-Rejection-Reason"


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One access-log line per request, with the refusal reason for refused slots."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        reason = response.headers.get(REJECTION_REASON_HEADER)
        if reason:
            logger.info(
                "%s %s -> %d refused=%s client=%s %.3fs",
                request.method, request.url.path, response.status_code,
                reason, _client_host(request), elapsed,
            )
        else:
            logger.info(
                "%s %s -> %d client=%s %.3fs",
                request.method, request.url.path, response.status_code,
                _client_host(request), elapsed,
            )

        response.headers["X-Process-Time"] = f"{elapsed:.3f}"
        return response


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Requires the shared API key on every path outside ``open_paths``.

    ``open_paths`` are prefixes, so ``/health`` also opens ``/health/ready``.
    The key is read from ``X-API-Key`` or an ``Authorization: Bearer`` header.
    """

    def __init__(self, app, api_key: str, open_paths: Iterable[str] = ()):
        super().__init__(app)
        self.api_key = api_key
        self.open_paths = tuple(open_paths)

    def is_open(self, path: str) -> bool:
        return any(path == p or path.startswith(p.rstrip("/") + "/") for p in self.open_paths)

    @staticmethod
    def presented_key(request: Request) -> Optional[str]:
        bearer = request.headers.get("Authorization", "")
        if bearer.startswith("Bearer "):
            return bearer.removeprefix("Bearer ")
        return request.headers.get("X-API-Key")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self.is_open(request.url.path):
            return await call_next(request)

        key = self.presented_key(request)
        if key and hmac.compare_digest(key, self.api_key):
            return await call_next(request)

        logger.warning(
            "Rejected %s %s from %s: missing or wrong API key",
            request.method, request.url.path, _client_host(request),
        )
        return JSONResponse(
            status_code=401,
            content={"error": "Unauthorized", "detail": "Invalid or missing API key"},
        )
