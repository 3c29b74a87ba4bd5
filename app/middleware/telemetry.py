"""Prometheus instrumentation for HTTP requests."""

from __future__ import annotations

import time
from typing import Any, Final

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.telemetry import observe_request

# Health checks and scrapes are excluded so they do not dominate the request series.
_UNTRACKED_PATHS: Final[frozenset[str]] = frozenset({"/metrics", "/health"})


class TelemetryMiddleware(BaseHTTPMiddleware):
    """Count and time requests per route template."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path in _UNTRACKED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            observe_request(
                request.method,
                self._route_label(request),
                status_code,
                time.perf_counter() - start_time,
            )

    @staticmethod
    def _route_label(request: Request) -> str:
        """Return the matched route template, never a raw client path."""

        scope_route: Any = request.scope.get("route")
        path = getattr(scope_route, "path", None)
        return path or "unmatched"
