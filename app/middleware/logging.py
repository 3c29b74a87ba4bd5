"""One colored console line per HTTP request."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("app.middleware.structured")

COLOR_RESET = "\u001b[0m"
COLOR_GREEN = "\u001b[32m"
COLOR_CYAN = "\u001b[36m"
COLOR_YELLOW = "\u001b[33m"
COLOR_RED = "\u001b[31m"


@dataclass(slots=True)
class RequestLogEntry:
    """What gets printed for a request to the relay."""

    method: str
    url: str
    client_ip: Optional[str]
    source_language: Optional[str] = None
    target_language: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    status_code: Optional[int] = None
    duration_ms: Optional[float] = None
    job_name: Optional[str] = None

    @property
    def language_pair(self) -> Optional[str]:
        if not self.source_language and not self.target_language:
            return None
        return f"{self.source_language or '-'}->{self.target_language or '-'}"

    @property
    def color(self) -> str:
        status = self.status_code or 0
        if status >= 500:
            return COLOR_RED
        if status >= 400:
            return COLOR_YELLOW
        if 200 <= status < 300:
            return COLOR_GREEN
        return COLOR_CYAN

    def render(self) -> str:
        fields = (
            ("timestamp", self.timestamp),
            ("method", self.method),
            ("url", self.url),
            ("status", self.status_code),
            ("duration_ms", self.duration_ms),
            ("client_ip", self.client_ip),
            ("pair", self.language_pair),
            ("job", self.job_name),
        )
        line = ", ".join(f"{name}={'-' if value is None else value}" for name, value in fields)
        return f"{self.color}{line}{COLOR_RESET}"


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, status, latency and the language pair of every request."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start_time = time.perf_counter()
        entry = RequestLogEntry(
            method=request.method,
            url=str(request.url),
            client_ip=request.client.host if request.client else None,
            source_language=request.headers.get("x-source-language"),
            target_language=request.headers.get("x-target-language"),
        )

        try:
            response = await call_next(request)
        except Exception:
            entry.status_code = 500
            entry.duration_ms = self._elapsed_ms(start_time)
            logger.exception(entry.render())
            raise

        entry.status_code = response.status_code
        entry.duration_ms = self._elapsed_ms(start_time)
        entry.job_name = response.headers.get("x-transcription-job")
        logger.info(entry.render())
        return response

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return round((time.perf_counter() - start_time) * 1000, 2)
