"""HTTP request/response logging middleware."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from valida.core.logging import env_bool

REQUEST_ID_HEADER = "X-Request-ID"

# Polled by load balancers; logging them only adds noise.
_SKIP_PATHS = frozenset({"/health"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: FastAPI) -> None:
        super().__init__(app)
        self.logger = logging.getLogger("valida.request")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            if request.url.path not in _SKIP_PATHS:
                self._log(request, response, request_id, start)

    def _log(
        self,
        request: Request,
        response: Response | None,
        request_id: str,
        start: float,
    ) -> None:
        duration_ms = (time.perf_counter() - start) * 1000.0

        status_code: int | None = response.status_code if response else None
        client_ip = request.client.host if request.client else None

        extra: dict[str, Any] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "query": request.url.query,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
            "client_ip": client_ip,
            "user_agent": request.headers.get("user-agent"),
        }

        if status_code is None or status_code >= 500:
            log = self.logger.error
        elif status_code >= 400:
            log = self.logger.warning
        else:
            log = self.logger.info

        log(
            "%s %s -> %s (%.2fms)",
            request.method,
            request.url.path,
            status_code,
            duration_ms,
            extra=extra,
        )


def add_request_logging_middleware(app: FastAPI) -> None:
    """Attach request logging middleware (enabled by default)."""

    if not env_bool("LOG_REQUESTS", default=True):
        return
    app.add_middleware(RequestLoggingMiddleware)
