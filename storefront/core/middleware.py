"""
Request id propagation + access log line per request.
Upstream ids (X-Request-ID / X-Correlation-ID / X-Trace-ID) are kept so a
request can be traced across a proxy.
"""
from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .logging import request_id_var

log = logging.getLogger(__name__)

UPSTREAM_HEADERS = ("x-request-id", "x-correlation-id", "x-trace-id")


def get_or_create_request_id(request: Request) -> str:
    for name in UPSTREAM_HEADERS:
        value = request.headers.get(name)
        if value:
            return value
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = get_or_create_request_id(request)
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        start = time.perf_counter()
        status = "ERROR"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            log.info("%s %s status=%s duration_ms=%d", request.method, request.url.path, status, duration_ms)
            request_id_var.reset(token)
