"""Logging setup and per-request structured log line."""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextvars import ContextVar
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] [%(request_id)s] %(message)s"

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

request_log = logging.getLogger("app.request")


class _RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get() or "-"
        return True


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Install a single console handler on the root logger."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.addFilter(_RequestIdFilter())
    console_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root_logger.addHandler(console_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("xhtml2pdf").setLevel(logging.WARNING)

    return root_logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns X-Request-ID and emits one JSON line per request."""

    header_out = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get("X-Request-ID") or request.headers.get("X-Request-Id")
        if not rid:
            rid = str(uuid.uuid4())
        token = request_id_ctx.set(rid)
        request.state.request_id = rid

        t0 = time.time()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[self.header_out] = rid
            return response
        finally:
            request_log.info(json.dumps({
                "event": "http_request",
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "latency_ms": int((time.time() - t0) * 1000),
                "user_id": getattr(request.state, "user_id", None),
            }, default=str))
            request_id_ctx.reset(token)
