"""Structured Logging — JSON formatter, request logging middleware and query observer.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (operation, error_code, path, client_ip, outcome) surfaced when present
    - JSON format in production, human-readable in development
    - Observers only log; they never alter parameters or outcomes

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - setup_logging called once on startup via lifespan
    - Request logging as BaseHTTPMiddleware: one line per request, "METHOD @ path by ip"
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

_EXTRA_FIELDS = (
    "operation", "error_code", "path", "method", "client_ip",
    "status_code", "duration_ms", "outcome", "query_type",
)

request_logger = logging.getLogger("profile_search.requests")
query_logger = logging.getLogger("profile_search.queries")


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure logging for the application."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s — %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path and client address for every request."""

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else None
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        request_logger.info(
            f"{request.method} @ {request.url.path} by {client_ip}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "client_ip": client_ip,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response


class LoggingQueryObserver:
    """QueryObserver that logs each service operation before and after it runs."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or query_logger

    def before(self, operation: str, parameters: Any) -> None:
        self.logger.debug(
            f"{operation} started with {parameters!r}",
            extra={"operation": operation},
        )

    def after(self, operation: str, outcome: Any) -> None:
        kind = getattr(outcome, "kind", None) or getattr(
            outcome, "code", type(outcome).__name__,
        )
        level = logging.INFO
        if kind in ("store_failure", "STORE_UNAVAILABLE"):
            level = logging.ERROR
        self.logger.log(
            level, f"{operation} finished: {kind}",
            extra={"operation": operation, "outcome": kind},
        )
