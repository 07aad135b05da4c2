"""Structured request logging and structlog configuration."""

import logging
import time
import uuid
from collections.abc import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

# Query parameters never written to the log
REDACTED_PARAMS = frozenset({"token", "access_token"})

# Health check paths logged at debug level only
QUIET_PATHS = frozenset({"/v1/liveness", "/v1/readiness"})


def _safe_query(request: Request) -> dict:
    return {
        key: "[redacted]" if key in REDACTED_PARAMS else value
        for key, value in request.query_params.items()
    }


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs each HTTP request with a request id echoed in ``X-Request-ID``."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        log = logger.bind(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )
        emit = log.debug if request.url.path in QUIET_PATHS else log.info
        emit("request_received", query_params=_safe_query(request))

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            log.error(
                "request_failed",
                error=str(exc),
                error_type=type(exc).__name__,
                duration_ms=round((time.perf_counter() - started) * 1000),
                exc_info=True,
            )
            raise

        emit(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000),
        )
        response.headers["X-Request-ID"] = request_id
        return response


def setup_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure stdlib logging and structlog.

    Args:
        log_level: Logging level name; unknown names fall back to INFO
        log_format: ``json`` for production or ``console`` for development
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(message)s",
    )

    console = log_format == "console"
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S" if console else "iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer() if console else structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
