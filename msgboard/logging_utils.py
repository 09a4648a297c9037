import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from pythonjsonlogger.json import JsonFormatter

from msgboard.metrics import record_http_request
from msgboard.utils import utc_now_iso


# Context variable to store request_id for the current request
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_ctx.get()


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter emitting timestamp, level, message and any extra fields."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        if not log_record.get('timestamp'):
            log_record['timestamp'] = utc_now_iso()
        log_record['level'] = record.levelname

        if 'request_id' not in log_record:
            req_id = get_request_id()
            if req_id:
                log_record['request_id'] = req_id


def setup_logging(log_level: str = "INFO"):
    """
    Setup structured JSON logging for the application.

    Every line goes to stdout, unbuffered, one JSON object per record.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logger = logging.getLogger()
    logger.setLevel(log_level.upper())

    # Remove existing handlers
    logger.handlers = []

    json_handler = logging.StreamHandler(sys.stdout)
    json_handler.setFormatter(CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s'))

    logger.addHandler(json_handler)

    # Route Uvicorn loggers through the same JSON handler
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers = []
        uvicorn_logger.addHandler(json_handler)
        uvicorn_logger.propagate = False

    # Disable uvicorn.access logger since we have our own middleware
    logging.getLogger("uvicorn.access").disabled = True

    return logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all HTTP requests in structured JSON format.

    Logged keys: timestamp, level, request_id, method, path, status,
    latency_ms. Handlers may attach extra keys via log_request_data().
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        # Set request_id in context for all loggers to use
        token = request_id_ctx.set(request_id)

        start_time = time.time()

        try:
            try:
                response = await call_next(request)
            except Exception:
                # The catch-all handler answers 500 once the exception leaves here
                self._record(request, request_id, 500, start_time)
                raise

            response.headers["X-Request-ID"] = request_id
            self._record(request, request_id, response.status_code, start_time)
            return response
        finally:
            request_id_ctx.reset(token)

    @staticmethod
    def _record(request: Request, request_id: str, status: int, start_time: float) -> None:
        """Update request metrics and write the "Request completed" line."""
        latency_seconds = time.time() - start_time
        latency_ms = round(latency_seconds * 1000, 2)

        # Exclude /metrics to avoid self-instrumentation noise
        if request.url.path != "/metrics":
            record_http_request(
                method=request.method,
                path=request.url.path,
                status=status,
                latency_seconds=latency_seconds
            )

        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": status,
            "latency_ms": latency_ms,
        }

        if hasattr(request.state, "log_data"):
            log_data.update(request.state.log_data)

        logger = logging.getLogger("msgboard.requests")

        if status >= 500:
            logger.error("Request completed", extra=log_data)
        elif status >= 400:
            logger.warning("Request completed", extra=log_data)
        else:
            logger.info("Request completed", extra=log_data)


def log_request_data(request: Request, **fields) -> None:
    """
    Attach operation-specific fields (message_id, result, ...) to the
    request log line written by RequestLoggingMiddleware.
    """
    data = getattr(request.state, "log_data", {})
    data.update({k: v for k, v in fields.items() if v is not None})
    request.state.log_data = data
