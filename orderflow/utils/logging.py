# orderflow/utils/logging.py
"""
Structured logging for the service.

Every module asks for its logger through get_logger(__name__); setup_logging()
installs a JSON formatter on the root logger once, at app start.
"""
import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from orderflow.utils.settings import LOG_LEVEL, SERVICE_NAME

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "@timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": SERVICE_NAME,
        }

        request_id = request_id_var.get()
        if request_id:
            log_obj["request_id"] = request_id

        if record.exc_info:
            log_obj["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": self.formatException(record.exc_info),
            }

        if hasattr(record, "extra_fields"):
            log_obj["custom"] = record.extra_fields

        return json.dumps(log_obj, default=str)


def setup_logging(level: str = LOG_LEVEL) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(handler)

    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags every log line of a request with its X-Request-ID and logs timing."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = request_id_var.set(request_id)
        logger = get_logger(__name__)
        start = time.time()

        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                exc_info=True,
                extra={"extra_fields": {"duration_ms": (time.time() - start) * 1000}},
            )
            raise
        finally:
            request_id_var.reset(token)

        logger.info(
            f"Request completed: {request.method} {request.url.path}",
            extra={
                "extra_fields": {
                    "status_code": response.status_code,
                    "duration_ms": (time.time() - start) * 1000,
                }
            },
        )
        response.headers["X-Request-ID"] = request_id
        return response
