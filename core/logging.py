"""Structured JSON logging with request context fields."""

import logging
import os
import sys
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

from core.config import settings


order_id_ctx: ContextVar[str] = ContextVar("order_id", default="")


class ContextFilter(logging.Filter):
    """Inject service name and the order being processed into every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = settings.APP_NAME
        record.order_id = order_id_ctx.get()
        return True


def configure_logging() -> None:
    """Configure root logger once per process."""

    handler = logging.StreamHandler(sys.stdout)
    context_filter = ContextFilter()
    handler.addFilter(context_filter)
    formatter = JsonFormatter(
        "%(asctime)s %(levelname)s %(service_name)s %(order_id)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.LOG_LEVEL)


def _safe_env(name: str) -> str:
    value = os.getenv(name)
    if value is None:
        return "<unset>"
    if any(secret in name for secret in ["KEY", "SECRET", "PASSWORD", "TOKEN"]):
        return "<redacted>"
    return value


def log_startup_config(keys: list[str]) -> None:
    """Log selected config keys with secret-looking values redacted."""

    config = {"service": settings.APP_NAME}
    for key in keys:
        config[key] = _safe_env(key)
    logger.info("startup_config=%s", config)


logger = logging.getLogger("pix_gateway")
