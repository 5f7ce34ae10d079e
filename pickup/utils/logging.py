"""Structured logging configuration."""

import logging
import sys
from typing import Any

import structlog
from pythonjsonlogger import jsonlogger

from pickup.config import get_settings


def setup_logging() -> None:
    """Configure structured logging for the application."""
    settings = get_settings()

    log_level = getattr(logging, settings.log_level)

    handler = logging.StreamHandler(sys.stdout)
    if settings.log_format == "json":
        formatter = jsonlogger.JsonFormatter(
            fmt="%(timestamp)s %(level)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "timestamp"},
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # APScheduler logs every job run at INFO
    logging.getLogger("apscheduler").setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer() if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class OrderLogger:
    """Logger for order lifecycle events."""

    def __init__(self, component: str):
        self.component = component
        self.logger = get_logger(component)

    def log_transition(
        self,
        order_id: str,
        order_number: str,
        from_status: str,
        to_status: str,
        **kwargs: Any,
    ) -> None:
        """Log a committed status transition."""
        self.logger.info(
            "order_transitioned",
            component=self.component,
            order_id=order_id,
            order_number=order_number,
            from_status=from_status,
            to_status=to_status,
            **kwargs,
        )

    def log_rejected_transition(
        self,
        order_id: str,
        current: str,
        requested: str,
    ) -> None:
        """Log a transition refused by the state machine."""
        self.logger.info(
            "order_transition_rejected",
            component=self.component,
            order_id=order_id,
            current=current,
            requested=requested,
        )

    def log_notification(
        self,
        order_id: str,
        direction: str,
        method: str,
        status: str,
        duration_ms: float | None = None,
        **kwargs: Any,
    ) -> None:
        """Log the outcome of a dispatched message."""
        log_data: dict[str, Any] = {
            "component": self.component,
            "order_id": order_id,
            "direction": direction,
            "method": method,
            "status": status,
        }
        if duration_ms is not None:
            log_data["duration_ms"] = duration_ms
        log_data.update(kwargs)

        if status == "failed":
            self.logger.warning("notification_failed", **log_data)
        else:
            self.logger.info("notification_sent", **log_data)

    def log_error(
        self,
        error: str,
        order_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Log an error."""
        self.logger.error(
            "order_error",
            component=self.component,
            order_id=order_id,
            error=error,
            **kwargs,
        )
