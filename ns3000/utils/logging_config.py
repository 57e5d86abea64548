"""
Structured Logging Configuration

Provides JSON-formatted logging with:
- Request ID tracking
- Booking/boat entity context
- Structured output for log aggregation
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional, Any, Dict
from contextvars import ContextVar

# Context variable for request tracking
request_id_var: ContextVar[str] = ContextVar('request_id', default='')


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    Outputs logs in JSON format for easy parsing by log aggregators.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        log_data["module"] = record.module
        log_data["function"] = record.funcName
        log_data["line"] = record.lineno

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_data'):
            log_data["data"] = record.extra_data

        if hasattr(record, 'entity_type'):
            log_data["entity_type"] = record.entity_type
        if hasattr(record, 'entity_id'):
            log_data["entity_id"] = record.entity_id

        return json.dumps(log_data, ensure_ascii=False, default=str)


class StructuredLogger(logging.LoggerAdapter):
    """
    Logger adapter that adds structured context to log messages.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get('extra', {})
        extra.update(self.extra)
        kwargs['extra'] = extra
        return msg, kwargs

    def log_with_context(
        self,
        level: int,
        msg: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        **extra_data
    ):
        """Log with additional structured context."""
        extra = {}
        if entity_type:
            extra['entity_type'] = entity_type
        if entity_id:
            extra['entity_id'] = entity_id
        if extra_data:
            extra['extra_data'] = extra_data

        self.log(level, msg, extra=extra)

    def availability_checked(self, boat_id: str, booking_date, time_slot: str, available: bool, reason: Optional[str] = None):
        """Log an availability verdict."""
        self.log_with_context(
            logging.INFO,
            f"Availability {'ok' if available else 'denied'}: {booking_date} {time_slot}",
            entity_type="boat",
            entity_id=boat_id,
            booking_date=booking_date,
            time_slot=time_slot,
            available=available,
            reason=reason
        )

    def booking_created(self, booking_id: str, boat_id: str, booking_date, time_slot: str, final_price):
        """Log booking creation with structured data."""
        self.log_with_context(
            logging.INFO,
            f"Booking created: {booking_date} {time_slot}",
            entity_type="booking",
            entity_id=booking_id,
            boat_id=boat_id,
            booking_date=booking_date,
            time_slot=time_slot,
            final_price=final_price
        )

    def booking_conflict(self, boat_id: str, booking_date, time_slot: str, reason: str):
        """Log a rejected booking write."""
        self.log_with_context(
            logging.WARNING,
            f"Booking rejected: {reason}",
            entity_type="boat",
            entity_id=boat_id,
            booking_date=booking_date,
            time_slot=time_slot,
            reason=reason
        )

    def price_calculated(self, boat_id: str, service_id: str, booking_date, num_passengers: int, price, source: str):
        """Log a resolved price."""
        self.log_with_context(
            logging.INFO,
            f"Price resolved: {price} ({source})",
            entity_type="boat",
            entity_id=boat_id,
            service_id=service_id,
            booking_date=booking_date,
            num_passengers=num_passengers,
            price=price,
            source=source
        )


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    include_uvicorn: bool = True
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON format (True for production)
        include_uvicorn: Also configure uvicorn loggers
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    logging.getLogger("ns3000").setLevel(log_level)

    if include_uvicorn:
        for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
            uvicorn_logger = logging.getLogger(logger_name)
            uvicorn_logger.handlers = [handler]

    # Reduce noise from third-party loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for the given module."""
    return StructuredLogger(logging.getLogger(name), {})


def set_request_context(request_id: str):
    """Set context for the current request."""
    request_id_var.set(request_id)


def clear_request_context():
    request_id_var.set('')
