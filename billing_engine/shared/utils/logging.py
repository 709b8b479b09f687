# 📄 File: billing_engine/shared/utils/logging.py

# 🧭 Purpose (Layman Explanation):
# This file sets up a smart logging system that records what the billing engine does in a
# structured way, so every charge, pause, and cancellation can be traced back to who asked for it.

# 🧪 Purpose (Technical Summary):
# Implements structured logging with JSON formatting and contextual information
# (correlation id of the billing request and the acting caller) for billing observability.

# 🔗 Dependencies:
# - python-json-logger: JSON log formatting
# - logging: Python standard logging
# - contextvars: Request context tracking

# 🔄 Connected Modules / Calls From:
# Used by: bootstrap (setup), event bus, command handlers, domain services

import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional
from uuid import uuid4

from pythonjsonlogger.json import JsonFormatter

from billing_engine.shared.config.settings import get_settings

# Context variables for request tracking
correlation_id_var: ContextVar[str] = ContextVar('correlation_id', default='')
caller_id_var: ContextVar[str] = ContextVar('caller_id', default='')

# Global logging configuration
_logging_configured = False
_loggers_cache: Dict[str, "StructuredLogger"] = {}

SERVICE_NAME = 'billing-engine'


class ContextualFormatter(logging.Formatter):
    """
    Custom formatter that adds contextual information to log records.

    Adds correlation ID, caller ID, and hostname to every log message
    for better traceability.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.hostname = os.uname().nodename if hasattr(os, 'uname') else 'unknown'

    def format(self, record):
        record.correlation_id = correlation_id_var.get('')
        record.caller_id = caller_id_var.get('')
        record.hostname = self.hostname
        record.service = SERVICE_NAME
        record.timestamp = datetime.now(timezone.utc).isoformat()

        if hasattr(record, 'extra_fields') and record.extra_fields:
            for key, value in record.extra_fields.items():
                setattr(record, key, value)

        return super().format(record)


class BillingJSONFormatter(JsonFormatter):
    """
    JSON formatter for structured logging.

    Outputs logs in JSON format with consistent structure for
    log aggregation and analysis tools.
    """

    def __init__(self):
        super().__init__('%(levelname)s %(name)s %(message)s')
        self.hostname = os.uname().nodename if hasattr(os, 'uname') else 'unknown'

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['service'] = SERVICE_NAME
        log_record['hostname'] = self.hostname

        if correlation_id_var.get():
            log_record['correlation_id'] = correlation_id_var.get()
        if caller_id_var.get():
            log_record['caller_id'] = caller_id_var.get()

        extra_fields = log_record.pop('extra_fields', None)
        if extra_fields:
            log_record['extra'] = extra_fields


class StructuredLogger:
    """
    Wrapper around logging.Logger that accepts extra fields as keyword
    arguments and records billing business events.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def debug(self, message: str, extra: Dict = None, **kwargs):
        """Log debug message with extra fields."""
        self._log(logging.DEBUG, message, extra, **kwargs)

    def info(self, message: str, extra: Dict = None, **kwargs):
        """Log info message with extra fields."""
        self._log(logging.INFO, message, extra, **kwargs)

    def warning(self, message: str, extra: Dict = None, **kwargs):
        """Log warning message with extra fields."""
        self._log(logging.WARNING, message, extra, **kwargs)

    def error(self, message: str, extra: Dict = None, exc_info: bool = False, **kwargs):
        """Log error message with extra fields."""
        self._log(logging.ERROR, message, extra, exc_info=exc_info, **kwargs)

    def _log(self, level: int, message: str, extra: Dict = None, **kwargs):
        """Internal log method with extra fields handling."""
        extra_fields = dict(extra or {})

        for key, value in kwargs.items():
            if key not in ['exc_info', 'stack_info', 'stacklevel']:
                extra_fields[key] = value

        clean_kwargs = {k: v for k, v in kwargs.items()
                        if k in ['exc_info', 'stack_info', 'stacklevel']}

        if extra_fields:
            clean_kwargs['extra'] = {'extra_fields': extra_fields}

        self.logger.log(level, message, **clean_kwargs)

    def log_business_event(
        self,
        event_type: str,
        description: str,
        entity_id: str = None,
        entity_type: str = None,
        extra: Dict = None
    ):
        """Log business events for the audit trail."""
        extra_fields = {
            'event_type': 'business_event',
            'business_event_type': event_type,
            'description': description,
            **(extra or {})
        }

        if entity_id:
            extra_fields['entity_id'] = entity_id
        if entity_type:
            extra_fields['entity_type'] = entity_type

        self.info(description, extra=extra_fields)


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None,
    enable_console: bool = True
) -> logging.Logger:
    """
    Setup application logging configuration.

    Values not passed explicitly are read from settings. Calling it a
    second time is a no-op.

    Returns:
        The "startup" logger
    """
    global _logging_configured

    if _logging_configured:
        return logging.getLogger("startup")

    settings = get_settings()
    log_level = log_level or settings.LOG_LEVEL
    log_format = log_format or settings.LOG_FORMAT
    log_file = log_file or settings.LOG_FILE

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format.lower() == 'json':
        formatter = BillingJSONFormatter()
    else:
        formatter = ContextualFormatter(
            '%(timestamp)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s'
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    _logging_configured = True
    return logging.getLogger("startup")


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        StructuredLogger instance
    """
    if name in _loggers_cache:
        return _loggers_cache[name]

    logger = StructuredLogger(name)
    _loggers_cache[name] = logger

    return logger


@contextmanager
def log_context(correlation_id: str = None, caller_id: str = None):
    """
    Context manager for adding contextual information to logs.

    Args:
        correlation_id: processID / rebillID supplied by the orchestrator
        caller_id: Acting caller identity
    """
    if correlation_id is None:
        correlation_id = str(uuid4())

    correlation_token = correlation_id_var.set(correlation_id)
    caller_token = caller_id_var.set(caller_id or '')

    try:
        yield
    finally:
        correlation_id_var.reset(correlation_token)
        caller_id_var.reset(caller_token)


def log_startup_event(service_name: str, version: str, extra: Dict = None):
    """Log application startup event."""
    logger = get_logger('startup')
    logger.info(
        f"Service {service_name} starting up",
        extra={
            'event_type': 'service_startup',
            'service_name': service_name,
            'version': version,
            **(extra or {})
        }
    )
