"""
Aether - Centralized Logging Configuration
Supports both development (plain text) and production (JSON structured) logging
"""

import logging
import sys
import json
import traceback
import uuid
from datetime import datetime, timezone
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict
from contextvars import ContextVar

from aether.core.config import settings


# Context variables for generation tracing
session_id_var: ContextVar[str] = ContextVar('session_id', default='')
project_id_var: ContextVar[str] = ContextVar('project_id', default='')


def get_session_id() -> str:
    """Get current generation session ID from context"""
    return session_id_var.get() or ''


def set_session_id(session_id: str) -> None:
    """Set generation session ID in context"""
    session_id_var.set(session_id)


def get_project_id() -> str:
    """Get current project ID from context"""
    return project_id_var.get() or ''


def set_project_id(project_id: str) -> None:
    """Set project ID in context"""
    project_id_var.set(project_id)


def generate_session_id() -> str:
    """Generate a short unique session ID"""
    return str(uuid.uuid4())[:8]


_RESERVED_RECORD_KEYS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'taskName', 'session_id', 'project_id',
}


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging in production
    Outputs logs in a format easily parsed by log aggregation tools
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        session_id = get_session_id()
        if session_id:
            log_data["session_id"] = session_id

        project_id = get_project_id()
        if project_id:
            log_data["project_id"] = project_id

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info) if record.exc_info[0] else None
            }

        # Add extra fields from record
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS and not key.startswith('_'):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ContextualFormatter(logging.Formatter):
    """
    Formatter that includes the session/project context
    Used for development with readable output
    """

    def format(self, record: logging.LogRecord) -> str:
        record.session_id = get_session_id() or '-'
        record.project_id = get_project_id() or '-'

        return super().format(record)


class AetherLogger(logging.Logger):
    """
    Custom logger with convenience methods for structured logging
    """

    def log_generation_event(self, event: str, **kwargs) -> None:
        """Log a generation lifecycle event (started, step, completed...)"""
        details = ", ".join(f"{key}={value}" for key, value in kwargs.items())
        self.info(
            f"Generation {event}" + (f" ({details})" if details else ""),
            extra={
                "event_type": "generation",
                "generation_event": event,
                **kwargs
            }
        )

    def log_error_with_context(self, error: Exception, context: str = None,
                               **kwargs) -> None:
        """Log error with full context"""
        self.error(
            f"Error in {context}: {type(error).__name__}: {str(error)}",
            exc_info=True,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_message": str(error),
                "error_context": context,
                **kwargs
            }
        )

    def log_performance(self, operation: str, duration_ms: float,
                        threshold_ms: float = 1000, **kwargs) -> None:
        """Log performance metrics, warn if over threshold"""
        level = logging.WARNING if duration_ms > threshold_ms else logging.DEBUG
        self.log(
            level,
            f"Performance: {operation} took {duration_ms:.2f}ms" +
            (f" (threshold: {threshold_ms}ms)" if duration_ms > threshold_ms else ""),
            extra={
                "event_type": "performance",
                "operation": operation,
                "duration_ms": duration_ms,
                "threshold_ms": threshold_ms,
                "exceeded_threshold": duration_ms > threshold_ms,
                **kwargs
            }
        )


def setup_logging() -> AetherLogger:
    """Setup logging configuration based on environment"""

    logging.setLoggerClass(AetherLogger)

    logger = logging.getLogger("aether")
    logger.__class__ = AetherLogger  # Ensure it's our custom class
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # Clear existing handlers
    logger.handlers.clear()

    if settings.is_production:
        # Production: JSON formatted logs for log aggregation
        formatter: logging.Formatter = JSONFormatter()
        file_formatter: logging.Formatter = formatter
        backup_count = 10
    else:
        # Development: Human-readable format
        formatter = ContextualFormatter("%(levelname)-8s | %(message)s")
        file_formatter = ContextualFormatter(
            "%(asctime)s | %(levelname)-8s | "
            "[%(session_id)s] [%(project_id)s] | "
            "%(funcName)s:%(lineno)d | %(message)s"
        )
        backup_count = 5

    # Console goes to stderr so the progress table owns stdout
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING if not settings.DEBUG else logging.DEBUG)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.LOG_FILE:
        log_file = Path(settings.LOG_FILE)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10485760,  # 10MB
            backupCount=backup_count
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)

    logger.debug(
        "Logging initialized",
        extra={
            "environment": settings.ENVIRONMENT,
            "log_level": settings.LOG_LEVEL,
            "json_logging": settings.is_production
        }
    )

    return logger


# Create logger instance
logger: AetherLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'get_session_id',
    'set_session_id',
    'get_project_id',
    'set_project_id',
    'generate_session_id',
    'AetherLogger',
]
