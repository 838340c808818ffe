"""
Logging configuration for the PLM to IFS migration toolkit.
Provides structured logging with consistent formatting and log levels.
"""

import logging
import logging.handlers
import sys
import json
from datetime import datetime
from pathlib import Path
from typing import Optional

_RESERVED_ATTRS = (
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'exc_info', 'exc_text', 'stack_info',
    'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'getMessage',
    'taskName', 'message', 'asctime',
)


class StructuredFormatter(logging.Formatter):
    """Formatter that can output structured logs in JSON format."""

    def __init__(self, fmt: Optional[str] = None, structured: bool = False):
        super().__init__(fmt)
        self.structured = structured

    def format(self, record: logging.LogRecord) -> str:
        if self.structured:
            return self._format_structured(record)
        return super().format(record)

    def _format_structured(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # Extra fields passed through `extra=`
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    structured: bool = False,
    include_console: bool = True
) -> None:
    """
    Set up logging configuration with consistent formatting.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        max_file_size: Maximum size of log file before rotation
        backup_count: Number of backup files to keep
        structured: Whether to use JSON structured logging
        include_console: Whether to include console output
    """
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if structured:
        formatter = StructuredFormatter(structured=True)
    else:
        formatter = StructuredFormatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    if include_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Set specific levels for noisy libraries
    logging.getLogger('openpyxl').setLevel(logging.WARNING)
    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    logger.info(f"Logging configured: level={level}, file={log_file}, structured={structured}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def log_operation_start(operation: str, **kwargs) -> None:
    """Log the start of an operation with context."""
    logger = get_logger(__name__)
    logger.info(f"Starting operation: {operation}", extra={
        'operation': operation,
        'status': 'started',
        'context': kwargs
    })


def log_operation_end(operation: str, success: bool = True, duration: Optional[float] = None, **kwargs) -> None:
    """Log the end of an operation with result."""
    logger = get_logger(__name__)
    status = 'completed' if success else 'failed'
    message = f"Operation {operation} {status}"

    if duration is not None:
        message += f" (duration: {duration:.2f}s)"

    extra_data = {
        'operation': operation,
        'status': status,
        'success': success,
        'context': kwargs
    }

    if duration is not None:
        extra_data['duration'] = duration

    if success:
        logger.info(message, extra=extra_data)
    else:
        logger.error(message, extra=extra_data)


def log_validation_error(error: Exception, field: str = None, value: str = None) -> None:
    """Log validation errors with context."""
    logger = get_logger(__name__)
    extra_data = {
        'error_type': type(error).__name__,
        'field': field,
        'value': value
    }
    logger.warning(f"Validation error: {str(error)}", extra=extra_data)
