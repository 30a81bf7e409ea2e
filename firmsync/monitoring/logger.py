"""
Structured logging for FirmSync
JSON log entries with per-logger context, console output and rotating files
"""
import asyncio
import json
import logging
import os
import time
import traceback
from datetime import datetime, timezone
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional


class StructuredLogger:
    """Structured logger emitting one JSON document per entry"""

    def __init__(self, name: str, log_dir: Optional[str] = None, level: str = 'INFO'):
        self.name = name
        self.log_dir = Path(log_dir or os.getenv('LOG_DIR', 'logs'))
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(f"firmsync.{name}")
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self.logger.propagate = False

        # Avoid duplicate handlers when the same name is requested twice
        if not self.logger.handlers:
            self._setup_handlers()

        self.context: Dict[str, Any] = {}

    def _setup_handlers(self):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        self.logger.addHandler(console_handler)

        file_formatter = StructuredFormatter()

        file_handler = RotatingFileHandler(
            self.log_dir / f"{self.name}.log", maxBytes=10 * 1024 * 1024, backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        self.logger.addHandler(file_handler)

        error_handler = RotatingFileHandler(
            self.log_dir / f"{self.name}_errors.log", maxBytes=5 * 1024 * 1024, backupCount=3
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_formatter)
        self.logger.addHandler(error_handler)

    def set_context(self, **kwargs):
        """Attach fields to every following entry of this logger"""
        self.context.update(kwargs)

    def clear_context(self):
        self.context.clear()

    def _create_log_entry(self, level: str, message: str, **kwargs) -> Dict[str, Any]:
        entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level,
            'logger': self.name,
            'message': message,
            'process_id': os.getpid(),
        }
        entry.update(self.context)
        entry.update(kwargs)
        return entry

    @staticmethod
    def _describe_exception(exception: Exception) -> Dict[str, Any]:
        return {
            'type': type(exception).__name__,
            'message': str(exception),
            'traceback': traceback.format_exc()
        }

    def _dump(self, entry: Dict[str, Any]) -> str:
        return json.dumps(entry, default=str)

    def debug(self, message: str, **kwargs):
        self.logger.debug(self._dump(self._create_log_entry('DEBUG', message, **kwargs)))

    def info(self, message: str, **kwargs):
        self.logger.info(self._dump(self._create_log_entry('INFO', message, **kwargs)))

    def warning(self, message: str, **kwargs):
        self.logger.warning(self._dump(self._create_log_entry('WARNING', message, **kwargs)))

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs):
        """Error entry, with the exception type, message and traceback when given"""
        entry = self._create_log_entry('ERROR', message, **kwargs)
        if exception:
            entry['exception'] = self._describe_exception(exception)
        self.logger.error(self._dump(entry))

    def critical(self, message: str, exception: Optional[Exception] = None, **kwargs):
        entry = self._create_log_entry('CRITICAL', message, **kwargs)
        if exception:
            entry['exception'] = self._describe_exception(exception)
        self.logger.critical(self._dump(entry))


class StructuredFormatter(logging.Formatter):
    """Passes JSON messages through, wraps plain records into JSON"""

    def format(self, record):
        message = record.getMessage()
        try:
            json.loads(message)
            return message
        except (json.JSONDecodeError, ValueError):
            return json.dumps({
                'timestamp': datetime.fromtimestamp(record.created).isoformat(),
                'level': record.levelname,
                'logger': record.name,
                'message': message,
                'module': record.module,
                'function': record.funcName,
                'line': record.lineno,
                'process_id': os.getpid()
            })


_loggers: Dict[str, StructuredLogger] = {}


def get_logger(name: str = 'firmsync') -> StructuredLogger:
    """Return the shared logger instance for ``name``"""
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name, level=os.getenv('LOG_LEVEL', 'INFO'))
    return _loggers[name]


def log_performance(operation: str):
    """Decorator logging duration and outcome of sync or async callables"""
    def decorator(func):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            logger = get_logger('performance')
            start_time = time.time()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.error(f"Operation failed: {operation}",
                             operation=operation,
                             duration=time.time() - start_time,
                             status='error',
                             exception=e)
                raise
            logger.info(f"Operation completed: {operation}",
                        operation=operation,
                        duration=time.time() - start_time,
                        status='success')
            return result

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            logger = get_logger('performance')
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(f"Operation failed: {operation}",
                             operation=operation,
                             duration=time.time() - start_time,
                             status='error',
                             exception=e)
                raise
            logger.info(f"Operation completed: {operation}",
                        operation=operation,
                        duration=time.time() - start_time,
                        status='success')
            return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
