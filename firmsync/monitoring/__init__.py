"""
Monitoring and logging
"""
from .logger import StructuredLogger, get_logger, log_performance
from .error_reporter import ErrorReporter

__all__ = [
    'StructuredLogger',
    'get_logger',
    'log_performance',
    'ErrorReporter'
]
