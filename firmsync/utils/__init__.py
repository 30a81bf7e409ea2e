"""
Shared utilities
"""
from .blocking import run_blocking
from .retry import RetryOptions, default_should_retry, retry, with_retry

__all__ = ['RetryOptions', 'default_should_retry', 'retry', 'run_blocking', 'with_retry']
