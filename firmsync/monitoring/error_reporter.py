"""
Error reporting
Tracks unexpected errors per type and hands out error ids for API responses
"""
import time
import uuid
from collections import defaultdict, deque
from threading import Lock
from typing import Any, Dict, Optional

from .logger import get_logger


class ErrorReporter:
    """Counts and remembers reported errors"""

    def __init__(self, history_size: int = 100):
        self.logger = get_logger('error_reporter')
        self.error_counts = defaultdict(int)
        self.error_history = defaultdict(lambda: deque(maxlen=history_size))
        self.lock = Lock()

    def report_error(self, error_type: str, message: str,
                     context: Optional[Dict[str, Any]] = None) -> str:
        """Record an error and return the id handed to the client"""
        error_id = uuid.uuid4().hex[:12]

        with self.lock:
            self.error_counts[error_type] += 1
            self.error_history[error_type].append({
                'error_id': error_id,
                'timestamp': time.time(),
                'message': message,
                'context': context or {}
            })
            total_count = self.error_counts[error_type]

        self.logger.error(f"Error reported: {error_type}",
                          error_type=error_type,
                          error_id=error_id,
                          error_message=message,
                          context=context,
                          total_count=total_count)
        return error_id

    def get_error_statistics(self, hours: int = 24) -> Dict[str, Any]:
        cutoff = time.time() - hours * 3600

        with self.lock:
            recent = {
                error_type: [entry for entry in history if entry['timestamp'] > cutoff]
                for error_type, history in self.error_history.items()
            }
            totals = dict(self.error_counts)

        return {
            'time_range_hours': hours,
            'total_errors': sum(totals.values()),
            'by_type': totals,
            'recent': {
                error_type: {
                    'count': len(entries),
                    'last_message': entries[-1]['message'] if entries else None,
                    'last_error_id': entries[-1]['error_id'] if entries else None
                }
                for error_type, entries in recent.items()
            }
        }
