"""
Middleware for FirmSync
Request logging, rate limiting, performance monitoring and security headers
"""

import time
from collections import defaultdict, deque
from threading import Lock

from flask import current_app, g, jsonify, request

from .monitoring import get_logger

logger = get_logger('middleware')


class RateLimiter:
    """Token bucket rate limiter with per-IP tracking"""

    CLEANUP_EVERY = 1000

    def __init__(self, per_minute: int, burst: int):
        self.per_minute = per_minute
        self.burst = burst
        self.buckets = {}
        self.checks = 0
        self.lock = Lock()

    def is_allowed(self, client_ip: str) -> bool:
        """Check if request is allowed for given IP"""
        now = time.time()

        with self.lock:
            self.checks += 1
            cleanup_due = self.checks % self.CLEANUP_EVERY == 0

        if cleanup_due:
            self.cleanup_old_entries()

        with self.lock:
            bucket = self.buckets.setdefault(client_ip, {'tokens': self.burst, 'last_update': now})

            time_passed = now - bucket['last_update']
            bucket['tokens'] = min(self.burst, bucket['tokens'] + time_passed * (self.per_minute / 60.0))
            bucket['last_update'] = now

            if bucket['tokens'] >= 1:
                bucket['tokens'] -= 1
                return True

        return False

    def get_rate_limit_info(self, client_ip: str) -> dict:
        """Get rate limit information for client"""
        bucket = self.buckets.get(client_ip, {'tokens': self.burst, 'last_update': time.time()})
        return {
            'remaining': int(bucket['tokens']),
            'limit': self.burst,
            'reset_time': bucket['last_update'] + 60
        }

    def cleanup_old_entries(self, max_age: int = 3600) -> int:
        """Drop buckets idle for longer than ``max_age`` seconds"""
        cutoff = time.time() - max_age

        with self.lock:
            old_keys = [ip for ip, bucket in self.buckets.items() if bucket['last_update'] < cutoff]
            for key in old_keys:
                del self.buckets[key]

        logger.debug(f"Cleaned up {len(old_keys)} old rate limit entries")
        return len(old_keys)


class PerformanceMonitor:
    """Keeps recent request timings"""

    SLOW_REQUEST_SECONDS = 2.0

    def __init__(self, history_size: int = 1000):
        self.request_times = deque(maxlen=history_size)
        self.slow_requests = deque(maxlen=100)
        self.error_count = defaultdict(int)
        self.lock = Lock()

    def record_request(self, path: str, method: str, duration: float, status_code: int):
        now = time.time()

        with self.lock:
            self.request_times.append({
                'path': path,
                'method': method,
                'duration': duration,
                'status_code': status_code,
                'timestamp': now
            })

            if duration > self.SLOW_REQUEST_SECONDS:
                self.slow_requests.append({
                    'path': path,
                    'method': method,
                    'duration': duration,
                    'timestamp': now
                })

            if status_code >= 400:
                self.error_count[str(status_code)] += 1

    def get_performance_stats(self) -> dict:
        with self.lock:
            requests = list(self.request_times)
            slow_count = len(self.slow_requests)
            errors_by_status = dict(self.error_count)

        if not requests:
            return {
                'avg_response_time': 0,
                'slow_request_count': 0,
                'total_requests': 0,
                'error_rate': 0,
                'errors_by_status': {}
            }

        durations = [r['duration'] for r in requests]
        error_requests = sum(1 for r in requests if r['status_code'] >= 400)

        return {
            'avg_response_time': round(sum(durations) / len(durations), 3),
            'slow_request_count': slow_count,
            'total_requests': len(requests),
            'error_rate': round(error_requests / len(requests) * 100, 2),
            'p95_response_time': self._calculate_percentile(durations, 95),
            'p99_response_time': self._calculate_percentile(durations, 99),
            'errors_by_status': errors_by_status
        }

    def _calculate_percentile(self, values: list, percentile: int) -> float:
        if not values:
            return 0

        sorted_values = sorted(values)
        index = int((percentile / 100) * len(sorted_values))
        return round(sorted_values[min(index, len(sorted_values) - 1)], 3)


def add_security_headers(response):
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-XSS-Protection'] = '1; mode=block'
    response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


def register_middleware(app, rate_limiter: RateLimiter, performance_monitor: PerformanceMonitor):
    """Register request hooks with Flask app"""

    @app.before_request
    def before_request():
        g.start_time = time.time()
        client_ip = request.remote_addr

        logger.info("HTTP Request received",
                    method=request.method,
                    path=request.path,
                    remote_addr=client_ip,
                    user_agent=request.headers.get('User-Agent'))

        max_size = current_app.config.get('MAX_CONTENT_LENGTH')
        if max_size and request.content_length and request.content_length > max_size:
            logger.warning("Request too large", ip=client_ip, size=request.content_length)
            return jsonify({'error': 'Request too large'}), 413

        # Only API endpoints are rate limited
        if request.path.startswith('/api/') and not rate_limiter.is_allowed(client_ip):
            rate_info = rate_limiter.get_rate_limit_info(client_ip)
            logger.warning("Rate limit exceeded", ip=client_ip, path=request.path)

            response = jsonify({
                'error': 'Rate limit exceeded',
                'message': 'Too many requests. Please try again later.',
                'retry_after': 60
            })
            response.headers['X-RateLimit-Limit'] = str(rate_limiter.burst)
            response.headers['X-RateLimit-Remaining'] = str(rate_info['remaining'])
            response.headers['X-RateLimit-Reset'] = str(int(rate_info['reset_time']))
            return response, 429

    @app.after_request
    def after_request(response):
        duration = time.time() - g.get('start_time', time.time())

        performance_monitor.record_request(request.path, request.method, duration,
                                           response.status_code)

        if request.path.startswith('/api/'):
            rate_info = rate_limiter.get_rate_limit_info(request.remote_addr)
            response.headers['X-RateLimit-Limit'] = str(rate_limiter.burst)
            response.headers['X-RateLimit-Remaining'] = str(rate_info['remaining'])
            response.headers['X-RateLimit-Reset'] = str(int(rate_info['reset_time']))

        response = add_security_headers(response)
        response.headers['X-Response-Time'] = f"{duration:.3f}s"

        logger.info("HTTP Response sent",
                    status_code=response.status_code,
                    path=request.path,
                    duration=round(duration, 4))
        return response
