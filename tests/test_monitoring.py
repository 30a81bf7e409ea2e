"""
Tests for monitoring and logging functionality
"""
import asyncio
import json
import tempfile
import threading
import time
from unittest.mock import patch

import pytest

from firmsync.middleware import PerformanceMonitor, RateLimiter
from firmsync.monitoring import ErrorReporter, StructuredLogger, log_performance


class TestStructuredLogger:
    """Test cases for StructuredLogger"""

    @pytest.fixture
    def logger(self):
        """Create logger instance for testing"""
        with tempfile.TemporaryDirectory() as temp_dir:
            logger = StructuredLogger('test_logger', temp_dir)
            yield logger

    def test_logger_initialization(self, logger):
        assert logger.name == 'test_logger'
        assert logger.logger.name == 'firmsync.test_logger'
        assert len(logger.logger.handlers) > 0

    def test_info_logging(self, logger):
        with patch.object(logger.logger, 'info') as mock_info:
            logger.info("Test message", extra_field="test_value")

            mock_info.assert_called_once()
            logged_data = json.loads(mock_info.call_args[0][0])
            assert logged_data['level'] == 'INFO'
            assert logged_data['message'] == "Test message"
            assert logged_data['extra_field'] == "test_value"

    def test_timestamp_is_utc_aware(self, logger):
        with patch.object(logger.logger, 'info') as mock_info:
            logger.info("Timestamped")

            logged_data = json.loads(mock_info.call_args[0][0])
            assert logged_data['timestamp'].endswith('+00:00')

    def test_error_logging_with_exception(self, logger):
        test_exception = ValueError("Test error")

        with patch.object(logger.logger, 'error') as mock_error:
            logger.error("Error occurred", exception=test_exception)

            logged_data = json.loads(mock_error.call_args[0][0])
            assert logged_data['level'] == 'ERROR'
            assert logged_data['exception']['type'] == 'ValueError'
            assert logged_data['exception']['message'] == 'Test error'

    def test_non_serializable_fields(self, logger):
        with patch.object(logger.logger, 'warning') as mock_warning:
            logger.warning("Odd value", path=tempfile.gettempdir, when=time)

            logged_data = json.loads(mock_warning.call_args[0][0])
            assert isinstance(logged_data['path'], str)

    def test_context_setting(self, logger):
        logger.set_context(request_id="123", document_type_id="nda")

        with patch.object(logger.logger, 'info') as mock_info:
            logger.info("Test with context")

            logged_data = json.loads(mock_info.call_args[0][0])
            assert logged_data['request_id'] == "123"
            assert logged_data['document_type_id'] == "nda"

    def test_clear_context(self, logger):
        logger.set_context(test_key="test_value")
        logger.clear_context()

        with patch.object(logger.logger, 'info') as mock_info:
            logger.info("Test after clear")

            logged_data = json.loads(mock_info.call_args[0][0])
            assert 'test_key' not in logged_data


class TestLogPerformance:
    """Test cases for the log_performance decorator"""

    def test_sync_function(self):
        @log_performance('sync_op')
        def add(a, b):
            return a + b

        assert add(2, 3) == 5

    def test_async_function(self):
        @log_performance('async_op')
        async def double(value):
            await asyncio.sleep(0)
            return value * 2

        assert asyncio.run(double(4)) == 8

    def test_exception_propagates(self):
        @log_performance('failing_op')
        def fail():
            raise RuntimeError("nope")

        with pytest.raises(RuntimeError):
            fail()


class TestErrorReporter:
    """Test cases for ErrorReporter"""

    @pytest.fixture
    def error_reporter(self):
        return ErrorReporter(history_size=3)

    def test_report_error(self, error_reporter):
        error_id = error_reporter.report_error('test_error', 'Test error message', {'context': 'test'})

        assert len(error_id) == 12
        assert error_reporter.error_counts['test_error'] == 1

    def test_get_error_statistics(self, error_reporter):
        error_reporter.report_error('error1', 'Message 1')
        error_reporter.report_error('error2', 'Message 2')
        last_id = error_reporter.report_error('error1', 'Message 3')

        stats = error_reporter.get_error_statistics()

        assert stats['total_errors'] == 3
        assert stats['by_type'] == {'error1': 2, 'error2': 1}
        assert stats['recent']['error1']['count'] == 2
        assert stats['recent']['error1']['last_message'] == 'Message 3'
        assert stats['recent']['error1']['last_error_id'] == last_id

    def test_history_is_bounded(self, error_reporter):
        for i in range(5):
            error_reporter.report_error('busy', f'Message {i}')

        assert len(error_reporter.error_history['busy']) == 3
        assert error_reporter.error_counts['busy'] == 5

    def test_old_errors_leave_recent_window(self, error_reporter):
        error_reporter.report_error('old_error', 'Old message')
        error_reporter.error_history['old_error'][0]['timestamp'] = time.time() - 2 * 3600

        stats = error_reporter.get_error_statistics(hours=1)

        assert stats['recent']['old_error']['count'] == 0
        assert stats['by_type']['old_error'] == 1


class TestPerformanceMonitor:
    """Test cases for request timing"""

    def test_empty_stats(self):
        stats = PerformanceMonitor().get_performance_stats()
        assert stats['total_requests'] == 0

    def test_record_request(self):
        monitor = PerformanceMonitor()
        monitor.record_request('/api/agent-assignments', 'GET', 0.1, 200)
        monitor.record_request('/api/agent-assignments', 'POST', 3.0, 400)

        stats = monitor.get_performance_stats()

        assert stats['total_requests'] == 2
        assert stats['slow_request_count'] == 1
        assert stats['error_rate'] == 50.0
        assert stats['errors_by_status'] == {'400': 1}
        assert stats['p99_response_time'] == 3.0


class TestRateLimiter:
    """Test cases for the token bucket"""

    def test_burst_then_blocked(self):
        limiter = RateLimiter(per_minute=1, burst=2)

        assert limiter.is_allowed('10.0.0.1')
        assert limiter.is_allowed('10.0.0.1')
        assert not limiter.is_allowed('10.0.0.1')
        assert limiter.is_allowed('10.0.0.2')

    def test_cleanup_old_entries(self):
        limiter = RateLimiter(per_minute=60, burst=5)
        limiter.is_allowed('10.0.0.1')
        limiter.buckets['10.0.0.1']['last_update'] -= 7200

        assert limiter.cleanup_old_entries() == 1
        assert limiter.buckets == {}

    def test_periodic_cleanup_runs_on_schedule(self):
        limiter = RateLimiter(per_minute=60, burst=5)
        limiter.CLEANUP_EVERY = 3
        limiter.is_allowed('10.0.0.1')
        limiter.buckets['10.0.0.1']['last_update'] -= 7200

        limiter.is_allowed('10.0.0.2')
        limiter.is_allowed('10.0.0.2')

        assert limiter.checks == 3
        assert '10.0.0.1' not in limiter.buckets

    def test_check_counter_under_threads(self):
        limiter = RateLimiter(per_minute=60, burst=5)

        def hammer():
            for _ in range(250):
                limiter.is_allowed('10.0.0.1')

        threads = [threading.Thread(target=hammer) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert limiter.checks == 2000
