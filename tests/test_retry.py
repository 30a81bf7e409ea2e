"""
Tests for the async retry policy
"""
import asyncio
from unittest.mock import AsyncMock, patch

import pytest
import requests

from firmsync.errors import AgentExecutionError
from firmsync.utils import RetryOptions, default_should_retry, retry, with_retry


class HTTPStatusError(Exception):
    def __init__(self, status):
        super().__init__(f"HTTP {status}")
        self.status = status


class FlakyOperation:
    """Fails with the queued errors, then returns ``result``"""

    def __init__(self, errors, result='ok'):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


@pytest.fixture
def no_sleep():
    with patch('firmsync.utils.retry.asyncio.sleep', new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


class TestRetry:
    """Test cases for retry()"""

    def test_retries_503_until_success(self, no_sleep):
        operation = FlakyOperation([HTTPStatusError(503), HTTPStatusError(503)], result='done')

        result = asyncio.run(retry(operation, RetryOptions(max_attempts=3)))

        assert result == 'done'
        assert operation.calls == 3
        assert no_sleep.await_count == 2

    def test_400_fails_immediately(self, no_sleep):
        operation = FlakyOperation([HTTPStatusError(400)])

        with pytest.raises(HTTPStatusError):
            asyncio.run(retry(operation, RetryOptions(max_attempts=3)))

        assert operation.calls == 1
        no_sleep.assert_not_awaited()

    def test_never_exceeds_max_attempts(self, no_sleep):
        operation = FlakyOperation([HTTPStatusError(500)] * 5)

        with pytest.raises(HTTPStatusError):
            asyncio.run(retry(operation, RetryOptions(max_attempts=3)))

        assert operation.calls == 3

    def test_delay_never_exceeds_max_delay(self, no_sleep):
        operation = FlakyOperation([HTTPStatusError(502)] * 5)
        options = RetryOptions(max_attempts=6, initial_delay=1000, max_delay=1500, factor=4)

        asyncio.run(retry(operation, options))

        delays = [call.args[0] for call in no_sleep.await_args_list]
        assert len(delays) == 5
        assert delays[0] == pytest.approx(1.0)
        assert all(d <= 1.5 for d in delays)

    def test_backoff_grows_with_jitter(self, no_sleep):
        operation = FlakyOperation([HTTPStatusError(503)] * 2)
        options = RetryOptions(max_attempts=3, initial_delay=100, max_delay=10000, factor=2)

        with patch('firmsync.utils.retry.random.random', return_value=0.5):
            asyncio.run(retry(operation, options))

        delays = [call.args[0] for call in no_sleep.await_args_list]
        assert delays == [pytest.approx(0.1), pytest.approx(0.2)]

    def test_custom_should_retry(self, no_sleep):
        operation = FlakyOperation([ValueError("boom")], result=7)
        options = RetryOptions(should_retry=lambda e: isinstance(e, ValueError))

        assert asyncio.run(retry(operation, options)) == 7
        assert operation.calls == 2

    def test_with_retry_decorator(self, no_sleep):
        operation = FlakyOperation([ConnectionResetError()], result='fine')

        @with_retry(max_attempts=2)
        async def call_service():
            return await operation()

        assert asyncio.run(call_service()) == 'fine'
        assert operation.calls == 2


class TestDefaultShouldRetry:
    """Test cases for the default retry predicate"""

    @pytest.mark.parametrize('error', [
        ConnectionResetError(),
        TimeoutError(),
        asyncio.TimeoutError(),
        requests.ConnectionError(),
        requests.Timeout(),
        HTTPStatusError(429),
        HTTPStatusError(500),
        HTTPStatusError(503),
        AgentExecutionError("upstream", status_code=502),
    ])
    def test_retryable(self, error):
        assert default_should_retry(error) is True

    @pytest.mark.parametrize('error', [
        ValueError("bad"),
        HTTPStatusError(400),
        HTTPStatusError(404),
        AgentExecutionError("no status"),
        AgentExecutionError("client error", status_code=422),
    ])
    def test_not_retryable(self, error):
        assert default_should_retry(error) is False

    def test_error_code_attribute(self):
        error = OSError("reset")
        error.code = 'ECONNRESET'
        assert default_should_retry(error) is True

    def test_status_from_response(self):
        response = requests.Response()
        response.status_code = 504
        error = requests.HTTPError(response=response)
        assert default_should_retry(error) is True
