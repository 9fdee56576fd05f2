"""
Tests for the retry policy.
"""

from moxmuse.generation.errors import AssemblyError, GenerationError, classify_error
from moxmuse.generation.retry import RetryPolicy

TRANSIENT = classify_error(TimeoutError("timeout"))


class TestDelay:
    def test_exponential_with_cap(self):
        policy = RetryPolicy()
        assert [policy.delay_for(n) for n in range(4)] == [2.0, 4.0, 8.0, 10.0]

    def test_custom_backoff(self):
        policy = RetryPolicy(base_delay=1.0, backoff_multiplier=3.0, max_delay=100.0)
        assert policy.delay_for(2) == 9.0


class TestShouldAutoRetry:
    def test_transient_within_limit(self):
        policy = RetryPolicy()
        assert policy.should_auto_retry(TRANSIENT, 0)
        assert policy.should_auto_retry(TRANSIENT, 1)
        assert not policy.should_auto_retry(TRANSIENT, 2)

    def test_non_transient_never_auto_retried(self):
        policy = RetryPolicy()
        assert not policy.should_auto_retry(classify_error(AssemblyError("bad")), 0)
        assert not policy.should_auto_retry(classify_error(GenerationError("HTTP 400")), 0)

    def test_max_attempts_bounds_auto_retry(self):
        policy = RetryPolicy(max_attempts=2, auto_retry_limit=5)
        assert policy.should_auto_retry(TRANSIENT, 0)
        assert not policy.should_auto_retry(TRANSIENT, 1)

    def test_custom_condition(self):
        policy = RetryPolicy(retry_condition=lambda error: True)
        assert policy.should_auto_retry(classify_error(AssemblyError("bad")), 0)

    def test_from_settings(self):
        policy = RetryPolicy.from_settings()
        assert policy.max_attempts == 3
        assert policy.auto_retry_limit == 2
