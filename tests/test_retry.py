"""
Tests for fineract_setup.policy.retry module.

Tests the response classification table, the backoff schedule, and the
interruptible wait used between attempts.
"""

from __future__ import annotations

import threading

import pytest
import requests

from fineract_setup.config.loader import RetrySettings
from fineract_setup.exceptions import ConfigError, ErrorClass
from fineract_setup.policy.retry import (
    RetryPolicy,
    classify_exception,
    classify_status,
    interruptible_wait,
)


class TestClassifyStatus:
    """Tests for classify_status."""

    @pytest.mark.parametrize("code", [200, 201, 204, 299])
    def test_2xx_is_success(self, code):
        assert classify_status(code) is None

    @pytest.mark.parametrize("code", [401, 403])
    def test_auth_statuses(self, code):
        assert classify_status(code) is ErrorClass.AUTH_EXPIRED

    @pytest.mark.parametrize("code", [408, 429])
    def test_retryable_client_statuses(self, code):
        assert classify_status(code) is ErrorClass.RETRYABLE

    @pytest.mark.parametrize("code", [400, 404, 405, 409, 413, 422, 499])
    def test_other_4xx_fatal(self, code):
        assert classify_status(code) is ErrorClass.FATAL

    @pytest.mark.parametrize("code", [500, 502, 503, 504, 599])
    def test_5xx_retryable(self, code):
        assert classify_status(code) is ErrorClass.RETRYABLE

    @pytest.mark.parametrize("code", [100, 301, 304])
    def test_unexpected_statuses_retryable(self, code):
        assert classify_status(code) is ErrorClass.RETRYABLE


class TestClassifyException:
    """Tests for classify_exception."""

    @pytest.mark.parametrize(
        "err",
        [
            requests.exceptions.ConnectionError("refused"),
            requests.exceptions.ConnectTimeout("slow"),
            requests.exceptions.ReadTimeout("slow"),
            requests.exceptions.SSLError("bad cert"),
        ],
    )
    def test_transport_errors_retryable(self, err):
        assert classify_exception(err) is ErrorClass.RETRYABLE

    def test_other_exceptions_fatal(self):
        assert classify_exception(ValueError("boom")) is ErrorClass.FATAL


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_attempts == 3
        assert policy.initial_interval_ms == 1000
        assert policy.multiplier == 2.0
        assert policy.max_interval_ms == 10000

    def test_delay_grows_exponentially(self):
        policy = RetryPolicy()
        assert policy.delay(1) == 1.0
        assert policy.delay(2) == 2.0
        assert policy.delay(3) == 4.0

    def test_delay_is_capped(self):
        policy = RetryPolicy(max_attempts=10)
        assert policy.delay(4) == 8.0
        assert policy.delay(5) == 10.0
        assert policy.delay(9) == 10.0

    def test_delay_before_first_retry_is_zero(self):
        assert RetryPolicy().delay(0) == 0.0

    def test_delays_lists_every_wait(self):
        """An exhausted upload waits once between each pair of attempts."""
        assert list(RetryPolicy().delays()) == [1.0, 2.0]
        assert list(RetryPolicy(max_attempts=1).delays()) == []

    def test_multiplier_one_is_constant(self):
        policy = RetryPolicy(max_attempts=4, initial_interval_ms=500, multiplier=1.0)
        assert list(policy.delays()) == [0.5, 0.5, 0.5]

    def test_from_settings(self):
        policy = RetryPolicy.from_settings(
            RetrySettings(
                max_attempts=5, initial_interval=200, multiplier=3.0, max_interval=1000
            )
        )
        assert policy.max_attempts == 5
        assert list(policy.delays()) == [0.2, 0.6, 1.0, 1.0]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0},
            {"initial_interval_ms": -1},
            {"max_interval_ms": -1},
            {"multiplier": 0.5},
        ],
    )
    def test_invalid_parameters_raise(self, kwargs):
        with pytest.raises(ConfigError):
            RetryPolicy(**kwargs)


class TestInterruptibleWait:
    """Tests for interruptible_wait."""

    def test_zero_wait_completes(self):
        assert interruptible_wait(0, None) is True

    def test_short_wait_completes(self):
        assert interruptible_wait(0.01, threading.Event()) is True

    def test_already_cancelled_returns_immediately(self):
        event = threading.Event()
        event.set()
        # A long interval must not block when the event is already set
        assert interruptible_wait(30, event) is False

    def test_zero_wait_reports_cancellation(self):
        event = threading.Event()
        event.set()
        assert interruptible_wait(0, event) is False

    def test_cancel_during_wait(self):
        event = threading.Event()
        timer = threading.Timer(0.05, event.set)
        timer.start()
        try:
            assert interruptible_wait(30, event) is False
        finally:
            timer.cancel()
