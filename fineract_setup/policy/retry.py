# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Retry policy and error classification for uploads.

Classification rules:

- 2xx: success (classify_status returns None)
- 401, 403: AUTH_EXPIRED (one re-authentication per upload)
- 408, 429: RETRYABLE
- other 4xx: FATAL
- 5xx: RETRYABLE
- anything else (1xx, 3xx): RETRYABLE
- requests.RequestException (connection errors, timeouts): RETRYABLE

Backoff schedule: the wait before retry n (n >= 1) is
min(initial_interval * multiplier ** (n - 1), max_interval). The first
attempt never waits.

Example:
    Inspect the schedule:

        from fineract_setup.policy.retry import RetryPolicy

        policy = RetryPolicy(max_attempts=4)
        print(list(policy.delays()))  # [1.0, 2.0, 4.0]

"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
import threading
from typing import Callable

import requests

from fineract_setup.exceptions import ConfigError, ErrorClass

AUTH_STATUSES = frozenset({401, 403})
RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})

# (seconds, cancel_event) -> True if the full wait elapsed, False if cancelled
Waiter = Callable[[float, "threading.Event | None"], bool]


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff with a cap. Intervals are in milliseconds."""

    max_attempts: int = 3
    initial_interval_ms: int = 1000
    multiplier: float = 2.0
    max_interval_ms: int = 10000

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigError(
                f"retry.max_attempts must be at least 1, got {self.max_attempts}"
            )
        if self.initial_interval_ms < 0 or self.max_interval_ms < 0:
            raise ConfigError("retry intervals must not be negative")
        if self.multiplier < 1:
            raise ConfigError(
                f"retry.multiplier must be at least 1.0, got {self.multiplier}"
            )

    @classmethod
    def from_settings(cls, settings) -> RetryPolicy:
        """Build a policy from a config.RetrySettings instance."""
        return cls(
            max_attempts=settings.max_attempts,
            initial_interval_ms=settings.initial_interval,
            multiplier=settings.multiplier,
            max_interval_ms=settings.max_interval,
        )

    def delay(self, retry_number: int) -> float:
        """Seconds to wait before the given retry (1-based).

        Args:
            retry_number: 1 for the wait after the first failed attempt.

        Returns:
            The capped backoff in seconds; 0.0 for retry_number < 1.
        """
        if retry_number < 1:
            return 0.0
        interval = self.initial_interval_ms * self.multiplier ** (retry_number - 1)
        return min(interval, self.max_interval_ms) / 1000.0

    def delays(self) -> Iterator[float]:
        """Yield every wait of a fully exhausted upload, in order."""
        for n in range(1, self.max_attempts):
            yield self.delay(n)


def classify_status(status_code: int) -> ErrorClass | None:
    """Classify an HTTP status code; returns None for 2xx."""
    if 200 <= status_code < 300:
        return None
    if status_code in AUTH_STATUSES:
        return ErrorClass.AUTH_EXPIRED
    if status_code in RETRYABLE_CLIENT_STATUSES:
        return ErrorClass.RETRYABLE
    if 400 <= status_code < 500:
        return ErrorClass.FATAL
    return ErrorClass.RETRYABLE


def classify_exception(err: BaseException) -> ErrorClass:
    """Classify an exception raised while sending a request.

    Transport-level failures are transient. Anything else is a bug or a
    local problem and retrying will not help.
    """
    if isinstance(err, requests.RequestException):
        return ErrorClass.RETRYABLE
    return ErrorClass.FATAL


def interruptible_wait(seconds: float, cancel_event: threading.Event | None) -> bool:
    """Block for up to `seconds`, waking early if `cancel_event` is set.

    Returns:
        True if the full interval elapsed, False if cancellation was
        requested before or during the wait.
    """
    if cancel_event is None:
        cancel_event = threading.Event()
    if seconds <= 0:
        return not cancel_event.is_set()
    return not cancel_event.wait(seconds)
