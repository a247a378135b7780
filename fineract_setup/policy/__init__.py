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

"""Retry and error-classification policy for fineract-setup.

Modules:

retry : module
    Backoff schedule, HTTP/exception classification, interruptible waits.

Public API:

RetryPolicy : class
    Exponential backoff configuration.
classify_status : function
    Map an HTTP status to an ErrorClass (None for success).
classify_exception : function
    Map a transport exception to an ErrorClass.
interruptible_wait : function
    Sleep that wakes up when a cancel event is set.

Example:
    from fineract_setup.policy import RetryPolicy, classify_status

    policy = RetryPolicy(max_attempts=3, initial_interval_ms=500)
    print(classify_status(503))  # ErrorClass.RETRYABLE
    print(policy.delay(2))       # 1.0

"""

from fineract_setup.exceptions import ErrorClass

from .retry import (
    RetryPolicy,
    classify_exception,
    classify_status,
    interruptible_wait,
)

__all__ = [
    "ErrorClass",
    "RetryPolicy",
    "classify_exception",
    "classify_status",
    "interruptible_wait",
]
