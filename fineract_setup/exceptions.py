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

"""Exception hierarchy for fineract-setup.

This module defines a custom exception hierarchy that allows library users
to distinguish between the different ways a template upload run can fail:

- ConfigError: Configuration-related errors (YAML parse, missing keys, bad values)
- AuthError: The identity provider could not issue an access token
- ValidationError: A template resource is missing, unreadable, or not a workbook
- UploadError: An upload attempt failed (carries an ErrorClass)

All exceptions inherit from FineractSetupError, allowing users to catch all
errors with a single except clause if needed.

Example:
    Catching specific error types:
        ```python
        from fineract_setup.auth import AuthProvider
        from fineract_setup.exceptions import AuthError, AuthRejectedError

        try:
            token = provider.get_token()
        except AuthRejectedError as e:
            print(f"Keycloak said no ({e.status_code})")
        except AuthError as e:
            print(f"Authentication failed: {e}")
        ```

    Catching all errors:
        ```python
        from fineract_setup.exceptions import FineractSetupError

        try:
            summary = run_setup(Path("fineract-setup.yaml"))
        except FineractSetupError as e:
            print(f"fineract-setup error: {e}")
        ```
"""

from __future__ import annotations

from enum import Enum

__all__ = [
    "ErrorClass",
    "FineractSetupError",
    "ConfigError",
    "AuthError",
    "AuthRejectedError",
    "AuthMalformedResponseError",
    "AuthTransportError",
    "ValidationError",
    "CorruptWorkbookError",
    "UnreadableResourceError",
    "ResourceNotFoundError",
    "UploadError",
]


class ErrorClass(str, Enum):
    """Classification of a failed upload attempt.

    FATAL and CANCELLED stop the upload immediately. RETRYABLE is eligible
    for backoff-and-retry. AUTH_EXPIRED triggers a single re-authentication.
    """

    FATAL = "fatal"
    RETRYABLE = "retryable"
    AUTH_EXPIRED = "auth_expired"
    CANCELLED = "cancelled"


class FineractSetupError(Exception):
    """Base exception for all fineract-setup errors."""

    pass


class ConfigError(FineractSetupError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, empty file, non-mapping top level)
    - Missing required settings (API URL, tenant, credentials)
    - Values that cannot be coerced to the expected type
    - Out-of-range retry parameters

    Example:
        Catching configuration errors:
            ```python
            from fineract_setup.exceptions import ConfigError

            try:
                settings = load_settings(Path("missing.yaml"))
            except ConfigError as e:
                print(f"Config error: {e}")
            ```
    """

    pass


class AuthError(FineractSetupError):
    """Raised when an access token cannot be obtained."""

    pass


class AuthRejectedError(AuthError):
    """The identity provider answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        message = f"identity provider rejected authentication (HTTP {status_code})"
        if body:
            message = f"{message}: {body[:200]}"
        super().__init__(message)


class AuthMalformedResponseError(AuthError):
    """The token response was not JSON or had no usable access_token."""

    pass


class AuthTransportError(AuthError):
    """The token request never got an HTTP answer (DNS, TLS, timeout...)."""

    pass


class ValidationError(FineractSetupError):
    """Raised when a template cannot be used before anything is sent.

    Validation errors are never retried; they fail the current artifact
    only.
    """

    pass


class CorruptWorkbookError(ValidationError):
    """The bytes could not be opened as a spreadsheet."""

    pass


class UnreadableResourceError(ValidationError):
    """The template resource exists but could not be read."""

    pass


class ResourceNotFoundError(UnreadableResourceError):
    """The template resource is not present at all.

    The orchestrator reports these artifacts as skipped rather than failed,
    so runs without bundled templates still succeed.
    """

    pass


class UploadError(FineractSetupError):
    """A single upload attempt failed.

    Attributes:
        classification: How the failure should be handled.
        status_code: HTTP status, if the server answered at all.
    """

    def __init__(
        self,
        message: str,
        classification: ErrorClass,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.classification = classification
        self.status_code = status_code
