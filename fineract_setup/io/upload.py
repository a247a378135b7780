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

"""Authenticated multipart upload of templates to Fineract.

UploadClient sends one bulk-import workbook per call to its Fineract
endpoint. It attaches the tenant header and a bearer token from the shared
AuthProvider, classifies each response, and retries transient failures with
exponential backoff.

Per-artifact algorithm:

1. Get a token. If authentication fails, the artifact fails with zero
   attempts.
2. Up to max_attempts times: send, then classify the answer.
   - 2xx: succeeded, stop.
   - 401/403 (first time): invalidate the token, re-authenticate, and retry
     immediately. The attempt still counts. A second 401/403 is fatal.
   - fatal 4xx: failed, stop.
   - 5xx, 408, 429, network errors: wait per RetryPolicy and retry.
3. Out of attempts: failed.

Cancellation is observed before every attempt and during every backoff
wait, and stops the upload with a CANCELLED outcome.

Example:
    Upload a single template:
        ```python
        from fineract_setup.io.upload import UploadClient
        from fineract_setup.templates import get_artifact

        client = UploadClient.from_settings(settings, session, auth)
        outcome = client.upload(get_artifact("offices"), data)
        print(outcome.status, outcome.attempts)
        ```
"""

from __future__ import annotations

import threading

import requests

from fineract_setup.auth.provider import AuthProvider
from fineract_setup.exceptions import AuthError, ErrorClass, UploadError
from fineract_setup.io.transport import timeouts
from fineract_setup.logging import get_global_logger
from fineract_setup.policy.retry import (
    RetryPolicy,
    Waiter,
    classify_exception,
    classify_status,
    interruptible_wait,
)
from fineract_setup.results import UploadOutcome
from fineract_setup.templates import Artifact

TENANT_HEADER = "Fineract-Platform-TenantId"
XLS_CONTENT_TYPE = "application/vnd.ms-excel"


def _is_cancelled(cancel_event: threading.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


class UploadClient:
    """Sends templates to Fineract with retries and token renewal.

    Attributes:
        base_url: Fineract API base URL (no trailing slash).
        tenant: Value of the Fineract-Platform-TenantId header.
        policy: Retry schedule shared by every upload.
    """

    def __init__(
        self,
        session: requests.Session,
        auth: AuthProvider,
        *,
        base_url: str,
        tenant: str,
        locale: str = "en",
        date_format: str = "dd MMMM yyyy",
        policy: RetryPolicy | None = None,
        timeout: float | tuple[float, float] | None = None,
        waiter: Waiter = interruptible_wait,
    ) -> None:
        self.session = session
        self.auth = auth
        self.base_url = base_url.rstrip("/")
        self.tenant = tenant
        self.locale = locale
        self.date_format = date_format
        self.policy = policy or RetryPolicy()
        self.timeout = timeout
        self._wait = waiter

    @classmethod
    def from_settings(
        cls,
        settings,
        session: requests.Session,
        auth: AuthProvider,
        **kwargs,
    ) -> UploadClient:
        """Build a client from a config.Settings instance."""
        return cls(
            session,
            auth,
            base_url=settings.fineract.url,
            tenant=settings.fineract.tenant,
            locale=settings.fineract.locale,
            date_format=settings.fineract.date_format,
            policy=RetryPolicy.from_settings(settings.retry),
            timeout=timeouts(settings.http),
            **kwargs,
        )

    def url_for(self, artifact: Artifact) -> str:
        return f"{self.base_url}/{artifact.endpoint.lstrip('/')}"

    def _send(
        self,
        artifact: Artifact,
        payload: bytes,
        filename: str,
        token: str,
    ) -> requests.Response:
        data = {"locale": self.locale, "dateFormat": self.date_format}
        data.update(artifact.extra_fields)
        headers = {
            TENANT_HEADER: self.tenant,
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        url = self.url_for(artifact)
        get_global_logger().debug("HTTP", f"POST {url}")
        return self.session.post(
            url,
            params=dict(artifact.query_params) or None,
            data=data,
            files={"file": (filename, payload, XLS_CONTENT_TYPE)},
            headers=headers,
            timeout=self.timeout,
        )

    def _attempt(
        self,
        artifact: Artifact,
        payload: bytes,
        filename: str,
        token: str,
    ) -> None:
        """Send once; return on 2xx, raise UploadError otherwise."""
        try:
            response = self._send(artifact, payload, filename, token)
        except requests.RequestException as err:
            raise UploadError(
                f"network error: {err}", classify_exception(err)
            ) from err

        classification = classify_status(response.status_code)
        if classification is None:
            return
        body = (response.text or "").strip()
        message = f"HTTP {response.status_code} {response.reason or ''}".strip()
        if body:
            message = f"{message}: {body[:300]}"
        raise UploadError(message, classification, response.status_code)

    def upload(
        self,
        artifact: Artifact,
        payload: bytes,
        *,
        filename: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> UploadOutcome:
        """Upload one artifact and report how it went.

        Args:
            artifact: Template descriptor (endpoint, extra fields).
            payload: Workbook bytes to send.
            filename: Multipart filename; defaults to the artifact's base name.
            cancel_event: Run-level cancellation signal.

        Returns:
            Exactly one UploadOutcome; this method does not raise for
            authentication or HTTP failures.
        """
        logger = get_global_logger()
        name = artifact.name
        filename = filename or artifact.filename

        try:
            token = self.auth.get_token()
        except AuthError as err:
            logger.error("AUTH", f"Authentication failed, cannot upload {name}: {err}")
            return UploadOutcome.failure(name, 0, ErrorClass.FATAL, str(err))

        logger.verbose("UPLOAD", f"Uploading {filename} to {artifact.endpoint}")

        max_attempts = self.policy.max_attempts
        attempts = 0
        retries = 0
        reauthenticated = False
        last_error: ErrorClass | None = None
        last_message: str | None = None

        while attempts < max_attempts:
            if _is_cancelled(cancel_event):
                logger.warning("UPLOAD", f"Upload of {name} cancelled")
                return UploadOutcome.failure(
                    name, attempts, ErrorClass.CANCELLED, "cancelled"
                )

            attempts += 1
            if attempts > 1:
                logger.verbose(
                    "RETRY", f"Attempt {attempts} of {max_attempts} for {filename}"
                )

            try:
                self._attempt(artifact, payload, filename, token)
            except UploadError as err:
                last_error = err.classification
                last_message = str(err)
                logger.error("UPLOAD", f"Failed to upload {filename}: {err}")
            else:
                logger.verbose("UPLOAD", f"Successfully uploaded {filename}")
                return UploadOutcome.success(name, attempts)

            if _is_cancelled(cancel_event):
                return UploadOutcome.failure(
                    name, attempts, ErrorClass.CANCELLED, last_message
                )

            if last_error is ErrorClass.AUTH_EXPIRED:
                if reauthenticated:
                    return UploadOutcome.failure(
                        name, attempts, ErrorClass.FATAL, last_message
                    )
                if attempts >= max_attempts:
                    break
                reauthenticated = True
                logger.verbose("AUTH", "Token rejected, re-authenticating")
                self.auth.invalidate()
                try:
                    token = self.auth.get_token()
                except AuthError as err:
                    return UploadOutcome.failure(
                        name, attempts, ErrorClass.FATAL, str(err)
                    )
                continue

            if last_error is ErrorClass.FATAL:
                return UploadOutcome.failure(name, attempts, last_error, last_message)

            if attempts >= max_attempts:
                break

            retries += 1
            delay = self.policy.delay(retries)
            logger.verbose("RETRY", f"Waiting {delay:.1f}s before retrying {filename}")
            if not self._wait(delay, cancel_event):
                logger.warning("UPLOAD", f"Retry of {name} cancelled")
                return UploadOutcome.failure(
                    name, attempts, ErrorClass.CANCELLED, last_message
                )

        logger.error("UPLOAD", f"Failed to upload {filename} after {attempts} attempts")
        return UploadOutcome.failure(
            name, attempts, last_error or ErrorClass.RETRYABLE, last_message
        )
