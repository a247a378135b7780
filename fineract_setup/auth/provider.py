"""
Keycloak access-token provider.

AuthProvider performs the OAuth2 password-grant exchange against the
identity provider and keeps the resulting token in its own TokenCache.
The token is treated as valid until the Fineract API rejects it (401/403);
the identity provider's expiry hints are not consulted and no refresh-token
grant is attempted.

Single-flight: get_token() and invalidate() share a lock, so at most one
exchange is in flight and concurrent callers wait for its result instead of
issuing their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import threading
from typing import Optional

import requests

from fineract_setup.exceptions import (
    AuthMalformedResponseError,
    AuthRejectedError,
    AuthTransportError,
)
from fineract_setup.logging import get_global_logger


@dataclass(frozen=True)
class Credentials:
    """Password-grant credentials for the identity provider."""

    token_url: str
    username: str
    password: str = field(repr=False)
    client_id: str = ""
    client_secret: str = field(default="", repr=False)
    grant_type: str = "password"

    @classmethod
    def from_settings(cls, settings) -> Credentials:
        """Build credentials from a config.Settings instance."""
        return cls(
            token_url=settings.keycloak.url,
            username=settings.fineract.username,
            password=settings.fineract.password,
            client_id=settings.keycloak.client_id,
            client_secret=settings.keycloak.client_secret,
            grant_type=settings.keycloak.grant_type,
        )

    def form(self) -> dict[str, str]:
        return {
            "grant_type": self.grant_type,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "username": self.username,
            "password": self.password,
        }


class TokenCache:
    """
    Holds at most one access token in memory. No persistence.

    The token is replaced wholesale by store() and removed by clear();
    it is never modified in place.
    """

    def __init__(self) -> None:
        self._token: Optional[str] = None

    def get(self) -> Optional[str]:
        return self._token

    def store(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None

    def __bool__(self) -> bool:
        return self._token is not None


class AuthProvider:
    """
    Obtains and caches an access token via the password grant.

    :param credentials: Identity provider endpoint and credentials.
    :param session: Transport used for the token exchange.
    :param timeout: requests timeout (seconds or (connect, read) tuple).
    :param cache: Token cache owned by this provider.
    """

    def __init__(
        self,
        credentials: Credentials,
        session: requests.Session,
        *,
        timeout: float | tuple[float, float] | None = None,
        cache: TokenCache | None = None,
    ) -> None:
        self.credentials = credentials
        self.session = session
        self.timeout = timeout
        self.cache = cache if cache is not None else TokenCache()
        self.exchange_count = 0
        self._lock = threading.Lock()

    # --------------------------------------------------------------------- #
    # Public API
    # --------------------------------------------------------------------- #
    def get_token(self) -> str:
        """
        Return the cached token, authenticating first if there is none.

        Raises:
            AuthRejectedError: The identity provider returned a non-2xx status.
            AuthMalformedResponseError: The 2xx body had no usable access_token.
            AuthTransportError: The request failed before an HTTP answer.
        """
        with self._lock:
            token = self.cache.get()
            if token is not None:
                return token
            token = self._exchange()
            self.cache.store(token)
            return token

    def invalidate(self) -> None:
        """Drop the cached token so the next get_token() re-authenticates."""
        with self._lock:
            self.cache.clear()
        get_global_logger().verbose("AUTH", "Cached access token invalidated")

    # --------------------------------------------------------------------- #
    # Token exchange
    # --------------------------------------------------------------------- #
    def _exchange(self) -> str:
        logger = get_global_logger()
        logger.verbose("AUTH", f"Authenticating with {self.credentials.token_url}")
        self.exchange_count += 1

        try:
            response = self.session.post(
                self.credentials.token_url,
                data=self.credentials.form(),
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as err:
            raise AuthTransportError(
                f"token request to {self.credentials.token_url} failed: {err}"
            ) from err

        if not 200 <= response.status_code < 300:
            logger.debug("AUTH", f"Token endpoint answered HTTP {response.status_code}")
            raise AuthRejectedError(response.status_code, response.text)

        try:
            body = response.json()
        except (json.JSONDecodeError, ValueError) as err:
            raise AuthMalformedResponseError(
                "token response is not valid JSON"
            ) from err

        token = body.get("access_token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthMalformedResponseError("token response has no 'access_token'")

        logger.verbose("AUTH", "Access token retrieved successfully")
        return token
