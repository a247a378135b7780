"""
HTTP transport for fineract-setup.

A single requests.Session is configured once per run and shared by the
token exchange and every upload. The session carries the TLS trust policy
and a User-Agent; timeouts are passed per request as a (connect, read)
tuple because requests has no session-wide timeout.

Key points:

- **No adapter-level retries** - Retries belong to RetryPolicy so that each
  attempt is classified and counted. The HTTPAdapter is mounted with
  max_retries=0 (connection pooling only).
- **TLS trust** - verify=<ca_bundle> when a bundle is configured, else the
  verify_tls flag. Development Fineract stacks often use self-signed
  certificates; turning verification off suppresses urllib3's
  InsecureRequestWarning and logs a single warning instead.

Example:
    >>> from fineract_setup.config import load_settings
    >>> from fineract_setup.io.transport import make_session, timeouts
    >>> settings = load_settings()
    >>> with make_session(settings.http) as session:
    ...     session.get(settings.fineract.url, timeout=timeouts(settings.http))
"""

from __future__ import annotations

import requests
from requests.adapters import HTTPAdapter
import urllib3

from fineract_setup import __version__
from fineract_setup.config.loader import HttpSettings
from fineract_setup.logging import get_global_logger

USER_AGENT = f"fineract-setup/{__version__}"


def timeouts(http: HttpSettings) -> tuple[float, float]:
    """Return the (connect, read) timeout tuple for requests."""
    return (http.connect_timeout, http.read_timeout)


def make_session(http: HttpSettings | None = None) -> requests.Session:
    """
    Create a requests.Session configured with the run's TLS policy.

    Args:
      http: Transport settings. None means library defaults (verify TLS).

    Returns:
      A session ready for both the token endpoint and the upload endpoints.
    """
    logger = get_global_logger()

    s = requests.Session()
    adapter = HTTPAdapter(max_retries=0)
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    s.headers.update({"User-Agent": USER_AGENT})

    if http is None:
        return s

    if http.ca_bundle:
        s.verify = http.ca_bundle
        logger.verbose("HTTP", f"Using CA bundle: {http.ca_bundle}")
    elif not http.verify_tls:
        s.verify = False
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        logger.warning(
            "HTTP", "TLS certificate verification is disabled for this run"
        )

    logger.debug(
        "HTTP",
        f"Timeouts: connect={http.connect_timeout}s read={http.read_timeout}s",
    )
    return s
