"""
Configuration loading and merging for fineract-setup.

Settings are built from three layers, each overriding the previous one:

Configuration Layers
--------------------
1. **Built-in defaults** (DEFAULTS below)
   - Locale, date format, retry schedule, HTTP timeouts, TLS verification
   - Never contains credentials or URLs

2. **YAML file** (optional, e.g. fineract-setup.yaml)
   - Site-specific settings: API URL, tenant, Keycloak client
   - Must be a mapping at the top level

3. **Environment variables** (optionally loaded from a .env file)
   - FINERACT_*, KEYCLOAK_*, RETRY_*, HTTP_*, TEMPLATES_DIR
   - Intended for secrets and container deployments

Merge Behavior
--------------
Dicts are merged recursively and scalars are replaced ("last wins") at
every layer.

Functions
---------
load_settings : function
    Load, merge, coerce and validate settings (main public API).

Error Handling
--------------
- ConfigError: missing/empty/invalid YAML, non-numeric numbers, missing
  required keys (all missing keys are reported at once)
- All errors are chained with "from err" for better debugging

Examples
--------
    >>> from pathlib import Path
    >>> from fineract_setup.config import load_settings
    >>> settings = load_settings(Path("fineract-setup.yaml"))
    >>> settings.fineract.tenant
    'default'
    >>> settings.retry.max_attempts
    3
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
import yaml

from fineract_setup.exceptions import ConfigError
from fineract_setup.logging import get_global_logger

# -------------------------------
# Data types
# -------------------------------


@dataclass(frozen=True)
class FineractSettings:
    url: str
    tenant: str
    username: str
    password: str
    locale: str
    date_format: str

    def __repr__(self) -> str:
        return (
            f"FineractSettings(url={self.url!r}, tenant={self.tenant!r}, "
            f"username={self.username!r}, password='***', locale={self.locale!r}, "
            f"date_format={self.date_format!r})"
        )


@dataclass(frozen=True)
class KeycloakSettings:
    url: str
    grant_type: str
    client_id: str
    client_secret: str

    def __repr__(self) -> str:
        return (
            f"KeycloakSettings(url={self.url!r}, grant_type={self.grant_type!r}, "
            f"client_id={self.client_id!r}, client_secret='***')"
        )


@dataclass(frozen=True)
class RetrySettings:
    """Retry schedule; intervals are in milliseconds."""

    max_attempts: int
    initial_interval: int
    multiplier: float
    max_interval: int


@dataclass(frozen=True)
class HttpSettings:
    """Transport settings; timeouts are in seconds."""

    connect_timeout: float
    read_timeout: float
    verify_tls: bool
    ca_bundle: str | None


@dataclass(frozen=True)
class Settings:
    fineract: FineractSettings
    keycloak: KeycloakSettings
    retry: RetrySettings
    http: HttpSettings
    templates_dir: Path | None


DEFAULTS: dict[str, Any] = {
    "fineract": {
        "url": "",
        "tenant": "default",
        "username": "",
        "password": "",
        "locale": "en",
        "date_format": "dd MMMM yyyy",
    },
    "keycloak": {
        "url": "",
        "grant_type": "password",
        "client_id": "",
        "client_secret": "",
    },
    "retry": {
        "max_attempts": 3,
        "initial_interval": 1000,
        "multiplier": 2.0,
        "max_interval": 10000,
    },
    "http": {
        "connect_timeout": 10,
        "read_timeout": 60,
        "verify_tls": True,
        "ca_bundle": None,
    },
    "templates": {
        "dir": None,
    },
}

# (section, key) -> environment variable
ENV_VARS: dict[tuple[str, str], str] = {
    ("fineract", "url"): "FINERACT_API_URL",
    ("fineract", "tenant"): "FINERACT_TENANT",
    ("fineract", "username"): "FINERACT_USERNAME",
    ("fineract", "password"): "FINERACT_PASSWORD",
    ("fineract", "locale"): "FINERACT_LOCALE",
    ("fineract", "date_format"): "FINERACT_DATE_FORMAT",
    ("keycloak", "url"): "KEYCLOAK_URL",
    ("keycloak", "grant_type"): "KEYCLOAK_GRANT_TYPE",
    ("keycloak", "client_id"): "KEYCLOAK_CLIENT_ID",
    ("keycloak", "client_secret"): "KEYCLOAK_CLIENT_SECRET",
    ("retry", "max_attempts"): "RETRY_MAX_ATTEMPTS",
    ("retry", "initial_interval"): "RETRY_INITIAL_INTERVAL",
    ("retry", "multiplier"): "RETRY_MULTIPLIER",
    ("retry", "max_interval"): "RETRY_MAX_INTERVAL",
    ("http", "connect_timeout"): "HTTP_CONNECT_TIMEOUT",
    ("http", "read_timeout"): "HTTP_READ_TIMEOUT",
    ("http", "verify_tls"): "HTTP_VERIFY_TLS",
    ("http", "ca_bundle"): "HTTP_CA_BUNDLE",
    ("templates", "dir"): "TEMPLATES_DIR",
}

REQUIRED: tuple[tuple[str, str], ...] = (
    ("fineract", "url"),
    ("fineract", "tenant"),
    ("fineract", "username"),
    ("fineract", "password"),
    ("keycloak", "url"),
    ("keycloak", "client_id"),
)

_SECRET_KEYS = {("fineract", "password"), ("keycloak", "client_secret")}
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> dict[str, Any]:
    """
    Load a YAML settings file and return the parsed mapping.

    Raises:
      ConfigError - missing file, parse error, empty file, non-mapping top level
    """
    if not p.exists():
        raise ConfigError(f"config file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    if not isinstance(data, dict):
        raise ConfigError(f"top-level YAML must be a mapping (dict): {p}")
    return data


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two dicts with "overlay wins".

    Rules:
      - dict + dict -> deep merge
      - everything else -> overlay overwrites base

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


def _env_overlay(env: Mapping[str, str]) -> dict[str, Any]:
    """Build a settings overlay from the environment variables that are set."""
    overlay: dict[str, Any] = {}
    logger = get_global_logger()
    for (section, key), var in ENV_VARS.items():
        value = env.get(var)
        if value is None or value == "":
            continue
        overlay.setdefault(section, {})[key] = value
        shown = "***" if (section, key) in _SECRET_KEYS else value
        logger.debug("CONFIG", f"{var} -> {section}.{key} = {shown}")
    return overlay


# -------------------------------
# Coercion
# -------------------------------


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from err


def _as_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"{name} must be a number, got {value!r}") from err


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _section(cfg: dict[str, Any], name: str) -> dict[str, Any]:
    value = cfg.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping, got {type(value).__name__}")
    return value


def _build_settings(cfg: dict[str, Any], base_dir: Path | None) -> Settings:
    fineract = _section(cfg, "fineract")
    keycloak = _section(cfg, "keycloak")
    retry = _section(cfg, "retry")
    http = _section(cfg, "http")
    templates = _section(cfg, "templates")

    templates_dir: Path | None = None
    raw_dir = templates.get("dir")
    if raw_dir:
        templates_dir = Path(str(raw_dir)).expanduser()
        # Relative paths resolve against the directory of the config file
        if not templates_dir.is_absolute() and base_dir is not None:
            templates_dir = (base_dir / templates_dir).resolve()

    ca_bundle = http.get("ca_bundle")

    return Settings(
        fineract=FineractSettings(
            url=_as_str(fineract.get("url")).rstrip("/"),
            tenant=_as_str(fineract.get("tenant")),
            username=_as_str(fineract.get("username")),
            password=_as_str(fineract.get("password")),
            locale=_as_str(fineract.get("locale")),
            date_format=_as_str(fineract.get("date_format")),
        ),
        keycloak=KeycloakSettings(
            url=_as_str(keycloak.get("url")),
            grant_type=_as_str(keycloak.get("grant_type")) or "password",
            client_id=_as_str(keycloak.get("client_id")),
            client_secret=_as_str(keycloak.get("client_secret")),
        ),
        retry=RetrySettings(
            max_attempts=_as_int(retry.get("max_attempts"), "retry.max_attempts"),
            initial_interval=_as_int(
                retry.get("initial_interval"), "retry.initial_interval"
            ),
            multiplier=_as_float(retry.get("multiplier"), "retry.multiplier"),
            max_interval=_as_int(retry.get("max_interval"), "retry.max_interval"),
        ),
        http=HttpSettings(
            connect_timeout=_as_float(
                http.get("connect_timeout"), "http.connect_timeout"
            ),
            read_timeout=_as_float(http.get("read_timeout"), "http.read_timeout"),
            verify_tls=_as_bool(http.get("verify_tls"), "http.verify_tls"),
            ca_bundle=str(ca_bundle) if ca_bundle else None,
        ),
        templates_dir=templates_dir,
    )


def _check_required(settings: Settings) -> None:
    missing = []
    for section, key in REQUIRED:
        if not getattr(getattr(settings, section), key):
            missing.append(f"{section}.{key} ({ENV_VARS[(section, key)]})")
    if missing:
        raise ConfigError("Missing required settings: " + ", ".join(missing))


# -------------------------------
# Public API
# -------------------------------


def load_settings(
    config_path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    overrides: dict[str, Any] | None = None,
    require_credentials: bool = True,
) -> Settings:
    """
    Load and merge the effective settings.

    Steps
      1) Start from DEFAULTS.
      2) Merge the YAML file, if given.
      3) Merge environment variables (after loading .env when env is None).
      4) Merge explicit overrides (e.g. CLI flags).
      5) Coerce types and check required keys.

    Args:
      config_path: Optional YAML settings file.
      env: Environment mapping to read. Defaults to os.environ, after
        python-dotenv has loaded a .env file from the working directory.
      overrides: Nested dict applied last.
      require_credentials: When False, URLs and credentials may be missing
        (used by offline commands such as 'validate').

    Raises
      ConfigError on unreadable YAML, bad values or missing required keys.
    """
    logger = get_global_logger()

    merged: dict[str, Any] = _deep_merge_dicts({}, DEFAULTS)
    base_dir: Path | None = None

    if config_path is not None:
        config_path = Path(config_path).resolve()
        base_dir = config_path.parent
        logger.verbose("CONFIG", f"Loading settings: {config_path}")
        merged = _deep_merge_dicts(merged, _load_yaml_file(config_path))

    if env is None:
        load_dotenv()
        env = os.environ
    merged = _deep_merge_dicts(merged, _env_overlay(env))

    if overrides:
        merged = _deep_merge_dicts(merged, overrides)

    settings = _build_settings(merged, base_dir)
    if require_credentials:
        _check_required(settings)

    logger.verbose(
        "CONFIG",
        f"Target: {settings.fineract.url or '(unset)'} "
        f"(tenant {settings.fineract.tenant or '(unset)'})",
    )
    logger.debug("CONFIG", repr(settings))
    return settings
