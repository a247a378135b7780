"""
fineract-setup - Fineract template importer

Pushes the Excel bulk-import templates that seed a new Apache Fineract
tenant (chart of accounts, offices, staff, users, clients, products and
opening transactions) into the Fineract API, authenticating through a
Keycloak identity provider.

fineract-setup provides:
  - Password-grant authentication with a cached, single-flight access token
  - Automatic re-authentication when Fineract rejects a token (401/403)
  - Retries with capped exponential backoff for transient failures
  - Workbook validation and XLSX to XLS conversion before upload
  - Partial-failure semantics: one bad template never blocks the others

Quick Start
-----------
Show the template table:

    $ fineract-setup list

Upload everything:

    $ fineract-setup run --config fineract-setup.yaml

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    TemplateOrchestrator and the run_setup() driver.
config : package
    Layered settings (defaults, YAML, environment).
auth : package
    Keycloak token provider and cache.
policy : package
    Retry schedule and error classification.
io : package
    HTTP session, template resources, and upload client.
templates : module
    The ordered template-to-endpoint table.
workbook : module
    Workbook validation and XLS conversion.

Public API
----------
    from fineract_setup.core import run_setup, TemplateOrchestrator
    from fineract_setup.config import load_settings
    from fineract_setup.auth import AuthProvider, Credentials
    from fineract_setup.io import UploadClient
    from fineract_setup.policy import RetryPolicy

Project Information
-------------------
License: Apache-2.0
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"
__description__ = "Upload Excel bulk-import templates to Apache Fineract"

# Re-export commonly used names for convenience
from fineract_setup.auth import AuthProvider, Credentials, TokenCache
from fineract_setup.config import Settings, load_settings
from fineract_setup.core import TemplateOrchestrator, run_setup
from fineract_setup.exceptions import (
    AuthError,
    ConfigError,
    ErrorClass,
    FineractSetupError,
    UploadError,
    ValidationError,
)
from fineract_setup.io import ResourceLoader, UploadClient
from fineract_setup.policy import RetryPolicy
from fineract_setup.results import OutcomeStatus, Summary, UploadOutcome
from fineract_setup.templates import ARTIFACTS, Artifact

__all__ = [
    "__version__",
    "__license__",
    "__description__",
    "ARTIFACTS",
    "Artifact",
    "AuthError",
    "AuthProvider",
    "ConfigError",
    "Credentials",
    "ErrorClass",
    "FineractSetupError",
    "OutcomeStatus",
    "ResourceLoader",
    "RetryPolicy",
    "Settings",
    "Summary",
    "TemplateOrchestrator",
    "TokenCache",
    "UploadClient",
    "UploadError",
    "UploadOutcome",
    "ValidationError",
    "load_settings",
    "run_setup",
]
