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

"""Configuration loading for fineract-setup.

Settings are layered (built-in defaults, optional YAML file, environment
variables) and returned as frozen dataclasses.

Public API:

- load_settings: Load and merge settings
- Settings: Top-level settings container

Example:
    Basic usage:

        from pathlib import Path
        from fineract_setup.config import load_settings

        settings = load_settings(Path("fineract-setup.yaml"))
        print(settings.fineract.url)

"""

from .loader import (
    FineractSettings,
    HttpSettings,
    KeycloakSettings,
    RetrySettings,
    Settings,
    load_settings,
)

__all__ = [
    "load_settings",
    "Settings",
    "FineractSettings",
    "KeycloakSettings",
    "RetrySettings",
    "HttpSettings",
]
