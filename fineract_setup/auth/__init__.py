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

"""Authentication against the Keycloak identity provider.

Public API:

- AuthProvider: Password-grant token provider with single-flight caching
- Credentials: Immutable identity-provider credentials
- TokenCache: In-memory holder for at most one access token

Example:
    from fineract_setup.auth import AuthProvider, Credentials
    from fineract_setup.io.transport import make_session

    provider = AuthProvider(Credentials.from_settings(settings), make_session())
    token = provider.get_token()

"""

from .provider import AuthProvider, Credentials, TokenCache

__all__ = ["AuthProvider", "Credentials", "TokenCache"]
