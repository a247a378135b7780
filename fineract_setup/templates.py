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

"""Template artifact table.

Each Artifact describes one bulk-import workbook and the Fineract endpoint
it is posted to. ARTIFACTS is the fixed, ordered table a run walks through;
the order matters because later templates reference entities created by
earlier ones (offices before staff, staff before users, products before
transactions).

Example:
    Looking up an artifact:
        ```python
        from fineract_setup.templates import get_artifact

        clients = get_artifact("clients")
        print(clients.endpoint)      # clients/uploadtemplate
        print(clients.extra_fields)  # {'entityType': 'clients'}
        ```
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Mapping

from fineract_setup.exceptions import ConfigError

_EMPTY: Mapping[str, str] = MappingProxyType({})


@dataclass(frozen=True)
class Artifact:
    """A named template resource mapped to one upload endpoint.

    Attributes:
        name: Logical artifact name, used on the command line and in results.
        resource: Resource path relative to the templates directory.
        endpoint: Path relative to the Fineract API base URL.
        extra_fields: Additional multipart form fields for this endpoint.
        query_params: Query string parameters for this endpoint.
    """

    name: str
    resource: str
    endpoint: str
    extra_fields: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    query_params: Mapping[str, str] = field(default_factory=lambda: _EMPTY)

    @property
    def filename(self) -> str:
        """Base name of the resource, sent as the multipart filename."""
        return PurePosixPath(self.resource).name


ARTIFACTS: tuple[Artifact, ...] = (
    Artifact("chart_of_accounts", "data/ChartOfAccount.xls", "glaccounts/uploadtemplate"),
    Artifact("offices", "data/Offices.xls", "offices/uploadtemplate"),
    Artifact("staff", "data/Staff.xls", "staff/uploadtemplate"),
    Artifact("users", "data/Users.xls", "users/uploadtemplate"),
    Artifact(
        "clients",
        "data/Clients.xls",
        "clients/uploadtemplate",
        extra_fields=MappingProxyType({"entityType": "clients"}),
        query_params=MappingProxyType({"legalFormType": "CLIENTS_PERSON"}),
    ),
    Artifact("savings_products", "data/SavingsProducts.xls", "savingsaccounts/uploadtemplate"),
    Artifact("loan_products", "data/LoanProducts.xls", "loans/uploadtemplate"),
    Artifact(
        "savings_transactions",
        "data/SavingsTransactions.xls",
        "savingsaccounts/transactions/uploadtemplate",
    ),
    Artifact("loan_repayments", "data/LoanRepayments.xls", "loans/repayments/uploadtemplate"),
)


def artifact_names() -> list[str]:
    return [artifact.name for artifact in ARTIFACTS]


def get_artifact(name: str) -> Artifact:
    """Return the artifact with the given logical name.

    Raises:
        ConfigError: If no artifact has that name.
    """
    for artifact in ARTIFACTS:
        if artifact.name == name:
            return artifact
    available = ", ".join(artifact_names())
    raise ConfigError(f"Unknown template '{name}'. Available templates: {available}")


def select_artifacts(names: Iterable[str] | None = None) -> tuple[Artifact, ...]:
    """Select a subset of ARTIFACTS, keeping table order.

    Args:
        names: Artifact names to keep. None or empty selects everything.

    Raises:
        ConfigError: If any name is unknown.
    """
    wanted = list(names or [])
    if not wanted:
        return ARTIFACTS
    for name in wanted:
        get_artifact(name)
    return tuple(artifact for artifact in ARTIFACTS if artifact.name in wanted)
