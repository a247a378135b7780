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

"""Public API return types for fineract-setup.

Every artifact processed by a run produces exactly one UploadOutcome, and
the outcomes of a run are gathered into a Summary.

UploadOutcome is frozen (immutable) so that outcomes already recorded in a
Summary cannot be altered by later artifacts.

Example:
    Using result types:
        ```python
        from fineract_setup.core import run_setup

        summary = run_setup(Path("fineract-setup.yaml"))
        for outcome in summary.details:
            print(outcome.artifact, outcome.status.value, outcome.attempts)
        raise SystemExit(summary.exit_code)
        ```
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from fineract_setup.exceptions import ErrorClass


class OutcomeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class UploadOutcome:
    """Result of processing a single artifact.

    Attributes:
        artifact: Logical artifact name (e.g., "offices").
        status: Whether the artifact succeeded, failed, or was skipped.
        attempts: Number of HTTP requests sent for this artifact.
        last_error: Classification of the last failure, if any.
        message: Human-readable detail for the last failure or skip.
    """

    artifact: str
    status: OutcomeStatus
    attempts: int = 0
    last_error: ErrorClass | None = None
    message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED

    @property
    def cancelled(self) -> bool:
        return self.last_error is ErrorClass.CANCELLED

    @classmethod
    def success(cls, artifact: str, attempts: int) -> UploadOutcome:
        return cls(artifact, OutcomeStatus.SUCCEEDED, attempts)

    @classmethod
    def failure(
        cls,
        artifact: str,
        attempts: int,
        last_error: ErrorClass,
        message: str | None = None,
    ) -> UploadOutcome:
        return cls(artifact, OutcomeStatus.FAILED, attempts, last_error, message)

    @classmethod
    def skipped(cls, artifact: str, message: str | None = None) -> UploadOutcome:
        return cls(artifact, OutcomeStatus.SKIPPED, 0, None, message)


@dataclass
class Summary:
    """Aggregated outcomes of a run.

    A run is successful when no artifact was attempted and failed. Skipped
    artifacts never make a run fail, so a run made only of skipped
    artifacts is a success.

    Attributes:
        details: One outcome per artifact, in processing order.
    """

    details: list[UploadOutcome] = field(default_factory=list)

    def add(self, outcome: UploadOutcome) -> None:
        self.details.append(outcome)

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.details if outcome.status is status)

    @property
    def succeeded(self) -> int:
        return self._count(OutcomeStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def total(self) -> int:
        return len(self.details)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    @property
    def exit_code(self) -> int:
        """Process exit code for this run (0 success, 1 failure)."""
        return 0 if self.ok else 1
