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

"""Core orchestration for fineract-setup.

TemplateOrchestrator walks the artifact table in order and, for each
template:

1. Loads its bytes. A missing resource is SKIPPED, not failed, so that
   partial deployments and test environments without bundled templates
   still succeed.
2. Validates the workbook. A corrupt workbook FAILS without any upload.
3. Converts it to XLS. If conversion fails, the original bytes are sent
   under the template's XLS file name and content type.
4. Uploads it through the UploadClient.
5. Records the outcome in the Summary.

One bad template never stops the others. Every artifact ends up with
exactly one outcome in the Summary.

Design Principles:

- Collaborators (loader, validator, upload client) are injected, so the
  orchestrator holds no global state and is easy to test
- run_setup() is the one place where settings become objects
- Error handling uses exceptions; the CLI formats them for display

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from fineract_setup.core import run_setup

        summary = run_setup(Path("fineract-setup.yaml"))
        print(f"{summary.succeeded} succeeded, {summary.failed} failed")
        ```
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
import threading

from fineract_setup.auth.provider import AuthProvider, Credentials
from fineract_setup.config.loader import Settings, load_settings
from fineract_setup.exceptions import (
    CorruptWorkbookError,
    ErrorClass,
    ResourceNotFoundError,
    UnreadableResourceError,
)
from fineract_setup.io.resources import ResourceLoader
from fineract_setup.io.transport import make_session, timeouts
from fineract_setup.io.upload import UploadClient
from fineract_setup.logging import get_global_logger
from fineract_setup.results import OutcomeStatus, Summary, UploadOutcome
from fineract_setup.templates import ARTIFACTS, Artifact, select_artifacts
from fineract_setup.workbook import WorkbookValidator


class TemplateOrchestrator:
    """Drives the artifact table through load, validate, convert and upload.

    Attributes:
        artifacts: The ordered artifacts this orchestrator processes.
    """

    def __init__(
        self,
        loader: ResourceLoader,
        validator: WorkbookValidator,
        uploader: UploadClient | None,
        artifacts: Sequence[Artifact] = ARTIFACTS,
    ) -> None:
        self.loader = loader
        self.validator = validator
        self.uploader = uploader
        self.artifacts = tuple(artifacts)

    def _prepare(self, artifact: Artifact) -> bytes | UploadOutcome:
        """Load and validate; return the bytes or a terminal outcome."""
        logger = get_global_logger()
        try:
            data = self.loader.read(artifact.resource)
        except ResourceNotFoundError as err:
            logger.verbose("SKIP", f"{artifact.name}: {err}")
            return UploadOutcome.skipped(artifact.name, str(err))
        except UnreadableResourceError as err:
            logger.error("RESOURCE", f"{artifact.name}: {err}")
            return UploadOutcome.failure(artifact.name, 0, ErrorClass.FATAL, str(err))

        try:
            self.validator.validate(data)
        except CorruptWorkbookError as err:
            logger.error("WORKBOOK", f"Validation failed for {artifact.resource}: {err}")
            return UploadOutcome.failure(artifact.name, 0, ErrorClass.FATAL, str(err))
        return data

    def process(
        self, artifact: Artifact, cancel_event: threading.Event | None = None
    ) -> UploadOutcome:
        """Process a single artifact and return its outcome."""
        logger = get_global_logger()
        if self.uploader is None:
            raise RuntimeError("TemplateOrchestrator has no upload client")

        prepared = self._prepare(artifact)
        if isinstance(prepared, UploadOutcome):
            return prepared

        try:
            payload = self.validator.ensure_xls(prepared)
        except CorruptWorkbookError as err:
            logger.warning(
                "WORKBOOK",
                f"Could not convert {artifact.resource} to XLS, uploading original: {err}",
            )
            payload = prepared

        return self.uploader.upload(artifact, payload, cancel_event=cancel_event)

    def run_all(self, cancel_event: threading.Event | None = None) -> Summary:
        """Upload every artifact in order and aggregate the outcomes.

        Once cancel_event is set, remaining artifacts are recorded as
        cancelled failures without being loaded or sent.
        """
        logger = get_global_logger()
        summary = Summary()
        total = len(self.artifacts)

        for index, artifact in enumerate(self.artifacts, start=1):
            if cancel_event is not None and cancel_event.is_set():
                summary.add(
                    UploadOutcome.failure(
                        artifact.name, 0, ErrorClass.CANCELLED, "run cancelled"
                    )
                )
                continue

            logger.step(index, total, f"Processing {artifact.name} ({artifact.resource})")
            outcome = self.process(artifact, cancel_event)
            summary.add(outcome)

            if outcome.succeeded:
                logger.verbose("RUN", f"Successfully processed template: {artifact.name}")
            elif outcome.status is OutcomeStatus.FAILED:
                logger.error("RUN", f"Failed to process template: {artifact.name}")

        logger.verbose(
            "RUN",
            f"Summary: {summary.succeeded} succeeded, {summary.failed} failed, "
            f"{summary.skipped} skipped",
        )
        return summary

    def validate_all(self) -> Summary:
        """Load and validate every artifact without touching the network.

        Valid artifacts are reported as SUCCEEDED with zero attempts.
        """
        summary = Summary()
        total = len(self.artifacts)
        for index, artifact in enumerate(self.artifacts, start=1):
            get_global_logger().step(index, total, f"Validating {artifact.resource}")
            prepared = self._prepare(artifact)
            if isinstance(prepared, UploadOutcome):
                summary.add(prepared)
            else:
                summary.add(UploadOutcome.success(artifact.name, 0))
        return summary


def _resolve_templates_dir(
    settings: Settings, templates_dir: Path | None
) -> Path | None:
    return templates_dir if templates_dir is not None else settings.templates_dir


def run_setup(
    config_path: Path | None = None,
    *,
    settings: Settings | None = None,
    templates_dir: Path | None = None,
    only: Iterable[str] | None = None,
    cancel_event: threading.Event | None = None,
) -> Summary:
    """Load settings, wire the pipeline, and upload every template.

    Args:
        config_path: Optional YAML settings file (ignored if settings given).
        settings: Pre-built settings.
        templates_dir: Override the directory templates are read from.
        only: Restrict the run to these artifact names (table order kept).
        cancel_event: Run-level cancellation signal.

    Returns:
        The run Summary. Use summary.exit_code for the process status.

    Raises:
        ConfigError: Settings are missing or invalid, or an unknown
            artifact name was requested.
    """
    if settings is None:
        settings = load_settings(config_path)
    artifacts = select_artifacts(only)

    with make_session(settings.http) as session:
        auth = AuthProvider(
            Credentials.from_settings(settings),
            session,
            timeout=timeouts(settings.http),
        )
        orchestrator = TemplateOrchestrator(
            ResourceLoader(_resolve_templates_dir(settings, templates_dir)),
            WorkbookValidator(),
            UploadClient.from_settings(settings, session, auth),
            artifacts,
        )
        return orchestrator.run_all(cancel_event)


def validate_templates(
    config_path: Path | None = None,
    *,
    templates_dir: Path | None = None,
    only: Iterable[str] | None = None,
) -> Summary:
    """Validate every template offline (no authentication, no uploads)."""
    settings = load_settings(config_path, require_credentials=False)
    orchestrator = TemplateOrchestrator(
        ResourceLoader(_resolve_templates_dir(settings, templates_dir)),
        WorkbookValidator(),
        None,
        select_artifacts(only),
    )
    return orchestrator.validate_all()
