"""
Tests for fineract_setup.results module.
"""

from __future__ import annotations

import dataclasses

import pytest

from fineract_setup.exceptions import ErrorClass
from fineract_setup.results import OutcomeStatus, Summary, UploadOutcome


class TestUploadOutcome:
    def test_success(self):
        outcome = UploadOutcome.success("offices", 2)
        assert outcome.succeeded
        assert outcome.attempts == 2
        assert outcome.last_error is None
        assert not outcome.cancelled

    def test_failure(self):
        outcome = UploadOutcome.failure("offices", 3, ErrorClass.RETRYABLE, "HTTP 503")
        assert outcome.status is OutcomeStatus.FAILED
        assert outcome.last_error is ErrorClass.RETRYABLE
        assert outcome.message == "HTTP 503"

    def test_cancelled(self):
        outcome = UploadOutcome.failure("offices", 0, ErrorClass.CANCELLED)
        assert outcome.cancelled
        assert not outcome.succeeded

    def test_skipped(self):
        outcome = UploadOutcome.skipped("offices", "template not found")
        assert outcome.status is OutcomeStatus.SKIPPED
        assert outcome.attempts == 0

    def test_frozen(self):
        outcome = UploadOutcome.success("offices", 1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            outcome.attempts = 5


class TestSummary:
    def test_empty_summary_is_ok(self):
        summary = Summary()
        assert summary.total == 0
        assert summary.ok
        assert summary.exit_code == 0

    def test_counts(self):
        summary = Summary()
        summary.add(UploadOutcome.success("a", 1))
        summary.add(UploadOutcome.failure("b", 3, ErrorClass.RETRYABLE))
        summary.add(UploadOutcome.skipped("c"))
        summary.add(UploadOutcome.skipped("d"))

        assert (summary.succeeded, summary.failed, summary.skipped) == (1, 1, 2)
        assert summary.total == 4
        assert not summary.ok
        assert summary.exit_code == 1

    def test_only_skipped_is_ok(self):
        summary = Summary([UploadOutcome.skipped("a"), UploadOutcome.skipped("b")])
        assert summary.ok
        assert summary.exit_code == 0
