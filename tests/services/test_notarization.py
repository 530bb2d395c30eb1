"""Tests for the notarization waiter.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

import threading
import time
from pathlib import Path

import pytest

from release_notary.core.exceptions import (
    CancelledError,
    NotarizationFailedError,
    NotarizationTimeoutError,
    StatusQueryError,
    SubmissionError,
)
from release_notary.core.models import NotarizationStatus, SubmissionReceipt, SubmissionRequest
from release_notary.core.settings import NotarySettings
from release_notary.services.notarization import CancelToken, NotarizationWaiter
from tests.conftest import ScriptedBackend, report

__all__ = ()


class RecordingStapler:
    """Stapler double that records stapled paths."""

    def __init__(self) -> None:
        self.paths: list[Path] = []

    def staple(self, path: Path) -> None:
        self.paths.append(path)


class TestCancelToken:
    """Tests for CancelToken."""

    def test_starts_uncancelled(self) -> None:
        """A fresh token is not cancelled and wait times out."""
        token = CancelToken()

        assert not token.cancelled
        assert token.wait(0) is False

    def test_cancel(self) -> None:
        """Cancelling makes wait return immediately."""
        token = CancelToken()
        token.cancel()

        assert token.cancelled
        assert token.wait(60) is True


class TestSubmit:
    """Tests for NotarizationWaiter.submit."""

    def test_returns_backend_receipt(self, settings: NotarySettings, request_for: SubmissionRequest) -> None:
        """Submit should delegate to the backend."""
        backend = ScriptedBackend()
        waiter = NotarizationWaiter(backend, settings)

        receipt = waiter.submit(request_for)

        assert receipt.request_id
        assert backend.submitted == [request_for]

    def test_missing_artifact(self, settings: NotarySettings, request_for: SubmissionRequest, tmp_path: Path) -> None:
        """A missing artifact fails before anything is uploaded."""
        backend = ScriptedBackend()
        waiter = NotarizationWaiter(backend, settings)
        missing = request_for.model_copy(update={'artifact_path': tmp_path / 'nope.zip'})

        with pytest.raises(SubmissionError, match='artifact not found'):
            waiter.submit(missing)
        assert backend.submitted == []

    def test_not_deduplicated(self, settings: NotarySettings, request_for: SubmissionRequest) -> None:
        """Submitting the same request twice yields two distinct receipts."""
        backend = ScriptedBackend()
        waiter = NotarizationWaiter(backend, settings)

        first = waiter.submit(request_for)
        second = waiter.submit(request_for)

        assert first.request_id != second.request_id
        assert len(backend.submitted) == 2


class TestAwaitCompletion:
    """Tests for NotarizationWaiter.await_completion."""

    def test_success_after_pending(self, settings: NotarySettings, receipt: SubmissionReceipt) -> None:
        """Two pending polls then success returns the final report after 3 polls."""
        backend = ScriptedBackend([
            report('in progress'),
            report('in progress'),
            report('success', log_url='https://x/log'),
        ])
        waiter = NotarizationWaiter(backend, settings)

        result = waiter.await_completion(receipt, poll_interval=0, max_attempts=10)

        assert result.status is NotarizationStatus.SUCCESS
        assert result.log_url == 'https://x/log'
        assert backend.polls == 3

    def test_polls_same_receipt(self, settings: NotarySettings, receipt: SubmissionReceipt) -> None:
        """Every poll references the receipt given by the caller."""
        backend = ScriptedBackend([report('in progress'), report('in progress'), report('success')])
        waiter = NotarizationWaiter(backend, settings)

        waiter.await_completion(receipt, poll_interval=0, max_attempts=3)

        assert set(backend.polled_receipts) == {receipt.request_id}

    def test_immediate_success(self, settings: NotarySettings, receipt: SubmissionReceipt) -> None:
        """A terminal first response returns after a single poll."""
        backend = ScriptedBackend([report('success', log_url='https://x/log')])
        waiter = NotarizationWaiter(backend, settings)

        result = waiter.await_completion(receipt, poll_interval=0, max_attempts=1)

        assert result.raw_status == 'success'
        assert backend.polls == 1

    def test_failure_carries_status_and_log(self, settings: NotarySettings, receipt: SubmissionReceipt) -> None:
        """A failure response raises with the reported status and log."""
        backend = ScriptedBackend([report('in progress'), report('invalid', log_url='https://x/fail-log')])
        waiter = NotarizationWaiter(backend, settings)

        with pytest.raises(NotarizationFailedError) as exc_info:
            waiter.await_completion(receipt, poll_interval=0, max_attempts=10)

        assert exc_info.value.status == 'invalid'
        assert exc_info.value.log_url == 'https://x/fail-log'
        assert exc_info.value.receipt_id == receipt.request_id
        assert backend.polls == 2

    def test_timeout_stops_polling(self, settings: NotarySettings, receipt: SubmissionReceipt) -> None:
        """max_attempts non-terminal responses raise without a further poll."""
        backend = ScriptedBackend([report('in progress') for _ in range(4)])
        waiter = NotarizationWaiter(backend, settings)

        with pytest.raises(NotarizationTimeoutError) as exc_info:
            waiter.await_completion(receipt, poll_interval=0, max_attempts=3)

        assert backend.polls == 3
        assert len(backend.reports) == 1
        assert exc_info.value.attempts == 3
        assert exc_info.value.last_report is not None
        assert exc_info.value.last_report.raw_status == 'in progress'

    def test_defaults_from_settings(self, receipt: SubmissionReceipt) -> None:
        """Interval and attempt cap fall back to settings."""
        config = NotarySettings(_env_file=None, poll_interval=0, max_attempts=2)
        backend = ScriptedBackend([report('in progress'), report('in progress'), report('success')])
        waiter = NotarizationWaiter(backend, config)

        with pytest.raises(NotarizationTimeoutError):
            waiter.await_completion(receipt)

        assert backend.polls == 2

    def test_cancelled_before_first_poll(self, settings: NotarySettings, receipt: SubmissionReceipt) -> None:
        """An already-set token aborts without polling."""
        backend = ScriptedBackend([report('success')])
        waiter = NotarizationWaiter(backend, settings)
        token = CancelToken()
        token.cancel()

        with pytest.raises(CancelledError):
            waiter.await_completion(receipt, poll_interval=0, max_attempts=5, cancel_token=token)

        assert backend.polls == 0

    def test_cancelled_after_poll(self, settings: NotarySettings, receipt: SubmissionReceipt) -> None:
        """A token set during a pending poll stops the loop before the next one."""
        token = CancelToken()
        backend = ScriptedBackend(
            [report('in progress'), report('success')],
            on_poll=lambda count: token.cancel(),
        )
        waiter = NotarizationWaiter(backend, settings)

        with pytest.raises(CancelledError) as exc_info:
            waiter.await_completion(receipt, poll_interval=30, max_attempts=5, cancel_token=token)

        assert backend.polls == 1
        assert exc_info.value.attempts == 1
        assert not isinstance(exc_info.value, NotarizationFailedError)

    def test_status_query_error_propagates(self, settings: NotarySettings, receipt: SubmissionReceipt) -> None:
        """A failing poll is fatal and not retried."""

        class BrokenBackend(ScriptedBackend):
            def query_status(self, receipt: SubmissionReceipt):
                self.polled_receipts.append(receipt.request_id)
                raise StatusQueryError(receipt.request_id, 'boom')

        backend = BrokenBackend()
        waiter = NotarizationWaiter(backend, settings)

        with pytest.raises(StatusQueryError):
            waiter.await_completion(receipt, poll_interval=0, max_attempts=5)
        assert backend.polls == 1

    def test_cancelled_from_another_thread(self, settings: NotarySettings, receipt: SubmissionReceipt) -> None:
        """A token set from another thread wakes the blocked sleep promptly."""
        token = CancelToken()
        backend = ScriptedBackend([report('in progress'), report('success')])
        waiter = NotarizationWaiter(backend, settings)
        timer = threading.Timer(0.05, token.cancel)

        started = time.monotonic()
        timer.start()
        try:
            with pytest.raises(CancelledError) as exc_info:
                waiter.await_completion(receipt, poll_interval=30, max_attempts=5, cancel_token=token)
        finally:
            timer.cancel()

        assert time.monotonic() - started < 5
        assert backend.polls == 1
        assert exc_info.value.attempts == 1

    def test_poll_interrupted_by_cancellation(self, settings: NotarySettings, receipt: SubmissionReceipt) -> None:
        """A poll that fails because the token was set reports cancellation."""
        token = CancelToken()

        class InterruptedBackend(ScriptedBackend):
            def query_status(self, receipt: SubmissionReceipt):
                self.polled_receipts.append(receipt.request_id)
                token.cancel()
                raise StatusQueryError(receipt.request_id, 'notarytool exited with status -2')

        backend = InterruptedBackend()
        waiter = NotarizationWaiter(backend, settings)

        with pytest.raises(CancelledError) as exc_info:
            waiter.await_completion(receipt, poll_interval=0, max_attempts=5, cancel_token=token)

        assert backend.polls == 1
        assert exc_info.value.attempts == 0
        assert isinstance(exc_info.value.__cause__, StatusQueryError)


class TestFetchLog:
    """Tests for NotarizationWaiter.fetch_log."""

    def test_delegates_to_backend(self, settings: NotarySettings, receipt: SubmissionReceipt) -> None:
        """The backend receives the receipt and the latest report."""
        backend = ScriptedBackend(log_document={'status': 'Accepted'})
        latest = report('success', log_url='https://x/log')

        document = NotarizationWaiter(backend, settings).fetch_log(receipt, latest)

        assert document == {'status': 'Accepted'}
        assert backend.log_requests == [(receipt.request_id, latest)]

    @pytest.mark.parametrize(('interval', 'attempts'), [(-1, 3), (0, 0)])
    def test_rejects_invalid_bounds(
        self, settings: NotarySettings, receipt: SubmissionReceipt, interval: float, attempts: int
    ) -> None:
        """Negative intervals and attempt caps below one are rejected."""
        waiter = NotarizationWaiter(ScriptedBackend(), settings)

        with pytest.raises(ValueError):
            waiter.await_completion(receipt, poll_interval=interval, max_attempts=attempts)


class TestNotarize:
    """Tests for the submit-wait-staple flow."""

    def test_staples_on_success(self, settings: NotarySettings, request_for: SubmissionRequest) -> None:
        """The artifact is stapled after success when requested."""
        stapler = RecordingStapler()
        backend = ScriptedBackend([report('in progress'), report('success')])
        waiter = NotarizationWaiter(backend, settings, stapler=stapler)

        result = waiter.notarize(request_for, staple=True)

        assert result.status is NotarizationStatus.SUCCESS
        assert stapler.paths == [request_for.artifact_path]

    def test_staple_follows_settings(self, settings: NotarySettings, request_for: SubmissionRequest) -> None:
        """Stapling is skipped when disabled in settings."""
        stapler = RecordingStapler()
        waiter = NotarizationWaiter(ScriptedBackend([report('success')]), settings, stapler=stapler)

        waiter.notarize(request_for)

        assert stapler.paths == []

    def test_no_staple_on_failure(self, settings: NotarySettings, request_for: SubmissionRequest) -> None:
        """Failures propagate and nothing is stapled."""
        stapler = RecordingStapler()
        waiter = NotarizationWaiter(ScriptedBackend([report('invalid')]), settings, stapler=stapler)

        with pytest.raises(NotarizationFailedError):
            waiter.notarize(request_for, staple=True)
        assert stapler.paths == []
