"""Notarization submission and bounded status polling.

(c) Mike Casale 2025.
Licensed under the MIT License.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

# Third-party (alphabetical)
import logfire

# Local imports (core first, then alphabetical)
from ..adapters.stapler import Stapler
from ..core.exceptions import (
    CancelledError,
    NotarizationFailedError,
    NotarizationTimeoutError,
    StatusQueryError,
    SubmissionError,
)
from ..core.models import NotarizationStatus
from ..core.settings import NotarySettings
from ..infra.instrumentation import Metrics, get_logger

if TYPE_CHECKING:
    from ..core.models import StatusReport, SubmissionReceipt, SubmissionRequest
    from ..core.protocols import NotaryBackend

__all__ = ('CancelToken', 'NotarizationWaiter')

logger = get_logger('services.notarization')


@dataclass
class CancelToken:
    """Cancellation signal shared between the waiter and its caller.

    Setting the token wakes a waiter that is sleeping between polls.
    Safe to set from a signal handler or another thread.
    """

    _event: threading.Event = field(default_factory=threading.Event, init=False, repr=False)

    def cancel(self) -> None:
        """Request that the polling loop stop."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True if cancelled meanwhile."""
        return self._event.wait(seconds)


@dataclass
class NotarizationWaiter:
    """Submit an artifact for notarization and wait for the verdict.

    The waiter holds no state between calls besides its collaborators. Each
    poll issues exactly one backend query, and polling is bounded by
    ``max_attempts`` and interruptible through a ``CancelToken``.

    Example:
        >>> waiter = NotarizationWaiter(NotarytoolBackend(settings), settings)
        >>> receipt = waiter.submit(request)
        >>> report = waiter.await_completion(receipt, poll_interval=30, max_attempts=120)
        >>> report.log_url
        'https://osxapps-ssl.itunes.apple.com/...'
    """

    backend: NotaryBackend
    config: NotarySettings = field(default_factory=NotarySettings)
    stapler: Stapler | None = None

    def __post_init__(self) -> None:
        if self.stapler is None:
            self.stapler = Stapler(self.config)

    def submit(self, request: SubmissionRequest) -> SubmissionReceipt:
        """Upload ``request.artifact_path`` and return the service receipt.

        Submissions are never deduplicated or retried: two calls upload twice
        and yield two receipts.

        Raises:
            SubmissionError: If the artifact is missing, the upload fails, or
                the receipt cannot be parsed.
        """
        with logfire.span('notary.submit', artifact=str(request.artifact_path), backend=self.backend.name):
            if not request.artifact_path.exists():
                raise SubmissionError(str(request.artifact_path), 'artifact not found')
            receipt = self.backend.submit(request)
            logger.info('submitted {artifact} as {request_id}', artifact=str(request.artifact_path), request_id=receipt.request_id)
            return receipt

    def await_completion(
        self,
        receipt: SubmissionReceipt,
        poll_interval: float | None = None,
        max_attempts: int | None = None,
        *,
        cancel_token: CancelToken | None = None,
    ) -> StatusReport:
        """Poll until the service reports a terminal status.

        Args:
            receipt: Receipt returned by ``submit``; every poll uses it.
            poll_interval: Seconds to sleep between polls.
            max_attempts: Maximum number of polls.
            cancel_token: Aborts the loop before the next poll when set.

        Returns:
            The successful status report, including its log reference.

        Raises:
            NotarizationFailedError: The service reported a failure.
            NotarizationTimeoutError: ``max_attempts`` polls were all non-terminal.
            CancelledError: ``cancel_token`` was set, including while a poll ran.
            StatusQueryError: A poll could not be completed.
            ValueError: ``poll_interval`` is negative or ``max_attempts`` < 1.
        """
        interval = self.config.poll_interval if poll_interval is None else poll_interval
        limit = self.config.max_attempts if max_attempts is None else max_attempts
        if interval < 0:
            raise ValueError(f'poll_interval must be >= 0, got {interval}')
        if limit < 1:
            raise ValueError(f'max_attempts must be >= 1, got {limit}')

        token = cancel_token or CancelToken()
        request_id = receipt.request_id
        started = time.monotonic()
        attempts = 0
        report: StatusReport | None = None

        with logfire.span('notary.await_completion', request_id=request_id, poll_interval=interval, max_attempts=limit):
            while True:
                if token.cancelled:
                    self._record(request_id, 'cancelled', attempts, started)
                    raise CancelledError(request_id, attempts, report)

                with logfire.span('notary.poll', request_id=request_id, attempt=attempts + 1):
                    try:
                        report = self.backend.query_status(receipt)
                    except StatusQueryError as exc:
                        # Ctrl-C also reaches the xcrun child, which then exits non-zero.
                        if not token.cancelled:
                            raise
                        self._record(request_id, 'cancelled', attempts, started)
                        raise CancelledError(request_id, attempts, report) from exc
                attempts += 1
                Metrics.record_poll(request_id, attempts, report.raw_status)
                logger.info(
                    'status {raw_status} for {request_id} (poll {attempt}/{limit})',
                    raw_status=report.raw_status, request_id=request_id, attempt=attempts, limit=limit,
                )

                if report.status is NotarizationStatus.SUCCESS:
                    self._record(request_id, 'success', attempts, started)
                    return report
                if report.status is NotarizationStatus.FAILURE:
                    self._record(request_id, 'failure', attempts, started)
                    raise NotarizationFailedError(request_id, report.raw_status, report.log_url)
                if attempts >= limit:
                    self._record(request_id, 'timeout', attempts, started)
                    raise NotarizationTimeoutError(request_id, attempts, report)

                if token.wait(interval):
                    self._record(request_id, 'cancelled', attempts, started)
                    raise CancelledError(request_id, attempts, report)

    def notarize(
        self,
        request: SubmissionRequest,
        *,
        staple: bool | None = None,
        poll_interval: float | None = None,
        max_attempts: int | None = None,
        cancel_token: CancelToken | None = None,
    ) -> StatusReport:
        """Submit, wait for success, then staple the ticket if enabled."""
        receipt = self.submit(request)
        report = self.await_completion(receipt, poll_interval, max_attempts, cancel_token=cancel_token)
        should_staple = self.config.staple if staple is None else staple
        if should_staple and self.stapler is not None:
            self.stapler.staple(request.artifact_path)
        return report

    def fetch_log(self, receipt: SubmissionReceipt, report: StatusReport | None = None) -> dict[str, Any] | str:
        """Retrieve the service log for ``receipt`` through the backend.

        Raises:
            LogRetrievalError: If the backend cannot produce the log.
        """
        with logfire.span('notary.log', request_id=receipt.request_id, backend=self.backend.name):
            return self.backend.fetch_log(receipt, report)

    @staticmethod
    def _record(request_id: str, outcome: str, attempts: int, started: float) -> None:
        Metrics.record_outcome(request_id, outcome, attempts, round(time.monotonic() - started, 3))
