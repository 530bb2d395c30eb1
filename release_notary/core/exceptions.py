"""Exception hierarchy for release-notary.

(c) Mike Casale 2025.
Licensed under the MIT License.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import StatusReport
    from .types import ErrorCategory, RecoveryStrategy

__all__ = (
    'ReleaseNotaryError',
    'CommandError',
    'SubmissionError',
    'StatusQueryError',
    'NotarizationError',
    'NotarizationFailedError',
    'NotarizationTimeoutError',
    'CancelledError',
    'StaplingError',
    'LogRetrievalError',
    'classify_error',
)


class ReleaseNotaryError(Exception):
    """Base exception for all release-notary errors.

    All exceptions in the system inherit from this class, enabling
    catch-all handling at application boundaries.

    Attributes:
        context: Additional context for debugging.
        recoverable: Whether the error can potentially be recovered.
    """

    def __init__(self, message: str, *, context: dict[str, Any] | None = None, recoverable: bool = False) -> None:
        self.context = context or {}
        self.recoverable = recoverable
        super().__init__(message)


# =============================================================================
# Tool Exceptions
# =============================================================================
class CommandError(ReleaseNotaryError):
    """Raised when an external command cannot be run or exits non-zero."""

    def __init__(self, command: str, message: str, *, returncode: int | None = None, stderr: str = '') -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f'{command}: {message}', context={'command': command, 'returncode': returncode, 'stderr': stderr}
        )


class SubmissionError(ReleaseNotaryError):
    """Raised when the upload fails or its receipt cannot be parsed."""

    def __init__(self, artifact: str, message: str, *, output: str | None = None) -> None:
        self.artifact = artifact
        self.output = output
        super().__init__(
            f'Submission of {artifact} failed: {message}',
            context={'artifact': artifact, 'output': output},
        )


class StatusQueryError(ReleaseNotaryError):
    """Raised when a status poll fails or returns an unparseable document."""

    def __init__(self, receipt_id: str, message: str, *, output: str | None = None) -> None:
        self.receipt_id = receipt_id
        self.output = output
        super().__init__(
            f'Status query for {receipt_id} failed: {message}',
            context={'receipt_id': receipt_id, 'output': output},
        )


# =============================================================================
# Notarization Outcome Exceptions
# =============================================================================
class NotarizationError(ReleaseNotaryError):
    """Base exception for outcomes of the polling loop."""

    def __init__(self, receipt_id: str, message: str, *, context: dict[str, Any] | None = None) -> None:
        self.receipt_id = receipt_id
        ctx = context or {}
        ctx['receipt_id'] = receipt_id
        super().__init__(message, context=ctx)


class NotarizationFailedError(NotarizationError):
    """Raised when the service reports a terminal failure.

    Attributes:
        status: Raw status string reported by the service.
        log_url: Location of the service's log for this request, if any.
    """

    def __init__(self, receipt_id: str, status: str, log_url: str | None = None) -> None:
        self.status = status
        self.log_url = log_url
        super().__init__(
            receipt_id,
            f'Notarization {receipt_id} failed with status {status!r} (log: {log_url or "unavailable"})',
            context={'status': status, 'log_url': log_url},
        )


class NotarizationTimeoutError(NotarizationError):
    """Raised when the attempt cap is reached without a terminal status."""

    def __init__(self, receipt_id: str, attempts: int, last_report: StatusReport | None = None) -> None:
        self.attempts = attempts
        self.last_report = last_report
        last_status = last_report.raw_status if last_report is not None else None
        super().__init__(
            receipt_id,
            f'Notarization {receipt_id} still pending after {attempts} polls (last status: {last_status})',
            context={'attempts': attempts, 'last_status': last_status},
        )


class CancelledError(NotarizationError):
    """Raised when the caller aborts the polling loop."""

    def __init__(self, receipt_id: str, attempts: int, last_report: StatusReport | None = None) -> None:
        self.attempts = attempts
        self.last_report = last_report
        super().__init__(
            receipt_id,
            f'Waiting for notarization {receipt_id} was cancelled after {attempts} polls',
            context={'attempts': attempts},
        )


# =============================================================================
# Post-processing Exceptions
# =============================================================================
class StaplingError(ReleaseNotaryError):
    """Raised when the notarization ticket cannot be stapled."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f'Stapling {path} failed: {message}', context={'path': path})


class LogRetrievalError(ReleaseNotaryError):
    """Raised when the notarization log cannot be retrieved.

    Attributes:
        source: Log URL, or the request id when the log is read through the CLI.
    """

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f'Fetching log {source} failed: {message}', context={'source': source}, recoverable=True)


def classify_error(exc: Exception) -> tuple[ErrorCategory, RecoveryStrategy]:
    """Classify errors into recovery categories and strategies."""
    if isinstance(exc, ReleaseNotaryError):
        return ('recoverable', 'retry') if exc.recoverable else ('fatal', 'abort')
    return 'transient', 'retry'
