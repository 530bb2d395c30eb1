"""Protocol definitions for notarization backends.

(c) Mike Casale 2025.
Licensed under the MIT License.
"""

from __future__ import annotations as _annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import StatusReport, SubmissionReceipt, SubmissionRequest
    from .types import Command

__all__ = ("NotaryBackend", "CommandRunner", "CommandResult")


@runtime_checkable
class CommandResult(Protocol):
    """Outcome of one external process invocation.

    ``subprocess.CompletedProcess`` satisfies this protocol.
    """

    returncode: int
    stdout: str
    stderr: str


@runtime_checkable
class CommandRunner(Protocol):
    """Callable that runs an external command and captures its output."""

    def __call__(self, command: Command, *, timeout: float | None = None) -> CommandResult:
        """Run ``command`` to completion without a shell."""
        ...


@runtime_checkable
class NotaryBackend(Protocol):
    """Protocol for notarization service backends.

    A backend wraps one command-line client of the notarization service.
    Implementations are synchronous. ``submit`` and ``query_status`` each
    issue exactly one external process invocation and block until it exits.

    Example Implementation:
        >>> class NotarytoolBackend:
        ...     def submit(self, request: SubmissionRequest) -> SubmissionReceipt:
        ...         doc = self._run('submit', str(request.artifact_path))
        ...         return SubmissionReceipt(request_id=doc['id'])
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for the backend."""
        ...

    @abstractmethod
    def submit(self, request: SubmissionRequest) -> SubmissionReceipt:
        """Upload an artifact for notarization.

        Args:
            request: Artifact, bundle identifier and credentials.

        Returns:
            Receipt carrying the service-assigned request identifier.

        Raises:
            SubmissionError: If the upload fails or its output is unparseable.
        """
        ...

    @abstractmethod
    def query_status(self, receipt: SubmissionReceipt) -> StatusReport:
        """Fetch the current status of a submitted request.

        Args:
            receipt: Receipt returned by ``submit``.

        Returns:
            Normalized status report.

        Raises:
            StatusQueryError: If the query fails or its output is unparseable.
        """
        ...

    @abstractmethod
    def fetch_log(self, receipt: SubmissionReceipt, report: StatusReport | None = None) -> dict[str, Any] | str:
        """Retrieve the service's log document for a processed request.

        Args:
            receipt: Receipt returned by ``submit``.
            report: Latest status report for the receipt, when the caller has
                one. Backends that locate the log through the report query
                the status themselves when it is missing.

        Returns:
            Decoded JSON log, or raw text when the log is not JSON.

        Raises:
            LogRetrievalError: If the log cannot be retrieved.
        """
        ...
