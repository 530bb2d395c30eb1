"""notarytool backend.

Drives ``xcrun notarytool`` with JSON output, the current command-line
client of the Apple notary service.

(c) Mike Casale 2025.
Licensed under the MIT License.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

# Third-party (alphabetical)
import logfire

# Local imports (core first, then alphabetical)
from ..core.constants import (
    NOTARYTOOL_FAILURE_STATUSES,
    NOTARYTOOL_PENDING_STATUSES,
    NOTARYTOOL_SUCCESS_STATUSES,
)
from ..core.exceptions import CommandError, LogRetrievalError, StatusQueryError, SubmissionError
from ..core.models import Credentials, StatusReport, SubmissionReceipt, SubmissionRequest
from ..core.protocols import CommandRunner, NotaryBackend
from ..infra.instrumentation import Metrics, traced
from .documents import normalize_status, parse_document
from .runner import run_command

if TYPE_CHECKING:
    from ..core.settings import NotarySettings

__all__ = ('NotarytoolBackend',)


@dataclass
class NotarytoolBackend(NotaryBackend):
    """Notary backend for ``xcrun notarytool``.

    Example:
        >>> backend = NotarytoolBackend(NotarySettings(keychain_profile='release'))
        >>> receipt = backend.submit(request)
        >>> backend.query_status(receipt).raw_status
        'In Progress'
    """

    config: NotarySettings
    credentials: Credentials | None = None
    runner: CommandRunner = field(default=run_command, repr=False)

    @property
    def name(self) -> str:
        """Return the backend identifier."""
        return 'notarytool'

    @traced('notarytool.submit', record_result=False)
    def submit(self, request: SubmissionRequest) -> SubmissionReceipt:
        """Upload the artifact with ``notarytool submit``."""
        artifact = str(request.artifact_path)
        command = [
            self.config.xcrun_path, 'notarytool', 'submit', artifact,
            *self._auth_args(request.credentials),
            '--output-format', 'json',
        ]
        try:
            result = self.runner(command, timeout=self.config.command_timeout)
        except CommandError as exc:
            raise SubmissionError(artifact, str(exc)) from exc

        if result.returncode != 0:
            raise SubmissionError(
                artifact,
                f'notarytool exited with status {result.returncode}: {result.stderr.strip()}',
                output=result.stdout,
            )
        try:
            document = parse_document(result.stdout, 'json')
        except ValueError as exc:
            raise SubmissionError(artifact, f'unparseable receipt: {exc}', output=result.stdout) from exc

        request_id = document.get('id')
        if not isinstance(request_id, str) or not request_id:
            raise SubmissionError(artifact, 'receipt has no request id', output=result.stdout)

        Metrics.record_submission(self.name, artifact, request_id)
        return SubmissionReceipt(request_id=request_id, message=document.get('message'))

    @traced('notarytool.info', record_args=False)
    def query_status(self, receipt: SubmissionReceipt) -> StatusReport:
        """Fetch the status with ``notarytool info``."""
        command = [
            self.config.xcrun_path, 'notarytool', 'info', receipt.request_id,
            *self._auth_args(self._poll_credentials(receipt.request_id)),
            '--output-format', 'json',
        ]
        try:
            result = self.runner(command, timeout=self.config.command_timeout)
        except CommandError as exc:
            raise StatusQueryError(receipt.request_id, str(exc)) from exc

        if result.returncode != 0:
            raise StatusQueryError(
                receipt.request_id,
                f'notarytool exited with status {result.returncode}: {result.stderr.strip()}',
                output=result.stdout,
            )
        try:
            document = parse_document(result.stdout, 'json')
        except ValueError as exc:
            raise StatusQueryError(receipt.request_id, str(exc), output=result.stdout) from exc

        return self._parse_report(receipt.request_id, document, result.stdout)

    @traced('notarytool.log', record_args=False, record_result=False)
    def fetch_log(self, receipt: SubmissionReceipt, report: StatusReport | None = None) -> dict[str, Any]:
        """Read the log document with ``notarytool log``.

        ``notarytool info`` never reports a log location, so ``report`` is
        not consulted.
        """
        request_id = receipt.request_id
        try:
            command = [
                self.config.xcrun_path, 'notarytool', 'log', request_id,
                *self._auth_args(self._poll_credentials(request_id)),
                '--output-format', 'json',
            ]
        except StatusQueryError as exc:
            raise LogRetrievalError(request_id, str(exc)) from exc
        try:
            result = self.runner(command, timeout=self.config.command_timeout)
        except CommandError as exc:
            raise LogRetrievalError(request_id, str(exc)) from exc

        if result.returncode != 0:
            raise LogRetrievalError(
                request_id, f'notarytool exited with status {result.returncode}: {result.stderr.strip()}'
            )
        try:
            return parse_document(result.stdout, 'json')
        except ValueError as exc:
            raise LogRetrievalError(request_id, f'unparseable log: {exc}') from exc

    # =========================================================================
    # Private Methods
    # =========================================================================
    def _auth_args(self, credentials: Credentials) -> list[str]:
        if credentials.keychain_profile:
            return ['--keychain-profile', credentials.keychain_profile]
        args = ['--apple-id', credentials.apple_id or '']
        if credentials.password_ref is not None:
            args += ['--password', credentials.password_ref.get_secret_value()]
        if credentials.team_id:
            args += ['--team-id', credentials.team_id]
        return args

    def _poll_credentials(self, request_id: str) -> Credentials:
        if self.credentials is not None:
            return self.credentials
        try:
            return self.config.credentials()
        except ValueError as exc:
            raise StatusQueryError(request_id, f'no credentials configured: {exc}') from exc

    def _parse_report(self, request_id: str, document: dict[str, Any], output: str) -> StatusReport:
        raw_status = document.get('status')
        if not isinstance(raw_status, str) or not raw_status:
            raise StatusQueryError(request_id, 'response has no status field', output=output)

        status = normalize_status(
            raw_status,
            success=NOTARYTOOL_SUCCESS_STATUSES,
            failure=NOTARYTOOL_FAILURE_STATUSES,
            pending=NOTARYTOOL_PENDING_STATUSES,
        )
        log_url = document.get('logFileURL') or document.get('developerLogUrl')
        logfire.debug('notarytool_status', request_id=request_id, raw_status=raw_status)
        return StatusReport(status=status, raw_status=raw_status, log_url=log_url, message=document.get('message'))
