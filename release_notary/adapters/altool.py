"""altool backend.

Drives the legacy ``xcrun altool --notarize-app`` / ``--notarization-info``
flow, which answers with XML property lists.

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
    ALTOOL_FAILURE_STATUSES,
    ALTOOL_PENDING_STATUSES,
    ALTOOL_SUCCESS_STATUSES,
)
from ..core.exceptions import CommandError, StatusQueryError, SubmissionError
from ..core.models import Credentials, StatusReport, SubmissionReceipt, SubmissionRequest
from ..core.protocols import CommandRunner, NotaryBackend
from ..infra.instrumentation import Metrics, traced
from . import logs
from .documents import normalize_status, parse_document
from .runner import run_command

if TYPE_CHECKING:
    from ..core.settings import NotarySettings

__all__ = ('AltoolBackend',)


@dataclass
class AltoolBackend(NotaryBackend):
    """Notary backend for ``xcrun altool``.

    altool authenticates with an Apple ID and a password reference such as
    ``@keychain:AC_PASSWORD``; keychain profiles are not supported.
    """

    config: NotarySettings
    credentials: Credentials | None = None
    runner: CommandRunner = field(default=run_command, repr=False)

    @property
    def name(self) -> str:
        """Return the backend identifier."""
        return 'altool'

    @traced('altool.notarize_app', record_result=False)
    def submit(self, request: SubmissionRequest) -> SubmissionReceipt:
        """Upload the artifact with ``altool --notarize-app``."""
        artifact = str(request.artifact_path)
        try:
            auth = self._auth_args(request.credentials)
        except ValueError as exc:
            raise SubmissionError(artifact, str(exc)) from exc

        command = [
            self.config.xcrun_path, 'altool', '--notarize-app',
            '--primary-bundle-id', request.bundle_id,
            '--file', artifact,
            *auth,
            '--output-format', 'xml',
        ]
        try:
            result = self.runner(command, timeout=self.config.command_timeout)
        except CommandError as exc:
            raise SubmissionError(artifact, str(exc)) from exc

        if result.returncode != 0:
            raise SubmissionError(
                artifact,
                f'altool exited with status {result.returncode}: {_product_errors(result.stdout) or result.stderr.strip()}',
                output=result.stdout,
            )
        try:
            document = parse_document(result.stdout, 'plist')
        except ValueError as exc:
            raise SubmissionError(artifact, f'unparseable receipt: {exc}', output=result.stdout) from exc

        upload = document.get('notarization-upload')
        request_id = upload.get('RequestUUID') if isinstance(upload, dict) else None
        if not isinstance(request_id, str) or not request_id:
            raise SubmissionError(artifact, 'receipt has no RequestUUID', output=result.stdout)

        Metrics.record_submission(self.name, artifact, request_id)
        return SubmissionReceipt(request_id=request_id, message=document.get('success-message'))

    @traced('altool.notarization_info', record_args=False)
    def query_status(self, receipt: SubmissionReceipt) -> StatusReport:
        """Fetch the status with ``altool --notarization-info``."""
        try:
            auth = self._auth_args(self._poll_credentials())
        except ValueError as exc:
            raise StatusQueryError(receipt.request_id, str(exc)) from exc

        command = [
            self.config.xcrun_path, 'altool', '--notarization-info', receipt.request_id,
            *auth,
            '--output-format', 'xml',
        ]
        try:
            result = self.runner(command, timeout=self.config.command_timeout)
        except CommandError as exc:
            raise StatusQueryError(receipt.request_id, str(exc)) from exc

        if result.returncode != 0:
            raise StatusQueryError(
                receipt.request_id,
                f'altool exited with status {result.returncode}: {_product_errors(result.stdout) or result.stderr.strip()}',
                output=result.stdout,
            )
        try:
            document = parse_document(result.stdout, 'plist')
        except ValueError as exc:
            raise StatusQueryError(receipt.request_id, str(exc), output=result.stdout) from exc

        return self._parse_report(receipt.request_id, document, result.stdout)

    def fetch_log(self, receipt: SubmissionReceipt, report: StatusReport | None = None) -> dict[str, Any] | str:
        """Download the log referenced by ``LogFileURL``.

        Queries the status first when ``report`` has no log location.
        """
        if report is None or not report.log_url:
            report = self.query_status(receipt)
        return logs.fetch_log(report, timeout=self.config.log_timeout)

    # =========================================================================
    # Private Methods
    # =========================================================================
    def _auth_args(self, credentials: Credentials) -> list[str]:
        if not credentials.apple_id or credentials.password_ref is None:
            raise ValueError('altool requires apple_id and password_ref')
        args = ['-u', credentials.apple_id, '-p', credentials.password_ref.get_secret_value()]
        if credentials.team_id:
            args += ['--asc-provider', credentials.team_id]
        return args

    def _poll_credentials(self) -> Credentials:
        if self.credentials is not None:
            return self.credentials
        return self.config.credentials()

    def _parse_report(self, request_id: str, document: dict[str, Any], output: str) -> StatusReport:
        info = document.get('notarization-info')
        if not isinstance(info, dict):
            raise StatusQueryError(request_id, 'response has no notarization-info', output=output)

        raw_status = info.get('Status')
        if not isinstance(raw_status, str) or not raw_status:
            raise StatusQueryError(request_id, 'response has no Status field', output=output)

        status = normalize_status(
            raw_status,
            success=ALTOOL_SUCCESS_STATUSES,
            failure=ALTOOL_FAILURE_STATUSES,
            pending=ALTOOL_PENDING_STATUSES,
        )
        logfire.debug('altool_status', request_id=request_id, raw_status=raw_status)
        return StatusReport(
            status=status,
            raw_status=raw_status,
            log_url=info.get('LogFileURL'),
            message=info.get('Status Message'),
        )


def _product_errors(output: str) -> str:
    """Join the ``product-errors`` messages of a failed altool run, if any."""
    try:
        document = parse_document(output, 'plist')
    except ValueError:
        return ''
    errors = document.get('product-errors') or []
    return '; '.join(str(e.get('message', e)) for e in errors if isinstance(e, dict))
