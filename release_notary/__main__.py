"""Command-line entry point for release-notary.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Standard library (alphabetical)
import argparse
import signal
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

# Third-party (alphabetical)
from pydantic import ValidationError
from rich.console import Console

# Local imports (core first, then alphabetical)
from . import __version__
from .adapters import create_backend
from .core.constants import (
    EXIT_CANCELLED,
    EXIT_NOTARIZATION_FAILED,
    EXIT_OK,
    EXIT_TIMEOUT,
    EXIT_TOOL_ERROR,
    EXIT_USAGE,
)
from .core.exceptions import (
    CancelledError,
    NotarizationFailedError,
    NotarizationTimeoutError,
    ReleaseNotaryError,
)
from .core.models import NotarizationStatus, StatusReport, SubmissionReceipt, SubmissionRequest
from .infra import configure_instrumentation, load_settings
from .services import CancelToken, NotarizationWaiter

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = ("main", "run", "build_parser", "exit_code_for")

stdout = Console()
stderr = Console(stderr=True)


# =============================================================================
# Section 12: Functions
# =============================================================================
def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="release-notary",
        description="Submit a release artifact for notarization and wait for the verdict.",
    )
    parser.add_argument("--version", action="version", version=f"release-notary {__version__}")
    parser.add_argument("--backend", choices=["notarytool", "altool"], help="Override NOTARY_BACKEND")
    parser.add_argument("--profile", dest="keychain_profile", help="notarytool keychain profile")
    parser.add_argument("--apple-id", help="Developer account Apple ID")
    parser.add_argument("--password-ref", help="App-specific password or @keychain: reference")
    parser.add_argument("--team-id", help="Developer team / ASC provider")

    commands = parser.add_subparsers(dest="command", required=True)

    notarize = commands.add_parser("notarize", help="Submit, wait and staple")
    _add_artifact_args(notarize)
    _add_wait_args(notarize)
    notarize.add_argument("--no-staple", dest="staple", action="store_false", default=None,
                          help="Do not staple the ticket after success")

    submit = commands.add_parser("submit", help="Submit only and print the request id")
    _add_artifact_args(submit)

    wait = commands.add_parser("wait", help="Wait for an already submitted request")
    wait.add_argument("request_id", help="Request identifier returned by submit")
    _add_wait_args(wait)

    log = commands.add_parser("log", help="Wait for a request, then print its log document")
    log.add_argument("request_id", help="Request identifier returned by submit")
    _add_wait_args(log)

    return parser


def _add_artifact_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("artifact", type=Path, help="Archive, disk image or package to notarize")
    parser.add_argument("--bundle-id", required=True, help="Primary bundle identifier")


def _add_wait_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--poll-interval", type=float, help="Seconds between status polls")
    parser.add_argument("--max-attempts", type=int, help="Status polls before giving up")


def exit_code_for(exc: BaseException) -> int:
    """Map an error onto the process exit status."""
    if isinstance(exc, NotarizationFailedError):
        return EXIT_NOTARIZATION_FAILED
    if isinstance(exc, NotarizationTimeoutError):
        return EXIT_TIMEOUT
    if isinstance(exc, CancelledError):
        return EXIT_CANCELLED
    if isinstance(exc, ReleaseNotaryError):
        return EXIT_TOOL_ERROR
    if isinstance(exc, (ValidationError, ValueError)):
        return EXIT_USAGE
    return EXIT_TOOL_ERROR


@contextmanager
def _cancel_on_signals(token: CancelToken) -> Iterator[None]:
    """Set ``token`` on SIGINT/SIGTERM while the block runs."""
    def handler(signum: int, frame: object) -> None:
        token.cancel()

    previous = {sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


def _report_failure(exc: BaseException) -> None:
    stderr.print(f"error: {exc}", markup=False, highlight=False, soft_wrap=True)
    report: StatusReport | None = getattr(exc, "last_report", None)
    status = getattr(exc, "status", None) or (report.raw_status if report else None)
    log_url = getattr(exc, "log_url", None) or (report.log_url if report else None)
    if status is not None:
        stderr.print(f"last status: {status}", markup=False, highlight=False, soft_wrap=True)
    if log_url is not None:
        stderr.print(f"log: {log_url}", markup=False, highlight=False, soft_wrap=True)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(
            backend=args.backend,
            keychain_profile=args.keychain_profile,
            apple_id=args.apple_id,
            password_ref=args.password_ref,
            team_id=args.team_id,
        )
        credentials = settings.credentials()
    except ValidationError as exc:
        stderr.print(f"configuration error: {exc}", markup=False, highlight=False, soft_wrap=True)
        return EXIT_USAGE

    configure_instrumentation()
    waiter = NotarizationWaiter(create_backend(settings, credentials=credentials), settings)
    token = CancelToken()

    try:
        with _cancel_on_signals(token):
            if args.command == "submit":
                request = SubmissionRequest(artifact_path=args.artifact, bundle_id=args.bundle_id, credentials=credentials)
                receipt = waiter.submit(request)
                stdout.print(receipt.request_id, markup=False, highlight=False, soft_wrap=True)
                return EXIT_OK

            if args.command == "notarize":
                request = SubmissionRequest(artifact_path=args.artifact, bundle_id=args.bundle_id, credentials=credentials)
                report = waiter.notarize(
                    request,
                    staple=args.staple,
                    poll_interval=args.poll_interval,
                    max_attempts=args.max_attempts,
                    cancel_token=token,
                )
            elif args.command == "log":
                return _print_log(waiter, args, token)
            else:
                report = waiter.await_completion(
                    SubmissionReceipt(request_id=args.request_id),
                    args.poll_interval,
                    args.max_attempts,
                    cancel_token=token,
                )

            stdout.print_json(report.model_dump_json())
            return EXIT_OK
    except (ReleaseNotaryError, ValueError) as exc:
        _report_failure(exc)
        return exit_code_for(exc)


def _print_log(waiter: NotarizationWaiter, args: argparse.Namespace, token: CancelToken) -> int:
    """Wait for a verdict, then print the log of the request, failed or not."""
    receipt = SubmissionReceipt(request_id=args.request_id)
    code = EXIT_OK
    try:
        report = waiter.await_completion(receipt, args.poll_interval, args.max_attempts, cancel_token=token)
    except NotarizationFailedError as exc:
        _report_failure(exc)
        report = StatusReport(status=NotarizationStatus.FAILURE, raw_status=exc.status, log_url=exc.log_url)
        code = EXIT_NOTARIZATION_FAILED

    document = waiter.fetch_log(receipt, report)
    if isinstance(document, str):
        stdout.print(document, markup=False, highlight=False, soft_wrap=True)
    else:
        stdout.print_json(data=document)
    return code


def run() -> None:
    """Console-script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
