"""Shared test fixtures and helpers for release-notary tests.

(c) Mike Casale 2025.
Licensed under the MIT License.
"""

from __future__ import annotations as _annotations

import os
import plistlib
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import logfire
import pytest

from release_notary.core.models import (
    Credentials,
    NotarizationStatus,
    StatusReport,
    SubmissionReceipt,
    SubmissionRequest,
)
from release_notary.core.settings import NotarySettings

# Re-export dirty_equals for convenience
if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime

    T = TypeVar("T")

    def IsInstance(arg: type[T]) -> T: ...
    def IsDatetime(*args: Any, **kwargs: Any) -> datetime: ...
    def IsNow(*args: Any, **kwargs: Any) -> datetime: ...
    def IsStr(*args: Any, **kwargs: Any) -> str: ...
else:
    from dirty_equals import IsDatetime, IsInstance, IsStr
    from dirty_equals import IsNow as _IsNow

    def IsNow(*args: Any, **kwargs: Any):
        """IsNow with increased delta for test stability."""
        if "delta" not in kwargs:
            kwargs["delta"] = 10
        return _IsNow(*args, **kwargs)


__all__ = (
    "IsDatetime",
    "IsNow",
    "IsStr",
    "IsInstance",
    "TestEnv",
    "FakeResult",
    "ScriptedRunner",
    "ScriptedBackend",
    "report",
    "plist_text",
)

logfire.configure(send_to_logfire=False, console=False)


class TestEnv:
    """Helper for managing environment variables in tests."""

    __test__ = False  # Prevent pytest from collecting this class

    def __init__(self) -> None:
        self.envars: dict[str, str | None] = {}

    def set(self, name: str, value: str) -> None:
        """Set an environment variable, saving the original value."""
        self.envars[name] = os.getenv(name)
        os.environ[name] = value

    def remove(self, name: str) -> None:
        """Remove an environment variable, saving the original value."""
        self.envars[name] = os.environ.pop(name, None)

    def reset(self) -> None:
        """Reset all modified environment variables to original values."""
        for name, value in self.envars.items():
            if value is None:
                os.environ.pop(name, None)
            else:
                os.environ[name] = value


@pytest.fixture
def env() -> Iterator[TestEnv]:
    """Fixture for managing environment variables in tests."""
    test_env = TestEnv()
    yield test_env
    test_env.reset()


# Command runner fakes


@dataclass
class FakeResult:
    """Stand-in for ``subprocess.CompletedProcess``."""

    returncode: int = 0
    stdout: str = ""
    stderr: str = ""


@dataclass
class ScriptedRunner:
    """Command runner that replays queued results and records commands."""

    results: list[FakeResult | Exception] = field(default_factory=list)
    commands: list[list[str]] = field(default_factory=list)

    def __call__(self, command: Iterable[str], *, timeout: float | None = None) -> FakeResult:
        self.commands.append(list(command))
        outcome = self.results.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def plist_text(data: dict[str, Any]) -> str:
    """Render ``data`` as an XML property list, as altool prints it."""
    return plistlib.dumps(data, fmt=plistlib.FMT_XML).decode("utf-8")


# Backend fakes


def report(raw_status: str, log_url: str | None = None) -> StatusReport:
    """Build a status report from an altool-style raw status."""
    status = {
        "success": NotarizationStatus.SUCCESS,
        "invalid": NotarizationStatus.FAILURE,
    }.get(raw_status, NotarizationStatus.IN_PROGRESS)
    return StatusReport(status=status, raw_status=raw_status, log_url=log_url)


@dataclass
class ScriptedBackend:
    """Backend that replays a fixed sequence of status reports."""

    reports: list[StatusReport] = field(default_factory=list)
    polled_receipts: list[str] = field(default_factory=list)
    submitted: list[SubmissionRequest] = field(default_factory=list)
    on_poll: Any = None
    log_document: dict[str, Any] | str = field(default_factory=dict)
    log_requests: list[tuple[str, StatusReport | None]] = field(default_factory=list)

    @property
    def name(self) -> str:
        return "scripted"

    def submit(self, request: SubmissionRequest) -> SubmissionReceipt:
        self.submitted.append(request)
        return SubmissionReceipt(request_id=str(uuid.uuid4()))

    def query_status(self, receipt: SubmissionReceipt) -> StatusReport:
        self.polled_receipts.append(receipt.request_id)
        if self.on_poll is not None:
            self.on_poll(len(self.polled_receipts))
        return self.reports.pop(0)

    def fetch_log(self, receipt: SubmissionReceipt, report: StatusReport | None = None) -> dict[str, Any] | str:
        self.log_requests.append((receipt.request_id, report))
        return self.log_document

    @property
    def polls(self) -> int:
        return len(self.polled_receipts)


# Domain fixtures


@pytest.fixture
def settings() -> NotarySettings:
    """Settings isolated from the environment with zero-delay polling."""
    return NotarySettings(
        _env_file=None,
        keychain_profile="release-profile",
        poll_interval=0,
        max_attempts=5,
        staple=False,
    )


@pytest.fixture
def credentials() -> Credentials:
    """Keychain-profile credentials."""
    return Credentials(keychain_profile="release-profile")


@pytest.fixture
def apple_id_credentials() -> Credentials:
    """Apple ID credentials with a keychain password reference."""
    return Credentials(apple_id="dev@example.com", password_ref="@keychain:AC_PASSWORD", team_id="TEAM123")


@pytest.fixture
def artifact(tmp_path: Path) -> Path:
    """An archive on disk to submit."""
    path = tmp_path / "MyApp-1.2.3.zip"
    path.write_bytes(b"PK\x03\x04")
    return path


@pytest.fixture
def request_for(artifact: Path, credentials: Credentials) -> SubmissionRequest:
    """Submission request for the fixture artifact."""
    return SubmissionRequest(artifact_path=artifact, bundle_id="com.example.myapp", credentials=credentials)


@pytest.fixture
def receipt() -> SubmissionReceipt:
    """A receipt with a fixed request id."""
    return SubmissionReceipt(request_id="2efe2717-52ef-43a5-96dc-0797e4ca1041")
