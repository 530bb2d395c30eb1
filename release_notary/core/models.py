"""Core domain models for release-notary.

These models represent one notarization attempt: the request that is
uploaded, the receipt the service hands back, and the status reports
observed while polling.

All models are immutable (frozen=True) to prevent accidental mutation.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    computed_field,
    model_validator,
)

__all__ = [
    # Enums
    'NotarizationStatus',
    # Request models
    'Credentials',
    'SubmissionRequest',
    # Service models
    'SubmissionReceipt',
    'StatusReport',
]


# =============================================================================
# Enumerations
# =============================================================================
class NotarizationStatus(str, Enum):
    """Normalized notarization status."""

    IN_PROGRESS = 'in-progress'
    SUCCESS = 'success'
    FAILURE = 'failure'

    @property
    def is_terminal(self) -> bool:
        return self is not NotarizationStatus.IN_PROGRESS


# =============================================================================
# Request Models
# =============================================================================
class Credentials(BaseModel):
    """Reference to notarization account credentials.

    Either a stored keychain profile (notarytool) or an Apple ID with a
    password reference such as ``@keychain:AC_PASSWORD``. Only references
    are held here, never the secret itself when it can be avoided.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    keychain_profile: str | None = Field(default=None, description='notarytool keychain profile name')
    apple_id: str | None = Field(default=None, description='Developer account Apple ID')
    password_ref: SecretStr | None = Field(default=None, description='App-specific password or @keychain: reference')
    team_id: str | None = Field(default=None, description='Developer team / ASC provider')

    @model_validator(mode='after')
    def validate_reference(self) -> Credentials:
        """Require a profile, or an Apple ID with a password reference."""
        if self.keychain_profile:
            return self
        if self.apple_id and self.password_ref is not None:
            return self
        raise ValueError('credentials need keychain_profile, or apple_id with password_ref')


class SubmissionRequest(BaseModel):
    """One artifact to notarize. Created once per release invocation."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    artifact_path: Path = Field(..., description='Archive, disk image or package to upload')
    bundle_id: str = Field(
        ...,
        min_length=1,
        pattern=r'^[A-Za-z0-9.-]+$',
        description='Primary bundle identifier of the application',
    )
    credentials: Credentials


# =============================================================================
# Service Models
# =============================================================================
class SubmissionReceipt(BaseModel):
    """Service-assigned identifier for an uploaded artifact."""

    model_config = ConfigDict(frozen=True)

    request_id: str = Field(..., min_length=1, description='Opaque request identifier')
    submitted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    message: str | None = Field(default=None, description='Upload message from the service')


class StatusReport(BaseModel):
    """Latest status observed for a receipt."""

    model_config = ConfigDict(frozen=True)

    status: NotarizationStatus
    raw_status: str = Field(..., description='Status string exactly as reported by the service')
    log_url: str | None = Field(default=None, description='Location of the notarization log')
    message: str | None = Field(default=None)

    @computed_field
    @property
    def is_terminal(self) -> bool:
        """Whether polling can stop."""
        return self.status.is_terminal
