"""Runtime settings for release-notary.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Standard library (alphabetical)
from typing import Final

# Third-party (alphabetical)
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Local imports (core first, then alphabetical)
from .constants import (
    DEFAULT_COMMAND_TIMEOUT_SECONDS,
    DEFAULT_LOG_TIMEOUT_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_XCRUN,
)
from .models import Credentials
from .types import BackendName

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = ("NotarySettings", "SCHEMA_VERSION")

# =============================================================================
# Section 3: Constants
# =============================================================================
SCHEMA_VERSION: Final[str] = "1.0.0"


# =============================================================================
# Section 11: Classes
# =============================================================================
class NotarySettings(BaseSettings):
    """Settings for notarization.

    Environment variables are prefixed with NOTARY_.
    """

    model_config = SettingsConfigDict(
        env_prefix="NOTARY_",
        env_file=".env",
        extra="ignore",
        validate_default=True,
    )

    backend: BackendName = Field(default="notarytool", description="Command-line client to drive")
    poll_interval: float = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS, ge=0.0, description="Seconds to sleep between status polls"
    )
    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1, description="Status polls before giving up")
    keychain_profile: str | None = Field(default=None, description="notarytool keychain profile name")
    apple_id: str | None = Field(default=None, description="Developer account Apple ID")
    password_ref: SecretStr | None = Field(default=None, description="App-specific password or @keychain: reference")
    team_id: str | None = Field(default=None, description="Developer team / ASC provider")
    staple: bool = Field(default=True, description="Staple the ticket after a successful notarization")
    xcrun_path: str = Field(default=DEFAULT_XCRUN, description="Path to xcrun")
    command_timeout: float = Field(
        default=DEFAULT_COMMAND_TIMEOUT_SECONDS, gt=0.0, description="Timeout for one external command (seconds)"
    )
    log_timeout: float = Field(
        default=DEFAULT_LOG_TIMEOUT_SECONDS, gt=0.0, description="HTTP timeout for log downloads (seconds)"
    )

    def credentials(self) -> Credentials:
        """Build a credentials reference from the configured values.

        Raises:
            ValueError: If neither a keychain profile nor an Apple ID with a
                password reference is configured.
        """
        return Credentials(
            keychain_profile=self.keychain_profile,
            apple_id=self.apple_id,
            password_ref=self.password_ref,
            team_id=self.team_id,
        )
