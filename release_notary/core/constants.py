"""Module-level constants for release-notary.

All constants are declared with Final type annotation for immutability
and IDE support.
"""
from __future__ import annotations

from typing import Final

# =============================================================================
# Section 1: Module Exports
# =============================================================================
__all__ = [
    # Polling
    'DEFAULT_POLL_INTERVAL_SECONDS',
    'DEFAULT_MAX_ATTEMPTS',
    # Process limits
    'DEFAULT_COMMAND_TIMEOUT_SECONDS',
    'DEFAULT_LOG_TIMEOUT_SECONDS',
    # Tools
    'DEFAULT_XCRUN',
    # Raw service statuses
    'NOTARYTOOL_SUCCESS_STATUSES',
    'NOTARYTOOL_FAILURE_STATUSES',
    'NOTARYTOOL_PENDING_STATUSES',
    'ALTOOL_SUCCESS_STATUSES',
    'ALTOOL_FAILURE_STATUSES',
    'ALTOOL_PENDING_STATUSES',
    # Exit codes
    'EXIT_OK',
    'EXIT_NOTARIZATION_FAILED',
    'EXIT_USAGE',
    'EXIT_TOOL_ERROR',
    'EXIT_TIMEOUT',
    'EXIT_CANCELLED',
]

# =============================================================================
# Section 2: Polling Constants
# =============================================================================
DEFAULT_POLL_INTERVAL_SECONDS: Final[float] = 30.0
DEFAULT_MAX_ATTEMPTS: Final[int] = 120  # one hour at the default interval

# =============================================================================
# Section 3: Process Constants (seconds)
# =============================================================================
DEFAULT_COMMAND_TIMEOUT_SECONDS: Final[float] = 600.0
DEFAULT_LOG_TIMEOUT_SECONDS: Final[float] = 30.0
DEFAULT_XCRUN: Final[str] = 'xcrun'

# =============================================================================
# Section 4: Service Status Values (compared case-insensitively)
# =============================================================================
NOTARYTOOL_SUCCESS_STATUSES: Final[frozenset[str]] = frozenset({'accepted'})
NOTARYTOOL_FAILURE_STATUSES: Final[frozenset[str]] = frozenset({'invalid', 'rejected'})
NOTARYTOOL_PENDING_STATUSES: Final[frozenset[str]] = frozenset({'in progress'})

ALTOOL_SUCCESS_STATUSES: Final[frozenset[str]] = frozenset({'success'})
ALTOOL_FAILURE_STATUSES: Final[frozenset[str]] = frozenset({'invalid'})
ALTOOL_PENDING_STATUSES: Final[frozenset[str]] = frozenset({'in progress'})

# =============================================================================
# Section 5: Exit Codes
# =============================================================================
EXIT_OK: Final[int] = 0
EXIT_NOTARIZATION_FAILED: Final[int] = 1
EXIT_USAGE: Final[int] = 2
EXIT_TOOL_ERROR: Final[int] = 3
EXIT_TIMEOUT: Final[int] = 4
EXIT_CANCELLED: Final[int] = 130
