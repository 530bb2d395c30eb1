"""release-notary package initialization.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Local imports (core first, then alphabetical)
from ._version import __version__
from .adapters import AltoolBackend, NotarytoolBackend, create_backend, fetch_log
from .core.exceptions import (
    CancelledError,
    NotarizationFailedError,
    NotarizationTimeoutError,
    ReleaseNotaryError,
    SubmissionError,
)
from .core.models import Credentials, NotarizationStatus, StatusReport, SubmissionReceipt, SubmissionRequest
from .core.settings import NotarySettings
from .services import CancelToken, NotarizationWaiter

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = (
    "__version__",
    "NotarizationWaiter",
    "CancelToken",
    "NotarytoolBackend",
    "AltoolBackend",
    "create_backend",
    "fetch_log",
    "NotarySettings",
    "Credentials",
    "SubmissionRequest",
    "SubmissionReceipt",
    "StatusReport",
    "NotarizationStatus",
    "ReleaseNotaryError",
    "SubmissionError",
    "NotarizationFailedError",
    "NotarizationTimeoutError",
    "CancelledError",
)
