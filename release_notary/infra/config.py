"""Configuration management for release-notary.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Standard library (alphabetical)
from typing import Any

# Local imports (core first, then alphabetical)
from ..core.settings import NotarySettings

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = ("NotarySettings", "load_settings")


# =============================================================================
# Section 12: Functions
# =============================================================================
def load_settings(**overrides: Any) -> NotarySettings:
    """Load settings from the environment, applying explicit overrides.

    Overrides whose value is ``None`` are ignored so command-line options
    that were not given fall back to the environment.
    """
    return NotarySettings(**{key: value for key, value in overrides.items() if value is not None})
