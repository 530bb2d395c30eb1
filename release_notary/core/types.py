"""Type aliases for release-notary.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Standard library (alphabetical)
from collections.abc import Sequence
from typing import Literal

# Third-party (alphabetical)
from typing_extensions import TypeAliasType

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = (
    "Command",
    "ResponseFormat",
    "BackendName",
    "ErrorCategory",
    "RecoveryStrategy",
)

# =============================================================================
# Section 3: Type Aliases
# =============================================================================
Command = TypeAliasType("Command", Sequence[str])

ResponseFormat = TypeAliasType("ResponseFormat", Literal["json", "plist"])
BackendName = TypeAliasType("BackendName", Literal["notarytool", "altool"])
ErrorCategory = TypeAliasType(
    "ErrorCategory",
    Literal["transient", "recoverable", "fatal"],
)
RecoveryStrategy = TypeAliasType(
    "RecoveryStrategy",
    Literal["retry", "abort"],
)
