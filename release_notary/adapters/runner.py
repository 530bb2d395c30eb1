"""External process execution.

(c) Mike Casale 2025.
Licensed under the MIT License.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
import subprocess
from typing import TYPE_CHECKING

# Local imports (core first, then alphabetical)
from ..core.exceptions import CommandError
from ..infra.instrumentation import get_logger

if TYPE_CHECKING:
    from ..core.types import Command

__all__ = ("run_command", "redact")

logger = get_logger("adapters.runner")

_SECRET_FLAGS = frozenset({"-p", "--password"})


def run_command(command: Command, *, timeout: float | None = None) -> subprocess.CompletedProcess[str]:
    """Run ``command`` without a shell and capture its text output.

    A non-zero exit status is returned to the caller, which decides what
    it means. Failing to start the process or exceeding ``timeout`` raises.

    Raises:
        CommandError: If the executable is missing or the command times out.
    """
    argv = [str(part) for part in command]
    logger.debug("$ {command}", command=" ".join(redact(argv)))
    try:
        return subprocess.run(argv, capture_output=True, text=True, check=False, timeout=timeout)
    except FileNotFoundError as exc:
        raise CommandError(argv[0], "executable not found") from exc
    except subprocess.TimeoutExpired as exc:
        raise CommandError(argv[0], f"timed out after {timeout}s") from exc


def redact(argv: list[str]) -> list[str]:
    """Mask values that follow password flags."""
    masked: list[str] = []
    hide_next = False
    for part in argv:
        masked.append("********" if hide_next else part)
        hide_next = part in _SECRET_FLAGS
    return masked
