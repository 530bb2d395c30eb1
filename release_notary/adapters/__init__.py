"""Notarization backend implementations."""
from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.protocols import CommandRunner, NotaryBackend
from .altool import AltoolBackend
from .logs import fetch_log
from .notarytool import NotarytoolBackend
from .runner import run_command
from .stapler import Stapler

if TYPE_CHECKING:
    from ..core.models import Credentials
    from ..core.settings import NotarySettings

__all__ = [
    'NotaryBackend',
    'NotarytoolBackend',
    'AltoolBackend',
    'Stapler',
    'create_backend',
    'fetch_log',
    'run_command',
]


def create_backend(
    config: NotarySettings,
    *,
    credentials: Credentials | None = None,
    runner: CommandRunner = run_command,
) -> NotaryBackend:
    """Build the backend selected by ``config.backend``."""
    if config.backend == 'altool':
        return AltoolBackend(config, credentials=credentials, runner=runner)
    return NotarytoolBackend(config, credentials=credentials, runner=runner)
