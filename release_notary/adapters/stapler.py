"""Ticket stapling with ``xcrun stapler``."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import logfire

from ..core.exceptions import CommandError, StaplingError
from ..core.protocols import CommandRunner
from .runner import run_command

if TYPE_CHECKING:
    from ..core.settings import NotarySettings

__all__ = ['Stapler']


@dataclass
class Stapler:
    """Attach notarization tickets to artifacts."""

    config: NotarySettings
    runner: CommandRunner = field(default=run_command, repr=False)

    def staple(self, path: Path) -> None:
        """Staple the ticket for ``path``.

        Raises:
            StaplingError: If stapler cannot be run or exits non-zero.
        """
        with logfire.span('notary.staple', path=str(path)):
            try:
                result = self.runner(
                    [self.config.xcrun_path, 'stapler', 'staple', str(path)],
                    timeout=self.config.command_timeout,
                )
            except CommandError as exc:
                raise StaplingError(str(path), str(exc)) from exc
            if result.returncode != 0:
                raise StaplingError(str(path), result.stderr.strip() or f'exit status {result.returncode}')
