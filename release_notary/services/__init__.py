"""Application services."""
from __future__ import annotations

from .notarization import CancelToken, NotarizationWaiter

__all__ = [
    'CancelToken',
    'NotarizationWaiter',
]
