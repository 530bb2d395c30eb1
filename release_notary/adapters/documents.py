"""Structured response documents returned by the notarization clients."""
from __future__ import annotations

import json
import plistlib
from typing import Any
from xml.parsers.expat import ExpatError

from ..core.models import NotarizationStatus
from ..core.types import ResponseFormat
from ..infra.instrumentation import get_logger

__all__ = ['parse_document', 'normalize_status']

logger = get_logger('adapters.documents')


def parse_document(text: str, fmt: ResponseFormat) -> dict[str, Any]:
    """Decode a JSON or XML property list document into a mapping.

    Raises:
        ValueError: If the text is empty, malformed, or not a dictionary.
    """
    if not text or not text.strip():
        raise ValueError('empty response document')
    try:
        if fmt == 'json':
            data = json.loads(text)
        else:
            data = plistlib.loads(text.strip().encode('utf-8'))
    except (ExpatError, ValueError) as exc:
        raise ValueError(f'malformed {fmt} document: {exc}') from exc

    if not isinstance(data, dict):
        raise ValueError(f'expected a {fmt} dictionary, got {type(data).__name__}')
    return data


def normalize_status(
    raw_status: str,
    *,
    success: frozenset[str],
    failure: frozenset[str],
    pending: frozenset[str],
) -> NotarizationStatus:
    """Map a service status string onto ``NotarizationStatus``.

    Unknown values are treated as still in progress.
    """
    key = raw_status.strip().lower()
    if key in success:
        return NotarizationStatus.SUCCESS
    if key in failure:
        return NotarizationStatus.FAILURE
    if key not in pending:
        logger.warning('unknown_notarization_status', raw_status=raw_status)
    return NotarizationStatus.IN_PROGRESS
