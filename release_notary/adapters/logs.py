"""Notarization log download over HTTP.

Used by backends whose status report carries a log URL.
"""
from __future__ import annotations

from typing import Any

import httpx
import logfire

from ..core.constants import DEFAULT_LOG_TIMEOUT_SECONDS
from ..core.exceptions import LogRetrievalError
from ..core.models import StatusReport

__all__ = ['fetch_log']


def fetch_log(
    report: StatusReport,
    *,
    client: httpx.Client | None = None,
    timeout: float = DEFAULT_LOG_TIMEOUT_SECONDS,
) -> dict[str, Any] | str:
    """Download the log document referenced by ``report``.

    Returns the decoded JSON log when the service sends JSON, else the raw
    text.

    Raises:
        LogRetrievalError: If the report has no HTTP(S) log URL or the
            download fails.
    """
    url = report.log_url
    if not url or not url.startswith(('https://', 'http://')):
        raise LogRetrievalError(url or '<none>', 'report carries no downloadable log URL')

    with logfire.span('notary.fetch_log', url=url):
        owns_client = client is None
        http = client or httpx.Client(timeout=timeout, follow_redirects=True)
        try:
            response = http.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise LogRetrievalError(url, str(exc)) from exc
        finally:
            if owns_client:
                http.close()

        if 'json' in response.headers.get('content-type', ''):
            try:
                return response.json()
            except ValueError:
                logfire.warning('notary_log_not_json', url=url)
        return response.text
