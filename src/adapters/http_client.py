"""HTTP adapter for the notification API.

Implements the core HttpPort with urllib. Requests run in a worker thread so
the blocking call never stalls the event loop driving the poller.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Mapping

from core.errors import NotificationFetchError

LOGGER = logging.getLogger(__name__)


class UrllibJsonClient:
    """Thin urllib wrapper that satisfies the HttpPort contract."""

    def __init__(self, timeout_s: float = 8.0) -> None:
        self._timeout_s = timeout_s

    async def get_json(self, url: str, params: Mapping[str, str]) -> dict[str, Any]:
        return await asyncio.to_thread(self._get_json_blocking, url, params)

    def _get_json_blocking(self, url: str, params: Mapping[str, str]) -> dict[str, Any]:
        query = urllib.parse.urlencode(dict(params))
        full_url = f"{url}?{query}" if query else url
        request = urllib.request.Request(full_url, method="GET")
        request.add_header("Content-Type", "application/json")
        LOGGER.debug("GET %s", url)
        try:
            with urllib.request.urlopen(request, timeout=self._timeout_s) as response:
                payload = response.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise NotificationFetchError(f"HTTP error {e.code}: {body}", status=e.code) from e
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise NotificationFetchError(f"Request to {url} failed: {e}") from e

        if not payload:
            return {}
        try:
            data = json.loads(payload)
        except ValueError as e:
            raise NotificationFetchError(f"Invalid JSON from {url}") from e
        if not isinstance(data, dict):
            raise NotificationFetchError(f"Unexpected JSON shape from {url}")
        return data
