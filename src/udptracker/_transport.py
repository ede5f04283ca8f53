"""HTTP transport for the tracking service REST API."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp

from udptracker._constants import USER_AGENT
from udptracker.config import TrackerConfig
from udptracker.exceptions import TrackerTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, endpoint: str) -> dict[str, Any]:
        ...


class HttpTransport:
    """Plain JSON-over-HTTP transport on a shared aiohttp session."""

    def __init__(self, config: TrackerConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def get_json(self, endpoint: str) -> dict[str, Any]:
        """GET ``{api_base_url}{endpoint}`` and return the decoded JSON object.

        Raises :class:`TrackerTransportError` on network failure, a
        non-2xx status, or a body that is not a JSON object.
        """
        url = f"{self._config.api_base_url}{endpoint}"
        headers = {"accept": "application/json", "user-agent": USER_AGENT}

        _logger.debug("GET %s", url)

        try:
            async with self._http.get(url, headers=headers) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise TrackerTransportError(
                        f"HTTP {resp.status}: {resp.reason or ''}".rstrip(),
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except TrackerTransportError:
            raise
        except aiohttp.ClientError as exc:
            raise TrackerTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            body: Any = json.loads(text)
        except json.JSONDecodeError as exc:
            raise TrackerTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        if not isinstance(body, dict):
            raise TrackerTransportError(
                f"Unexpected response body from {endpoint}: expected an object",
                endpoint=endpoint,
            )

        return body
