"""HTTP transport for position requests."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

import aiohttp

from isstrack._constants import USER_AGENT
from isstrack.exceptions import NetworkFailureError

_logger = logging.getLogger(__name__)


def _preview(body: bytes) -> str:
    return body[:200].decode("utf-8", errors="replace")


class Transport(Protocol):
    """Structural transport interface used by the tracker.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def fetch_json(self, url: str) -> Any:
        ...


class HttpTransport:
    """GET-and-decode transport on top of an aiohttp session.

    Thrown errors and non-200 responses are deliberately folded into the
    same :class:`NetworkFailureError`; callers never need to tell them
    apart.
    """

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float = 10.0) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def fetch_json(self, url: str) -> Any:
        headers = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }

        _logger.debug("GET %s", url)

        try:
            async with self._http.get(url, headers=headers, timeout=self._timeout) as resp:
                body = await resp.read()
                if resp.status != 200:
                    raise NetworkFailureError(
                        f"HTTP {resp.status} from {url}: {_preview(body)}",
                        status_code=resp.status,
                        url=url,
                    )
        except NetworkFailureError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkFailureError(
                f"Request to {url} failed: {exc!r}",
                url=url,
            ) from exc

        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise NetworkFailureError(
                f"Invalid JSON from {url}: {_preview(body)}",
                url=url,
            ) from exc
