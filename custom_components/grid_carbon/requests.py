"""
Low-level HTTP request library for Electricity Maps API communication.

The provider client only depends on the HttpClient protocol below (a single
``fetch`` operation), so tests can hand it a fake returning canned responses.
AiohttpClient is the production implementation. It does not retry: the
refresh scheduler decides when the next attempt happens.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Protocol

import aiohttp

from custom_components.grid_carbon.api.errors import TransportError
from custom_components.grid_carbon.const import REQUEST_TIMEOUT

_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class HttpResponse:
    """
    Status and body of a completed HTTP exchange.

    AiohttpClient hands over the raw bytes; decoding them is the provider
    client's job, so a body that is not valid UTF-8 ends up as invalid data
    rather than escaping as a UnicodeDecodeError.
    """

    status: int
    body: bytes | str

    @property
    def text(self) -> str:
        """Body as text for logs and error excerpts; undecodable bytes are replaced."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8", errors="replace")
        return self.body


class HttpClient(Protocol):
    async def fetch(
        self, url: str, headers: dict[str, str], params: dict[str, str] | None = None
    ) -> HttpResponse:
        """Perform a GET and return the response, or raise TransportError."""
        ...


class AiohttpClient:
    """
    HttpClient backed by aiohttp.

    Uses the supplied session when given (Home Assistant shares one per
    process); otherwise opens a short-lived session per request.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def fetch(
        self, url: str, headers: dict[str, str], params: dict[str, str] | None = None
    ) -> HttpResponse:
        try:
            if self._session is not None:
                return await self._get(self._session, url, headers, params)
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                return await self._get(session, url, headers, params)
        except (asyncio.TimeoutError, TimeoutError) as exc:
            _LOGGER.warning("Timeout on GET request to %s", url)
            raise TransportError(f"Timeout while requesting {url}") from exc
        except aiohttp.ClientError as exc:
            _LOGGER.warning("Transport error on GET request to %s: %s", url, exc)
            raise TransportError(f"Network connection error: {exc}") from exc

    async def _get(
        self,
        session: aiohttp.ClientSession,
        url: str,
        headers: dict[str, str],
        params: dict[str, str] | None,
    ) -> HttpResponse:
        async with session.get(
            url, headers=headers, params=params, timeout=self._timeout
        ) as response:
            body = await response.read()
            return HttpResponse(status=response.status, body=body)
