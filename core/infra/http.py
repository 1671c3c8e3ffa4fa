"""
http.py – Async HTTP client built on *aiohttp* with a fixed per-request
          timeout and per-instance default headers.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

import aiohttp

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)


class HttpClient:
    """
    Thin wrapper over *aiohttp.ClientSession* adding:

    * global & per-request headers (keeps user-agent in one place)
    * one fixed timeout for every request; expiry raises ``asyncio.TimeoutError``
    * non-2xx responses raise ``aiohttp.ClientResponseError``
    * async context-manager support

    There are no retries: a failed request fails the source until the next
    refresh.
    """

    def __init__(
        self,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_TIMEOUT,
        default_headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._external_session = session
        self._timeout = timeout
        self._own_session: Optional[aiohttp.ClientSession] = None
        self._default_headers: Dict[str, str] = dict(default_headers or {})

    # ---------------------------------------------- #
    # Async context-manager
    async def __aenter__(self) -> "HttpClient":  # noqa: D401
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        await self.close()

    # ---------------------------------------------- #
    # Session management
    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._external_session:
            return self._external_session
        if self._own_session is None or self._own_session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            self._own_session = aiohttp.ClientSession(timeout=timeout)
        return self._own_session

    async def close(self) -> None:
        if self._own_session and not self._own_session.closed:
            await self._own_session.close()
            self._own_session = None

    # ---------------------------------------------- #
    # Internal helpers
    def _merge_headers(self, extra: Mapping[str, str] | None) -> Dict[str, str]:
        merged: Dict[str, str] = {**self._default_headers}
        if extra:
            merged.update(extra)
        return merged

    async def _request(self, method: str, url: str, **kwargs) -> aiohttp.ClientResponse:
        session = await self._ensure_session()
        kwargs["headers"] = self._merge_headers(kwargs.pop("headers", None))
        kwargs.setdefault("timeout", aiohttp.ClientTimeout(total=self._timeout))

        logger.debug("HTTP %s %s", method, url)
        resp = await session.request(method, url, **kwargs)
        try:
            resp.raise_for_status()
        except aiohttp.ClientResponseError:
            resp.release()
            raise
        return resp

    # ---------------------------------------------- #
    # Public helpers
    async def get_text(self, url: str, **kwargs) -> str:
        async with await self._request("GET", url, **kwargs) as resp:
            return await resp.text(errors="replace")

    async def get_bytes(self, url: str, **kwargs) -> bytes:
        async with await self._request("GET", url, **kwargs) as resp:
            return await resp.read()

