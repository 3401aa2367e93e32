"""
HTTP transport - "send GET, receive status + body".

The dispatcher only depends on ``Transport``; ``AiohttpTransport`` is the
default implementation and owns its client session lazily.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import aiohttp

from prtg_adapters.exceptions import TransportError
from prtg_adapters.logging_utils import mask_url


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Raw HTTP response."""
    status: int
    status_text: str
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(ABC):
    """Capability to send a GET request."""

    @abstractmethod
    async def send_get(self, url: str) -> TransportResponse:
        """
        Send a GET request.

        Raises:
            TransportError: If the request could not be completed
        """
        pass

    async def close(self) -> None:
        """Close resources."""


class AiohttpTransport(Transport):
    """aiohttp-backed transport."""

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = "prtg-adapters/1.0",
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._timeout = timeout
        self._user_agent = user_agent
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers={"User-Agent": self._user_agent},
            )
            self._owns_session = True
        return self._session

    async def send_get(self, url: str) -> TransportResponse:
        session = await self._get_session()

        start_time = time.time()
        try:
            async with session.get(url) as response:
                body = await response.text()
                latency_ms = (time.time() - start_time) * 1000
                logger.debug(
                    f"[transport] GET {mask_url(url)} -> {response.status} "
                    f"in {latency_ms:.1f}ms"
                )
                return TransportResponse(
                    status=response.status,
                    status_text=response.reason or "",
                    body=body,
                )
        except aiohttp.ClientError as e:
            raise TransportError(
                status_code=None,
                status_text=f"Connection error: {e}",
                request_url=mask_url(url),
                original_error=e,
            )

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
