"""
Request Dispatcher - cached, normalized access to the PRTG HTTP API.

Flow for ``request(method, params)``:
1. Compose the request identity (the full URL, credentials included)
2. Return the cached body if it is still fresh
3. Otherwise GET it through the transport
4. Decode the response shape and cache the normalized body

Failures are never cached, so a failed request is retried fresh on the next
call.
"""

import json
import logging
from typing import Any, Callable, Optional

from prtg_adapters.cache import MISSING, ResponseCache
from prtg_adapters.exceptions import (
    DataInsufficientError,
    NoDataError,
    TransportError,
)
from prtg_adapters.logging_utils import mask_url
from prtg_adapters.models import ResponseShape
from prtg_adapters.transport import Transport
from prtg_adapters.xml_transform import transform_xml


logger = logging.getLogger(__name__)

NOT_ENOUGH_DATA = "Not enough monitoring data"

# Non-JSON bodies longer than this are handed to the XML transformer
XML_MIN_LENGTH = 200

SHAPE_ORDER = tuple(ResponseShape)


def _is_present(value: Any) -> bool:
    return value is not None and value != "" and value is not False


class RequestDispatcher:
    """
    Sends PRTG API requests through a response cache.

    Usage:
        dispatcher = RequestDispatcher(
            base_url="https://prtg.example.com/api",
            username="grafana",
            passhash="1234567",
            transport=AiohttpTransport(),
            cache=ResponseCache(ttl_minutes=5),
        )
        groups = await dispatcher.request(
            "table.json", "content=groups&columns=objid,group"
        )
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        passhash: str,
        transport: Transport,
        cache: Optional[ResponseCache] = None,
        xml_transformer: Callable[[str, str], Any] = transform_xml,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._username = username
        self._passhash = passhash
        self._transport = transport
        self._cache = cache if cache is not None else ResponseCache()
        self._xml_transformer = xml_transformer

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def username(self) -> str:
        return self._username

    @property
    def passhash(self) -> str:
        return self._passhash

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def transport(self) -> Transport:
        return self._transport

    def update_passhash(self, passhash: str) -> None:
        """Use a new passhash for subsequent requests."""
        self._passhash = passhash

    def build_url(self, method: str, params: str = "") -> str:
        """Compose the full request URL, which is also the request identity."""
        query_string = f"username={self._username}&passhash={self._passhash}&{params}"
        return f"{self._base_url}/{method}?{query_string}"

    async def request(self, method: str, params: str = "") -> Any:
        """
        Perform a (possibly cached) API request.

        Args:
            method: API method, e.g. ``table.json``
            params: Query string parameters, without credentials

        Returns:
            Normalized response body

        Raises:
            TransportError: Non-2xx response or connection failure
            NoDataError: Empty response body
            DataInsufficientError: PRTG reported not enough monitoring data
        """
        url = self.build_url(method, params)
        key = self._cache.key_for(url)

        cached = self._cache.lookup(key, MISSING)
        if cached is not MISSING:
            logger.debug(f"[dispatcher] Cache hit for {mask_url(url)}")
            return cached

        logger.debug(f"[dispatcher] Cache miss for {mask_url(url)}")
        response = await self._transport.send_get(url)

        if not response.ok:
            error = TransportError(
                status_code=response.status,
                status_text=response.status_text,
                method=method,
                request_url=mask_url(url),
            )
            logger.warning(f"[dispatcher] {error}")
            raise error

        body = self.normalize(method, params, response.body)
        return self._cache.store(key, body)

    def normalize(self, method: str, params: str, body: Optional[str]) -> Any:
        """
        Decode a raw response body.

        Known JSON shapes are tried in ``SHAPE_ORDER``; the first present
        field wins. Status responses (``Version``) are returned whole.
        """
        if not body:
            raise NoDataError(method=method, context={"params": params})

        try:
            data = json.loads(body)
        except ValueError:
            data = None

        if isinstance(data, dict):
            for shape in SHAPE_ORDER:
                value = data.get(shape.value)
                if not _is_present(value):
                    continue
                if shape is ResponseShape.VERSION:
                    return data
                return value

        if body == NOT_ENOUGH_DATA:
            raise DataInsufficientError(params=params, method=method)

        if data is None and len(body) > XML_MIN_LENGTH:
            return self._xml_transformer(method, body)

        logger.warning(f"[dispatcher] Short response from {method}: {body[:XML_MIN_LENGTH]!r}")
        return {}

    async def close(self) -> None:
        """Close resources."""
        await self._transport.close()
