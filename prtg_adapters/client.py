"""
PRTG Client - facade over discovery, history and messages.

Usage:
    config = PRTGConfig(
        base_url="https://prtg.example.com",
        username="grafana",
        passhash="1234567",
    )
    async with PRTGClient(config) as client:
        target = TargetQuery(group="{DC1,DC2}", device="/web.*/",
                             channel="{Downtime}", invert_channel_filter=True)
        series = await client.query_history(target, date_from, date_to)
"""

import asyncio
import logging
from collections import Counter
from typing import Any, Optional, Union

from prtg_adapters.cache import ResponseCache
from prtg_adapters.config import PRTGConfig
from prtg_adapters.dispatcher import RequestDispatcher
from prtg_adapters.exceptions import NoDataError, TransportError
from prtg_adapters.history import HistoryService
from prtg_adapters.logging_utils import mask_url
from prtg_adapters.messages import MessageService
from prtg_adapters.models import (
    ChannelCandidate,
    HierarchyItem,
    HistoryPoint,
    MessageEvent,
    TargetQuery,
)
from prtg_adapters.resolver import MATCH_ALL, Filter, HierarchicalResolver
from prtg_adapters.transport import AiohttpTransport, Transport


logger = logging.getLogger(__name__)


class PRTGClient:
    """
    High level PRTG API client.

    Owns one dispatcher (and therefore one cache) shared by the resolver and
    the history and message services.
    """

    def __init__(
        self,
        config: PRTGConfig,
        transport: Optional[Transport] = None,
        cache: Optional[ResponseCache] = None,
    ) -> None:
        config.validate()
        self._config = config

        if transport is None:
            transport = AiohttpTransport(
                timeout=config.request_timeout_seconds,
                user_agent=config.user_agent,
            )
        if cache is None:
            cache = ResponseCache(
                ttl_minutes=config.cache_timeout_minutes,
                legacy_hash_keys=config.legacy_hash_keys,
            )

        self._dispatcher = RequestDispatcher(
            base_url=config.base_url,
            username=config.username,
            passhash=config.passhash,
            transport=transport,
            cache=cache,
        )
        self._resolver = HierarchicalResolver(self._dispatcher)
        self._history = HistoryService(self._dispatcher)
        self._messages = MessageService(self._dispatcher)

    @property
    def dispatcher(self) -> RequestDispatcher:
        return self._dispatcher

    @property
    def resolver(self) -> HierarchicalResolver:
        return self._resolver

    # ─────────────────────────────────────────────────────────────
    # Server
    # ─────────────────────────────────────────────────────────────

    async def get_version(self) -> str:
        """PRTG server version from ``status.json``."""
        status = await self._dispatcher.request("status.json")
        if not status:
            return "ERROR. No response."
        return status.get("Version")

    async def login(self) -> str:
        """
        Exchange the configured credentials for a fresh passhash.

        The returned passhash is used for every later request.
        """
        url = (
            f"{self._dispatcher.base_url}/getstatus.htm?id=0"
            f"&username={self._dispatcher.username}&passhash={self._dispatcher.passhash}"
        )
        response = await self._dispatcher.transport.send_get(url)
        if not response.ok:
            raise TransportError(
                status_code=response.status,
                status_text=response.status_text,
                method="getstatus.htm",
                request_url=mask_url(url),
            )
        passhash = response.body.strip()
        if not passhash:
            raise NoDataError(method="getstatus.htm")

        self._dispatcher.update_passhash(passhash)
        logger.info(f"[client] Logged in as {self._dispatcher.username}")
        return passhash

    # ─────────────────────────────────────────────────────────────
    # Discovery
    # ─────────────────────────────────────────────────────────────

    async def get_groups(self, group_filter: Filter = MATCH_ALL) -> list[HierarchyItem]:
        return await self._resolver.resolve_groups(group_filter)

    async def get_hosts(
        self,
        group_filter: Filter = MATCH_ALL,
        host_filter: Filter = MATCH_ALL,
    ) -> list[HierarchyItem]:
        return await self._resolver.resolve_devices(group_filter, host_filter)

    async def get_sensors(
        self,
        group_filter: Filter = MATCH_ALL,
        host_filter: Filter = MATCH_ALL,
        sensor_filter: Filter = MATCH_ALL,
    ) -> list[HierarchyItem]:
        return await self._resolver.resolve_sensors(group_filter, host_filter, sensor_filter)

    async def get_all_items(
        self,
        group_filter: Filter = MATCH_ALL,
        host_filter: Filter = MATCH_ALL,
        sensor_filter: Filter = MATCH_ALL,
    ) -> list[ChannelCandidate]:
        return await self._resolver.resolve_all_channels(group_filter, host_filter, sensor_filter)

    async def get_items(
        self,
        group_filter: Filter,
        device_filter: Filter,
        sensor_filter: Filter,
        channel_filter: Filter,
        invert_channel_filter: bool = False,
    ) -> list[ChannelCandidate]:
        return await self._resolver.resolve_channels(
            group_filter, device_filter, sensor_filter, channel_filter, invert_channel_filter
        )

    async def get_items_from_target(
        self,
        target: Union[TargetQuery, dict[str, Any]],
    ) -> list[ChannelCandidate]:
        if isinstance(target, dict):
            target = TargetQuery.from_dict(target)
        return await self._resolver.resolve_target(target)

    # ─────────────────────────────────────────────────────────────
    # History & Messages
    # ─────────────────────────────────────────────────────────────

    async def get_item_history(
        self,
        sensor_id: int,
        channel: str,
        date_from: float,
        date_to: float,
    ) -> list[HistoryPoint]:
        return await self._history.get_history(sensor_id, channel, date_from, date_to)

    async def get_messages(
        self,
        date_from: float,
        date_to: float,
        sensor_id: int,
    ) -> list[MessageEvent]:
        return await self._messages.get_messages(date_from, date_to, sensor_id)

    async def query_history(
        self,
        target: Union[TargetQuery, dict[str, Any]],
        date_from: float,
        date_to: float,
    ) -> dict[str, list[HistoryPoint]]:
        """
        History of every channel a target selects, keyed by series alias.

        Aliases are ``"<device>: <channel>"``; the sensor name is added when
        two channels would otherwise share one.
        """
        candidates = await self.get_items_from_target(target)
        histories = await asyncio.gather(*(
            self._history.get_history(c.sensor, c.channel, date_from, date_to)
            for c in candidates
        ))

        short = Counter(f"{c.device}: {c.channel}" for c in candidates)
        series: dict[str, list[HistoryPoint]] = {}
        for candidate, points in zip(candidates, histories):
            alias = f"{candidate.device}: {candidate.channel}"
            if short[alias] > 1:
                alias = f"{candidate.device}: {candidate.sensor_raw}: {candidate.channel}"
            series.setdefault(alias, []).extend(points)
        return series

    # ─────────────────────────────────────────────────────────────
    # Cache & Lifecycle
    # ─────────────────────────────────────────────────────────────

    def clear_cache(self) -> None:
        self._dispatcher.cache.clear()

    def get_cache_stats(self) -> dict[str, Any]:
        return self._dispatcher.cache.get_stats()

    async def close(self) -> None:
        """Close resources."""
        await self._dispatcher.close()

    async def __aenter__(self) -> "PRTGClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(url={self._config.base_url}, user={self._config.username})>"
