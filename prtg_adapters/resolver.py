"""
Hierarchical resolution - groups -> devices -> sensors -> channels.

Each stage waits for the previous stage's filtered result and turns it into
the constraint of a single discovery query, so a full resolution issues one
request per level plus one channel request per resolved sensor.
"""

import asyncio
import logging
from typing import Any, Iterable, Union
from urllib.parse import quote

from prtg_adapters.dispatcher import RequestDispatcher
from prtg_adapters.filters import filter_items
from prtg_adapters.models import (
    ChannelCandidate,
    FilterSpec,
    HierarchyItem,
    TargetQuery,
)


logger = logging.getLogger(__name__)

TABLE_METHOD = "table.json"

GROUP_PARAMS = "content=groups&columns=objid,group,probe,tags,active,status,message,priority"
DEVICE_PARAMS = "content=devices&columns=objid,device,group,probe,tags,active,status,message,priority"
SENSOR_PARAMS = "content=sensors&columns=objid,sensor,device,group,probe,tags,active,status,message,priority"
CHANNEL_PARAMS = "content=channels&columns=sensor,name"

MATCH_ALL = "/.*/"

Filter = Union[FilterSpec, str]


def _as_spec(spec: Filter) -> FilterSpec:
    return spec if isinstance(spec, FilterSpec) else FilterSpec.parse(spec)


def _constraint(field: str, names: Iterable[str]) -> str:
    return "&".join(f"filter_{field}={quote(str(name), safe='')}" for name in names)


def _rows(body: Any) -> list[dict[str, Any]]:
    if isinstance(body, list):
        return [row for row in body if isinstance(row, dict)]
    return []


class ChannelEnumerator:
    """Fetches and annotates the channels of resolved sensors."""

    def __init__(self, dispatcher: RequestDispatcher) -> None:
        self._dispatcher = dispatcher

    async def fetch_channels(self, sensor: HierarchyItem) -> list[ChannelCandidate]:
        """Channels of one sensor, annotated with its context."""
        params = f"{CHANNEL_PARAMS}&id={sensor.objid}"
        channels = await self._dispatcher.request(TABLE_METHOD, params)
        return [ChannelCandidate.from_channel(channel, sensor) for channel in _rows(channels)]

    async def enumerate(self, sensors: list[HierarchyItem]) -> list[ChannelCandidate]:
        """
        Channels of all sensors, flattened in sensor order.

        Sensor fetches run concurrently; the first failure propagates and no
        partial result is returned.
        """
        per_sensor = await asyncio.gather(*(self.fetch_channels(sensor) for sensor in sensors))
        return [candidate for candidates in per_sensor for candidate in candidates]


class HierarchicalResolver:
    """
    Cascading group/device/sensor/channel resolver.

    Filters accept either ``FilterSpec`` values or filter strings:
    ``{a,b}`` literal sets, ``/regex/flags``, or a single literal.
    """

    def __init__(self, dispatcher: RequestDispatcher) -> None:
        self._dispatcher = dispatcher
        self._channels = ChannelEnumerator(dispatcher)

    @property
    def channel_enumerator(self) -> ChannelEnumerator:
        return self._channels

    async def _query(self, params: str) -> list[HierarchyItem]:
        body = await self._dispatcher.request(TABLE_METHOD, params)
        return [HierarchyItem.from_dict(row) for row in _rows(body)]

    async def resolve_groups(self, group_filter: Filter = MATCH_ALL) -> list[HierarchyItem]:
        groups = await self._query(GROUP_PARAMS)
        return filter_items(groups, _as_spec(group_filter))

    async def resolve_devices(
        self,
        group_filter: Filter = MATCH_ALL,
        device_filter: Filter = MATCH_ALL,
    ) -> list[HierarchyItem]:
        groups = await self.resolve_groups(group_filter)
        if not groups:
            logger.debug("[resolver] No groups matched, skipping device query")
            return []

        devices = await self._query(
            f"{DEVICE_PARAMS}&{_constraint('group', (g.group for g in groups))}"
        )
        return filter_items(devices, _as_spec(device_filter))

    async def resolve_sensors(
        self,
        group_filter: Filter = MATCH_ALL,
        device_filter: Filter = MATCH_ALL,
        sensor_filter: Filter = MATCH_ALL,
    ) -> list[HierarchyItem]:
        devices = await self.resolve_devices(group_filter, device_filter)
        if not devices:
            logger.debug("[resolver] No devices matched, skipping sensor query")
            return []

        sensors = await self._query(
            f"{SENSOR_PARAMS}&{_constraint('device', (d.device for d in devices))}"
        )
        return filter_items(sensors, _as_spec(sensor_filter))

    async def resolve_all_channels(
        self,
        group_filter: Filter = MATCH_ALL,
        device_filter: Filter = MATCH_ALL,
        sensor_filter: Filter = MATCH_ALL,
    ) -> list[ChannelCandidate]:
        """Every channel of every resolved sensor, unfiltered."""
        sensors = await self.resolve_sensors(group_filter, device_filter, sensor_filter)
        return await self._channels.enumerate(sensors)

    async def resolve_channels(
        self,
        group_filter: Filter = MATCH_ALL,
        device_filter: Filter = MATCH_ALL,
        sensor_filter: Filter = MATCH_ALL,
        channel_filter: Filter = MATCH_ALL,
        invert_channel_filter: bool = False,
    ) -> list[ChannelCandidate]:
        candidates = await self.resolve_all_channels(group_filter, device_filter, sensor_filter)
        channels = filter_items(candidates, _as_spec(channel_filter), invert_channel_filter)
        logger.debug(
            f"[resolver] Resolved {len(channels)} of {len(candidates)} channels"
        )
        return channels

    async def resolve_target(self, target: TargetQuery) -> list[ChannelCandidate]:
        """Resolve the channels selected by a host query target."""
        return await self.resolve_channels(
            target.group,
            target.device,
            target.sensor,
            target.channel,
            target.invert_channel_filter,
        )
