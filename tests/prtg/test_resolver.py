"""
Hierarchical Resolver Tests.

============================================================
PURPOSE
============================================================
Cascading group -> device -> sensor -> channel resolution
against a stub transport serving fixed fixture payloads.

============================================================
"""

import pytest

from prtg_adapters.exceptions import TransportError
from prtg_adapters.models import ChannelCandidate, FilterSpec, TargetQuery
from prtg_adapters.resolver import HierarchicalResolver
from prtg_adapters.transport import TransportResponse


@pytest.fixture
def resolver(dispatcher, hierarchy):
    return HierarchicalResolver(dispatcher)


# ============================================================
# STAGE TESTS
# ============================================================

class TestStages:
    """Tests for the individual resolution stages."""

    @pytest.mark.asyncio
    async def test_resolve_groups(self, resolver):
        groups = await resolver.resolve_groups("{DC1,DC2}")

        assert [g.group for g in groups] == ["DC1", "DC2"]
        assert groups[0].objid == 1
        assert groups[0].raw["probe"] == "Local Probe"

    @pytest.mark.asyncio
    async def test_device_query_constrained_by_groups(self, resolver, transport):
        devices = await resolver.resolve_devices("{DC1,DC2}", "/web.*/")

        assert [d.device for d in devices] == ["web01", "web02"]
        [url] = transport.calls_matching("content=devices")
        assert url.endswith("&filter_group=DC1&filter_group=DC2")

    @pytest.mark.asyncio
    async def test_sensor_query_constrained_by_devices(self, resolver, transport):
        sensors = await resolver.resolve_sensors("{DC1,DC2}", "/web.*/", "/.*/")

        assert [s.objid for s in sensors] == [101, 102]
        [url] = transport.calls_matching("content=sensors")
        assert url.endswith("&filter_device=web01&filter_device=web02")

    @pytest.mark.asyncio
    async def test_one_request_per_stage(self, resolver, transport):
        await resolver.resolve_sensors("/.*/", "/.*/", "/.*/")

        assert len(transport.calls) == 3

    @pytest.mark.asyncio
    async def test_no_groups_skips_device_query(self, resolver, transport):
        devices = await resolver.resolve_devices("{Nowhere}", "/.*/")

        assert devices == []
        assert transport.calls_matching("content=devices") == []

    @pytest.mark.asyncio
    async def test_constraint_values_quoted(self, dispatcher, transport):
        transport.add("content=groups", {"groups": [{"group": "Branch A&B"}]})
        transport.add("content=devices", {"devices": []})
        resolver = HierarchicalResolver(dispatcher)

        await resolver.resolve_devices("/.*/", "/.*/")

        [url] = transport.calls_matching("content=devices")
        assert url.endswith("&filter_group=Branch%20A%26B")

    @pytest.mark.asyncio
    async def test_accepts_filter_specs(self, resolver):
        groups = await resolver.resolve_groups(FilterSpec.parse("Lab"))

        assert [g.group for g in groups] == ["Lab"]


# ============================================================
# CHANNEL TESTS
# ============================================================

class TestChannels:
    """Tests for channel enumeration and filtering."""

    @pytest.mark.asyncio
    async def test_channels_annotated_with_context(self, resolver):
        channels = await resolver.resolve_all_channels("{DC1}", "/web.*/", "/.*/")

        assert channels == [
            ChannelCandidate(101, "Ping", "web01", "DC1", "Ping Time", "Ping Time"),
            ChannelCandidate(101, "Ping", "web01", "DC1", "Downtime", "Downtime"),
        ]

    @pytest.mark.asyncio
    async def test_group_constraint_narrows_cascade(self, resolver, transport):
        channels = await resolver.resolve_all_channels("{DC1}", "/.*/", "/.*/")

        assert {c.group for c in channels} == {"DC1"}
        assert "web02" not in {c.device for c in channels}
        assert transport.calls_matching("id=102") == []

    @pytest.mark.asyncio
    async def test_cached_channel_rows_not_mutated(self, resolver, dispatcher):
        await resolver.resolve_all_channels("{DC1}", "/web.*/", "/.*/")

        rows = await dispatcher.request("table.json", "content=channels&columns=sensor,name&id=101")
        assert rows[0] == {"sensor": "Ping", "name": "Ping Time"}

    @pytest.mark.asyncio
    async def test_end_to_end_inverted_channel_filter(self, resolver, transport):
        channels = await resolver.resolve_channels(
            "{DC1,DC2}", "/web.*/", "/.*/", "{Downtime}", invert_channel_filter=True
        )

        assert [(c.sensor, c.device, c.channel) for c in channels] == [
            (101, "web01", "Ping Time"),
            (102, "web02", "Loading time"),
        ]
        assert len(transport.calls_matching("content=channels")) == 2

    @pytest.mark.asyncio
    async def test_resolve_target(self, resolver):
        target = TargetQuery.from_dict({
            "group": {"name": "{DC1,DC2}"},
            "device": {"name": "/web.*/"},
            "sensor": {"name": "/.*/"},
            "channel": {"name": "{Downtime}"},
        })

        channels = await resolver.resolve_target(target)

        assert [c.channel for c in channels] == ["Downtime", "Downtime"]

    @pytest.mark.asyncio
    async def test_repeat_resolution_served_from_cache(self, resolver, transport):
        await resolver.resolve_channels("/.*/", "/.*/", "/.*/", "/.*/")
        count = len(transport.calls)
        await resolver.resolve_channels("/.*/", "/.*/", "/.*/", "/.*/")

        assert len(transport.calls) == count

    @pytest.mark.asyncio
    async def test_channel_failure_aborts_resolution(self, dispatcher, hierarchy):
        hierarchy.routes.insert(0, ("id=102", TransportResponse(500, "Server Error", "")))
        resolver = HierarchicalResolver(dispatcher)

        with pytest.raises(TransportError):
            await resolver.resolve_channels("/.*/", "/.*/", "/.*/", "/.*/")
