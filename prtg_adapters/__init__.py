"""
PRTG Adapters Package - Cached, filterable access to PRTG monitoring data.

Turns PRTG's object hierarchy (group -> device -> sensor -> channel) and its
history into a uniform API for dashboards.

Features:
- TTL response cache keyed by request identity
- Literal-set ({a,b}) and regex (/re/i) filters with inversion
- Cascading resolution, one discovery request per hierarchy level
- History with automatic averaging and day-count date decoding
- Sensor messages as annotations

Quick Start:
    from prtg_adapters import PRTGClient, PRTGConfig, TargetQuery

    async def downtime_free_channels():
        config = PRTGConfig(
            base_url="https://prtg.example.com",
            username="grafana",
            passhash="1234567",
        )
        async with PRTGClient(config) as client:
            return await client.get_items_from_target(TargetQuery(
                group="{DC1,DC2}",
                device="/web.*/",
                channel="{Downtime}",
                invert_channel_filter=True,
            ))
"""

from prtg_adapters.cache import ResponseCache, java_string_hash
from prtg_adapters.client import PRTGClient
from prtg_adapters.config import PRTGConfig, load_config
from prtg_adapters.dispatcher import RequestDispatcher
from prtg_adapters.exceptions import (
    ConfigurationError,
    DataInsufficientError,
    NoDataError,
    NormalizationError,
    PRTGAdapterError,
    TransportError,
)
from prtg_adapters.filters import comparison_value, filter_items
from prtg_adapters.history import (
    HistoryService,
    decode_day_count,
    format_prtg_date,
    select_averaging,
)
from prtg_adapters.messages import MessageService
from prtg_adapters.models import (
    Averaging,
    CacheEntry,
    ChannelCandidate,
    FilterSpec,
    HierarchyItem,
    HistoryPoint,
    ItemLevel,
    MessageEvent,
    ResponseShape,
    SensorStatus,
    TargetQuery,
)
from prtg_adapters.resolver import ChannelEnumerator, HierarchicalResolver
from prtg_adapters.transport import AiohttpTransport, Transport, TransportResponse
from prtg_adapters.xml_transform import transform_xml


__version__ = "1.0.0"

__all__ = [
    # Client
    "PRTGClient",
    "PRTGConfig",
    "load_config",

    # Core
    "ResponseCache",
    "java_string_hash",
    "RequestDispatcher",
    "HierarchicalResolver",
    "ChannelEnumerator",
    "HistoryService",
    "MessageService",
    "filter_items",
    "comparison_value",
    "decode_day_count",
    "format_prtg_date",
    "select_averaging",
    "transform_xml",

    # Transport
    "Transport",
    "TransportResponse",
    "AiohttpTransport",

    # Models
    "Averaging",
    "CacheEntry",
    "ChannelCandidate",
    "FilterSpec",
    "HierarchyItem",
    "HistoryPoint",
    "ItemLevel",
    "MessageEvent",
    "ResponseShape",
    "SensorStatus",
    "TargetQuery",

    # Exceptions
    "PRTGAdapterError",
    "TransportError",
    "NoDataError",
    "DataInsufficientError",
    "NormalizationError",
    "ConfigurationError",
]
