"""
PRTG Data Models - Hierarchy items, history points and message events.

Everything here is created per request/response cycle and never mutated.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Optional, Union


class ItemLevel(Enum):
    """Depth of an item in the PRTG object hierarchy."""
    GROUP = "group"
    DEVICE = "device"
    SENSOR = "sensor"
    CHANNEL = "channel"
    UNKNOWN = "unknown"


class Averaging(Enum):
    """Averaging interval (seconds) requested from historicdata."""
    RAW = 0
    FIVE_MINUTES = 300
    ONE_HOUR = 3600
    ONE_DAY = 86400


class SensorStatus(IntEnum):
    """PRTG sensor status codes as returned in ``statusid``."""
    UNKNOWN = 1
    SCANNING = 2
    UP = 3
    WARNING = 4
    DOWN = 5
    NO_PROBE = 6
    PAUSED_BY_USER = 7
    PAUSED_BY_DEPENDENCY = 8
    PAUSED_BY_SCHEDULE = 9
    UNUSUAL = 10
    NOT_LICENSED = 11
    PAUSED_UNTIL = 12
    DOWN_ACKNOWLEDGED = 13
    DOWN_PARTIAL = 14


class ResponseShape(Enum):
    """Top-level response fields, in decode priority order."""
    GROUPS = "groups"
    DEVICES = "devices"
    SENSORS = "sensors"
    CHANNELS = "channels"
    VALUES = "values"
    SENSORDATA = "sensordata"
    MESSAGES = "messages"
    VERSION = "Version"


@dataclass
class CacheEntry:
    """Cached normalized response body."""
    key: Union[int, str]
    value: Any
    stored_at: float
    hits: int = 0

    def age_seconds(self, now: float) -> float:
        """Get age of cache entry in seconds."""
        return now - self.stored_at


# Matches /pattern/flags the way the host's template utilities do
REGEX_SPEC = re.compile(r"^/(.+)/([gimsuy]*)$", re.DOTALL)
SET_SPEC = re.compile(r"{[^{}]+}")

REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}


@dataclass(frozen=True)
class FilterSpec:
    """
    Parsed filter expression.

    Exactly one of ``pattern`` (regex mode) or ``literals`` (set mode) is
    meaningful. An empty literal set matches everything.
    """
    raw: str
    pattern: Optional[re.Pattern] = None
    literals: tuple[str, ...] = ()

    @property
    def is_regex(self) -> bool:
        return self.pattern is not None

    @classmethod
    def parse(cls, spec: str) -> "FilterSpec":
        """Classify a filter string as regex or literal set."""
        spec = spec or ""
        match = REGEX_SPEC.match(spec)
        if match:
            flags = 0
            for flag in match.group(2):
                flags |= REGEX_FLAGS.get(flag, 0)
            return cls(raw=spec, pattern=re.compile(match.group(1), flags))

        if not spec:
            return cls(raw=spec)
        if SET_SPEC.search(spec):
            return cls(raw=spec, literals=tuple(spec.strip("{}").split(",")))
        return cls(raw=spec, literals=(spec,))

    def matches(self, value: str) -> bool:
        """Test a comparison value, ignoring inversion."""
        if self.pattern is not None:
            return self.pattern.search(value) is not None
        if not self.literals:
            return True
        return value in self.literals


@dataclass(frozen=True)
class HierarchyItem:
    """
    A group, device or sensor row from a ``table.json`` discovery query.

    The level is decided by which identity fields are set, see ``level``.
    """
    objid: Optional[int] = None
    group: Optional[str] = None
    device: Optional[str] = None
    sensor: Optional[str] = None
    name: Optional[str] = None
    probe: Optional[str] = None
    tags: Optional[str] = None
    active: Optional[bool] = None
    active_raw: Optional[int] = None
    status: Optional[str] = None
    status_raw: Optional[int] = None
    message: Optional[str] = None
    message_raw: Optional[str] = None
    priority: Optional[Any] = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def level(self) -> ItemLevel:
        if self.group and not self.device:
            return ItemLevel.GROUP
        if self.device and not self.sensor:
            return ItemLevel.DEVICE
        if self.sensor and not self.name:
            return ItemLevel.SENSOR
        if self.name:
            return ItemLevel.CHANNEL
        return ItemLevel.UNKNOWN

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HierarchyItem":
        """Create from a raw table row."""
        return cls(
            objid=_to_int(data.get("objid")),
            group=data.get("group"),
            device=data.get("device"),
            sensor=data.get("sensor"),
            name=data.get("name"),
            probe=data.get("probe"),
            tags=data.get("tags"),
            active=data.get("active"),
            active_raw=data.get("active_raw"),
            status=data.get("status"),
            status_raw=data.get("status_raw"),
            message=data.get("message"),
            message_raw=data.get("message_raw"),
            priority=data.get("priority"),
            raw=dict(data),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "objid": self.objid,
            "group": self.group,
            "device": self.device,
            "sensor": self.sensor,
            "name": self.name,
            "probe": self.probe,
            "tags": self.tags,
            "active": self.active,
            "status": self.status,
            "status_raw": self.status_raw,
            "message": self.message,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class ChannelCandidate:
    """
    A channel annotated with the sensor, device and group it belongs to.

    ``sensor`` carries the sensor objid; ``sensor_raw`` its display name.
    """
    sensor: int
    sensor_raw: str
    device: Optional[str]
    group: Optional[str]
    channel: str
    name: str
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_channel(cls, channel: dict[str, Any], sensor: HierarchyItem) -> "ChannelCandidate":
        """Annotate a raw channel row with its resolved sensor context."""
        return cls(
            sensor=sensor.objid,
            sensor_raw=sensor.sensor,
            device=sensor.device,
            group=sensor.group,
            channel=channel.get("name"),
            name=channel.get("name"),
            raw=dict(channel),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "sensor": self.sensor,
            "sensor_raw": self.sensor_raw,
            "device": self.device,
            "group": self.group,
            "channel": self.channel,
            "name": self.name,
        }


@dataclass(frozen=True)
class HistoryPoint:
    """One sample of a channel; ``value is None`` marks a gap."""
    sensor: int
    channel: str
    datetime: datetime
    value: Optional[float]

    @property
    def timestamp_ms(self) -> int:
        return int(round(self.datetime.timestamp() * 1000))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "sensor": self.sensor,
            "channel": self.channel,
            "datetime": self.datetime.isoformat(),
            "value": self.value,
        }


@dataclass(frozen=True)
class MessageEvent:
    """A sensor log message shaped as a host annotation."""
    time: int  # epoch milliseconds
    title: str
    text: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"time": self.time, "title": self.title, "text": self.text}


@dataclass
class TargetQuery:
    """Filter strings for one host query target."""
    group: str = "/.*/"
    device: str = "/.*/"
    sensor: str = "/.*/"
    channel: str = "/.*/"
    invert_channel_filter: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TargetQuery":
        """
        Create from the host's target shape.

        Accepts both ``{"group": {"name": "..."}}`` and ``{"group": "..."}``.
        """
        def _name(key: str) -> str:
            value = data.get(key)
            if isinstance(value, dict):
                value = value.get("name")
            return value if value else "/.*/"

        options = data.get("options") or {}
        return cls(
            group=_name("group"),
            device=_name("device"),
            sensor=_name("sensor"),
            channel=_name("channel"),
            invert_channel_filter=bool(options.get("invertChannelFilter", False)),
        )


def _to_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
