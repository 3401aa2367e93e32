"""
History Service - channel history from ``historicdata.xml``.

PRTG pre-aggregates history; the averaging interval is picked from the
length of the requested span. Record timestamps come back as day counts
(days since 1899-12-30) and are converted to UTC datetimes.
"""

import logging
import re
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Optional

from prtg_adapters.dispatcher import RequestDispatcher
from prtg_adapters.models import Averaging, HistoryPoint


logger = logging.getLogger(__name__)

HISTORY_METHOD = "historicdata.xml"
SENSOR_DETAILS_METHOD = "getsensordetails.json"
STATUS_CHANNEL = "Status"

# Day count of 1970-01-01
UNIX_EPOCH_DAY_COUNT = 25569
MS_PER_DAY = 86400 * 1000


def decode_day_count(day_count: float) -> float:
    """Convert a PRTG day count to epoch milliseconds."""
    return (day_count - UNIX_EPOCH_DAY_COUNT) * MS_PER_DAY


def select_averaging(date_from: float, date_to: float) -> Averaging:
    """
    Pick the averaging interval for a span given in epoch seconds.

    The bands are open intervals: spans of exactly 12, 36 or 745 hours get
    raw data.
    """
    hours = (date_to - date_from) / 3600
    if 12 < hours < 36:
        return Averaging.FIVE_MINUTES
    if 36 < hours < 745:
        return Averaging.ONE_HOUR
    if hours > 745:
        return Averaging.ONE_DAY
    return Averaging.RAW


def format_prtg_date(epoch_seconds: float, tz: Optional[tzinfo] = None) -> str:
    """Format epoch seconds as ``YYYY-MM-DD-HH-MM-SS`` (local time unless ``tz``)."""
    return datetime.fromtimestamp(epoch_seconds, tz).strftime("%Y-%m-%d-%H-%M-%S")


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def parse_number(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _entry_text(entry: Any) -> Any:
    if isinstance(entry, dict):
        return entry.get("text")
    return entry


def pick_channel_value(value_raw: Any, channel: str) -> Optional[float]:
    """
    Select the value for ``channel`` from a record's ``value_raw``.

    A list is searched for entries labelled ``channel`` or containing
    ``"<channel> (speed)"``; the last match wins. A single entry is taken
    as-is.
    """
    if not value_raw:
        return None
    if not isinstance(value_raw, list):
        return parse_number(_entry_text(value_raw))

    speed = re.compile(re.escape(channel) + r" \(speed\)")
    value = None
    for entry in value_raw:
        label = entry.get("channel") if isinstance(entry, dict) else None
        if label is None:
            continue
        if label == channel or speed.search(label):
            value = parse_number(_entry_text(entry))
    return value


class HistoryService:
    """Fetches channel history and current sensor status."""

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        tz: Optional[tzinfo] = None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._dispatcher = dispatcher
        self._tz = tz
        self._now = now

    def build_params(self, sensor_id: int, date_from: float, date_to: float) -> str:
        averaging = select_averaging(date_from, date_to)
        return (
            f"id={sensor_id}"
            f"&sdate={format_prtg_date(date_from, self._tz)}"
            f"&edate={format_prtg_date(date_to, self._tz)}"
            f"&avg={averaging.value}"
            "&pctshow=false&pctmode=false"
        )

    async def get_status(self, sensor_id: int) -> HistoryPoint:
        """Current status of a sensor as a single point."""
        details = await self._dispatcher.request(SENSOR_DETAILS_METHOD, f"id={sensor_id}")
        status_id = details.get("statusid") if isinstance(details, dict) else None
        return HistoryPoint(
            sensor=sensor_id,
            channel=STATUS_CHANNEL,
            datetime=self._now(),
            value=int(status_id) if status_id is not None else None,
        )

    async def get_history(
        self,
        sensor_id: int,
        channel: str,
        date_from: float,
        date_to: float,
    ) -> list[HistoryPoint]:
        """
        History of one channel between two epoch-second timestamps.

        The ``Status`` channel returns the current status instead.
        """
        if channel == STATUS_CHANNEL:
            return [await self.get_status(sensor_id)]

        params = self.build_params(sensor_id, date_from, date_to)
        results = await self._dispatcher.request(HISTORY_METHOD, params)

        histdata = results.get("histdata") if isinstance(results, dict) else None
        if not histdata:
            logger.debug(f"[history] No history for sensor {sensor_id}")
            return []

        history = []
        for item in _as_list(histdata.get("item")):
            day_count = parse_number(item.get("datetime_raw")) if isinstance(item, dict) else None
            if day_count is None:
                logger.warning(f"[history] Skipping record without datetime_raw for sensor {sensor_id}")
                continue
            epoch_ms = decode_day_count(day_count)
            history.append(HistoryPoint(
                sensor=sensor_id,
                channel=channel,
                datetime=datetime.fromtimestamp(epoch_ms / 1000, timezone.utc),
                value=pick_channel_value(item.get("value_raw"), channel),
            ))
        return history
