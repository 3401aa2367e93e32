"""
Message Service - sensor log messages as host annotations.
"""

import logging
import math
from typing import Any

from prtg_adapters.dispatcher import RequestDispatcher
from prtg_adapters.history import UNIX_EPOCH_DAY_COUNT, parse_number
from prtg_adapters.models import MessageEvent


logger = logging.getLogger(__name__)

MESSAGE_PARAMS = "content=messages&columns=objid,datetime,parent,type,name,status,message"


def day_count_to_seconds(day_count: float) -> int:
    """Day count to epoch seconds, rounded half up."""
    return math.floor((day_count - UNIX_EPOCH_DAY_COUNT) * 86400 + 0.5)


def format_message_text(message: dict[str, Any]) -> str:
    return (
        f"<p>{message.get('parent')}({message.get('type')}) "
        f"Message:<br>{message.get('message')}</p>"
    )


class MessageService:
    """Fetches and time-filters sensor messages."""

    def __init__(self, dispatcher: RequestDispatcher) -> None:
        self._dispatcher = dispatcher

    async def get_messages(
        self,
        date_from: float,
        date_to: float,
        sensor_id: int,
    ) -> list[MessageEvent]:
        """
        Messages of a sensor strictly between ``date_from`` and ``date_to``.

        Both bounds are epoch seconds and both are exclusive.
        """
        messages = await self._dispatcher.request(
            "table.json", f"{MESSAGE_PARAMS}&id={sensor_id}"
        )
        if not isinstance(messages, list):
            return []

        events = []
        for message in messages:
            day_count = parse_number(message.get("datetime_raw")) if isinstance(message, dict) else None
            if day_count is None:
                logger.warning(f"[messages] Skipping message without datetime_raw for sensor {sensor_id}")
                continue
            seconds = day_count_to_seconds(day_count)
            if date_from < seconds < date_to:
                events.append(MessageEvent(
                    time=seconds * 1000,
                    title=message.get("status"),
                    text=format_message_text(message),
                ))

        logger.debug(f"[messages] {len(events)} of {len(messages)} messages in range for sensor {sensor_id}")
        return events
