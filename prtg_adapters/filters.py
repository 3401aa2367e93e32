"""
Item filtering - literal-set or regex matching with optional inversion.
"""

from collections.abc import Mapping
from typing import Any, Iterable, Optional, Union

from prtg_adapters.models import FilterSpec


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def comparison_value(item: Any) -> Optional[str]:
    """
    Pick the field a filter is compared against.

    Group if there is no device, device if there is no sensor, sensor if
    there is no channel name, else the channel name. None means the item
    cannot be classified.
    """
    group = _field(item, "group")
    device = _field(item, "device")
    sensor = _field(item, "sensor")
    name = _field(item, "name")

    if group and not device:
        return group
    if device and not sensor:
        return device
    if sensor and not name:
        return sensor
    if name:
        return name
    return None


def filter_items(
    items: Iterable[Any],
    spec: Union[FilterSpec, str],
    invert: bool = False,
) -> list[Any]:
    """
    Return the items whose comparison value matches ``spec``.

    ``invert`` negates the match. Unclassifiable items are always dropped.
    An empty literal set matches everything regardless of ``invert``.
    """
    if not isinstance(spec, FilterSpec):
        spec = FilterSpec.parse(spec)

    result = []
    for item in items:
        value = comparison_value(item)
        if value is None:
            continue
        if not spec.is_regex and not spec.literals:
            result.append(item)
            continue
        matched = spec.matches(str(value))
        if matched != invert:
            result.append(item)
    return result
