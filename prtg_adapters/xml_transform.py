"""
XML transform for legacy ``.xml`` endpoints.

``historicdata.xml`` is only served as XML; this turns it into the same
structured shape the JSON endpoints produce::

    {"histdata": {"item": [{"datetime_raw": 43000.5,
                            "value_raw": [{"channel": "Traffic In", "text": "12.0"}]}]}}
"""

import logging
from typing import Any
from xml.parsers.expat import ExpatError

import xmltodict

from prtg_adapters.exceptions import NormalizationError


logger = logging.getLogger(__name__)

# Elements that are always lists, even when PRTG returns a single one
LIST_ELEMENTS = ("item", "value_raw", "value")


def _clean_key(key: str) -> str:
    if key == "#text":
        return "text"
    return key.lstrip("@")


def _to_number(value: str) -> Any:
    try:
        return float(value)
    except (TypeError, ValueError):
        return value


def _clean(node: Any, key: str = "") -> Any:
    if isinstance(node, dict):
        return {_clean_key(k): _clean(v, _clean_key(k)) for k, v in node.items()}
    if isinstance(node, list):
        return [_clean(item, key) for item in node]
    if key.endswith("_raw") and node is not None:
        return _to_number(node)
    return node


def transform_xml(method: str, raw_body: str) -> dict[str, Any]:
    """
    Convert a PRTG XML response body into structured data.

    Args:
        method: API method the body came from (e.g. ``historicdata.xml``)
        raw_body: Response text

    Returns:
        Dictionary keyed by the XML root element

    Raises:
        NormalizationError: If the body is not well-formed XML
    """
    try:
        parsed = xmltodict.parse(raw_body, force_list=LIST_ELEMENTS)
    except ExpatError as e:
        raise NormalizationError(
            message="Response is neither JSON nor well-formed XML",
            method=method,
            raw_data=raw_body,
            original_error=e,
        )

    result = _clean(parsed)
    logger.debug(f"[xml] Transformed {method} response with root {list(result)}")
    return result
