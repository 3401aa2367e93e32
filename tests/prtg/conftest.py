"""
Shared fixtures for PRTG adapter tests.

StubTransport serves fixed payloads by URL substring and records every URL
it is asked for, so tests can assert on request counts and composition.
Like the server, it applies ``filter_<field>=`` clauses to JSON table rows.
"""

import json
from typing import Any, Union
from urllib.parse import parse_qs, urlsplit

import pytest

from prtg_adapters.cache import ResponseCache
from prtg_adapters.dispatcher import RequestDispatcher
from prtg_adapters.transport import Transport, TransportResponse


BASE_URL = "https://prtg.example.com"
USERNAME = "grafana"
PASSHASH = "s3cr3t"


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def apply_constraints(url: str, response: TransportResponse) -> TransportResponse:
    """Drop table rows excluded by the URL's filter_<field> clauses."""
    query = parse_qs(urlsplit(url).query)
    constraints = {
        key[len("filter_"):]: set(values)
        for key, values in query.items()
        if key.startswith("filter_")
    }
    if not constraints:
        return response

    try:
        data = json.loads(response.body)
    except ValueError:
        return response
    if not isinstance(data, dict):
        return response

    for shape, rows in data.items():
        if isinstance(rows, list):
            # Rows without the constrained column are kept
            data[shape] = [
                row for row in rows
                if not isinstance(row, dict) or all(
                    field not in row or row[field] in allowed
                    for field, allowed in constraints.items()
                )
            ]
    return TransportResponse(response.status, response.status_text, json.dumps(data))


class StubTransport(Transport):
    """Transport returning canned responses for URL substrings."""

    def __init__(self) -> None:
        self.routes: list[tuple[str, TransportResponse]] = []
        self.calls: list[str] = []
        self.closed = False

    def add(
        self,
        fragment: str,
        body: Union[str, dict[str, Any], list[Any]],
        status: int = 200,
        status_text: str = "OK",
    ) -> "StubTransport":
        if not isinstance(body, str):
            body = json.dumps(body)
        self.routes.append((fragment, TransportResponse(status, status_text, body)))
        return self

    def calls_matching(self, fragment: str) -> list[str]:
        return [url for url in self.calls if fragment in url]

    async def send_get(self, url: str) -> TransportResponse:
        self.calls.append(url)
        for fragment, response in self.routes:
            if fragment in url:
                return apply_constraints(url, response)
        return TransportResponse(404, "Not Found", "")

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transport():
    return StubTransport()


@pytest.fixture
def cache(clock):
    return ResponseCache(ttl_minutes=5, clock=clock)


@pytest.fixture
def dispatcher(transport, cache):
    return RequestDispatcher(
        base_url=BASE_URL,
        username=USERNAME,
        passhash=PASSHASH,
        transport=transport,
        cache=cache,
    )


@pytest.fixture
def hierarchy(transport):
    """
    Two data centers and a lab; web and db devices; two web sensors.

    Sensor 101 (Ping on web01) and 102 (HTTP on web02) each carry a
    Downtime channel.
    """
    transport.add("id=101", {"channels": [
        {"sensor": "Ping", "name": "Ping Time"},
        {"sensor": "Ping", "name": "Downtime"},
    ]})
    transport.add("id=102", {"channels": [
        {"sensor": "HTTP", "name": "Loading time"},
        {"sensor": "HTTP", "name": "Downtime"},
    ]})
    transport.add("content=groups", {"prtg-version": "23.1", "treesize": 3, "groups": [
        {"objid": 1, "group": "DC1", "probe": "Local Probe", "status_raw": 3},
        {"objid": 2, "group": "DC2", "probe": "Local Probe", "status_raw": 3},
        {"objid": 3, "group": "Lab", "probe": "Local Probe", "status_raw": 3},
    ]})
    transport.add("content=devices", {"devices": [
        {"objid": 10, "device": "web01", "group": "DC1"},
        {"objid": 11, "device": "db01", "group": "DC1"},
        {"objid": 12, "device": "web02", "group": "DC2"},
    ]})
    transport.add("content=sensors", {"sensors": [
        {"objid": 101, "sensor": "Ping", "device": "web01", "group": "DC1"},
        {"objid": 102, "sensor": "HTTP", "device": "web02", "group": "DC2"},
    ]})
    return transport
