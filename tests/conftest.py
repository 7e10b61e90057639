"""Shared test fixtures and stubs for robincrypto tests.

Provides fixed key material, a controllable clock, and a fake brokerage
server built on ``httpx.MockTransport`` that records every request.
"""

from __future__ import annotations

import base64
import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from robincrypto.exchange.auth import Credentials, RequestSigner
from robincrypto.exchange.robinhood_rest import RobinhoodCryptoClient

# RFC 8032 section 7.1, test 1.
RFC8032_SECRET = bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60")
RFC8032_PUBLIC = bytes.fromhex("d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a")

PRIVATE_KEY_B64 = base64.b64encode(RFC8032_SECRET).decode("ascii")
PUBLIC_KEY_B64 = base64.b64encode(RFC8032_PUBLIC).decode("ascii")
API_KEY = "rh-api-test-key"
BASE_URL = "https://trading.example.test"


# ---------------------------------------------------------------------------
# Stub classes
# ---------------------------------------------------------------------------


class StubClock:
    """Callable clock returning a settable Unix time."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBrokerage:
    """Routes requests to canned responses and records what was sent.

    ``routes`` maps ``(method, path)`` (path without query) to either an
    ``httpx.Response`` or a callable taking the request and returning one.
    """

    def __init__(self) -> None:
        self.routes: Dict[tuple, Any] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, response: Any) -> None:
        self.routes[(method, path)] = response

    def add_json(self, method: str, path: str, payload: Any, status_code: int = 200) -> None:
        self.add(method, path, lambda request: httpx.Response(status_code, json=payload))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"detail": "not found"})
        if callable(route):
            return route(request)
        return route

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def signed_path(request: httpx.Request) -> str:
    return request.url.raw_path.decode("ascii")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(api_key=API_KEY, private_key_b64=PRIVATE_KEY_B64, public_key=PUBLIC_KEY_B64)


@pytest.fixture
def clock() -> StubClock:
    return StubClock()


@pytest.fixture
def signer(credentials: Credentials, clock: StubClock) -> RequestSigner:
    return RequestSigner(credentials, clock=clock)


@pytest.fixture
def brokerage() -> FakeBrokerage:
    return FakeBrokerage()


@pytest.fixture
def client(signer: RequestSigner, brokerage: FakeBrokerage) -> RobinhoodCryptoClient:
    return RobinhoodCryptoClient(
        signer,
        base_url=BASE_URL,
        transport=httpx.MockTransport(brokerage.handler),
    )


def order_payload(order_id: str = "abc123", **overrides: Any) -> Dict[str, Any]:
    """A listed order exactly as the API returns it (string decimals)."""
    payload: Dict[str, Any] = {
        "id": order_id,
        "account_number": "ACC-1",
        "symbol": "BTC-USD",
        "client_order_id": "c0ffee00-0000-4000-8000-000000000000",
        "side": "buy",
        "executions": [
            {"effective_price": "64250.12", "quantity": "0.00012345", "timestamp": "2024-05-01T12:00:01Z"}
        ],
        "type": "limit",
        "state": "filled",
        "average_price": "64250.12",
        "filled_asset_quantity": "0.00012345",
        "created_at": "2024-05-01T12:00:00Z",
        "updated_at": "2024-05-01T12:00:01Z",
        "market_order_config": None,
        "limit_order_config": {
            "asset_quantity": "0.00012345",
            "limit_price": "64300.00",
            "time_in_force": "gtc",
        },
        "stop_loss_order_config": None,
        "stop_limit_order_config": None,
    }
    payload.update(overrides)
    return payload


def json_body(request: httpx.Request) -> Optional[Dict[str, Any]]:
    if not request.content:
        return None
    return json.loads(request.content)

