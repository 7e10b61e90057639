"""
Robinhood Crypto REST Client - signed async access to the trading API.

Every call builds the request path (query string included, since it is
part of the signed message), asks the signer for fresh headers, sends the
request, and parses the body into a typed model. Failures are raised as
``ExchangeError`` subclasses; nothing is retried here because a retry
needs a new signature anyway.
"""

from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from typing import Any, AsyncIterator, Iterable, Optional, Sequence, Tuple, Type, TypeVar, Union
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from robincrypto.core.config import DEFAULT_BASE_URL
from robincrypto.core.logger import get_logger, log_performance
from robincrypto.exchange.auth import Credentials, RequestSigner
from robincrypto.exchange.exceptions import (
    AuthenticationError,
    PermanentExchangeError,
    RateLimitError,
    ResponseDecodeError,
    TransientExchangeError,
    TransportError,
)
from robincrypto.exchange.models import (
    AccountInfo,
    BestBidAskResponse,
    CreatedCryptoOrder,
    CryptoOrder,
    EstimatedPriceResponse,
    Holding,
    Page,
    TradingPair,
)
from robincrypto.exchange.orders import CreateOrderParams, OrderFilters
from robincrypto.exchange.wire import decimal_to_wire_str

logger = get_logger("robinhood_rest")

ModelT = TypeVar("ModelT", bound=BaseModel)

ACCOUNTS_PATH = "/api/v1/crypto/trading/accounts/"
BEST_BID_ASK_PATH = "/api/v1/crypto/marketdata/best_bid_ask/"
ESTIMATED_PRICE_PATH = "/api/v1/crypto/marketdata/estimated_price/"
TRADING_PAIRS_PATH = "/api/v1/crypto/trading/trading_pairs/"
HOLDINGS_PATH = "/api/v1/crypto/trading/holdings/"
ORDERS_PATH = "/api/v1/crypto/trading/orders/"

ESTIMATE_SIDES = ("bid", "ask")
QuantityArg = Union[Decimal, int, str, Sequence[Union[Decimal, int, str]]]


def _format_value(value: Any) -> str:
    if isinstance(value, Decimal):
        return decimal_to_wire_str(value)
    return str(value)


def build_path(base: str, params: Iterable[Tuple[str, Any]] = ()) -> str:
    """
    Append ``name=value`` pairs to ``base`` in the order given.

    Repeated names are kept as separate pairs. ``None`` values are dropped
    and an empty parameter set leaves ``base`` untouched (no ``?``).
    """
    parts = [
        f"{name}={quote(_format_value(value), safe=',:')}"
        for name, value in params
        if value is not None
    ]
    if not parts:
        return base
    return f"{base}?{'&'.join(parts)}"


def _parse_quantity(value: Any) -> Decimal:
    try:
        qty = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"invalid quantity: {value!r}") from e
    if not qty.is_finite():
        raise ValueError(f"invalid quantity: {value!r}")
    return qty


def _order_path(order_id: str, suffix: str = "") -> str:
    oid = (order_id or "").strip()
    if not oid:
        raise ValueError("order_id is required")
    return f"{ORDERS_PATH}{quote(oid, safe='')}/{suffix}"


def _unquote_body(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        try:
            decoded = json.loads(text)
        except ValueError:
            return text[1:-1]
        if isinstance(decoded, str):
            return decoded
    return text


def _raise_for_status(resp: httpx.Response, method: str, path: str) -> None:
    status = resp.status_code
    if 200 <= status < 300:
        return
    body = resp.text
    message = f"{method} {path} returned HTTP {status}"
    if status == 429:
        try:
            retry_after = float(resp.headers.get("Retry-After", 0) or 0)
        except ValueError:
            retry_after = 0.0
        raise RateLimitError(message, retry_after=retry_after, status_code=status, body=body)
    if status in (401, 403):
        raise AuthenticationError(message, status_code=status, body=body)
    if status >= 500:
        raise TransientExchangeError(message, status_code=status, body=body)
    raise PermanentExchangeError(message, status_code=status, body=body)


class RobinhoodCryptoClient:
    """Async client for the crypto trading endpoints.

    Usage::

        signer = RequestSigner(Credentials.from_env())
        async with RobinhoodCryptoClient(signer) as client:
            account = await client.get_account()
    """

    def __init__(
        self,
        signer: RequestSigner,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.signer = signer
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout_seconds = float(timeout_seconds)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(cls, cfg: Any, transport: Optional[httpx.AsyncBaseTransport] = None) -> RobinhoodCryptoClient:
        """Build a client from a ``ClientConfig`` (credentials are validated here)."""
        rh = cfg.robinhood
        signer = RequestSigner(Credentials.from_config(rh))
        return cls(signer, base_url=rh.base_url, timeout_seconds=rh.timeout_seconds, transport=transport)

    async def initialize(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> RobinhoodCryptoClient:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, body: str = "") -> httpx.Response:
        if self._client is None:
            await self.initialize()
        headers = self.signer.auth_headers(path, method, body)
        if body:
            headers["Content-Type"] = "application/json"
        try:
            with log_performance(logger, "robinhood request", method=method, path=path):
                resp = await self._client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers=headers,
                    content=body.encode("utf-8") if body else None,
                )
        except httpx.DecodingError as e:
            # Body could not be decoded (bad Content-Encoding); there is no usable payload.
            raise ResponseDecodeError(f"{method} {path} returned an undecodable body: {e}") from e
        except httpx.TimeoutException as e:
            raise TransportError(f"{method} {path} timed out") from e
        except httpx.RequestError as e:
            raise TransportError(f"{method} {path} failed: {e!r}") from e
        _raise_for_status(resp, method, path)
        return resp

    @staticmethod
    def _decode(resp: httpx.Response, model: Type[ModelT]) -> ModelT:
        try:
            return model.model_validate_json(resp.content)
        except ValidationError as e:
            raise ResponseDecodeError(
                f"unexpected response shape for {model.__name__}: {e.error_count()} error(s)",
                body=resp.text,
            ) from e

    async def _get(self, path: str, model: Type[ModelT]) -> ModelT:
        resp = await self._request("GET", path)
        return self._decode(resp, model)

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def get_account(self) -> AccountInfo:
        """Account number, status and buying power."""
        return await self._get(ACCOUNTS_PATH, AccountInfo)

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    async def get_best_bid_ask(self, symbols: Sequence[str] = ()) -> BestBidAskResponse:
        """Best bid/ask for ``symbols`` (e.g. "BTC-USD"); all symbols when empty."""
        path = build_path(BEST_BID_ASK_PATH, [("symbol", s) for s in symbols])
        return await self._get(path, BestBidAskResponse)

    async def get_estimated_price(
        self,
        symbol: str,
        side: str,
        quantity: QuantityArg,
    ) -> EstimatedPriceResponse:
        """
        Estimated execution price for a hypothetical trade.

        ``side`` is "bid" or "ask". ``quantity`` may be a single value or a
        sequence, which the API takes comma-separated.
        """
        if side not in ESTIMATE_SIDES:
            raise ValueError(f"side must be one of {ESTIMATE_SIDES}, got {side!r}")
        if isinstance(quantity, (Decimal, int, str)):
            quantities = [quantity]
        else:
            quantities = list(quantity)
        if not quantities:
            raise ValueError("at least one quantity is required")
        qty = ",".join(_format_value(_parse_quantity(q)) for q in quantities)
        path = build_path(
            ESTIMATED_PRICE_PATH,
            [("symbol", symbol), ("side", side), ("quantity", qty)],
        )
        return await self._get(path, EstimatedPriceResponse)

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    async def get_trading_pairs(self, symbols: Sequence[str] = ()) -> Page[TradingPair]:
        path = build_path(TRADING_PAIRS_PATH, [("symbol", s) for s in symbols])
        return await self._get(path, Page[TradingPair])

    async def get_holdings(self, asset_codes: Sequence[str] = ()) -> Page[Holding]:
        """Holdings for the account, optionally limited to ``asset_codes`` (e.g. "BTC")."""
        path = build_path(HOLDINGS_PATH, [("asset_code", a) for a in asset_codes])
        return await self._get(path, Page[Holding])

    async def get_orders(self, filters: Optional[OrderFilters] = None) -> Page[CryptoOrder]:
        path = build_path(ORDERS_PATH, filters.to_query() if filters else ())
        return await self._get(path, Page[CryptoOrder])

    async def get_order(self, order_id: str) -> CryptoOrder:
        return await self._get(_order_path(order_id), CryptoOrder)

    async def iter_orders(self, filters: Optional[OrderFilters] = None) -> AsyncIterator[CryptoOrder]:
        """Yield orders across pages by following the ``next`` cursor URLs."""
        page = await self.get_orders(filters)
        while True:
            for order in page.results:
                yield order
            if not page.next:
                return
            next_path = httpx.URL(page.next).raw_path.decode("ascii")
            page = await self._get(next_path, Page[CryptoOrder])

    async def create_order(self, params: CreateOrderParams) -> CreatedCryptoOrder:
        """Submit an order. The body is serialized once; those exact bytes are signed and sent."""
        body = json.dumps(params.to_payload(), separators=(",", ":"))
        logger.info(
            "Submitting order",
            symbol=params.symbol,
            side=params.side,
            order_type=params.order_type,
            client_order_id=params.client_order_id,
        )
        resp = await self._request("POST", ORDERS_PATH, body)
        return self._decode(resp, CreatedCryptoOrder)

    async def cancel_order(self, order_id: str) -> str:
        """Request cancellation; returns the server's confirmation text, unquoted."""
        resp = await self._request("POST", _order_path(order_id, "cancel/"))
        return _unquote_body(resp.text)
