"""
Response models for the crypto trading API.

Field types follow the wire format of each endpoint: ``WireStrDecimal`` for
decimals sent as JSON strings, ``WireFloatDecimal`` for decimals sent as
JSON numbers. Do not unify them; the server expects what it sends.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from robincrypto.exchange.orders import (
    LimitOrderConfig,
    MarketOrderConfig,
    OrderConfig,
    StopLimitOrderConfig,
    StopLossOrderConfig,
)
from robincrypto.exchange.wire import WireFloatDecimal, WireStrDecimal

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Cursor-paginated list response."""

    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[T]


class AccountInfo(BaseModel):
    account_number: str
    status: str
    buying_power: WireStrDecimal
    buying_power_currency: str


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------

class BestBidAsk(BaseModel):
    symbol: str
    price: WireFloatDecimal
    bid_inclusive_of_sell_spread: WireFloatDecimal
    sell_spread: WireFloatDecimal
    ask_inclusive_of_buy_spread: WireFloatDecimal
    buy_spread: WireFloatDecimal
    timestamp: str


class BestBidAskResponse(BaseModel):
    results: List[BestBidAsk]


class EstimatedPrice(BaseModel):
    symbol: str
    side: str
    price: WireFloatDecimal
    quantity: WireFloatDecimal
    bid_inclusive_of_sell_spread: Optional[WireFloatDecimal] = None
    sell_spread: Optional[WireFloatDecimal] = None
    ask_inclusive_of_buy_spread: Optional[WireFloatDecimal] = None
    buy_spread: Optional[WireFloatDecimal] = None
    timestamp: str


class EstimatedPriceResponse(BaseModel):
    results: List[EstimatedPrice]


# ---------------------------------------------------------------------------
# Trading
# ---------------------------------------------------------------------------

class TradingPair(BaseModel):
    asset_code: str
    quote_code: str
    quote_increment: WireStrDecimal
    asset_increment: WireStrDecimal
    max_order_size: WireStrDecimal
    status: str
    symbol: str

    def is_valid_quantity(self, quantity: Decimal) -> bool:
        """True when ``quantity`` is within [asset_increment, max_order_size]."""
        return self.asset_increment <= quantity <= self.max_order_size


class Holding(BaseModel):
    account_number: str
    asset_code: str
    total_quantity: WireFloatDecimal
    quantity_available_for_trading: WireFloatDecimal


class Execution(BaseModel):
    effective_price: WireStrDecimal
    quantity: WireStrDecimal
    timestamp: str


class _OrderBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    account_number: str
    symbol: str
    client_order_id: str
    side: str
    executions: List[Execution] = Field(default_factory=list)
    order_type: str = Field(alias="type")
    state: str
    created_at: str
    updated_at: str
    market_order_config: Optional[MarketOrderConfig] = None
    limit_order_config: Optional[LimitOrderConfig] = None
    stop_loss_order_config: Optional[StopLossOrderConfig] = None
    stop_limit_order_config: Optional[StopLimitOrderConfig] = None

    @property
    def order_config(self) -> Optional[OrderConfig]:
        """The config block matching ``order_type``, else the first one present."""
        blocks = {
            "market": self.market_order_config,
            "limit": self.limit_order_config,
            "stop_loss": self.stop_loss_order_config,
            "stop_limit": self.stop_limit_order_config,
        }
        if blocks.get(self.order_type) is not None:
            return blocks[self.order_type]
        return next((b for b in blocks.values() if b is not None), None)


class CryptoOrder(_OrderBase):
    """An order as returned by the list/get order endpoints."""

    average_price: Optional[WireStrDecimal] = None
    filled_asset_quantity: WireStrDecimal


class CreatedCryptoOrder(_OrderBase):
    """An order as returned by the create endpoint (numbers, not strings)."""

    average_price: Optional[WireFloatDecimal] = None
    filled_asset_quantity: Optional[WireFloatDecimal] = None
