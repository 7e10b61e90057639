"""
Order parameters - configuration variants, create params and list filters.

An order carries exactly one configuration block. ``CreateOrderParams``
holds a single ``OrderConfig`` and derives the wire ``type`` plus the
``<type>_order_config`` key from it, so conflicting or missing blocks
cannot be expressed.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from robincrypto.exchange.exceptions import InvalidOrderError
from robincrypto.exchange.wire import WireStrDecimal

ORDER_SIDES = ("buy", "sell")
TIME_IN_FORCE = ("gtc", "gfd")


def _require_positive(name: str, value: Optional[Decimal]) -> None:
    if value is None:
        raise InvalidOrderError(f"{name} is required")
    if value <= 0:
        raise InvalidOrderError(f"{name} must be positive, got {value}")


class _OrderConfigBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_type: ClassVar[str] = ""

    def check(self) -> None:
        """Raise InvalidOrderError when the block cannot be submitted."""

    @property
    def wire_key(self) -> str:
        return f"{self.order_type}_order_config"

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class _SizedOrderConfig(_OrderConfigBase):
    quote_amount: Optional[WireStrDecimal] = None
    asset_quantity: Optional[WireStrDecimal] = None
    time_in_force: Optional[str] = None

    def check(self) -> None:
        has_quote = self.quote_amount is not None
        has_asset = self.asset_quantity is not None
        if has_quote == has_asset:
            raise InvalidOrderError(
                f"{self.order_type} order needs exactly one of quote_amount or asset_quantity"
            )
        _require_positive("quote_amount" if has_quote else "asset_quantity",
                          self.quote_amount if has_quote else self.asset_quantity)
        if self.time_in_force is not None and self.time_in_force not in TIME_IN_FORCE:
            raise InvalidOrderError(f"unsupported time_in_force: {self.time_in_force!r}")


class MarketOrderConfig(_OrderConfigBase):
    order_type: ClassVar[str] = "market"

    asset_quantity: WireStrDecimal

    def check(self) -> None:
        _require_positive("asset_quantity", self.asset_quantity)


class LimitOrderConfig(_SizedOrderConfig):
    order_type: ClassVar[str] = "limit"

    limit_price: Optional[WireStrDecimal] = None

    def check(self) -> None:
        super().check()
        _require_positive("limit_price", self.limit_price)


class StopLossOrderConfig(_SizedOrderConfig):
    order_type: ClassVar[str] = "stop_loss"

    stop_price: Optional[WireStrDecimal] = None

    def check(self) -> None:
        super().check()
        _require_positive("stop_price", self.stop_price)


class StopLimitOrderConfig(_SizedOrderConfig):
    order_type: ClassVar[str] = "stop_limit"

    limit_price: Optional[WireStrDecimal] = None
    stop_price: Optional[WireStrDecimal] = None

    def check(self) -> None:
        super().check()
        _require_positive("limit_price", self.limit_price)
        _require_positive("stop_price", self.stop_price)


OrderConfig = Union[MarketOrderConfig, LimitOrderConfig, StopLossOrderConfig, StopLimitOrderConfig]

ORDER_CONFIG_TYPES: Dict[str, type] = {
    cls.order_type: cls
    for cls in (MarketOrderConfig, LimitOrderConfig, StopLossOrderConfig, StopLimitOrderConfig)
}


def new_client_order_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class CreateOrderParams:
    """Body of a create-order request."""

    symbol: str
    side: str
    order_config: OrderConfig
    client_order_id: str = field(default_factory=new_client_order_id)

    def __post_init__(self) -> None:
        if not (self.symbol or "").strip():
            raise InvalidOrderError("symbol is required")
        if self.side not in ORDER_SIDES:
            raise InvalidOrderError(f"side must be one of {ORDER_SIDES}, got {self.side!r}")
        if not (self.client_order_id or "").strip():
            raise InvalidOrderError("client_order_id is required")
        if not isinstance(self.order_config, _OrderConfigBase) or not self.order_config.order_type:
            raise InvalidOrderError("order_config must be a market, limit, stop_loss or stop_limit config")
        self.order_config.check()

    @property
    def order_type(self) -> str:
        return self.order_config.order_type

    def to_payload(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "client_order_id": self.client_order_id,
            "side": self.side,
            "type": self.order_type,
            self.order_config.wire_key: self.order_config.to_wire(),
        }


def _query_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class OrderFilters:
    """Optional filters for listing orders. Unset fields are not sent."""

    created_at_start: Optional[Union[str, datetime]] = None
    created_at_end: Optional[Union[str, datetime]] = None
    symbol: Optional[str] = None
    order_id: Optional[str] = None
    side: Optional[str] = None
    state: Optional[str] = None
    order_type: Optional[str] = None
    updated_at_start: Optional[Union[str, datetime]] = None
    updated_at_end: Optional[Union[str, datetime]] = None
    cursor: Optional[str] = None
    limit: Optional[int] = None

    def __post_init__(self) -> None:
        if self.side is not None and self.side not in ORDER_SIDES:
            raise ValueError(f"side must be one of {ORDER_SIDES}, got {self.side!r}")
        if self.order_type is not None and self.order_type not in ORDER_CONFIG_TYPES:
            raise ValueError(f"unknown order type: {self.order_type!r}")
        if self.limit is not None and self.limit <= 0:
            raise ValueError("limit must be positive")

    def to_query(self) -> List[Tuple[str, Any]]:
        pairs = [
            ("created_at_start", self.created_at_start),
            ("created_at_end", self.created_at_end),
            ("symbol", self.symbol),
            ("id", self.order_id),
            ("side", self.side),
            ("state", self.state),
            ("type", self.order_type),
            ("updated_at_start", self.updated_at_start),
            ("updated_at_end", self.updated_at_end),
            ("cursor", self.cursor),
            ("limit", self.limit),
        ]
        return [(name, _query_value(value)) for name, value in pairs if value is not None]
