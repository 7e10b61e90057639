from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from robincrypto.exchange.exceptions import InvalidOrderError
from robincrypto.exchange.orders import (
    CreateOrderParams,
    LimitOrderConfig,
    MarketOrderConfig,
    OrderFilters,
    StopLimitOrderConfig,
    StopLossOrderConfig,
)


class TestOrderConfigs:
    def test_limit_payload_uses_string_decimals(self):
        params = CreateOrderParams(
            symbol="XRP-USD",
            side="buy",
            client_order_id="cid-1",
            order_config=LimitOrderConfig(
                asset_quantity=Decimal("1"),
                limit_price=Decimal("0.50"),
                time_in_force="gfd",
            ),
        )
        assert params.to_payload() == {
            "symbol": "XRP-USD",
            "client_order_id": "cid-1",
            "side": "buy",
            "type": "limit",
            "limit_order_config": {
                "asset_quantity": "1",
                "limit_price": "0.50",
                "time_in_force": "gfd",
            },
        }

    def test_market_payload(self):
        params = CreateOrderParams(
            symbol="BTC-USD",
            side="sell",
            client_order_id="cid-2",
            order_config=MarketOrderConfig(asset_quantity=Decimal("0.00000001")),
        )
        payload = params.to_payload()
        assert payload["type"] == "market"
        assert payload["market_order_config"] == {"asset_quantity": "0.00000001"}
        assert "limit_order_config" not in payload

    def test_stop_limit_payload_has_single_block(self):
        params = CreateOrderParams(
            symbol="ETH-USD",
            side="sell",
            order_config=StopLimitOrderConfig(
                quote_amount=Decimal("100"),
                limit_price=Decimal("2900"),
                stop_price=Decimal("2950"),
                time_in_force="gtc",
            ),
        )
        payload = params.to_payload()
        assert payload["type"] == "stop_limit"
        config_keys = [k for k in payload if k.endswith("_order_config")]
        assert config_keys == ["stop_limit_order_config"]
        assert payload["stop_limit_order_config"]["quote_amount"] == "100"

    def test_client_order_id_defaults_to_fresh_uuid(self):
        config = MarketOrderConfig(asset_quantity=Decimal("1"))
        a = CreateOrderParams(symbol="BTC-USD", side="buy", order_config=config)
        b = CreateOrderParams(symbol="BTC-USD", side="buy", order_config=config)
        assert a.client_order_id != b.client_order_id
        assert len(a.client_order_id) == 36

    def test_both_amounts_rejected(self):
        with pytest.raises(InvalidOrderError):
            CreateOrderParams(
                symbol="BTC-USD",
                side="buy",
                order_config=LimitOrderConfig(
                    asset_quantity=Decimal("1"),
                    quote_amount=Decimal("10"),
                    limit_price=Decimal("1"),
                ),
            )

    def test_no_amount_rejected(self):
        with pytest.raises(InvalidOrderError):
            CreateOrderParams(
                symbol="BTC-USD",
                side="buy",
                order_config=LimitOrderConfig(limit_price=Decimal("1")),
            )

    @pytest.mark.parametrize(
        "config",
        [
            LimitOrderConfig(asset_quantity=Decimal("1")),
            StopLossOrderConfig(asset_quantity=Decimal("1")),
            StopLimitOrderConfig(asset_quantity=Decimal("1"), limit_price=Decimal("1")),
            StopLimitOrderConfig(asset_quantity=Decimal("1"), stop_price=Decimal("1")),
            LimitOrderConfig(asset_quantity=Decimal("1"), limit_price=Decimal("0")),
            MarketOrderConfig(asset_quantity=Decimal("-1")),
        ],
    )
    def test_missing_or_non_positive_prices_rejected(self, config):
        with pytest.raises(InvalidOrderError):
            CreateOrderParams(symbol="BTC-USD", side="buy", order_config=config)

    def test_unknown_time_in_force_rejected(self):
        with pytest.raises(InvalidOrderError):
            CreateOrderParams(
                symbol="BTC-USD",
                side="buy",
                order_config=LimitOrderConfig(
                    asset_quantity=Decimal("1"), limit_price=Decimal("1"), time_in_force="ioc"
                ),
            )

    def test_bad_side_rejected(self):
        with pytest.raises(InvalidOrderError):
            CreateOrderParams(
                symbol="BTC-USD",
                side="hold",
                order_config=MarketOrderConfig(asset_quantity=Decimal("1")),
            )

    def test_order_config_must_be_a_config_variant(self):
        with pytest.raises(InvalidOrderError):
            CreateOrderParams(symbol="BTC-USD", side="buy", order_config={"asset_quantity": "1"})


class TestOrderFilters:
    def test_empty_filters_produce_no_params(self):
        assert OrderFilters().to_query() == []

    def test_query_keeps_wire_names_and_order(self):
        filters = OrderFilters(
            symbol="BTC-USD",
            order_type="limit",
            order_id="abc",
            created_at_start=datetime(2024, 1, 1, tzinfo=timezone.utc),
            limit=10,
        )
        assert filters.to_query() == [
            ("created_at_start", "2024-01-01T00:00:00+00:00"),
            ("symbol", "BTC-USD"),
            ("id", "abc"),
            ("type", "limit"),
            ("limit", 10),
        ]

    @pytest.mark.parametrize(
        "kwargs",
        [{"side": "long"}, {"order_type": "trailing"}, {"limit": 0}],
    )
    def test_invalid_filters_rejected(self, kwargs):
        with pytest.raises(ValueError):
            OrderFilters(**kwargs)
