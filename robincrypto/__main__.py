#!/usr/bin/env python3
"""
Command-line access to the crypto trading API.

    python -m robincrypto account
    python -m robincrypto quote BTC-USD ETH-USD
    python -m robincrypto estimate BTC-USD bid 0.5
    python -m robincrypto orders --symbol BTC-USD --state open
    python -m robincrypto cancel <order-id>

Credentials come from the environment (or .env / config/config.yaml).
Exit status: 0 ok, 1 API failure, 2 bad credentials.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from decimal import Decimal
from typing import Any, Optional, Sequence

from pydantic import BaseModel

from robincrypto.core.config import load_config_with_overrides
from robincrypto.core.logger import get_logger, setup_logging
from robincrypto.exchange.exceptions import CredentialError, ExchangeError
from robincrypto.exchange.orders import OrderFilters
from robincrypto.exchange.robinhood_rest import RobinhoodCryptoClient

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="robincrypto", description="Robinhood crypto trading API client.")
    parser.add_argument("--config-path", default="config/config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("account", help="Show account status and buying power.")

    quote = sub.add_parser("quote", help="Best bid/ask for symbols.")
    quote.add_argument("symbols", nargs="*")

    estimate = sub.add_parser("estimate", help="Estimated price for a quantity.")
    estimate.add_argument("symbol")
    estimate.add_argument("side", choices=("bid", "ask"))
    estimate.add_argument("quantity", nargs="+", type=Decimal)

    pairs = sub.add_parser("pairs", help="Trading pair metadata.")
    pairs.add_argument("symbols", nargs="*")

    holdings = sub.add_parser("holdings", help="Account holdings.")
    holdings.add_argument("asset_codes", nargs="*")

    orders = sub.add_parser("orders", help="List orders.")
    orders.add_argument("--symbol", default=None)
    orders.add_argument("--state", default=None)
    orders.add_argument("--side", default=None, choices=("buy", "sell"))
    orders.add_argument("--limit", type=int, default=None)

    cancel = sub.add_parser("cancel", help="Cancel an order by id.")
    cancel.add_argument("order_id")
    return parser


async def run_command(client: RobinhoodCryptoClient, args: argparse.Namespace) -> Any:
    cmd = args.command
    if cmd == "account":
        return await client.get_account()
    if cmd == "quote":
        return await client.get_best_bid_ask(args.symbols)
    if cmd == "estimate":
        return await client.get_estimated_price(args.symbol, args.side, args.quantity)
    if cmd == "pairs":
        return await client.get_trading_pairs(args.symbols)
    if cmd == "holdings":
        return await client.get_holdings(args.asset_codes)
    if cmd == "orders":
        filters = OrderFilters(symbol=args.symbol, state=args.state, side=args.side, limit=args.limit)
        return await client.get_orders(filters)
    if cmd == "cancel":
        return await client.cancel_order(args.order_id)
    raise ValueError(f"unknown command: {cmd}")


def _render(result: Any) -> str:
    if isinstance(result, BaseModel):
        return json.dumps(result.model_dump(mode="json", by_alias=True), indent=2)
    return str(result)


async def _run(args: argparse.Namespace) -> int:
    cfg = load_config_with_overrides(args.config_path)
    setup_logging(cfg.logging.level, cfg.logging.log_dir, cfg.logging.json_output)
    try:
        client = RobinhoodCryptoClient.from_config(cfg)
    except CredentialError as e:
        logger.error("Invalid credentials", error=str(e))
        return 2
    async with client:
        try:
            result = await run_command(client, args)
        except ExchangeError as e:
            logger.error(
                "Request failed",
                command=args.command,
                error_type=type(e).__name__,
                status_code=getattr(e, "status_code", None),
                error=str(e),
            )
            return 1
    print(_render(result))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
