"""Signed REST access to the crypto trading API."""

from robincrypto.exchange.auth import Credentials, RequestSigner, SignatureArtifact, verify_signature
from robincrypto.exchange.exceptions import (
    AuthenticationError,
    CredentialError,
    ExchangeError,
    InvalidOrderError,
    PermanentExchangeError,
    RateLimitError,
    ResponseDecodeError,
    TransientExchangeError,
    TransportError,
)
from robincrypto.exchange.orders import (
    CreateOrderParams,
    LimitOrderConfig,
    MarketOrderConfig,
    OrderFilters,
    StopLimitOrderConfig,
    StopLossOrderConfig,
)
from robincrypto.exchange.robinhood_rest import RobinhoodCryptoClient, build_path

__all__ = [
    "AuthenticationError",
    "CreateOrderParams",
    "CredentialError",
    "Credentials",
    "ExchangeError",
    "InvalidOrderError",
    "LimitOrderConfig",
    "MarketOrderConfig",
    "OrderFilters",
    "PermanentExchangeError",
    "RateLimitError",
    "RequestSigner",
    "ResponseDecodeError",
    "RobinhoodCryptoClient",
    "SignatureArtifact",
    "StopLimitOrderConfig",
    "StopLossOrderConfig",
    "TransientExchangeError",
    "TransportError",
    "build_path",
    "verify_signature",
]
