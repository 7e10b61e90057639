"""
Request Signing - Ed25519 authentication headers for the brokerage API.

Every request carries three headers:

    x-api-key    the raw API key
    x-timestamp  Unix seconds at signing time
    x-signature  base64(Ed25519(api_key + timestamp + path + method + body))

The signed message has no separators between fields. The server rebuilds it
the same way, so the concatenation order must not change.

Headers are bound to one (path, method, body) and one timestamp; a retried
request must be signed again.
"""

from __future__ import annotations

import base64
import binascii
import os
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from dotenv import load_dotenv

from robincrypto.exchange.exceptions import CredentialError

PRIVATE_KEY_BYTES = 32
SIGNED_METHODS = frozenset({"GET", "POST"})

ENV_API_KEY = "ROBINHOOD_API_KEY"
ENV_PRIVATE_KEY = "ROBINHOOD_SIGNING_PRIVATE_B64"
ENV_PUBLIC_KEY = "ROBINHOOD_PUBLIC_KEY"


def _decode_private_key(value: str) -> bytes:
    try:
        raw = base64.b64decode(value.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise CredentialError(f"{ENV_PRIVATE_KEY} is not valid base64") from e
    if len(raw) != PRIVATE_KEY_BYTES:
        raise CredentialError(
            f"{ENV_PRIVATE_KEY} must decode to {PRIVATE_KEY_BYTES} bytes, got {len(raw)}"
        )
    return raw


@dataclass(frozen=True)
class Credentials:
    """API identity and signing key. Validated eagerly, never mutated."""

    api_key: str
    private_key_b64: str = field(repr=False)
    public_key: str

    def __post_init__(self) -> None:
        missing = [
            name
            for name, value in (
                (ENV_API_KEY, self.api_key),
                (ENV_PRIVATE_KEY, self.private_key_b64),
                (ENV_PUBLIC_KEY, self.public_key),
            )
            if not (value or "").strip()
        ]
        if missing:
            raise CredentialError(f"missing credential values: {', '.join(missing)}")
        _decode_private_key(self.private_key_b64)

    @property
    def private_key_bytes(self) -> bytes:
        return _decode_private_key(self.private_key_b64)

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> Credentials:
        """Read credentials from the environment (and a local .env when present)."""
        if load_env_file:
            load_dotenv()
        return cls(
            api_key=os.getenv(ENV_API_KEY, ""),
            private_key_b64=os.getenv(ENV_PRIVATE_KEY, ""),
            public_key=os.getenv(ENV_PUBLIC_KEY, ""),
        )

    @classmethod
    def from_config(cls, cfg: Any) -> Credentials:
        """Build from a ``RobinhoodConfig`` (or anything with the same attributes)."""
        return cls(
            api_key=cfg.api_key,
            private_key_b64=cfg.private_key_b64,
            public_key=cfg.public_key,
        )


@dataclass(frozen=True)
class SignatureArtifact:
    signature: str
    timestamp: str


class RequestSigner:
    """
    Produces authentication headers for outbound requests.

    Holds no mutable state, so one instance can be shared by any number of
    concurrent requests. ``clock`` returns Unix time in seconds and is only
    replaced in tests.
    """

    def __init__(self, credentials: Credentials, clock: Callable[[], float] = time.time):
        self.credentials = credentials
        self._clock = clock
        self._private_key = Ed25519PrivateKey.from_private_bytes(credentials.private_key_bytes)

    @property
    def api_key(self) -> str:
        return self.credentials.api_key

    @property
    def public_key_b64(self) -> str:
        """Base64 of the raw public key derived from the signing key."""
        raw = self._private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        return base64.b64encode(raw).decode("ascii")

    def signing_message(self, path: str, method: str, body: str, timestamp: int) -> bytes:
        if not path.startswith("/"):
            raise ValueError(f"path must start with '/': {path!r}")
        if method not in SIGNED_METHODS:
            raise ValueError(f"unsupported method for signing: {method!r}")
        return f"{self.credentials.api_key}{timestamp}{path}{method}{body}".encode("utf-8")

    def sign(
        self,
        path: str,
        method: str,
        body: str = "",
        timestamp: Optional[int] = None,
    ) -> SignatureArtifact:
        ts = int(self._clock()) if timestamp is None else int(timestamp)
        message = self.signing_message(path, method, body, ts)
        signature = self._private_key.sign(message)
        return SignatureArtifact(
            signature=base64.b64encode(signature).decode("ascii"),
            timestamp=str(ts),
        )

    def auth_headers(self, path: str, method: str, body: str = "") -> Dict[str, str]:
        """Build the x-api-key / x-timestamp / x-signature headers for one request."""
        artifact = self.sign(path, method, body)
        return {
            "x-api-key": self.credentials.api_key,
            "x-timestamp": artifact.timestamp,
            "x-signature": artifact.signature,
        }


def verify_signature(public_key_b64: str, message: bytes, signature_b64: str) -> bool:
    """Check a base64 signature against a base64 raw Ed25519 public key."""
    try:
        public_key = Ed25519PublicKey.from_public_bytes(base64.b64decode(public_key_b64))
        public_key.verify(base64.b64decode(signature_b64), message)
    except (InvalidSignature, ValueError, binascii.Error):
        return False
    return True
