"""
Shared fixtures for verifier tests.
"""

import asyncio
import base64
import json
import time
from typing import Any, Callable, Dict, List, Optional

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

ISSUER = "test@example.com"


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def int_to_b64url(value: int) -> str:
    return b64url(value.to_bytes((value.bit_length() + 7) // 8, "big"))


class StubTransport:
    """In-memory transport that records the URLs it was asked for."""

    def __init__(self, body: Any = None, error: Optional[Exception] = None, delay: float = 0.0):
        if isinstance(body, dict):
            body = json.dumps(body).encode("utf-8")
        self.body = body
        self.error = error
        self.delay = delay
        self.urls: List[str] = []
        self.closed = False

    async def fetch(self, url: str) -> bytes:
        self.urls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.body

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(scope="session")
def signing_key():
    """RSA key the test issuer signs with."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_signing_key():
    """Unrelated RSA key, for forged signatures."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def jwk_for():
    """Build a published key record (JWK dict) for a private key."""
    def _jwk_for(private_key, kid: str = "k1", alg: Optional[str] = "RS256") -> Dict[str, Any]:
        numbers = private_key.public_key().public_numbers()
        record = {
            "kid": kid,
            "kty": "RSA",
            "use": "sig",
            "n": int_to_b64url(numbers.n),
            "e": int_to_b64url(numbers.e),
        }
        if alg is not None:
            record["alg"] = alg
        return record
    return _jwk_for


@pytest.fixture
def claims() -> Dict[str, Any]:
    """Claims of a currently valid service-account token."""
    now = int(time.time())
    return {
        "iss": ISSUER,
        "sub": ISSUER,
        "aud": "https://service.example.com",
        "iat": now,
        "exp": now + 3600,
        "email": ISSUER,
    }


@pytest.fixture
def make_token():
    """Sign claims with PyJWT, the way a real issuer would."""
    def _make_token(private_key, payload: Dict[str, Any], kid: Optional[str] = "k1",
                    algorithm: str = "RS256") -> str:
        headers = {"kid": kid} if kid is not None else None
        return jwt.encode(payload, private_key, algorithm=algorithm, headers=headers)
    return _make_token


@pytest.fixture
def compose_token():
    """Assemble a compact token from raw parts, optionally signing it with ``signer``."""
    def _compose_token(header: Any, payload: Any, signature: bytes = b"signature",
                       signer: Optional[Callable[[bytes], bytes]] = None) -> str:
        signing_input = ".".join([
            b64url(json.dumps(header).encode("utf-8")),
            b64url(json.dumps(payload).encode("utf-8")),
        ])
        if signer is not None:
            signature = signer(signing_input.encode("ascii"))
        return f"{signing_input}.{b64url(signature)}"
    return _compose_token


@pytest.fixture
def stub_transport():
    """Factory for in-memory transports."""
    return StubTransport
