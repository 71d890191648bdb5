"""
Public key reconstruction from published RSA components.
"""

import binascii
import re
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose.utils import base64url_decode

from shared.errors import InvalidKeyMaterialError, UnsupportedKeyTypeError
from .models import KeyRecord

SUPPORTED_KEY_TYPE = "RSA"
RSA_ALGORITHMS = ("RS256", "RS384", "RS512")
DEFAULT_RSA_ALGORITHM = "RS256"

_BASE64URL = re.compile(r"[A-Za-z0-9_-]+={0,2}")


@dataclass(frozen=True)
class PublicKey:
    """RSA public key bound to the one algorithm tokens may use with it."""

    key_id: str
    algorithm: str
    key: rsa.RSAPublicKey

    def to_pem(self) -> str:
        return self.key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        ).decode("ascii")


def decode_component(name: str, value: Optional[str]) -> int:
    """Decode a base64url big-endian unsigned integer."""
    if not value or not _BASE64URL.fullmatch(value):
        raise InvalidKeyMaterialError(
            f"Key component '{name}' is missing, empty or not base64url",
            details={"component": name}
        )
    try:
        raw = base64url_decode(value.encode("ascii"))
    except (binascii.Error, ValueError) as exc:
        raise InvalidKeyMaterialError(
            f"Key component '{name}' could not be decoded",
            details={"component": name, "error": str(exc)}
        ) from exc

    if not raw:
        raise InvalidKeyMaterialError(f"Key component '{name}' is empty", details={"component": name})
    return int.from_bytes(raw, "big")


def reconstruct(record: KeyRecord) -> PublicKey:
    """Build a usable public key from a key record."""
    if record.key_type != SUPPORTED_KEY_TYPE:
        raise UnsupportedKeyTypeError(
            f"Unsupported key type: {record.key_type}",
            details={"kid": record.key_id, "kty": record.key_type}
        )

    algorithm = record.algorithm or DEFAULT_RSA_ALGORITHM
    if algorithm not in RSA_ALGORITHMS:
        raise UnsupportedKeyTypeError(
            f"Unsupported algorithm for RSA key: {algorithm}",
            details={"kid": record.key_id, "alg": algorithm}
        )

    modulus = decode_component("n", record.modulus)
    exponent = decode_component("e", record.exponent)

    try:
        key = rsa.RSAPublicNumbers(exponent, modulus).public_key()
    except ValueError as exc:
        raise InvalidKeyMaterialError(
            "RSA components do not form a valid public key",
            details={"kid": record.key_id, "error": str(exc)}
        ) from exc

    return PublicKey(key_id=record.key_id, algorithm=algorithm, key=key)
