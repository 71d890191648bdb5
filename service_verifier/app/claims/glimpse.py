"""
Unverified claim extraction.

The issuer and key id of a token are needed to find the key that verifies
it, so they have to be read before any signature check is possible. Nothing
returned from this module is trusted; it only routes key lookup.
"""

from dataclasses import dataclass
from typing import Any, Dict

from jose import jwt
from jose.exceptions import JWTError

from shared.errors import MalformedTokenError, MissingIssuerError


@dataclass(frozen=True)
class GlimpsedClaims:
    """Routing data read from a token whose signature has not been checked."""

    issuer: str
    key_id: str


def _check_compact_form(token: Any) -> None:
    if not isinstance(token, str):
        raise MalformedTokenError("Token must be a string")
    if token.count(".") != 2:
        raise MalformedTokenError(
            "Token must have three segments",
            details={"segments": token.count(".") + 1}
        )


def peek_header(token: str) -> Dict[str, Any]:
    """Decode the JOSE header without verifying anything."""
    _check_compact_form(token)
    try:
        return jwt.get_unverified_header(token)
    except JWTError as exc:
        raise MalformedTokenError("Could not decode token header", details={"error": str(exc)}) from exc


def peek_payload(token: str) -> Dict[str, Any]:
    """Decode the payload without verifying anything."""
    _check_compact_form(token)
    try:
        return jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise MalformedTokenError("Could not decode token payload", details={"error": str(exc)}) from exc


def glimpse(token: str) -> GlimpsedClaims:
    """Return the issuer and key id of ``token`` without verification.

    An absent ``kid`` yields an empty key id; deciding whether that is fatal
    is left to the key resolver.
    """
    header = peek_header(token)
    payload = peek_payload(token)

    issuer = payload.get("iss")
    if not isinstance(issuer, str) or not issuer:
        raise MissingIssuerError("Token missing string 'iss' claim")

    key_id = header.get("kid", "")
    if key_id is None:
        key_id = ""
    if not isinstance(key_id, str):
        raise MalformedTokenError("Token header 'kid' must be a string")

    return GlimpsedClaims(issuer=issuer, key_id=key_id)
