"""
Cryptographic token verification.
"""

import json
import math
import time
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterator, Optional

from jose import jws
from jose.exceptions import JWSError

from shared.errors import (
    AlgorithmMismatchError,
    MalformedTokenError,
    SignatureMismatchError,
    TokenExpiredError,
    TokenNotYetValidError,
)
from shared.logging import get_logger
from ..claims.glimpse import peek_header, peek_payload
from ..jwks.reconstruct import PublicKey


class VerifiedClaims(Mapping):
    """Read-only claim set of a token whose signature and validity window checked out.

    Only ``TokenVerifier`` creates these; glimpsed data never becomes one.
    """

    def __init__(self, claims: Dict[str, Any]):
        self._claims = dict(claims)

    def __getitem__(self, key: str) -> Any:
        return self._claims[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._claims)

    def __len__(self) -> int:
        return len(self._claims)

    def __repr__(self) -> str:
        return f"VerifiedClaims({self._claims!r})"

    @property
    def issuer(self) -> Optional[str]:
        return self._claims.get("iss")

    @property
    def subject(self) -> Optional[str]:
        return self._claims.get("sub")

    @property
    def expires_at(self) -> Optional[float]:
        return self._claims.get("exp")

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._claims)


def _numeric_claim(claims: Dict[str, Any], name: str) -> Optional[float]:
    value = claims.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedTokenError(f"Claim '{name}' must be a number", details={"claim": name})
    if isinstance(value, float) and not math.isfinite(value):
        raise MalformedTokenError(f"Claim '{name}' must be a finite number", details={"claim": name})
    return value


class TokenVerifier:
    """Verifies signature, pinned algorithm and validity window of a token."""

    def __init__(self, leeway: int = 0, clock: Callable[[], float] = time.time):
        self.leeway = leeway
        self.clock = clock
        self.logger = get_logger("verifier.validation")

    def verify(self, token: str, key: PublicKey) -> VerifiedClaims:
        """Verify ``token`` with ``key`` and return its claims."""
        header = peek_header(token)
        peek_payload(token)

        # Only the algorithm pinned for the key is acceptable; this rejects
        # "none" and HMAC-with-public-key tokens before any crypto runs.
        algorithm = header.get("alg")
        if algorithm != key.algorithm:
            raise AlgorithmMismatchError(
                f"Token algorithm {algorithm!r} does not match expected {key.algorithm}",
                details={"alg": algorithm, "expected": key.algorithm, "kid": key.key_id}
            )

        try:
            payload = jws.verify(token, key.to_pem(), algorithms=[key.algorithm])
        except JWSError as exc:
            raise SignatureMismatchError(details={"kid": key.key_id, "error": str(exc)}) from exc

        try:
            claims = json.loads(payload.decode("utf-8"))
        except ValueError as exc:
            raise MalformedTokenError("Token payload is not valid JSON") from exc
        if not isinstance(claims, dict):
            raise MalformedTokenError("Token payload must be a JSON object")

        self._check_validity_window(claims)

        self.logger.debug("Token signature verified", kid=key.key_id, alg=key.algorithm)
        return VerifiedClaims(claims)

    def _check_validity_window(self, claims: Dict[str, Any]) -> None:
        now = self.clock()

        expires_at = _numeric_claim(claims, "exp")
        if expires_at is not None and now - self.leeway >= expires_at:
            raise TokenExpiredError(details={"exp": expires_at, "now": int(now)})

        not_before = _numeric_claim(claims, "nbf")
        if not_before is not None and now + self.leeway < not_before:
            raise TokenNotYetValidError(details={"nbf": not_before, "now": int(now)})
