"""
Verification pipeline: glimpse, resolve, reconstruct, verify.
"""

import time
from typing import Optional

from shared.config import BaseConfig
from shared.errors import VerifierException
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..claims.glimpse import glimpse
from ..jwks.reconstruct import reconstruct
from ..jwks.resolver import KeyResolver
from ..jwks.transport import HttpxTransport, Transport
from .token_verifier import TokenVerifier, VerifiedClaims


class VerificationPipeline:
    """Verifies service-account tokens against their issuer's published keys."""

    def __init__(
        self,
        resolver: KeyResolver,
        verifier: Optional[TokenVerifier] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.resolver = resolver
        self.verifier = verifier or TokenVerifier()
        self.metrics = metrics
        self.logger = get_logger("verifier.pipeline")

    @classmethod
    def from_config(
        cls,
        config: BaseConfig,
        transport: Optional[Transport] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> "VerificationPipeline":
        """Build a pipeline from service configuration."""
        resolver = KeyResolver(
            transport or HttpxTransport(timeout=config.http_timeout),
            endpoint_template=config.jwk_endpoint,
            fetch_timeout=config.http_timeout,
        )
        return cls(resolver, TokenVerifier(leeway=config.clock_leeway), metrics)

    async def verify(self, token: str) -> VerifiedClaims:
        """Verify ``token`` end to end and return its claims.

        The first failing stage's error is re-raised unchanged.
        """
        start_time = time.time()

        try:
            glimpsed = glimpse(token)
            self.logger.debug(
                "Token glimpsed",
                unverified_issuer=glimpsed.issuer,
                kid=glimpsed.key_id
            )

            record = await self.resolver.resolve(glimpsed.issuer, glimpsed.key_id)
            key = reconstruct(record)
            claims = self.verifier.verify(token, key)
        except VerifierException as e:
            self.logger.warning("Token verification failed", code=e.code, error=e.message)
            self._record(e.code, start_time)
            raise

        self.logger.info("Token verified successfully", iss=claims.issuer, sub=claims.subject)
        self._record("verified", start_time)
        return claims

    def _record(self, outcome: str, start_time: float) -> None:
        if self.metrics is not None:
            self.metrics.record_verification(outcome, time.time() - start_time)

    async def close(self) -> None:
        """Release the resolver's transport."""
        await self.resolver.transport.close()

    async def __aenter__(self) -> "VerificationPipeline":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
