"""
Key resolution against the key-distribution endpoint.
"""

import asyncio
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from shared.config import DEFAULT_JWK_ENDPOINT
from shared.errors import KeyFetchError, KeyNotFoundError, MissingIssuerError, MissingKeyIdError
from shared.logging import get_logger
from .models import KeyRecord, KeySet
from .transport import Transport


class KeyResolver:
    """Fetches an issuer's published keys and selects one by key id.

    Every call performs exactly one fetch; nothing is cached and nothing is
    retried here.
    """

    def __init__(
        self,
        transport: Transport,
        endpoint_template: str = DEFAULT_JWK_ENDPOINT,
        fetch_timeout: float = 10.0,
    ) -> None:
        self.transport = transport
        self.endpoint_template = endpoint_template
        self.fetch_timeout = fetch_timeout
        self.logger = get_logger("verifier.jwks")

    def key_set_url(self, issuer: str) -> str:
        """Build the key set URL for ``issuer``.

        The issuer comes from an unverified token, so it is escaped as a
        single path segment.
        """
        return self.endpoint_template.format(issuer=quote(issuer, safe=""))

    async def fetch_key_set(self, issuer: str) -> KeySet:
        """Fetch and parse the key set published for ``issuer``."""
        url = self.key_set_url(issuer)

        try:
            body = await asyncio.wait_for(self.transport.fetch(url), timeout=self.fetch_timeout)
        except asyncio.TimeoutError as exc:
            self.logger.error("Key set fetch timed out", url=url, timeout=self.fetch_timeout)
            raise KeyFetchError(
                "Timed out fetching key set",
                details={"url": url, "timeout": self.fetch_timeout}
            ) from exc
        except httpx.HTTPStatusError as exc:
            self.logger.error("Key set fetch rejected", url=url, status_code=exc.response.status_code)
            raise KeyFetchError(
                "Key distribution endpoint returned an error",
                details={"url": url, "status_code": exc.response.status_code}
            ) from exc
        except (httpx.HTTPError, OSError) as exc:
            self.logger.error("Key set fetch failed", url=url, error=str(exc))
            raise KeyFetchError(
                "Could not reach key distribution endpoint",
                details={"url": url, "error": str(exc)}
            ) from exc

        try:
            key_set = KeySet.model_validate_json(body)
        except ValidationError as exc:
            self.logger.error("Key set response unparseable", url=url, errors=exc.error_count())
            raise KeyFetchError(
                "Key distribution endpoint returned an invalid key set",
                details={"url": url, "errors": exc.error_count()}
            ) from exc

        self.logger.info("Key set fetched", url=url, keys_count=len(key_set.keys))
        return key_set

    async def resolve(self, issuer: str, key_id: str) -> KeyRecord:
        """Return the first published key of ``issuer`` whose id is ``key_id``.

        A token without a key id is rejected outright instead of being
        matched against whatever key the issuer happens to publish first.
        """
        if not issuer:
            raise MissingIssuerError("Cannot resolve keys without an issuer")
        if not key_id:
            raise MissingKeyIdError(
                "Token has no key id; refusing to guess a signing key",
                details={"unverified_issuer": issuer}
            )

        key_set = await self.fetch_key_set(issuer)
        for record in key_set.keys:
            if record.key_id == key_id:
                return record

        self.logger.warning("Key not found", kid=key_id, unverified_issuer=issuer)
        raise KeyNotFoundError(
            f"Signing key not found: {key_id}",
            details={"kid": key_id, "unverified_issuer": issuer}
        )
