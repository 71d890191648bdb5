"""
End-to-end tests for VerificationPipeline.
"""

import asyncio
import time

import httpx
import pytest
from prometheus_client import CollectorRegistry

from service_verifier.app.jwks.resolver import KeyResolver
from service_verifier.app.validation.pipeline import VerificationPipeline
from service_verifier.app.validation.token_verifier import VerifiedClaims
from shared.config import get_config
from shared.errors import (
    InvalidKeyMaterialError,
    KeyFetchError,
    KeyNotFoundError,
    MalformedTokenError,
    MissingIssuerError,
    MissingKeyIdError,
    SignatureMismatchError,
    TokenExpiredError,
    UnsupportedKeyTypeError,
)
from shared.metrics import MetricsCollector

ENDPOINT = "https://keys.example.com/service_accounts/v1/jwk/{issuer}"


class TestVerificationPipeline:
    """Test cases for VerificationPipeline."""

    @pytest.fixture
    def registry(self):
        return CollectorRegistry()

    @pytest.fixture
    def make_pipeline(self, stub_transport, registry):
        def _make_pipeline(**transport_kwargs):
            transport = stub_transport(**transport_kwargs)
            resolver = KeyResolver(transport, endpoint_template=ENDPOINT)
            metrics = MetricsCollector("verifier", registry)
            return VerificationPipeline(resolver, metrics=metrics), transport
        return _make_pipeline

    @pytest.mark.asyncio
    async def test_verifies_token_from_published_key(self, make_pipeline, signing_key, jwk_for, make_token, claims):
        pipeline, transport = make_pipeline(body={"keys": [jwk_for(signing_key, kid="k1")]})
        token = make_token(signing_key, claims, kid="k1")

        result = await pipeline.verify(token)

        assert isinstance(result, VerifiedClaims)
        assert result == claims
        assert transport.urls == [
            "https://keys.example.com/service_accounts/v1/jwk/test%40example.com"
        ]

    @pytest.mark.asyncio
    async def test_picks_matching_key_among_several(
        self, make_pipeline, signing_key, other_signing_key, jwk_for, make_token, claims
    ):
        pipeline, _ = make_pipeline(body={"keys": [
            jwk_for(other_signing_key, kid="k0"),
            jwk_for(signing_key, kid="k1"),
        ]})

        assert await pipeline.verify(make_token(signing_key, claims, kid="k1")) == claims

    @pytest.mark.asyncio
    async def test_ec_sibling_does_not_break_key_set(self, make_pipeline, signing_key, jwk_for, make_token, claims):
        ec_record = {"kid": "ec1", "kty": "EC", "crv": "P-256", "x": "f83OJ3D2xF1Bg8vub9tLe1gHMzV76e8Tus9uPHvRVEU",
                     "y": "x_FEzRu9m36HLN_tue659LNpXW6pCyStikYjKIWI5a0"}
        pipeline, _ = make_pipeline(body={"keys": [ec_record, jwk_for(signing_key, kid="k1")]})

        assert await pipeline.verify(make_token(signing_key, claims, kid="k1")) == claims
        with pytest.raises(UnsupportedKeyTypeError):
            await pipeline.verify(make_token(signing_key, claims, kid="ec1"))

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, stub_transport, signing_key, jwk_for, make_token, claims):
        transport = stub_transport(body={"keys": [jwk_for(signing_key, kid="k1")]}, delay=10.0)
        pipeline = VerificationPipeline(KeyResolver(transport, endpoint_template=ENDPOINT, fetch_timeout=30.0),
                                        metrics=MetricsCollector("verifier", CollectorRegistry()))

        task = asyncio.ensure_future(pipeline.verify(make_token(signing_key, claims)))
        while not transport.urls:
            await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_key_not_found(self, make_pipeline, signing_key, jwk_for, make_token, claims):
        pipeline, _ = make_pipeline(body={"keys": [jwk_for(signing_key, kid="k2")]})

        with pytest.raises(KeyNotFoundError):
            await pipeline.verify(make_token(signing_key, claims, kid="k1"))

    @pytest.mark.asyncio
    async def test_expired_token(self, make_pipeline, signing_key, jwk_for, make_token, claims):
        pipeline, _ = make_pipeline(body={"keys": [jwk_for(signing_key, kid="k1")]})
        claims["exp"] = int(time.time()) - 3600

        with pytest.raises(TokenExpiredError):
            await pipeline.verify(make_token(signing_key, claims, kid="k1"))

    @pytest.mark.asyncio
    async def test_token_signed_by_impostor_under_published_kid(
        self, make_pipeline, signing_key, other_signing_key, jwk_for, make_token, claims
    ):
        pipeline, _ = make_pipeline(body={"keys": [jwk_for(signing_key, kid="k1")]})

        with pytest.raises(SignatureMismatchError):
            await pipeline.verify(make_token(other_signing_key, claims, kid="k1"))

    @pytest.mark.asyncio
    async def test_missing_kid_never_fetches(self, make_pipeline, signing_key, jwk_for, make_token, claims):
        pipeline, transport = make_pipeline(body={"keys": [jwk_for(signing_key, kid="")]})

        with pytest.raises(MissingKeyIdError):
            await pipeline.verify(make_token(signing_key, claims, kid=None))

        assert transport.urls == []

    @pytest.mark.asyncio
    async def test_malformed_token_never_fetches(self, make_pipeline):
        pipeline, transport = make_pipeline(body={"keys": []})

        with pytest.raises(MalformedTokenError):
            await pipeline.verify("garbage")

        assert transport.urls == []

    @pytest.mark.asyncio
    async def test_missing_issuer(self, make_pipeline, signing_key, make_token, claims):
        pipeline, transport = make_pipeline(body={"keys": []})
        del claims["iss"]

        with pytest.raises(MissingIssuerError):
            await pipeline.verify(make_token(signing_key, claims))

        assert transport.urls == []

    @pytest.mark.asyncio
    async def test_fetch_failure_keeps_its_kind(self, make_pipeline, signing_key, make_token, claims):
        pipeline, _ = make_pipeline(error=httpx.ReadTimeout("read timed out"))

        with pytest.raises(KeyFetchError):
            await pipeline.verify(make_token(signing_key, claims))

    @pytest.mark.asyncio
    async def test_unsupported_key_type(self, make_pipeline, signing_key, jwk_for, make_token, claims):
        record = dict(jwk_for(signing_key, kid="k1"), kty="EC")
        pipeline, _ = make_pipeline(body={"keys": [record]})

        with pytest.raises(UnsupportedKeyTypeError):
            await pipeline.verify(make_token(signing_key, claims))

    @pytest.mark.asyncio
    async def test_invalid_key_material(self, make_pipeline, signing_key, jwk_for, make_token, claims):
        record = dict(jwk_for(signing_key, kid="k1"), n="")
        pipeline, _ = make_pipeline(body={"keys": [record]})

        with pytest.raises(InvalidKeyMaterialError):
            await pipeline.verify(make_token(signing_key, claims))

    @pytest.mark.asyncio
    async def test_records_outcomes(self, make_pipeline, registry, signing_key, jwk_for, make_token, claims):
        pipeline, _ = make_pipeline(body={"keys": [jwk_for(signing_key, kid="k1")]})

        await pipeline.verify(make_token(signing_key, claims, kid="k1"))
        with pytest.raises(KeyNotFoundError):
            await pipeline.verify(make_token(signing_key, claims, kid="k9"))

        assert registry.get_sample_value(
            "token_verifications_total", {"outcome": "verified"}
        ) == 1.0
        assert registry.get_sample_value(
            "token_verifications_total", {"outcome": "KEY_NOT_FOUND"}
        ) == 1.0

    @pytest.mark.asyncio
    async def test_context_manager_closes_transport(self, make_pipeline):
        pipeline, transport = make_pipeline(body={"keys": []})

        async with pipeline:
            pass

        assert transport.closed is True

    def test_from_config(self, stub_transport, monkeypatch):
        monkeypatch.setenv("VERIFIER_JWK_ENDPOINT", ENDPOINT)
        monkeypatch.setenv("VERIFIER_HTTP_TIMEOUT", "2.5")
        monkeypatch.setenv("VERIFIER_CLOCK_LEEWAY", "30")
        transport = stub_transport()

        pipeline = VerificationPipeline.from_config(get_config("verifier", 8010), transport=transport)

        assert pipeline.resolver.transport is transport
        assert pipeline.resolver.endpoint_template == ENDPOINT
        assert pipeline.resolver.fetch_timeout == 2.5
        assert pipeline.verifier.leeway == 30
