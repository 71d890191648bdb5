"""
Shared utilities for the service-account token verifier.

This package aggregates common building blocks consumed by the verifier
service and CLI:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Typed verification errors and error responses
- base_service: FastAPI service skeleton (health, metrics, error handling)

Do not import from service_* packages into shared/.
"""
