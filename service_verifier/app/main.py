"""
Verifier service: HTTP surface over the token verification pipeline.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel

from shared.base_service import BaseService
from .jwks.transport import Transport
from .validation.pipeline import VerificationPipeline


class TokenVerificationRequest(BaseModel):
    """Request model for token verification."""
    token: str


class TokenVerificationResponse(BaseModel):
    """Response model for a successful token verification."""
    valid: bool = True
    claims: Dict[str, Any]


class VerifierService(BaseService):
    """Verifier service implementation."""

    def __init__(self, transport: Optional[Transport] = None):
        super().__init__("verifier", 8010)
        self.pipeline = VerificationPipeline.from_config(
            self.config,
            transport=transport,
            metrics=self.metrics
        )

        self._setup_verifier_routes()

    def _setup_verifier_routes(self):
        """Set up verifier-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "verifier",
                "message": "Service-account token verifier",
                "version": "1.0.0"
            }

        @self.app.post("/verify", response_model=TokenVerificationResponse)
        async def verify_token(request: TokenVerificationRequest):
            """Token verification endpoint.

            Rejections surface through the service's error handler with the
            failing stage's code.
            """
            token = request.token.strip()
            if token.startswith("Bearer "):
                token = token[7:].strip()

            claims = await self.pipeline.verify(token)
            return TokenVerificationResponse(claims=claims.to_dict())

    async def _shutdown(self) -> None:
        await self.pipeline.close()


def create_app(transport: Optional[Transport] = None):
    """Create FastAPI application."""
    service = VerifierService(transport=transport)
    return service.app


if __name__ == "__main__":
    service = VerifierService()
    service.run()
