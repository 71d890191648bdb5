"""
Shared error handling for the service-account token verifier.

Every stage of the verification pipeline fails with one of the typed errors
below. Each carries a stable ``code`` so callers, tests and the HTTP surface
can tell the failing stage apart.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class VerifierException(Exception):
    """Base exception for verifier services."""

    status_code: int = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class MalformedTokenError(VerifierException):
    """Token cannot be structurally decoded."""

    def __init__(self, message: str = "Malformed token", details: Optional[Dict[str, Any]] = None):
        super().__init__("MALFORMED_TOKEN", message, details)


class MissingIssuerError(VerifierException):
    """Token carries no usable issuer claim."""

    def __init__(self, message: str = "Token missing issuer", details: Optional[Dict[str, Any]] = None):
        super().__init__("MISSING_ISSUER", message, details)


class MissingKeyIdError(VerifierException):
    """Token header carries no key id."""

    def __init__(self, message: str = "Token missing key id", details: Optional[Dict[str, Any]] = None):
        super().__init__("MISSING_KEY_ID", message, details)


class KeyFetchError(VerifierException):
    """Key set could not be retrieved or parsed."""

    status_code = 502

    def __init__(self, message: str = "Failed to fetch key set", details: Optional[Dict[str, Any]] = None):
        super().__init__("KEY_FETCH_ERROR", message, details)


class KeyNotFoundError(VerifierException):
    """No published key matches the requested key id."""

    status_code = 401

    def __init__(self, message: str = "Signing key not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("KEY_NOT_FOUND", message, details)


class UnsupportedKeyTypeError(VerifierException):
    """Key record names a key family or algorithm we cannot use."""

    status_code = 401

    def __init__(self, message: str = "Unsupported key type", details: Optional[Dict[str, Any]] = None):
        super().__init__("UNSUPPORTED_KEY_TYPE", message, details)


class InvalidKeyMaterialError(VerifierException):
    """Key record components do not form a valid public key."""

    status_code = 401

    def __init__(self, message: str = "Invalid key material", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_KEY_MATERIAL", message, details)


class AlgorithmMismatchError(VerifierException):
    """Token header algorithm is not the one pinned for the key."""

    status_code = 401

    def __init__(self, message: str = "Token algorithm not allowed", details: Optional[Dict[str, Any]] = None):
        super().__init__("ALGORITHM_MISMATCH", message, details)


class SignatureMismatchError(VerifierException):
    """Token signature does not verify against the key."""

    status_code = 401

    def __init__(self, message: str = "Signature verification failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("SIGNATURE_MISMATCH", message, details)


class TokenExpiredError(VerifierException):
    """Token ``exp`` is in the past."""

    status_code = 401

    def __init__(self, message: str = "Token has expired", details: Optional[Dict[str, Any]] = None):
        super().__init__("TOKEN_EXPIRED", message, details)


class TokenNotYetValidError(VerifierException):
    """Token ``nbf`` is in the future."""

    status_code = 401

    def __init__(self, message: str = "Token is not yet valid", details: Optional[Dict[str, Any]] = None):
        super().__init__("TOKEN_NOT_YET_VALID", message, details)
