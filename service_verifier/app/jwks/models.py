"""
Key-distribution response models.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class KeyRecord(BaseModel):
    """One published public key, as served by the key-distribution endpoint."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    key_id: str = Field(alias="kid")
    key_type: str = Field(alias="kty")
    algorithm: Optional[str] = Field(default=None, alias="alg")
    # Only RSA records carry n/e; other families publish different members
    modulus: Optional[str] = Field(default=None, alias="n")
    exponent: Optional[str] = Field(default=None, alias="e")


class KeySet(BaseModel):
    """Ordered key records of one issuer. Key ids are not guaranteed unique."""

    model_config = ConfigDict(extra="ignore")

    keys: List[KeyRecord]
