"""
Unverified claim extraction.

Reads the issuer and key id a token claims to have, so the matching key can
be fetched. Results are routing data only and must never feed authorization.
"""
