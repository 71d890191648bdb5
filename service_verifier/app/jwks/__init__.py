"""
Key retrieval and reconstruction.

- transport: fetch-by-URL capability (httpx in production).
- resolver: fetches an issuer's key set and selects a key by id.
- reconstruct: turns a key record's base64url RSA components into a key.

Keys are resolved per verification; there is no key cache.
"""
