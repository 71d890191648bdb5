"""
Verifier Service package.

Verifies JWTs issued by cloud service accounts without prior knowledge of
the signer's key:

- app.claims: Unverified issuer/key id extraction (routing only).
- app.jwks: Key-distribution fetch, key selection, RSA key reconstruction.
- app.validation: Signature and validity-window checks, and the pipeline
  that sequences all stages.
- app.main: FastAPI application exposing ``POST /verify``.
- app.cli: Command line entrypoint.

Module import must not perform network calls. All IO happens in the
pipeline, driven by route handlers or the CLI.
"""
