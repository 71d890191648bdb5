"""
Token validation package.

- token_verifier: signature, pinned algorithm, exp/nbf checks.
- pipeline: glimpse -> resolve -> reconstruct -> verify, failing fast with
  the first stage's typed error.
"""
