"""Authentication: password hashing and access tokens."""

from remind.auth.passwords import hash_password, verify_password
from remind.auth.tokens import TokenClaims, TokenService

__all__ = ["TokenClaims", "TokenService", "hash_password", "verify_password"]
