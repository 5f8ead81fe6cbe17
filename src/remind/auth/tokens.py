"""Signed access tokens (JWT, HS256)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
import structlog

from remind.config import Settings
from remind.exceptions import AuthenticationError, ConfigurationError

logger = structlog.get_logger()

_ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """Issues and verifies access tokens for one signing secret."""

    def __init__(self, settings: Settings) -> None:
        if not settings.jwt_secret:
            raise ConfigurationError("REMIND_JWT_SECRET must be set")
        self._secret = settings.jwt_secret
        self._issuer = settings.jwt_issuer
        self._lifetime = timedelta(days=settings.jwt_expiry_days)

    def issue(self, *, user_id: str, email: str, now: datetime | None = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "email": email,
            "iss": self._issuer,
            "iat": int(now.timestamp()),
            "exp": int((now + self._lifetime).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """Decode and validate a token.

        Raises:
            AuthenticationError: If the token is malformed, expired, or was
                signed by someone else.
        """

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                issuer=self._issuer,
                options={"require": ["sub", "exp", "iat", "iss"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Token expired") from e
        except jwt.InvalidTokenError as e:
            logger.info("token_rejected", reason=type(e).__name__)
            raise AuthenticationError("Invalid token") from e

        return TokenClaims(
            user_id=str(payload["sub"]),
            email=str(payload.get("email", "")),
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
