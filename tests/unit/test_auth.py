"""Unit tests for password hashing and access tokens."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from remind.auth import TokenService, hash_password, verify_password
from remind.config import Settings
from remind.exceptions import AuthenticationError, ConfigurationError


class TestPasswords:
    """Test suite for password hashing."""

    def test_hash_and_verify(self) -> None:
        """Test that a hash verifies only its own password."""
        hashed = hash_password("correct horse", rounds=4)

        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed) is True
        assert verify_password("wrong horse", hashed) is False

    def test_malformed_hash_does_not_verify(self) -> None:
        """Test that a corrupt stored hash is treated as a mismatch."""
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestTokenService:
    """Test suite for TokenService."""

    @pytest.fixture
    def tokens(self) -> TokenService:
        return TokenService(Settings(_env_file=None, jwt_secret="unit-secret"))

    def test_issue_and_verify(self, tokens: TokenService) -> None:
        """Test a token round trip."""
        token = tokens.issue(user_id="u1", email="a@example.com")

        claims = tokens.verify(token)

        assert claims.user_id == "u1"
        assert claims.email == "a@example.com"
        assert claims.expires_at - claims.issued_at == timedelta(days=7)

    def test_expired_token_is_rejected(self, tokens: TokenService) -> None:
        """Test that tokens past their lifetime fail verification."""
        issued = datetime.now(timezone.utc) - timedelta(days=8)
        token = tokens.issue(user_id="u1", email="a@example.com", now=issued)

        with pytest.raises(AuthenticationError, match="Token expired"):
            tokens.verify(token)

    def test_foreign_signature_is_rejected(self, tokens: TokenService) -> None:
        """Test that a token signed with another secret fails verification."""
        other = TokenService(Settings(_env_file=None, jwt_secret="other-secret"))
        token = other.issue(user_id="u1", email="a@example.com")

        with pytest.raises(AuthenticationError, match="Invalid token"):
            tokens.verify(token)

    def test_token_without_subject_is_rejected(self, tokens: TokenService) -> None:
        """Test that required claims are enforced."""
        now = int(datetime.now(timezone.utc).timestamp())
        token = jwt.encode(
            {"iss": "remind-app", "iat": now, "exp": now + 60},
            "unit-secret",
            algorithm="HS256",
        )

        with pytest.raises(AuthenticationError):
            tokens.verify(token)

    def test_missing_secret_is_a_configuration_error(self) -> None:
        """Test that an empty signing secret is refused."""
        with pytest.raises(ConfigurationError):
            TokenService(Settings(_env_file=None, jwt_secret=""))
