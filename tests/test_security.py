"""
Heritage Numérique Backend — Security Unit Tests
=================================================

What:  Password hashing and JWT issuance/verification.

What we test:
    ✅ argon2 hash verifies the right password only
    ✅ Token round trip keeps sub / user_id / role claims
    ✅ Expired, foreign-signed and malformed tokens raise UnauthorizedError
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from heritage.config import settings
from heritage.exceptions import UnauthorizedError
from heritage.models.enums import UserRole
from heritage.models.user import User
from heritage.security import create_access_token, decode_access_token, hash_password, verify_password


def _user(role: UserRole = UserRole.MEMBER) -> User:
    return User(id=uuid.uuid4(), email="kadi@example.com", role=role.value)


class TestPasswords:

    def test_hash_is_not_plaintext(self):
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert hashed.startswith("$argon2")

    def test_verify_accepts_correct_password(self):
        assert verify_password(hash_password("secret123"), "secret123") is True

    def test_verify_rejects_wrong_password(self):
        assert verify_password(hash_password("secret123"), "secret124") is False

    def test_verify_rejects_garbage_hash(self):
        assert verify_password("not-a-hash", "secret123") is False


class TestTokens:

    def test_round_trip_claims(self):
        user = _user(UserRole.ADMIN)
        claims = decode_access_token(create_access_token(user))

        assert claims["sub"] == "kadi@example.com"
        assert claims["user_id"] == str(user.id)
        assert claims["role"] == "ROLE_ADMIN"
        assert claims["iss"] == settings.jwt_issuer
        assert claims["exp"] - claims["iat"] == settings.jwt_expiration_seconds

    def test_expired_token(self):
        issued = datetime.now(timezone.utc) - timedelta(seconds=settings.jwt_expiration_seconds + 60)
        token = create_access_token(_user(), now=issued)

        with pytest.raises(UnauthorizedError, match="expired"):
            decode_access_token(token)

    def test_token_signed_with_other_key(self):
        token = jwt.encode(
            {"sub": "x@example.com", "user_id": str(uuid.uuid4()), "iss": settings.jwt_issuer},
            "another-secret-key-entirely",
            algorithm="HS256",
        )
        with pytest.raises(UnauthorizedError, match="Invalid authentication token"):
            decode_access_token(token)

    def test_malformed_token(self):
        with pytest.raises(UnauthorizedError):
            decode_access_token("definitely.not.a-jwt")

    def test_missing_user_id_claim(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "x@example.com",
                "iss": settings.jwt_issuer,
                "iat": int(now.timestamp()),
                "exp": int((now + timedelta(minutes=5)).timestamp()),
            },
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(UnauthorizedError):
            decode_access_token(token)
