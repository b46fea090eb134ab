"""
Heritage Numérique Backend — Authentication & Password Security
================================================================

What:  Password hashing, JWT issuance/verification, and the FastAPI
       dependencies that resolve the calling user.
How:   argon2-cffi for password hashes, python-jose for HS256 tokens.
       Tokens are stateless: nothing is stored server-side, and a token
       stays valid until `exp` unless the account is deactivated.
Who:   AuthService issues tokens; every protected route depends on
       get_current_user (or require_superadmin).

Token Claims:
    sub      user email
    user_id  user UUID (string)
    role     platform role (ROLE_MEMBER / ROLE_ADMIN)
    iss      settings.jwt_issuer
    iat/exp  issue time / issue time + jwt_expiration_seconds
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.config import settings
from heritage.database import get_db_session
from heritage.exceptions import PermissionDeniedError, UnauthorizedError
from heritage.models.user import User

logger = logging.getLogger(__name__)

_password_hasher = PasswordHasher()

# auto_error=False: a missing header goes through our own envelope, not
# FastAPI's default 403
_bearer_scheme = HTTPBearer(auto_error=False)


# ── Passwords ─────────────────────────────────────────────────────────────
def hash_password(password: str) -> str:
    return _password_hasher.hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    """True when `password` matches the stored argon2 hash."""
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


# ── Tokens ────────────────────────────────────────────────────────────────
def create_access_token(user: User, now: Optional[datetime] = None) -> str:
    """
    Issue a signed access token for `user`.

    `now` is injectable so tests can mint tokens that are already expired.
    """
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": user.email,
        "user_id": str(user.id),
        "role": user.role,
        "iss": settings.jwt_issuer,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(seconds=settings.jwt_expiration_seconds)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature, issuer and expiry, and return the claims.

    Raises:
        UnauthorizedError: expired token (dedicated message) or any other
            decoding failure.
    """
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except ExpiredSignatureError:
        raise UnauthorizedError(message="Token has expired")
    except JWTError as e:
        logger.info("Rejected access token: %s", str(e))
        raise UnauthorizedError(message="Invalid authentication token")

    if not claims.get("sub") or not claims.get("user_id"):
        raise UnauthorizedError(message="Invalid authentication token")
    return claims


# ── Dependencies ──────────────────────────────────────────────────────────
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Resolve the caller from `Authorization: Bearer <jwt>`.

    Raises UnauthorizedError when the header is missing, the token does
    not verify, or the account no longer exists or is inactive.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError(message="Authentication required")

    claims = decode_access_token(credentials.credentials)
    try:
        user_id = uuid.UUID(claims["user_id"])
    except ValueError:
        raise UnauthorizedError(message="Invalid authentication token")

    user = await db.get(User, user_id)
    if user is None or not user.active:
        raise UnauthorizedError(message="User account not found or inactive")
    return user


async def require_superadmin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_superadmin:
        logger.warning("Super admin access denied for user %s", current_user.id)
        raise PermissionDeniedError(message="Platform administrator role required")
    return current_user
