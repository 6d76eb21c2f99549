"""
Password hashing and session tokens.

Hashing is delegated to passlib and tokens to python-jose; this module only
fixes the scheme, the claims, and the error raised on a bad token.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from therapease.config import JWT_ALGORITHM, JWT_EXPIRE_MINUTES, JWT_SECRET
from therapease.services.errors import AuthenticationError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def create_access_token(
    account_id: UUID,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Issue a signed token whose subject is the account id."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=JWT_EXPIRE_MINUTES))
    claims = {"sub": str(account_id), "role": role, "exp": expire}
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify a token and return its claims.

    Raises:
        AuthenticationError: If the token is malformed, expired, or has no subject.
    """
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        raise AuthenticationError("Not authorized, token failed") from e

    subject = payload.get("sub")
    if not subject:
        raise AuthenticationError("Not authorized, token failed")
    try:
        payload["sub"] = UUID(subject)
    except ValueError as e:
        raise AuthenticationError("Not authorized, token failed") from e
    return payload
