"""
Heights Ledger - Security Module

The ledger does not manage users or sessions. It only verifies bearer
JWTs issued by the identity service and reads the opaque user id from
the `sub` claim.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Any
import uuid

from jose import jwt, JWTError

from tradeledger.config import settings


def create_access_token(
    subject: str | Any,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict] = None,
) -> str:
    """
    Create a JWT access token.

    Used by tests and service-to-service tooling; end-user tokens come
    from the identity service signed with the same key.

    Args:
        subject: The user id
        expires_delta: Optional custom expiration time
        additional_claims: Optional additional claims to include in token

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode = {
        "exp": expire,
        "sub": str(subject),
        "iat": now,
        "type": "access",
        "jti": str(uuid.uuid4()),
    }
    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded token payload as dict, or None if invalid or expired
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def verify_token(token: str, token_type: str = "access") -> Optional[str]:
    """
    Verify a JWT token and return the subject.

    Args:
        token: The JWT token string to verify
        token_type: Expected token type

    Returns:
        Subject (user id) if token is valid, None otherwise
    """
    payload = decode_token(token)
    if payload is None:
        return None

    if payload.get("type") != token_type:
        return None

    subject = payload.get("sub")
    if not subject:
        return None
    return str(subject)
