"""
Bearer tokens for owner accounts.

Tokens are python-jose JWTs signed with ``JWT_SECRET``. The ``sub`` claim
holds the owner id that every storage query is scoped by.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from biztrackr.config import get_settings

TOKEN_TYPE = "access"


def create_access_token(owner_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue a signed token for an owner.

    Args:
        owner_id: Business account the token grants access to
        expires_delta: Token lifetime; ``JWT_EXPIRATION_MINUTES`` when None

    Returns:
        Encoded JWT
    """
    settings = get_settings()
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.jwt_expiration_minutes)

    claims = {
        "sub": owner_id,
        "type": TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature, expiry and token type.

    Raises:
        JWTError: If any check fails
    """
    settings = get_settings()
    claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    if claims.get("type") != TOKEN_TYPE:
        raise JWTError("Not an access token")
    return claims


def owner_id_from_token(token: str) -> str:
    """
    Owner id carried by a valid token.

    Raises:
        JWTError: If the token is invalid or names no owner
    """
    owner_id = decode_access_token(token).get("sub")
    if not owner_id:
        raise JWTError("Token names no owner")
    return owner_id
