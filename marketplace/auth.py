"""Authentication utilities: password hashing, JWT access tokens, current principal."""

from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from marketplace.config import Settings, get_settings
from marketplace.exceptions import AuthenticationError
from marketplace.models.user import Principal, UserRole

# Bearer token scheme; missing headers are reported by get_current_principal
security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    """Verify a password against its bcrypt hash."""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode(), hashed.encode())
    except ValueError:
        # Malformed hash stored for this account
        return False


def create_access_token(
    user_id: str,
    role: str,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token carrying the user's ID and role."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))

    to_encode = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    """Decode and validate a JWT token.

    Raises:
        AuthenticationError: If the token is invalid or expired.
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        raise AuthenticationError("Invalid or expired token")


def principal_from_token(token: str, settings: Settings) -> Principal:
    """Build the authenticated principal from a bearer token.

    Raises:
        AuthenticationError: If the token is invalid or its payload incomplete.
    """
    payload = decode_token(token, settings)
    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or role not in {r.value for r in UserRole}:
        raise AuthenticationError("Invalid token payload")
    return Principal(id=user_id, role=role)


def get_current_principal(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Principal:
    """FastAPI dependency resolving the bearer token to a Principal."""
    if not credentials or not credentials.credentials:
        raise AuthenticationError("Not authenticated - provide an Authorization: Bearer header")
    return principal_from_token(credentials.credentials, settings)


# Type alias for dependency injection
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
