"""
SupplyLedger Security Utilities

JWT handling for caller principals and the registry-owner check.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from core.config import Settings, get_settings


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token."""
    runtime_settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=24))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, runtime_settings.jwt_secret, algorithm=runtime_settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a locally signed access token."""
    runtime_settings = get_settings()
    try:
        return jwt.decode(
            token,
            runtime_settings.jwt_secret,
            algorithms=[runtime_settings.jwt_algorithm],
        )
    except JWTError:
        return None


def is_owner(principal: str | None, settings: Settings | None = None) -> bool:
    """True when the principal is in the configured authorized-owner set."""
    if not principal:
        return False
    runtime_settings = settings or get_settings()
    return principal in set(runtime_settings.owner_principals)
