from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError

from authormity.core.config import settings
from authormity.core.errors import ConfigError, SessionError


def _session_secret() -> str:
    if not settings.SESSION_SECRET:
        raise ConfigError("SESSION_SECRET environment variable not set")
    return settings.SESSION_SECRET


def create_session_token(account_id: str, expires_delta: Optional[timedelta] = None) -> str:
    if not expires_delta:
        expires_delta = timedelta(days=settings.SESSION_TTL_DAYS)
    now = datetime.utcnow()
    to_encode = {"sub": account_id, "iat": now, "exp": now + expires_delta}
    secret = _session_secret()
    try:
        return jwt.encode(to_encode, secret, algorithm=settings.SESSION_ALGORITHM)
    except JWTError as e:
        raise SessionError(f"Could not sign session token: {e}") from e


def verify_session_token(token: str) -> Optional[dict]:
    """Return the session payload, or None if the token is invalid or expired."""
    try:
        payload = jwt.decode(token, _session_secret(), algorithms=[settings.SESSION_ALGORITHM])
    except JWTError:
        return None
    if not payload.get("sub"):
        return None
    return payload
