from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from authormity.core.config import settings
from authormity.core.errors import ConfigError
from authormity.db.session import get_db
from authormity.models.profile import Profile
from authormity.utils.auth import verify_session_token


def _session_token(request: Request) -> Optional[str]:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    authorization = request.headers.get("authorization") or ""
    if authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


def get_current_account_id(request: Request) -> str:
    """Account id from the session cookie (or a Bearer header for API clients)."""
    token = _session_token(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    try:
        payload = verify_session_token(token)
    except ConfigError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server misconfigured")
    if not payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")
    return payload["sub"]


def get_current_profile(
    account_id: str = Depends(get_current_account_id),
    db: Session = Depends(get_db),
) -> Profile:
    profile = db.query(Profile).filter(Profile.id == account_id).first()
    if not profile:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return profile
