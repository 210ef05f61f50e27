"""
Decrypt a profile's stored LinkedIn tokens, refreshing them first when they are close to expiry.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from authormity.core.errors import UpstreamError
from authormity.models.profile import Profile
from authormity.services.linkedin_client import LinkedInClient
from authormity.utils.encryption import decrypt_token, encrypt_token

logger = logging.getLogger(__name__)

REFRESH_WINDOW = timedelta(days=5)


def needs_refresh(profile: Profile, now: datetime) -> bool:
    if profile.token_expires_at is None:
        return True
    return now >= profile.token_expires_at - REFRESH_WINDOW


def get_valid_access_token(
    db: Session,
    profile: Profile,
    linkedin: LinkedInClient,
    now: Optional[datetime] = None,
) -> str:
    """
    Plaintext access token for `profile`. Rotated tokens are re-encrypted and saved.
    Raises UpstreamError if the account is not linked or the refresh is rejected.
    """
    if not profile.linkedin_person_id or not profile.linkedin_access_token:
        raise UpstreamError("LinkedIn account is not connected")

    now = now or datetime.utcnow()
    access_token = decrypt_token(profile.linkedin_access_token)
    if not needs_refresh(profile, now):
        return access_token

    if not profile.linkedin_refresh_token:
        # Nothing to refresh with; the stored token may still be accepted
        logger.info("Account %s has no refresh token, using stored access token", profile.id)
        return access_token

    tokens = linkedin.refresh(decrypt_token(profile.linkedin_refresh_token))
    profile.linkedin_access_token = encrypt_token(tokens.access_token)
    if tokens.refresh_token:
        profile.linkedin_refresh_token = encrypt_token(tokens.refresh_token)
    profile.token_expires_at = now + timedelta(seconds=tokens.expires_in)
    db.commit()
    logger.info("Refreshed LinkedIn token for account %s", profile.id)
    return tokens.access_token
