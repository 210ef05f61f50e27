"""
Map a verified LinkedIn identity onto a first-party Profile.
Lookup order: LinkedIn person id, then email, then create.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from authormity.core.errors import AccountCreationError
from authormity.models.profile import Profile
from authormity.services.linkedin_client import LinkedInProfile, LinkedInTokens
from authormity.utils.encryption import encrypt_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedAccount:
    account_id: str
    is_new_account: bool
    onboarding_done: bool


def _find_existing(db: Session, external: LinkedInProfile) -> Optional[Profile]:
    profile = db.query(Profile).filter(Profile.linkedin_person_id == external.external_id).first()
    if profile:
        return profile
    return db.query(Profile).filter(func.lower(Profile.email) == external.email.lower()).first()


def _create(db: Session, external: LinkedInProfile) -> Profile:
    profile = Profile(
        id=str(uuid.uuid4()),
        email=external.email,
        name=external.name,
        plan="free",
        plan_status="active",
        posts_used_this_month=0,
        onboarding_completed=False,
    )
    db.add(profile)
    db.flush()
    return profile


class AccountResolver:
    def __init__(self, db: Session):
        self.db = db

    def resolve(self, external: LinkedInProfile, tokens: LinkedInTokens) -> ResolvedAccount:
        """
        Find-or-create the Profile for `external` and store the linked identity on it.
        Calling this twice with the same identity returns the same account id.
        Raises AccountCreationError when the store fails; the caller must not retry.
        """
        db = self.db
        is_new = False
        try:
            profile = _find_existing(db, external)
            if profile is None:
                try:
                    profile = _create(db, external)
                    is_new = True
                except IntegrityError:
                    # A concurrent callback created the same person first
                    db.rollback()
                    profile = _find_existing(db, external)
                    if profile is None:
                        raise

            profile.name = external.name or profile.name
            profile.avatar_url = external.avatar or profile.avatar_url
            profile.linkedin_person_id = external.external_id
            profile.linkedin_access_token = encrypt_token(tokens.access_token)
            profile.linkedin_refresh_token = (
                encrypt_token(tokens.refresh_token) if tokens.refresh_token else None
            )
            profile.token_expires_at = datetime.utcnow() + timedelta(seconds=tokens.expires_in)
            profile.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(profile)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Account resolution failed for LinkedIn id %s: %s", external.external_id, e)
            raise AccountCreationError("Could not create or update account") from e

        if is_new:
            logger.info("Created account %s for LinkedIn id %s", profile.id, external.external_id)

        return ResolvedAccount(
            account_id=profile.id,
            is_new_account=is_new,
            onboarding_done=bool(profile.onboarding_completed),
        )
