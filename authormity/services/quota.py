"""
Monthly generation quota per account.
Counters live on the profiles row and are only mutated with single UPDATE statements,
so concurrent generations for one account never lose increments. The check itself is
best effort: two racing requests may overshoot the limit by one.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from authormity.core.plan_limits import get_plan_limit
from authormity.models.profile import Profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuotaCheck:
    allowed: bool
    posts_used: int
    limit: Optional[int]  # None = unlimited
    reason: Optional[str] = None
    code: Optional[str] = None


def next_reset_at(now: datetime) -> datetime:
    """First instant of the calendar month after `now`."""
    if now.month == 12:
        return datetime(now.year + 1, 1, 1)
    return datetime(now.year, now.month + 1, 1)


class QuotaManager:
    def __init__(self, db: Session):
        self.db = db

    def check_can_generate(self, account_id: str) -> QuotaCheck:
        profile = self.db.query(Profile).filter(Profile.id == account_id).first()
        if not profile:
            return QuotaCheck(
                allowed=False, posts_used=0, limit=0,
                reason="Profile not found", code="PROFILE_NOT_FOUND",
            )

        limit = get_plan_limit(profile.plan)
        posts_used = profile.posts_used_this_month or 0

        if limit is None:
            return QuotaCheck(allowed=True, posts_used=posts_used, limit=None)

        if posts_used >= limit:
            return QuotaCheck(
                allowed=False,
                posts_used=posts_used,
                limit=limit,
                reason=f"You've used all {limit} generations for this month. Upgrade to Pro for unlimited.",
                code="LIMIT_REACHED",
            )

        return QuotaCheck(allowed=True, posts_used=posts_used, limit=limit)

    def reset_if_due(self, account_id: str, now: Optional[datetime] = None) -> bool:
        """Zero the counter when the reset date has passed. Returns True if a reset happened."""
        now = now or datetime.utcnow()
        result = self.db.execute(
            update(Profile)
            .where(Profile.id == account_id, Profile.posts_reset_at <= now)
            .values(posts_used_this_month=0, posts_reset_at=next_reset_at(now))
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        if result.rowcount:
            logger.info("Reset monthly generation counter for account %s", account_id)
            return True
        return False

    def increment(self, account_id: str) -> None:
        """Add one to the counter in a single UPDATE (no read-modify-write)."""
        try:
            self.db.execute(
                update(Profile)
                .where(Profile.id == account_id)
                .values(posts_used_this_month=Profile.posts_used_this_month + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
