import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy.orm import Session

from authormity.models.post import Post
from authormity.models.profile import Profile
from authormity.services.linkedin_client import LinkedInClient
from authormity.services.linkedin_tokens import get_valid_access_token

logger = logging.getLogger(__name__)

# Posts scheduled further back than this are left for manual handling
DUE_WINDOW = timedelta(minutes=10)


def publish_post(db: Session, post: Post, linkedin: LinkedInClient, now: Optional[datetime] = None) -> str:
    """Publish one post now and mark it published. Raises on any failure, leaving the post untouched."""
    now = now or datetime.utcnow()
    profile = db.query(Profile).filter(Profile.id == post.user_id).first()
    if not profile:
        raise ValueError("Profile not found")

    access_token = get_valid_access_token(db, profile, linkedin, now=now)
    linkedin_post_id = linkedin.publish(access_token, profile.linkedin_person_id, post.content)

    post.status = "published"
    post.published_at = now
    post.linkedin_post_id = linkedin_post_id
    db.commit()
    return linkedin_post_id


def publish_due_posts(db: Session, linkedin: LinkedInClient, now: Optional[datetime] = None) -> Dict[str, int]:
    """Publish scheduled posts that fell due in the last DUE_WINDOW; failures are marked and skipped."""
    now = now or datetime.utcnow()
    posts = db.query(Post).filter(
        Post.status == "scheduled",
        Post.scheduled_at <= now,
        Post.scheduled_at >= now - DUE_WINDOW
    ).all()

    processed = 0
    failed = 0
    for post in posts:
        try:
            publish_post(db, post, linkedin, now=now)
            processed += 1
        except Exception as e:
            db.rollback()
            logger.error("Failed to publish post %s: %s: %s", post.id, type(e).__name__, e)
            post.status = "failed"
            db.commit()
            failed += 1

    if posts:
        logger.info("Scheduled publish run: %s published, %s failed", processed, failed)
    return {"processed": processed, "failed": failed, "total": len(posts)}
