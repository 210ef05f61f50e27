"""
Saved posts: drafts, scheduling, and direct LinkedIn publishing.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from authormity.core.errors import AuthormityError, UpstreamError
from authormity.core.plan_limits import can_use_feature
from authormity.db.session import get_db
from authormity.dependencies.auth import get_current_profile
from authormity.dependencies.services import get_linkedin_client
from authormity.models.client import Client
from authormity.models.post import POST_STATUSES, Post
from authormity.models.profile import Profile
from authormity.schemas.posts import PostCreate, PostResponse
from authormity.services.linkedin_client import LinkedInClient
from authormity.services.linkedin_tokens import get_valid_access_token
from authormity.tasks.publisher import publish_post

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_feature(profile: Profile, feature: str) -> None:
    if not can_use_feature(profile.plan or "free", feature):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Your plan does not include {feature}. Upgrade to unlock it.",
        )


def _owned_post(db: Session, profile: Profile, post_id: str) -> Post:
    post = db.query(Post).filter(
        Post.id == post_id,
        Post.user_id == profile.id
    ).first()
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@router.get("", response_model=list[PostResponse])
def list_posts(
    status_filter: Optional[str] = Query(None, alias="status"),
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    query = db.query(Post).filter(Post.user_id == profile.id)
    if status_filter:
        if status_filter not in POST_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown status: {status_filter}")
        query = query.filter(Post.status == status_filter)
    return query.order_by(Post.created_at.desc()).all()


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
def create_post(
    body: PostCreate,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    content = (body.content or "").strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Content is required")

    if body.client_id:
        client = db.query(Client).filter(
            Client.id == body.client_id,
            Client.user_id == profile.id
        ).first()
        if not client:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Client not found")

    scheduled_at = None
    post_status = "draft"
    if body.scheduled_at is not None:
        _require_feature(profile, "scheduling")
        scheduled_at = _naive_utc(body.scheduled_at)
        if scheduled_at <= datetime.utcnow():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="scheduled_at must be in the future")
        post_status = "scheduled"

    post = Post(
        id=str(uuid.uuid4()),
        user_id=profile.id,
        client_id=body.client_id,
        title=body.title,
        content=content,
        type=body.type or "post",
        status=post_status,
        scheduled_at=scheduled_at,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    return post


@router.post("/{post_id}/publish", response_model=PostResponse)
def publish_now(
    post_id: str,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
    linkedin: LinkedInClient = Depends(get_linkedin_client),
):
    _require_feature(profile, "directPosting")
    post = _owned_post(db, profile, post_id)
    if post.status == "published":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Post is already published")

    try:
        publish_post(db, post, linkedin)
    except UpstreamError as e:
        db.rollback()
        logger.error("Publishing post %s failed: %s (status=%s)", post.id, e.message, e.upstream_status)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to publish to LinkedIn")
    except AuthormityError as e:
        db.rollback()
        logger.error("Publishing post %s failed: %s", post.id, e.message)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to publish to LinkedIn")

    db.refresh(post)
    return post


@router.delete("/{post_id}/linkedin", response_model=PostResponse)
def delete_from_linkedin(
    post_id: str,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
    linkedin: LinkedInClient = Depends(get_linkedin_client),
):
    post = _owned_post(db, profile, post_id)
    if not post.linkedin_post_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Post is not on LinkedIn")

    try:
        access_token = get_valid_access_token(db, profile, linkedin)
        linkedin.delete_post(access_token, post.linkedin_post_id)
    except UpstreamError as e:
        logger.error("Deleting post %s from LinkedIn failed: %s (status=%s)", post.id, e.message, e.upstream_status)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to delete from LinkedIn")

    post.linkedin_post_id = None
    post.status = "draft"
    post.published_at = None
    db.commit()
    db.refresh(post)
    return post
