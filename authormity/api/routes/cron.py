import hmac

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from authormity.core.config import settings
from authormity.db.session import get_db
from authormity.dependencies.services import get_linkedin_client
from authormity.services.linkedin_client import LinkedInClient
from authormity.tasks.publisher import publish_due_posts

router = APIRouter()


@router.post("/publish-scheduled")
def publish_scheduled(
    authorization: str = Header(None),
    db: Session = Depends(get_db),
    linkedin: LinkedInClient = Depends(get_linkedin_client),
):
    """Called by an external scheduler every few minutes."""
    expected = f"Bearer {settings.CRON_SECRET}"
    if not settings.CRON_SECRET or not authorization or not hmac.compare_digest(authorization.encode(), expected.encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return publish_due_posts(db, linkedin)
