from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from authormity.db.base import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)  # UUID string, also the session subject
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    headline = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)

    # Linked LinkedIn identity; tokens are AES-GCM blobs, never plaintext
    linkedin_person_id = Column(String, unique=True, index=True, nullable=True)
    linkedin_access_token = Column(String, nullable=True)
    linkedin_refresh_token = Column(String, nullable=True)
    token_expires_at = Column(DateTime, nullable=True)

    # Onboarding
    niche = Column(String, nullable=True)
    target_audience = Column(String, nullable=True)
    onboarding_completed = Column(Boolean, default=False, nullable=False)

    # Billing / quota
    plan = Column(String, default="free", nullable=False)  # free | pro | team
    plan_status = Column(String, default="active", nullable=False)  # active | cancelled | expired
    plan_expires_at = Column(DateTime, nullable=True)
    dodo_customer_id = Column(String, nullable=True)
    posts_used_this_month = Column(Integer, default=0, nullable=False)
    posts_reset_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
