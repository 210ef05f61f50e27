from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey
from authormity.db.base import Base


class Client(Base):
    """Ghostwriter client: a person the account writes for, with their own voice."""
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    niche = Column(String, nullable=True)
    linkedin_url = Column(String, nullable=True)
    voice_profile_id = Column(String(36), ForeignKey("voice_profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
