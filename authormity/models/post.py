from sqlalchemy import Column, String, Text, ForeignKey, DateTime
from datetime import datetime
from authormity.db.base import Base

POST_STATUSES = ("draft", "scheduled", "published", "archived", "failed")


class Post(Base):
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)
    title = Column(String, nullable=True)
    content = Column(Text, nullable=False)
    type = Column(String, nullable=False, default="post")
    status = Column(String, nullable=False, default="draft", index=True)
    scheduled_at = Column(DateTime, nullable=True, index=True)
    published_at = Column(DateTime, nullable=True)
    linkedin_post_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
