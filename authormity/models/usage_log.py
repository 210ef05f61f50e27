from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from datetime import datetime
from authormity.db.base import Base


class UsageLog(Base):
    """Append-only audit row, one per successful generation."""
    __tablename__ = "usage_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String, nullable=False)
    model_used = Column(String, nullable=True)
    tokens_used = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
