from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON
from authormity.db.base import Base


class VoiceProfile(Base):
    """Writing-style fingerprint produced by the analyzeVoice generation type."""
    __tablename__ = "voice_profiles"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    sample_posts = Column(JSON, nullable=False, default=list)
    tone = Column(String, nullable=True)
    sentence_length = Column(String, nullable=True)
    emoji_usage = Column(String, nullable=True)
    hook_style = Column(String, nullable=True)
    vocabulary = Column(JSON, nullable=False, default=list)
    avoids = Column(JSON, nullable=False, default=list)
    personality_traits = Column(JSON, nullable=False, default=list)
    signature = Column(Text, nullable=True)
    raw_analysis = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
