"""
Voice profile lookup for generation, and storage of analyzeVoice results.
"""
import logging
import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from authormity.core.errors import ValidationError
from authormity.models.client import Client
from authormity.models.voice_profile import VoiceProfile
from authormity.services.llm_gateway import parse_ai_json

logger = logging.getLogger(__name__)

VOICE_FIELDS = ("tone", "sentence_length", "emoji_usage", "hook_style", "signature")
VOICE_LIST_FIELDS = ("vocabulary", "avoids", "personality_traits")


def _owned_client(db: Session, account_id: str, client_id: str) -> Client:
    client = db.query(Client).filter(
        Client.id == client_id,
        Client.user_id == account_id
    ).first()
    if not client:
        # Also covers clients that belong to another account
        raise ValidationError("Client not found", code="CLIENT_NOT_FOUND")
    return client


def load_voice_profile(db: Session, account_id: str, client_id: Optional[str] = None) -> Optional[VoiceProfile]:
    """
    Voice profile to inject into prompts. With `client_id`, the client's profile
    (the client must belong to `account_id`); otherwise the account's own.
    Returns None when no profile exists.
    """
    if client_id:
        client = _owned_client(db, account_id, client_id)
        if not client.voice_profile_id:
            return None
        return db.query(VoiceProfile).filter(VoiceProfile.id == client.voice_profile_id).first()

    return db.query(VoiceProfile).filter(
        VoiceProfile.user_id == account_id
    ).order_by(VoiceProfile.updated_at.desc()).first()


def store_voice_analysis(
    db: Session,
    account_id: str,
    sample_posts: List[str],
    content: str,
    client_id: Optional[str] = None,
) -> VoiceProfile:
    """
    Persist the JSON produced by an analyzeVoice generation.
    Updates the existing profile (the client's, or the account's own) in place.
    Raises ValueError if the model output is not a JSON object.
    """
    analysis = parse_ai_json(content)
    if not isinstance(analysis, dict):
        raise ValueError("Voice analysis is not a JSON object")

    client = _owned_client(db, account_id, client_id) if client_id else None
    if client is not None:
        voice = (
            db.query(VoiceProfile).filter(VoiceProfile.id == client.voice_profile_id).first()
            if client.voice_profile_id else None
        )
    else:
        voice = db.query(VoiceProfile).filter(VoiceProfile.user_id == account_id).first()

    if voice is None:
        voice = VoiceProfile(id=str(uuid.uuid4()), user_id=account_id)
        db.add(voice)

    voice.sample_posts = sample_posts
    for field in VOICE_FIELDS:
        value = analysis.get(field)
        setattr(voice, field, value if isinstance(value, str) else None)
    for field in VOICE_LIST_FIELDS:
        value = analysis.get(field)
        setattr(voice, field, [v for v in value if isinstance(v, str)] if isinstance(value, list) else [])
    voice.raw_analysis = analysis

    if client is not None:
        db.flush()
        client.voice_profile_id = voice.id
    db.commit()
    db.refresh(voice)
    logger.info("Stored voice profile %s for account %s", voice.id, account_id)
    return voice
