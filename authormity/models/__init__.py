from authormity.models.profile import Profile
from authormity.models.voice_profile import VoiceProfile
from authormity.models.client import Client
from authormity.models.usage_log import UsageLog
from authormity.models.post import Post

__all__ = [
    "Profile",
    "VoiceProfile",
    "Client",
    "UsageLog",
    "Post"
]
