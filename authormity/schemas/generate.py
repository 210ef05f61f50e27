from pydantic import BaseModel
from typing import Any, Dict, Optional


class GenerateRequest(BaseModel):
    """Generation call. Type-specific fields (topic, hookText, samplePosts, ...) ride along as extras."""
    type: Optional[str] = None
    useVoice: bool = False
    clientId: Optional[str] = None
    saveVoice: bool = True  # analyzeVoice only: store the result as the voice profile

    class Config:
        extra = "allow"

    def generation_input(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class GenerateResponse(BaseModel):
    content: str
