"""
OpenRouter chat-completions gateway.
At most two attempts: one retry after a fixed 1s pause, only when the first answer is a 5xx.
"""
import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from authormity.core.config import settings
from authormity.core.errors import AIServiceError

logger = logging.getLogger(__name__)

RETRY_BACKOFF_SECONDS = 1.0


@dataclass(frozen=True)
class Completion:
    text: str
    model: str
    tokens_used: Optional[int] = None


class LLMGateway:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        default_model: Optional[str] = None,
        timeout: Optional[float] = None,
        sleep=time.sleep,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENROUTER_API_KEY
        self.base_url = (base_url or settings.OPENROUTER_BASE_URL).rstrip("/")
        self.default_model = default_model or settings.OPENROUTER_MODEL
        self.timeout = timeout or settings.OPENROUTER_TIMEOUT_SECONDS
        self.sleep = sleep

    def call(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.8,
        max_tokens: int = 1000,
        model: Optional[str] = None,
    ) -> Completion:
        model = model or self.default_model
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": settings.FRONTEND_URL,
            "X-Title": "Authormity",
        }

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(f"{self.base_url}/chat/completions", json=payload, headers=headers)
                if response.status_code >= 500:
                    logger.warning("OpenRouter returned %s, retrying once", response.status_code)
                    self.sleep(RETRY_BACKOFF_SECONDS)
                    response = client.post(f"{self.base_url}/chat/completions", json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error("OpenRouter request failed: %s: %s", type(e).__name__, e)
            raise AIServiceError("AI request failed") from e

        if not response.is_success:
            logger.error("OpenRouter API error %s: %s", response.status_code, response.text[:500])
            raise AIServiceError(f"AI request failed with status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise AIServiceError("AI response was not JSON") from e

        content = _extract_content(data)
        if not content:
            logger.error("OpenRouter response had no content: %s", str(data)[:500])
            raise AIServiceError("No content returned from AI")

        usage = data.get("usage") if isinstance(data, dict) else None
        tokens_used = usage.get("total_tokens") if isinstance(usage, dict) else None
        return Completion(
            text=content.strip(),
            model=model,
            tokens_used=tokens_used if isinstance(tokens_used, int) else None,
        )


def _extract_content(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, str) or not content.strip():
        return None
    return content


_CODE_FENCE_START = re.compile(r"^```(?:json)?\s*\n?")
_CODE_FENCE_END = re.compile(r"\n?```\s*$")


def parse_ai_json(content: str) -> Any:
    """Parse model output that should be JSON, tolerating a surrounding markdown code fence."""
    cleaned = _CODE_FENCE_END.sub("", _CODE_FENCE_START.sub("", content.strip())).strip()
    return json.loads(cleaned)
