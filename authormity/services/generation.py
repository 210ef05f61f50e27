"""
Single entry point for AI generation.

Order per request: reset quota if due -> quota check (quota-consuming types only) ->
voice profile -> prompt -> LLM call -> usage log + quota increment. The last two only
run after a successful LLM call and never fail the request.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from authormity.core.errors import AIServiceError, PlanLimitError, ValidationError
from authormity.models.usage_log import UsageLog
from authormity.services.llm_gateway import LLMGateway
from authormity.services.prompts import GENERATION_CONFIG, SYSTEM_PROMPT, build_prompt, build_voice_context
from authormity.services.quota import QuotaManager
from authormity.services.voice import load_voice_profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationRequest:
    account_id: str
    type_key: str
    input: Dict[str, Any] = field(default_factory=dict)
    use_voice: bool = False
    client_id: Optional[str] = None


@dataclass(frozen=True)
class GenerationResult:
    content: str
    type_key: str
    tokens_used: Optional[int] = None


def run_best_effort(label: str, fn: Callable, *args, **kwargs) -> bool:
    """Run a side effect whose failure must not reach the caller. Returns False if it failed."""
    try:
        fn(*args, **kwargs)
        return True
    except Exception as e:
        logger.warning("Best-effort %s failed: %s: %s", label, type(e).__name__, e)
        return False


def record_usage(db: Session, account_id: str, action: str, model: Optional[str], tokens_used: Optional[int]) -> None:
    try:
        db.add(UsageLog(user_id=account_id, action=action, model_used=model, tokens_used=tokens_used))
        db.commit()
    except Exception:
        db.rollback()
        raise


class GenerationOrchestrator:
    def __init__(
        self,
        db: Session,
        llm: LLMGateway,
        quota: Optional[QuotaManager] = None,
    ):
        self.db = db
        self.llm = llm
        self.quota = quota or QuotaManager(db)

    def generate(self, request: GenerationRequest) -> GenerationResult:
        if not request.account_id:
            raise ValidationError("account id is required")
        config = GENERATION_CONFIG.get(request.type_key)
        if config is None:
            raise ValidationError(f"Unknown generation type: {request.type_key}")

        self.quota.reset_if_due(request.account_id)

        if config.consumes_quota:
            check = self.quota.check_can_generate(request.account_id)
            if not check.allowed:
                raise PlanLimitError(
                    check.reason or "Monthly limit reached",
                    posts_used=check.posts_used,
                    limit=check.limit,
                )

        voice_context = None
        if request.use_voice:
            voice = load_voice_profile(self.db, request.account_id, request.client_id)
            if voice is not None:
                voice_context = build_voice_context(voice)

        built = build_prompt(request.type_key, request.input, voice_context)

        try:
            completion = self.llm.call(
                prompt=built.prompt,
                system_prompt=SYSTEM_PROMPT,
                temperature=built.temperature,
                max_tokens=built.max_tokens,
            )
        except Exception as e:
            # Detail stays in the logs; callers only ever see the generic error
            logger.error("Generation %s failed for account %s: %s: %s",
                         request.type_key, request.account_id, type(e).__name__, e)
            raise AIServiceError("AI generation failed. Please try again.") from e

        run_best_effort(
            "usage log", record_usage, self.db, request.account_id,
            request.type_key, completion.model, completion.tokens_used,
        )
        if built.consumes_quota:
            run_best_effort("quota increment", self.quota.increment, request.account_id)

        return GenerationResult(
            content=completion.text,
            type_key=request.type_key,
            tokens_used=completion.tokens_used,
        )
