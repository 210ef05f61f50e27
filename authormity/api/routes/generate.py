"""
POST /api/generate: the single AI generation endpoint.
"""
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from authormity.core.errors import AIServiceError, PlanLimitError, ValidationError
from authormity.db.session import get_db
from authormity.dependencies.auth import get_current_account_id
from authormity.dependencies.services import get_generation_rate_limiter, get_llm_gateway
from authormity.schemas.generate import GenerateRequest, GenerateResponse
from authormity.services.generation import GenerationOrchestrator, GenerationRequest, run_best_effort
from authormity.services.llm_gateway import LLMGateway
from authormity.services.voice import store_voice_analysis
from authormity.utils.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str, code: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "code": code, **extra})


@router.post("", response_model=GenerateResponse)
def generate(
    body: GenerateRequest,
    account_id: str = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    llm: LLMGateway = Depends(get_llm_gateway),
    limiter: RateLimiter = Depends(get_generation_rate_limiter),
):
    if not limiter.allow(account_id):
        return _error(status.HTTP_429_TOO_MANY_REQUESTS, "Too many requests. Slow down.", "RATE_LIMITED")

    if not body.type:
        return _error(status.HTTP_400_BAD_REQUEST, "Generation type is required", "VALIDATION_ERROR")

    generation_input = body.generation_input()
    request = GenerationRequest(
        account_id=account_id,
        type_key=body.type,
        input=generation_input,
        use_voice=body.useVoice,
        client_id=body.clientId,
    )

    try:
        result = GenerationOrchestrator(db, llm).generate(request)
    except PlanLimitError as e:
        return _error(
            status.HTTP_403_FORBIDDEN, e.message, e.code,
            postsUsed=e.posts_used, limit=e.limit,
        )
    except ValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, e.message, e.code)
    except AIServiceError as e:
        return _error(status.HTTP_502_BAD_GATEWAY, e.message, e.code)
    except Exception:
        logger.exception("Unexpected generation failure for account %s", account_id)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Something went wrong", "INTERNAL_ERROR")

    if result.type_key == "analyzeVoice" and body.saveVoice:
        run_best_effort(
            "voice profile save", store_voice_analysis, db, account_id,
            list(generation_input.get("samplePosts") or []), result.content, body.clientId,
        )

    return {"content": result.content}
