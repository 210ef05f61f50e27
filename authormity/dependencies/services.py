from authormity.services.linkedin_client import LinkedInClient
from authormity.services.llm_gateway import LLMGateway
from authormity.utils.rate_limit import RateLimiter, generation_rate_limiter


def get_linkedin_client() -> LinkedInClient:
    return LinkedInClient()


def get_llm_gateway() -> LLMGateway:
    return LLMGateway()


def get_generation_rate_limiter() -> RateLimiter:
    return generation_rate_limiter
