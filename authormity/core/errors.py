"""
Domain errors raised by the auth, generation and billing services.
Routes translate these into HTTP responses; messages on AIServiceError and
UpstreamError are safe to show, their details are only logged.
"""
from typing import Optional


class AuthormityError(Exception):
    """Base class. `code` is the short enum-like string exposed to clients."""

    code = "INTERNAL_ERROR"
    status = 500

    def __init__(self, message: str, *, code: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status


class ConfigError(AuthormityError):
    """Missing or invalid secret/configuration value."""

    code = "CONFIG_ERROR"


class CryptoError(AuthormityError):
    """Malformed ciphertext or failed authentication tag."""

    code = "CRYPTO_ERROR"


class UpstreamError(AuthormityError):
    """Identity provider answered with a non-success status."""

    code = "UPSTREAM_ERROR"
    status = 502

    def __init__(self, message: str, *, upstream_status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body


class AccountCreationError(AuthormityError):
    code = "ACCOUNT_CREATION_FAILED"


class SessionError(AuthormityError):
    code = "SESSION_CREATION_FAILED"


class PlanLimitError(AuthormityError):
    code = "PLAN_LIMIT_REACHED"
    status = 403

    def __init__(self, reason: str, posts_used: int, limit: Optional[int]):
        super().__init__(reason)
        self.reason = reason
        self.posts_used = posts_used
        self.limit = limit


class ValidationError(AuthormityError):
    code = "VALIDATION_ERROR"
    status = 400


class AIServiceError(AuthormityError):
    code = "AI_SERVICE_ERROR"
    status = 502
