"""
LinkedIn sign-in: start the OAuth flow, handle the callback, log out.
"""
import logging
import secrets

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from authormity.core.config import settings
from authormity.db.session import get_db
from authormity.dependencies.services import get_linkedin_client
from authormity.services.linkedin_client import LinkedInClient
from authormity.services.oauth_callback import CallbackReason, OAuthCallbackController
from authormity.utils.cookies import CookieContext

logger = logging.getLogger(__name__)

router = APIRouter()

_FAILURE_STATUS = {
    CallbackReason.UPSTREAM_FAILURE: status.HTTP_502_BAD_GATEWAY,
    CallbackReason.ACCOUNT_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    CallbackReason.SESSION_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _frontend(path: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}{path}"


def _failure_response(status_code: int) -> JSONResponse:
    # Server-side failures: the specific reason stays in the logs
    return JSONResponse(
        status_code=status_code,
        content={"error": "Sign-in failed. Please try again.", "code": "AUTH_FAILED"},
    )


@router.get("/linkedin")
def start_linkedin_login(linkedin: LinkedInClient = Depends(get_linkedin_client)):
    """Redirect to LinkedIn's consent screen with a fresh single-use CSRF state."""
    state = secrets.token_hex(16)
    cookies = CookieContext(incoming={})
    cookies.set(
        settings.OAUTH_STATE_COOKIE,
        state,
        max_age=settings.OAUTH_STATE_TTL_SECONDS,
        secure=settings.COOKIE_SECURE,
    )
    response = RedirectResponse(linkedin.authorization_url(state), status_code=status.HTTP_302_FOUND)
    return cookies.apply(response)


@router.get("/callback")
def linkedin_callback(
    request: Request,
    code: str = None,
    state: str = None,
    error: str = None,
    db: Session = Depends(get_db),
    linkedin: LinkedInClient = Depends(get_linkedin_client),
):
    cookies = CookieContext(incoming=dict(request.cookies))
    try:
        outcome = OAuthCallbackController(linkedin).handle(db, cookies, code, state, error=error)
    except Exception:
        # State cookie deletion is already queued; it must still reach the browser
        logger.exception("Unexpected error in LinkedIn callback")
        return cookies.apply(_failure_response(status.HTTP_500_INTERNAL_SERVER_ERROR))

    if outcome.succeeded:
        response = RedirectResponse(_frontend(outcome.redirect_path), status_code=status.HTTP_302_FOUND)
    elif outcome.recoverable:
        response = RedirectResponse(
            _frontend(f"/login?error={outcome.reason.value}"),
            status_code=status.HTTP_302_FOUND,
        )
    else:
        logger.warning("LinkedIn callback failed: %s", outcome.reason.value)
        response = _failure_response(
            _FAILURE_STATUS.get(outcome.reason, status.HTTP_500_INTERNAL_SERVER_ERROR)
        )
    return cookies.apply(response)


@router.post("/logout")
def logout(request: Request):
    cookies = CookieContext(incoming=dict(request.cookies))
    cookies.delete(settings.SESSION_COOKIE_NAME)
    return cookies.apply(JSONResponse(content={"success": True}))
