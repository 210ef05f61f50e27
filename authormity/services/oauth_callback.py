"""
LinkedIn OAuth callback state machine.

START -> STATE_VALIDATED -> CODE_EXCHANGED -> PROFILE_FETCHED -> ACCOUNT_RESOLVED -> SESSION_ISSUED,
with ERROR(reason) reachable from every step. The CSRF state cookie is deleted the moment it is
checked so a state value can never be replayed. No account is touched before the code exchange
succeeds, so a reused code fails at the provider without side effects.
"""
import hmac
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from authormity.core.config import settings
from authormity.core.errors import AuthormityError, UpstreamError
from authormity.services.account_resolver import AccountResolver, ResolvedAccount
from authormity.services.linkedin_client import LinkedInClient
from authormity.utils.auth import create_session_token
from authormity.utils.cookies import CookieContext

logger = logging.getLogger(__name__)


class CallbackState(str, Enum):
    START = "start"
    STATE_VALIDATED = "state_validated"
    CODE_EXCHANGED = "code_exchanged"
    PROFILE_FETCHED = "profile_fetched"
    ACCOUNT_RESOLVED = "account_resolved"
    SESSION_ISSUED = "session_issued"
    ERROR = "error"


class CallbackReason(str, Enum):
    PROVIDER_ERROR = "provider_error"
    MISSING_PARAMS = "missing_params"
    STATE_MISMATCH = "state_mismatch"
    UPSTREAM_FAILURE = "upstream_failure"
    ACCOUNT_FAILURE = "account_failure"
    SESSION_FAILURE = "session_failure"


# Reasons the user can recover from by starting the login again; safe to put in a URL
RECOVERABLE_REASONS = frozenset({
    CallbackReason.PROVIDER_ERROR,
    CallbackReason.MISSING_PARAMS,
    CallbackReason.STATE_MISMATCH,
})


@dataclass
class CallbackOutcome:
    state: CallbackState
    trail: List[CallbackState] = field(default_factory=list)
    reason: Optional[CallbackReason] = None
    redirect_path: Optional[str] = None
    account: Optional[ResolvedAccount] = None

    @property
    def succeeded(self) -> bool:
        return self.state == CallbackState.SESSION_ISSUED

    @property
    def recoverable(self) -> bool:
        return self.reason in RECOVERABLE_REASONS


def post_auth_destination(account: ResolvedAccount) -> str:
    if account.is_new_account or not account.onboarding_done:
        return "/onboarding"
    return "/dashboard"


class OAuthCallbackController:
    def __init__(
        self,
        linkedin: LinkedInClient,
        resolver_factory: Callable[[Session], AccountResolver] = AccountResolver,
        issue_session: Callable[[str], str] = create_session_token,
    ):
        self.linkedin = linkedin
        self.resolver_factory = resolver_factory
        self.issue_session = issue_session

    def handle(
        self,
        db: Session,
        cookies: CookieContext,
        code: Optional[str],
        state: Optional[str],
        error: Optional[str] = None,
    ) -> CallbackOutcome:
        outcome = CallbackOutcome(state=CallbackState.START, trail=[CallbackState.START])

        def advance(next_state: CallbackState) -> None:
            outcome.state = next_state
            outcome.trail.append(next_state)

        def fail(reason: CallbackReason) -> CallbackOutcome:
            outcome.reason = reason
            advance(CallbackState.ERROR)
            return outcome

        if error:
            logger.info("LinkedIn returned an authorization error: %s", error[:100])
            return fail(CallbackReason.PROVIDER_ERROR)

        if not code or not state:
            return fail(CallbackReason.MISSING_PARAMS)

        stored_state = cookies.get(settings.OAUTH_STATE_COOKIE)
        # Single use: consumed whether or not it matches
        cookies.delete(settings.OAUTH_STATE_COOKIE)
        if not stored_state or not hmac.compare_digest(stored_state.encode(), state.encode()):
            logger.warning("OAuth state mismatch (cookie present: %s)", bool(stored_state))
            return fail(CallbackReason.STATE_MISMATCH)
        advance(CallbackState.STATE_VALIDATED)

        try:
            tokens = self.linkedin.exchange_code(code)
            advance(CallbackState.CODE_EXCHANGED)
            external = self.linkedin.fetch_profile(tokens.access_token)
        except UpstreamError as e:
            logger.error(
                "LinkedIn upstream failure during callback: %s (status=%s, body=%s)",
                e.message, e.upstream_status, (e.body or "")[:500],
            )
            return fail(CallbackReason.UPSTREAM_FAILURE)
        advance(CallbackState.PROFILE_FETCHED)

        try:
            account = self.resolver_factory(db).resolve(external, tokens)
        except AuthormityError as e:
            logger.error("Account resolution failed: %s", e.message)
            return fail(CallbackReason.ACCOUNT_FAILURE)
        outcome.account = account
        advance(CallbackState.ACCOUNT_RESOLVED)

        try:
            session_token = self.issue_session(account.account_id)
        except AuthormityError as e:
            logger.error("Session issuance failed for account %s: %s", account.account_id, e.message)
            return fail(CallbackReason.SESSION_FAILURE)

        cookies.set(
            settings.SESSION_COOKIE_NAME,
            session_token,
            max_age=settings.SESSION_TTL_DAYS * 24 * 60 * 60,
            secure=settings.COOKIE_SECURE,
        )
        outcome.redirect_path = post_auth_destination(account)
        advance(CallbackState.SESSION_ISSUED)
        logger.info("Signed in account %s (new=%s)", account.account_id, account.is_new_account)
        return outcome
