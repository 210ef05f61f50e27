"""
Dodo Payments (Merchant of Record): payment-link checkout URLs and webhook handling.
Webhook events only ever change plan fields on the profile.
"""
import base64
import binascii
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from authormity.core.config import settings
from authormity.core.errors import ConfigError, ValidationError
from authormity.core.plan_limits import PLAN_STATUSES, PLANS
from authormity.models.profile import Profile

logger = logging.getLogger(__name__)

DODO_PLANS: Dict[str, Dict[str, str]] = {
    "pro_monthly": {"name": "Pro Monthly", "plan": "pro", "price": "$19/mo"},
    "pro_annual": {"name": "Pro Annual", "plan": "pro", "price": "$159/yr"},
    "team_monthly": {"name": "Team Monthly", "plan": "team", "price": "$49/mo"},
}

# Standard Webhooks replay window around webhook-timestamp
WEBHOOK_TOLERANCE_SECONDS = 300


def _payment_links() -> Dict[str, str]:
    return {
        "pro_monthly": settings.DODO_PRO_MONTHLY_LINK,
        "pro_annual": settings.DODO_PRO_ANNUAL_LINK,
        "team_monthly": settings.DODO_TEAM_LINK,
    }


def get_checkout_url(plan_key: str, account_id: str, email: str) -> str:
    if plan_key not in DODO_PLANS:
        raise ValidationError(f"Unknown plan: {plan_key}")
    base_url = _payment_links().get(plan_key)
    if not base_url:
        raise ConfigError(f"No payment link configured for plan: {plan_key}")
    params = urlencode({
        "prefilled_email": email,
        "metadata_user_id": account_id,
        "metadata_plan": plan_key,
    })
    return f"{base_url}?{params}"


def verify_webhook_signature(
    payload: bytes,
    signature_header: Optional[str],
    webhook_id: Optional[str],
    webhook_timestamp: Optional[str],
    secret: Optional[str] = None,
    now: Optional[float] = None,
) -> bool:
    """
    Standard Webhooks signature check, as implemented by Dodo.
    Signed message: "<webhook-id>.<webhook-timestamp>.<raw body>", HMAC-SHA256 keyed with the
    (base64, "whsec_"-prefixed) secret. The header may list several space-separated "v1,<sig>" values.
    Timestamps more than WEBHOOK_TOLERANCE_SECONDS away from now are rejected so a captured
    delivery cannot be replayed later.
    """
    secret = secret if secret is not None else settings.DODO_WEBHOOK_SECRET
    if not secret or not signature_header or not webhook_id or not webhook_timestamp:
        return False

    try:
        sent_at = int(webhook_timestamp)
    except ValueError:
        return False
    current = time.time() if now is None else now
    if abs(current - sent_at) > WEBHOOK_TOLERANCE_SECONDS:
        logger.warning("Dodo webhook timestamp outside tolerance: %s", webhook_timestamp)
        return False

    try:
        if secret.startswith("whsec_"):
            key_bytes = base64.b64decode(secret.split("_", 1)[1])
        else:
            key_bytes = secret.encode()
    except (binascii.Error, ValueError):
        return False

    signed_payload = f"{webhook_id}.{webhook_timestamp}.".encode() + payload
    mac = hmac.new(key_bytes, signed_payload, hashlib.sha256)
    expected_b64 = base64.b64encode(mac.digest()).decode()
    expected_hex = mac.hexdigest()

    for candidate in signature_header.split():
        if candidate.startswith("v1,"):
            candidate = candidate.split(",", 1)[1]
        elif candidate.startswith("v1="):
            candidate = candidate.split("=", 1)[1]
        candidate = candidate.strip()
        if hmac.compare_digest(candidate, expected_b64) or hmac.compare_digest(candidate, expected_hex):
            return True
    return False


@dataclass(frozen=True)
class PlanUpdate:
    account_id: str
    plan: str
    plan_status: str
    plan_expires_at: Optional[datetime] = None
    dodo_customer_id: Optional[str] = None


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def handle_webhook_event(event: Dict[str, Any]) -> Optional[PlanUpdate]:
    """Map a Dodo event to the plan change it implies, or None if it implies nothing."""
    data = event.get("data") or {}
    metadata = data.get("metadata") or {}
    account_id = metadata.get("user_id")
    if not account_id:
        return None

    event_type = event.get("type")
    if event_type in ("payment.succeeded", "subscription.active"):
        plan_key = metadata.get("plan")
        plan = DODO_PLANS.get(plan_key, {}).get("plan", "pro")
        subscription = data.get("subscription") or {}
        customer = data.get("customer") or {}
        return PlanUpdate(
            account_id=account_id,
            plan=plan,
            plan_status="active",
            plan_expires_at=_parse_timestamp(
                subscription.get("current_period_end") or data.get("next_billing_date")
            ),
            dodo_customer_id=data.get("customer_id") or customer.get("customer_id"),
        )

    if event_type in ("subscription.cancelled", "subscription.expired"):
        return PlanUpdate(
            account_id=account_id,
            plan="free",
            plan_status="cancelled" if event_type == "subscription.cancelled" else "expired",
        )

    return None


def apply_plan_update(db: Session, update: PlanUpdate) -> bool:
    if update.plan not in PLANS or update.plan_status not in PLAN_STATUSES:
        logger.warning("Ignoring plan update %s/%s for account %s", update.plan, update.plan_status, update.account_id)
        return False
    profile = db.query(Profile).filter(Profile.id == update.account_id).first()
    if not profile:
        logger.warning("Dodo webhook for unknown account %s", update.account_id)
        return False

    profile.plan = update.plan
    profile.plan_status = update.plan_status
    if update.dodo_customer_id:
        profile.dodo_customer_id = update.dodo_customer_id
    if update.plan_expires_at:
        profile.plan_expires_at = update.plan_expires_at
    if update.plan == "free":
        # Downgrade starts a fresh free allowance
        profile.posts_used_this_month = 0
    db.commit()
    logger.info("Account %s plan -> %s (%s)", profile.id, update.plan, update.plan_status)
    return True
