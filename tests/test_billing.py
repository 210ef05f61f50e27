import base64
import hashlib
import hmac
import json
import time
from datetime import datetime
from urllib.parse import parse_qs, urlparse

import pytest

from authormity.core.errors import ConfigError, ValidationError
from authormity.models import Profile
from authormity.services.billing import (
    PlanUpdate,
    get_checkout_url,
    handle_webhook_event,
    verify_webhook_signature,
)

SECRET_BYTES = b"dodo-test-secret"
SECRET = "whsec_" + base64.b64encode(SECRET_BYTES).decode()
SENT_AT = 1700000000


def _sign(payload: bytes, webhook_id="msg_1", timestamp="1700000000"):
    signed = f"{webhook_id}.{timestamp}.".encode() + payload
    signature = base64.b64encode(hmac.new(SECRET_BYTES, signed, hashlib.sha256).digest()).decode()
    return {"webhook-id": webhook_id, "webhook-timestamp": timestamp, "webhook-signature": f"v1,{signature}"}


def _sign_now(payload: bytes):
    return _sign(payload, timestamp=str(int(time.time())))


def test_valid_signature():
    headers = _sign(b'{"type":"x"}')
    assert verify_webhook_signature(
        b'{"type":"x"}', headers["webhook-signature"], "msg_1", "1700000000", secret=SECRET, now=SENT_AT,
    )


def test_signature_list_with_rotated_key():
    headers = _sign(b"{}")
    header = "v1,bm90LXRoZS1yaWdodC1vbmU= " + headers["webhook-signature"]
    assert verify_webhook_signature(b"{}", header, "msg_1", "1700000000", secret=SECRET, now=SENT_AT)


def test_tampered_body_fails():
    headers = _sign(b'{"plan":"free"}')
    assert not verify_webhook_signature(
        b'{"plan":"team"}', headers["webhook-signature"], "msg_1", "1700000000", secret=SECRET, now=SENT_AT,
    )


def test_missing_secret_fails_closed():
    headers = _sign(b"{}")
    assert not verify_webhook_signature(
        b"{}", headers["webhook-signature"], "msg_1", "1700000000", secret="", now=SENT_AT,
    )


def test_stale_timestamp_is_rejected():
    headers = _sign(b"{}")
    assert verify_webhook_signature(
        b"{}", headers["webhook-signature"], "msg_1", "1700000000", secret=SECRET, now=SENT_AT + 300,
    )
    assert not verify_webhook_signature(
        b"{}", headers["webhook-signature"], "msg_1", "1700000000", secret=SECRET, now=SENT_AT + 301,
    )
    assert not verify_webhook_signature(
        b"{}", headers["webhook-signature"], "msg_1", "1700000000", secret=SECRET, now=SENT_AT - 301,
    )


def test_non_numeric_timestamp_is_rejected():
    headers = _sign(b"{}", timestamp="yesterday")
    assert not verify_webhook_signature(
        b"{}", headers["webhook-signature"], "msg_1", "yesterday", secret=SECRET, now=SENT_AT,
    )


def test_checkout_url_carries_account_metadata():
    url = get_checkout_url("pro_monthly", "acct-1", "ada@example.com")
    query = parse_qs(urlparse(url).query)
    assert url.startswith("https://checkout.dodo.test/pro-monthly?")
    assert query["metadata_user_id"] == ["acct-1"]
    assert query["metadata_plan"] == ["pro_monthly"]
    assert query["prefilled_email"] == ["ada@example.com"]


def test_checkout_unknown_plan():
    with pytest.raises(ValidationError):
        get_checkout_url("enterprise", "acct-1", "a@b.c")


def test_checkout_without_link_configured():
    with pytest.raises(ConfigError):
        get_checkout_url("team_monthly", "acct-1", "a@b.c")


def test_payment_succeeded_activates_plan():
    update = handle_webhook_event({
        "type": "payment.succeeded",
        "data": {
            "customer": {"customer_id": "cus_1"},
            "metadata": {"user_id": "acct-1", "plan": "team_monthly"},
            "subscription": {"current_period_end": "2026-11-18T10:00:00Z"},
        },
    })
    assert update == PlanUpdate(
        account_id="acct-1", plan="team", plan_status="active",
        plan_expires_at=datetime(2026, 11, 18, 10, 0), dodo_customer_id="cus_1",
    )


@pytest.mark.parametrize("event_type,status", [
    ("subscription.cancelled", "cancelled"),
    ("subscription.expired", "expired"),
])
def test_cancellation_downgrades_to_free(event_type, status):
    update = handle_webhook_event({"type": event_type, "data": {"metadata": {"user_id": "acct-1"}}})
    assert (update.plan, update.plan_status) == ("free", status)


def test_event_without_account_is_ignored():
    assert handle_webhook_event({"type": "payment.succeeded", "data": {}}) is None
    assert handle_webhook_event({"type": "refund.succeeded", "data": {"metadata": {"user_id": "a"}}}) is None


def test_webhook_route_upgrades_profile(client, make_profile, db):
    profile = make_profile(plan="free", posts_used_this_month=10)
    payload = json.dumps({
        "type": "subscription.active",
        "data": {"customer_id": "cus_9", "metadata": {"user_id": profile.id, "plan": "pro_annual"}},
    }).encode()

    response = client.post("/api/webhooks/dodo", content=payload, headers=_sign_now(payload))

    assert response.status_code == 200
    db.refresh(profile)
    assert (profile.plan, profile.plan_status, profile.dodo_customer_id) == ("pro", "active", "cus_9")


def test_webhook_route_downgrade_resets_counter(client, make_profile, db):
    profile = make_profile(plan="pro", posts_used_this_month=250)
    payload = json.dumps({"type": "subscription.cancelled", "data": {"metadata": {"user_id": profile.id}}}).encode()

    client.post("/api/webhooks/dodo", content=payload, headers=_sign_now(payload))

    db.refresh(profile)
    assert (profile.plan, profile.plan_status, profile.posts_used_this_month) == ("free", "cancelled", 0)


def test_webhook_route_rejects_bad_signature(client, make_profile, db):
    profile = make_profile(plan="free")
    payload = json.dumps({"type": "subscription.active", "data": {"metadata": {"user_id": profile.id}}}).encode()
    headers = _sign_now(b"something else")

    response = client.post("/api/webhooks/dodo", content=payload, headers=headers)

    assert response.status_code == 400
    db.refresh(profile)
    assert profile.plan == "free"


def test_webhook_route_rejects_replayed_delivery(client, make_profile, db):
    profile = make_profile(plan="free")
    payload = json.dumps({"type": "subscription.active", "data": {"metadata": {"user_id": profile.id}}}).encode()
    old = str(int(time.time()) - 3600)

    response = client.post("/api/webhooks/dodo", content=payload, headers=_sign(payload, timestamp=old))

    assert response.status_code == 400
    db.refresh(profile)
    assert profile.plan == "free"


def test_plans_endpoint(client):
    body = client.get("/api/plans").json()
    assert body["plans"]["free"]["posts_limit"] == 10
    assert body["plans"]["pro"]["posts_limit"] is None
    assert body["features"]["teamWorkspace"] == ["team"]


def test_checkout_endpoint(auth_client):
    response = auth_client.get("/api/billing/checkout", params={"plan": "pro_monthly"})
    assert response.status_code == 200
    assert "metadata_user_id=" + auth_client.profile.id in response.json()["checkout_url"]
    assert auth_client.get("/api/billing/checkout", params={"plan": "nope"}).status_code == 400
    assert auth_client.get("/api/billing/checkout", params={"plan": "team_monthly"}).status_code == 503
