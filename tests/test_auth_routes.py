from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import requests

from authormity.core.errors import AccountCreationError, UpstreamError
from authormity.services.linkedin_client import LinkedInClient
from authormity.models import Profile
from authormity.utils.auth import create_session_token, verify_session_token


def _set_cookie_headers(response, name):
    return [h for h in response.headers.get_list("set-cookie") if h.startswith(f"{name}=")]


def test_start_login_sets_state_cookie_and_redirects(client):
    response = client.get("/api/auth/linkedin", follow_redirects=False)

    assert response.status_code == 302
    state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]
    assert len(state) == 32
    [header] = _set_cookie_headers(response, "li_oauth_state")
    assert f"li_oauth_state={state}" in header
    lowered = header.lower()
    assert "httponly" in lowered
    assert "secure" in lowered
    assert "samesite=lax" in lowered
    assert "max-age=600" in lowered
    assert "path=/" in lowered


def test_callback_success_creates_account_and_sets_session(client, db):
    client.cookies.set("li_oauth_state", "state-123")

    response = client.get(
        "/api/auth/callback", params={"code": "c", "state": "state-123"}, follow_redirects=False,
    )

    assert response.status_code == 302
    assert response.headers["location"] == "http://localhost:3000/onboarding"
    [session_header] = _set_cookie_headers(response, "authormity_session")
    assert "httponly" in session_header.lower()
    token = session_header.split(";", 1)[0].split("=", 1)[1]
    assert token not in response.headers["location"]
    account_id = verify_session_token(token)["sub"]
    assert db.query(Profile).filter(Profile.id == account_id).one().email == "ada@example.com"
    assert any("max-age=0" in h.lower() for h in _set_cookie_headers(response, "li_oauth_state"))


def test_callback_for_onboarded_account_goes_to_dashboard(client, make_profile):
    make_profile(email="ada@example.com", linkedin_person_id="li-person-1", onboarding_completed=True)
    client.cookies.set("li_oauth_state", "s")

    response = client.get("/api/auth/callback", params={"code": "c", "state": "s"}, follow_redirects=False)

    assert response.headers["location"] == "http://localhost:3000/dashboard"


def test_callback_state_mismatch_redirects_to_login(client, fake_linkedin, db):
    client.cookies.set("li_oauth_state", "expected")

    response = client.get("/api/auth/callback", params={"code": "c", "state": "forged"}, follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "http://localhost:3000/login?error=state_mismatch"
    assert not _set_cookie_headers(response, "authormity_session")
    fake_linkedin.exchange_code.assert_not_called()
    assert db.query(Profile).count() == 0


def test_callback_missing_params(client):
    response = client.get("/api/auth/callback", follow_redirects=False)
    assert response.headers["location"].endswith("/login?error=missing_params")


def test_callback_provider_error(client):
    response = client.get(
        "/api/auth/callback", params={"error": "user_cancelled_authorize"}, follow_redirects=False,
    )
    assert response.headers["location"].endswith("/login?error=provider_error")


def test_callback_upstream_failure_is_json_not_redirect(client, fake_linkedin):
    fake_linkedin.exchange_code.side_effect = UpstreamError(
        "LinkedIn token exchange failed", upstream_status=400, body="invalid_grant: secret detail",
    )
    client.cookies.set("li_oauth_state", "s")

    response = client.get("/api/auth/callback", params={"code": "c", "state": "s"}, follow_redirects=False)

    assert response.status_code == 502
    assert "location" not in response.headers
    assert response.json()["code"] == "AUTH_FAILED"
    assert "upstream_failure" not in response.text
    assert "secret detail" not in response.text
    assert any("max-age=0" in h.lower() for h in _set_cookie_headers(response, "li_oauth_state"))

def test_callback_account_failure_hides_reason(client, fake_linkedin, monkeypatch):
    def broken_resolve(self, external, tokens):
        raise AccountCreationError("duplicate email on create")

    monkeypatch.setattr("authormity.services.account_resolver.AccountResolver.resolve", broken_resolve)
    client.cookies.set("li_oauth_state", "s")

    response = client.get("/api/auth/callback", params={"code": "c", "state": "s"}, follow_redirects=False)

    assert response.status_code == 500
    assert response.json() == {"error": "Sign-in failed. Please try again.", "code": "AUTH_FAILED"}
    assert "duplicate" not in response.text


def test_callback_malformed_token_response_still_consumes_state(client, fake_linkedin):
    http = MagicMock(spec=requests.Session)
    reply = MagicMock()
    reply.status_code = 200
    reply.content = b"{}"
    reply.json.return_value = {"access_token": "a", "expires_in": "soon"}
    http.request.return_value = reply
    real = LinkedInClient(
        client_id="cid", client_secret="csecret",
        redirect_uri="https://app.test/api/auth/callback", session=http,
    )
    fake_linkedin.exchange_code.side_effect = real.exchange_code
    client.cookies.set("li_oauth_state", "s1")

    response = client.get("/api/auth/callback", params={"code": "c", "state": "s1"}, follow_redirects=False)

    assert response.status_code == 502
    assert response.json()["code"] == "AUTH_FAILED"
    assert any("max-age=0" in h.lower() for h in _set_cookie_headers(response, "li_oauth_state"))
    assert not _set_cookie_headers(response, "authormity_session")


def test_callback_unexpected_error_still_consumes_state(client, fake_linkedin):
    fake_linkedin.fetch_profile.side_effect = RuntimeError("boom")
    client.cookies.set("li_oauth_state", "s")

    response = client.get("/api/auth/callback", params={"code": "c", "state": "s"}, follow_redirects=False)

    assert response.status_code == 500
    assert response.json()["code"] == "AUTH_FAILED"
    assert "boom" not in response.text
    assert any("max-age=0" in h.lower() for h in _set_cookie_headers(response, "li_oauth_state"))



def test_logout_clears_session_cookie(client):
    response = client.post("/api/auth/logout")
    assert response.status_code == 200
    assert any("max-age=0" in h.lower() for h in _set_cookie_headers(response, "authormity_session"))


def test_me_requires_session(client):
    assert client.get("/api/users/me").status_code == 401


def test_me_rejects_tampered_session(client, make_profile):
    profile = make_profile()
    client.cookies.set("authormity_session", create_session_token(profile.id) + "x")
    assert client.get("/api/users/me").status_code == 401


def test_me_accepts_bearer_token(client, make_profile):
    profile = make_profile(plan="pro")
    response = client.get(
        "/api/users/me", headers={"Authorization": f"Bearer {create_session_token(profile.id)}"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == profile.id
    assert body["posts_limit"] is None
    assert "scheduling" in body["features"]
    assert body["linkedin_connected"] is False
