"""
LinkedIn OpenID Connect + UGC API client.
Every call is single-shot: authorization codes are single use, so nothing here retries.
Non-2xx answers raise UpstreamError carrying the status and body for server-side logs.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from urllib.parse import quote, urlencode

import requests

from authormity.core.config import settings
from authormity.core.errors import UpstreamError

logger = logging.getLogger(__name__)

LINKEDIN_OAUTH_BASE = "https://www.linkedin.com/oauth/v2"
LINKEDIN_API_BASE = "https://api.linkedin.com/v2"
REQUEST_TIMEOUT = 15
DEFAULT_EXPIRES_IN = 3600


@dataclass(frozen=True)
class Success:
    data: Any


@dataclass(frozen=True)
class Failure:
    status: Optional[int]
    body: str


Result = Union[Success, Failure]


@dataclass(frozen=True)
class LinkedInTokens:
    access_token: str
    refresh_token: str
    expires_in: int


@dataclass(frozen=True)
class LinkedInProfile:
    external_id: str
    name: str
    email: str
    avatar: str


class LinkedInClient:
    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.client_id = client_id if client_id is not None else settings.LINKEDIN_CLIENT_ID
        self.client_secret = client_secret if client_secret is not None else settings.LINKEDIN_CLIENT_SECRET
        self.redirect_uri = redirect_uri if redirect_uri is not None else settings.LINKEDIN_REDIRECT_URI
        self.http = session or requests.Session()

    def authorization_url(self, state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": state,
            "scope": " ".join(settings.LINKEDIN_SCOPES),
        }
        return f"{LINKEDIN_OAUTH_BASE}/authorization?{urlencode(params)}"

    def _request(self, method: str, url: str, **kwargs) -> Result:
        try:
            response = self.http.request(method, url, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            return Failure(status=None, body=str(e))

        if not 200 <= response.status_code < 300:
            return Failure(status=response.status_code, body=response.text or "")

        if response.status_code == 204 or not response.content:
            return Success(data={})
        try:
            return Success(data=response.json())
        except ValueError:
            return Failure(status=response.status_code, body="Response body is not JSON")

    @staticmethod
    def _unwrap(result: Result, label: str) -> Dict[str, Any]:
        if isinstance(result, Failure):
            logger.warning("LinkedIn %s failed [%s]: %s", label, result.status, result.body[:500])
            raise UpstreamError(
                f"LinkedIn {label} failed",
                upstream_status=result.status,
                body=result.body,
            )
        if not isinstance(result.data, dict):
            raise UpstreamError(f"LinkedIn {label} returned an unexpected payload", body=repr(result.data)[:500])
        return result.data

    def _tokens_from(self, data: Dict[str, Any], label: str) -> LinkedInTokens:
        access_token = data.get("access_token")
        if not access_token:
            raise UpstreamError(f"LinkedIn {label} failed: access_token missing in response")
        refresh_token = data.get("refresh_token") or ""
        if not isinstance(access_token, str) or not isinstance(refresh_token, str):
            raise UpstreamError(f"LinkedIn {label} failed: token fields are not strings")
        try:
            expires_in = int(data.get("expires_in") or DEFAULT_EXPIRES_IN)
        except (TypeError, ValueError):
            raise UpstreamError(
                f"LinkedIn {label} failed: expires_in is not a number",
                body=repr(data.get("expires_in"))[:500],
            )
        return LinkedInTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=expires_in,
        )

    def exchange_code(self, code: str) -> LinkedInTokens:
        result = self._request(
            "POST",
            f"{LINKEDIN_OAUTH_BASE}/accessToken",
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_uri,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        return self._tokens_from(self._unwrap(result, "token exchange"), "token exchange")

    def fetch_profile(self, access_token: str) -> LinkedInProfile:
        result = self._request(
            "GET",
            f"{LINKEDIN_API_BASE}/userinfo",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        data = self._unwrap(result, "userinfo")
        external_id = data.get("sub")
        email = data.get("email")
        if not external_id or not email:
            raise UpstreamError("LinkedIn userinfo failed: sub or email missing in response")
        if not isinstance(external_id, str) or not isinstance(email, str):
            raise UpstreamError("LinkedIn userinfo failed: sub or email is not a string")
        name = data.get("name") or f"{data.get('given_name') or ''} {data.get('family_name') or ''}".strip()
        picture = data.get("picture") or ""
        return LinkedInProfile(
            external_id=external_id,
            name=name if isinstance(name, str) else "",
            email=email.strip().lower(),
            avatar=picture if isinstance(picture, str) else "",
        )

    def refresh(self, refresh_token: str) -> LinkedInTokens:
        result = self._request(
            "POST",
            f"{LINKEDIN_OAUTH_BASE}/accessToken",
            data={
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        return self._tokens_from(self._unwrap(result, "token refresh"), "token refresh")

    def publish(self, access_token: str, external_id: str, content: str) -> str:
        """Publish a text post; returns the post URN."""
        result = self._request(
            "POST",
            f"{LINKEDIN_API_BASE}/ugcPosts",
            json={
                "author": f"urn:li:person:{external_id}",
                "lifecycleState": "PUBLISHED",
                "specificContent": {
                    "com.linkedin.ugc.ShareContent": {
                        "shareCommentary": {"text": content},
                        "shareMediaCategory": "NONE",
                    },
                },
                "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"},
            },
            headers={
                "Authorization": f"Bearer {access_token}",
                "X-Restli-Protocol-Version": "2.0.0",
            },
        )
        data = self._unwrap(result, "publish post")
        post_id = data.get("id")
        if not post_id:
            raise UpstreamError("LinkedIn publish post failed: id missing in response")
        return post_id

    def delete_post(self, access_token: str, post_urn: str) -> None:
        result = self._request(
            "DELETE",
            f"{LINKEDIN_API_BASE}/ugcPosts/{quote(post_urn, safe='')}",
            headers={
                "Authorization": f"Bearer {access_token}",
                "X-Restli-Protocol-Version": "2.0.0",
            },
        )
        self._unwrap(result, "delete post")
