import base64
import os
import uuid
from datetime import datetime
from unittest.mock import MagicMock

# Configuration is read at import time; set it before anything from authormity is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["TOKEN_ENCRYPTION_KEY"] = "0f1e2d3c4b5a69788796a5b4c3d2e1f000112233445566778899aabbccddeeff"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["COOKIE_SECURE"] = "true"
os.environ["FRONTEND_URL"] = "http://localhost:3000"
os.environ["LINKEDIN_CLIENT_ID"] = "li-client-id"
os.environ["LINKEDIN_CLIENT_SECRET"] = "li-client-secret"
os.environ["LINKEDIN_REDIRECT_URI"] = "https://testserver/api/auth/callback"
os.environ["OPENROUTER_API_KEY"] = "test-openrouter-key"
os.environ["OPENROUTER_BASE_URL"] = "https://openrouter.test/api/v1"
os.environ["OPENROUTER_MODEL"] = "test/model"
os.environ["DODO_WEBHOOK_SECRET"] = "whsec_" + base64.b64encode(b"dodo-test-secret").decode()
os.environ["DODO_PRO_MONTHLY_LINK"] = "https://checkout.dodo.test/pro-monthly"
os.environ["CRON_SECRET"] = "cron-test-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from authormity.db.base import Base
from authormity.db.session import get_db
from authormity.dependencies.services import get_linkedin_client, get_llm_gateway
from authormity.main import app
from authormity.models import Profile
from authormity.services.linkedin_client import LinkedInClient, LinkedInProfile, LinkedInTokens
from authormity.services.llm_gateway import Completion, LLMGateway
from authormity.services.quota import next_reset_at
from authormity.utils.auth import create_session_token
from authormity.utils.rate_limit import generation_rate_limiter


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_profile(db):
    def _make(**fields):
        values = {
            "id": str(uuid.uuid4()),
            "email": f"{uuid.uuid4().hex[:8]}@example.com",
            "name": "Test Creator",
            "plan": "free",
            "plan_status": "active",
            "posts_used_this_month": 0,
            "posts_reset_at": next_reset_at(datetime.utcnow()),
            "onboarding_completed": True,
        }
        values.update(fields)
        profile = Profile(**values)
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile
    return _make


@pytest.fixture
def linkedin_tokens():
    return LinkedInTokens(access_token="li-access", refresh_token="li-refresh", expires_in=5184000)


@pytest.fixture
def linkedin_profile():
    return LinkedInProfile(
        external_id="li-person-1",
        name="Ada Lovelace",
        email="ada@example.com",
        avatar="https://media.licdn.test/ada.jpg",
    )


@pytest.fixture
def fake_linkedin(linkedin_tokens, linkedin_profile):
    linkedin = MagicMock(spec=LinkedInClient)
    linkedin.exchange_code.return_value = linkedin_tokens
    linkedin.fetch_profile.return_value = linkedin_profile
    linkedin.authorization_url.side_effect = (
        lambda state: f"https://www.linkedin.com/oauth/v2/authorization?state={state}"
    )
    linkedin.publish.return_value = "urn:li:share:123"
    return linkedin


@pytest.fixture
def fake_llm():
    llm = MagicMock(spec=LLMGateway)
    llm.call.return_value = Completion(text="Generated post body", model="test/model", tokens_used=42)
    return llm


@pytest.fixture
def client(db, fake_linkedin, fake_llm):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_linkedin_client] = lambda: fake_linkedin
    app.dependency_overrides[get_llm_gateway] = lambda: fake_llm
    generation_rate_limiter.reset()
    try:
        yield TestClient(app, base_url="https://testserver")
    finally:
        app.dependency_overrides.clear()
        generation_rate_limiter.reset()


@pytest.fixture
def auth_client(client, make_profile):
    """Client carrying a session cookie for a fresh free-plan profile."""
    profile = make_profile()
    client.cookies.set("authormity_session", create_session_token(profile.id))
    client.profile = profile
    return client
