from authormity.models import Profile, UsageLog

BODY = {
    "niche": "B2B SaaS founders",
    "linkedin_time": "30min",
    "target_audience": "Seed-stage CEOs",
    "goals": ["grow audience", "generate leads"],
}


def test_onboarding_completes_profile(auth_client, db):
    auth_client.profile.onboarding_completed = False
    db.commit()

    response = auth_client.post("/api/onboarding", json=BODY)

    assert response.status_code == 200
    assert response.json()["success"] is True
    profile = db.query(Profile).filter(Profile.id == auth_client.profile.id).one()
    assert (profile.niche, profile.target_audience, profile.onboarding_completed) == (
        "B2B SaaS founders", "Seed-stage CEOs", True,
    )
    [log] = db.query(UsageLog).all()
    assert (log.action, log.model_used, log.tokens_used) == ("onboarding_complete", "none", 0)


def test_blank_niche_rejected(auth_client):
    response = auth_client.post("/api/onboarding", json={**BODY, "niche": "   "})
    assert response.status_code == 400


def test_onboarding_requires_session(client):
    assert client.post("/api/onboarding", json=BODY).status_code == 401
