from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from authormity.db.session import get_db
from authormity.dependencies.auth import get_current_profile
from authormity.models.profile import Profile
from authormity.schemas.auth import OnboardingRequest, OnboardingResponse
from authormity.services.generation import record_usage, run_best_effort

router = APIRouter()


@router.post("", response_model=OnboardingResponse)
def complete_onboarding(
    body: OnboardingRequest,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """Save niche/audience from the onboarding wizard and mark onboarding done."""
    niche = (body.niche or "").strip()
    if not niche:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Niche is required")

    profile.niche = niche
    profile.target_audience = (body.target_audience or "").strip() or None
    profile.onboarding_completed = True
    db.commit()

    run_best_effort("onboarding usage log", record_usage, db, profile.id, "onboarding_complete", "none", 0)

    return {"success": True, "data": body.model_dump()}
