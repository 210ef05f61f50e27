from fastapi import APIRouter, Depends

from authormity.core.plan_limits import FEATURE_REQUIREMENTS, can_use_feature, get_plan_limit
from authormity.dependencies.auth import get_current_profile
from authormity.models.profile import Profile
from authormity.schemas.auth import ProfileResponse

router = APIRouter()


@router.get("/me", response_model=ProfileResponse)
def get_me(profile: Profile = Depends(get_current_profile)):
    plan = profile.plan or "free"
    return ProfileResponse(
        id=profile.id,
        email=profile.email,
        name=profile.name,
        avatar_url=profile.avatar_url,
        niche=profile.niche,
        target_audience=profile.target_audience,
        plan=plan,
        plan_status=profile.plan_status or "active",
        posts_used_this_month=profile.posts_used_this_month or 0,
        posts_limit=get_plan_limit(plan),
        posts_reset_at=profile.posts_reset_at,
        onboarding_completed=bool(profile.onboarding_completed),
        linkedin_connected=bool(profile.linkedin_person_id and profile.linkedin_access_token),
        features=sorted(f for f in FEATURE_REQUIREMENTS if can_use_feature(plan, f)),
    )
