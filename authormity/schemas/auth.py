from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class ProfileResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    niche: Optional[str] = None
    target_audience: Optional[str] = None
    plan: str
    plan_status: str
    posts_used_this_month: int
    posts_limit: Optional[int] = None
    posts_reset_at: Optional[datetime] = None
    onboarding_completed: bool
    linkedin_connected: bool
    features: List[str] = []


class OnboardingRequest(BaseModel):
    niche: str
    linkedin_time: str
    target_audience: str
    goals: List[str]


class OnboardingResponse(BaseModel):
    success: bool
    data: OnboardingRequest
