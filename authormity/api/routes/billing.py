"""
Plans and Dodo Payments checkout links.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from authormity.core.errors import ConfigError, ValidationError
from authormity.core.plan_limits import FEATURE_REQUIREMENTS, PLAN_METADATA
from authormity.dependencies.auth import get_current_profile
from authormity.models.profile import Profile
from authormity.services.billing import DODO_PLANS, get_checkout_url

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/plans")
def list_plans():
    return {
        "plans": PLAN_METADATA,
        "checkout_options": DODO_PLANS,
        "features": {feature: sorted(tiers) for feature, tiers in FEATURE_REQUIREMENTS.items()},
    }


@router.get("/billing/checkout")
def checkout(plan: str, profile: Profile = Depends(get_current_profile)):
    try:
        url = get_checkout_url(plan, profile.id, profile.email)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except ConfigError as e:
        logger.error("Checkout unavailable: %s", e.message)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Checkout is not available right now")
    return {"checkout_url": url}
