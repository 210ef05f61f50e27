from typing import Dict, FrozenSet, Optional

PLANS = ("free", "pro", "team")
PLAN_STATUSES = ("active", "cancelled", "expired")

# Monthly AI generation allowance. None means unlimited.
PLAN_LIMITS: Dict[str, Optional[int]] = {
    "free": 10,
    "pro": None,
    "team": None,
}

PAID = frozenset({"pro", "team"})

# Feature key -> tiers that include it
FEATURE_REQUIREMENTS: Dict[str, FrozenSet[str]] = {
    "voiceProfile": PAID,
    "carousel": PAID,
    "directPosting": PAID,
    "repurpose": PAID,
    "commentGenerator": PAID,
    "ghostwriterMode": PAID,
    "analytics": PAID,
    "scheduling": PAID,
    "threadWriter": PAID,
    "hookRater": PAID,
    "humanizer": PAID,
    "weeklyInsights": PAID,
    "teamWorkspace": frozenset({"team"}),
    "clientProfiles": PAID,
}

PLAN_METADATA = {
    "free": {
        "name": "Free",
        "price": "$0",
        "price_annual": "$0",
        "description": "For creators getting started",
        "posts_limit": PLAN_LIMITS["free"],
        "features": [
            "10 AI post generations/month",
            "Basic post generator",
            "Content library",
            "Copy to clipboard",
        ],
    },
    "pro": {
        "name": "Pro",
        "price": "$19",
        "price_annual": "$159",
        "description": "For serious LinkedIn creators",
        "posts_limit": PLAN_LIMITS["pro"],
        "features": [
            "Unlimited AI generations",
            "Voice profile (sounds like you)",
            "Direct LinkedIn publishing",
            "Content scheduling & calendar",
            "Carousel outline generator",
            "Thread writer",
            "Content repurposer",
            "Comment generator",
            "Hook rater & humanizer",
            "Client profiles (ghostwriter)",
            "Weekly AI insights",
        ],
    },
    "team": {
        "name": "Team",
        "price": "$49",
        "price_annual": "$399",
        "description": "For agencies & ghostwriting teams",
        "posts_limit": PLAN_LIMITS["team"],
        "features": [
            "Everything in Pro",
            "3 team seats included",
            "Shared content library & calendar",
            "Client profile management",
        ],
    },
}


def get_plan_limit(plan: str) -> Optional[int]:
    """Monthly generation limit for a plan; unknown plans get the free allowance."""
    return PLAN_LIMITS.get(plan, PLAN_LIMITS["free"])


def can_use_feature(plan: str, feature: str) -> bool:
    return plan in FEATURE_REQUIREMENTS.get(feature, frozenset())
