from datetime import datetime, timedelta

from authormity.models import Profile
from authormity.services.quota import QuotaManager, next_reset_at


def test_next_reset_is_first_of_following_month():
    assert next_reset_at(datetime(2026, 3, 17, 14, 5)) == datetime(2026, 4, 1)
    assert next_reset_at(datetime(2026, 12, 31, 23, 59)) == datetime(2027, 1, 1)


def test_free_plan_at_limit_is_denied(db, make_profile):
    profile = make_profile(plan="free", posts_used_this_month=10)

    check = QuotaManager(db).check_can_generate(profile.id)

    assert check.allowed is False
    assert (check.posts_used, check.limit) == (10, 10)
    assert check.code == "LIMIT_REACHED"
    assert "10" in check.reason


def test_free_plan_below_limit_is_allowed(db, make_profile):
    profile = make_profile(plan="free", posts_used_this_month=9)
    check = QuotaManager(db).check_can_generate(profile.id)
    assert check.allowed is True
    assert check.limit == 10


def test_paid_plans_are_unlimited(db, make_profile):
    profile = make_profile(plan="pro", posts_used_this_month=5000)
    check = QuotaManager(db).check_can_generate(profile.id)
    assert check.allowed is True
    assert check.limit is None


def test_unknown_account_is_denied(db):
    check = QuotaManager(db).check_can_generate("missing")
    assert check.allowed is False
    assert check.code == "PROFILE_NOT_FOUND"


def test_reset_if_due_zeroes_counter(db, make_profile):
    now = datetime(2026, 5, 2, 8, 0)
    profile = make_profile(posts_used_this_month=7, posts_reset_at=datetime(2026, 5, 1))

    assert QuotaManager(db).reset_if_due(profile.id, now=now) is True

    db.refresh(profile)
    assert profile.posts_used_this_month == 0
    assert profile.posts_reset_at == datetime(2026, 6, 1)


def test_reset_if_due_leaves_counter_before_reset_date(db, make_profile):
    now = datetime.utcnow()
    profile = make_profile(posts_used_this_month=7, posts_reset_at=now + timedelta(days=3))

    assert QuotaManager(db).reset_if_due(profile.id, now=now) is False

    db.refresh(profile)
    assert profile.posts_used_this_month == 7


def test_increment_is_a_single_update(db, make_profile):
    profile = make_profile(posts_used_this_month=3)
    quota = QuotaManager(db)
    quota.increment(profile.id)
    quota.increment(profile.id)
    assert db.query(Profile.posts_used_this_month).filter(Profile.id == profile.id).scalar() == 5

