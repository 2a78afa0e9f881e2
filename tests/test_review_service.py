"""Tests for the administrator review state machine."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from helix.core.errors import AuthorizationError, InvalidStatusTransitionError, NotFoundError
from helix.core.permissions import STANDARD_USER_ROLE
from helix.db.enums import ProfileStatus
from helix.services import onboarding_service, profile_service, review_service


@pytest.fixture
def submit(db, make_user):
    """Create a user who has submitted stage 6."""
    def _submit(email: str, legal_name: str = "Jane Doe"):
        user = make_user(email, onboarded=True)
        profile_service.upsert_stage(db, user, 1, {"legal_name": legal_name}, is_complete=True)
        profile_service.upsert_stage(db, user, 6, {"consent_agreed": True})
        db.refresh(user)
        return user

    return _submit


# =============================================================================
# Queue
# =============================================================================


def test_list_pending_is_oldest_first(db, submit, make_user):
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    late = submit("late@test.com")
    early = submit("early@test.com")
    middle = submit("middle@test.com")
    make_user("draft@test.com", onboarded=True)

    for user, offset in ((late, 3), (early, 1), (middle, 2)):
        user.submitted_at = base + timedelta(hours=offset)
    db.commit()

    pending = review_service.list_pending(db)

    assert [u.email for u in pending] == ["early@test.com", "middle@test.com", "late@test.com"]
    assert pending[0].profile.legal_name == "Jane Doe"
    assert pending[0].legal.consent_agreed is True


# =============================================================================
# Decisions
# =============================================================================


@pytest.mark.asyncio
async def test_approve_sets_active_and_emails(db, admin_user, submit, outbox):
    user = submit("approve@test.com")

    result = await review_service.transition_status(
        db, admin_user, user.id, ProfileStatus.ACTIVE.value
    )

    assert result.profile_status == ProfileStatus.ACTIVE.value
    assert result.reviewed_at is not None
    assert result.rejection_reason is None
    assert outbox.subjects_for("approve@test.com") == ["Congratulations! Your Profile is Active"]
    assert "Hi Jane," in outbox.messages[-1].body_html


@pytest.mark.asyncio
async def test_reject_stores_reason_and_escapes_it_in_email(db, admin_user, submit, outbox):
    user = submit("reject@test.com")

    result = await review_service.transition_status(
        db, admin_user, user.id, "REJECTED", "  Photo <b>blurry</b>  "
    )

    assert result.profile_status == ProfileStatus.REJECTED.value
    assert result.rejection_reason == "Photo <b>blurry</b>"
    body = outbox.messages[-1].body_html
    assert "Photo &lt;b&gt;blurry&lt;/b&gt;" in body
    assert "<b>blurry</b>" not in body


@pytest.mark.asyncio
@pytest.mark.parametrize("reason", [None, "", "   "])
async def test_reject_requires_reason(db, admin_user, submit, outbox, reason):
    user = submit("noreason@test.com")

    with pytest.raises(InvalidStatusTransitionError):
        await review_service.transition_status(db, admin_user, user.id, "REJECTED", reason)

    db.refresh(user)
    assert user.profile_status == ProfileStatus.PENDING_REVIEW.value
    assert user.reviewed_at is None
    assert outbox.messages == []


@pytest.mark.asyncio
@pytest.mark.parametrize("target", ["DRAFT", "PENDING_REVIEW", "ARCHIVED"])
async def test_invalid_target_is_rejected(db, admin_user, submit, target):
    user = submit("badtarget@test.com")

    with pytest.raises(InvalidStatusTransitionError):
        await review_service.transition_status(db, admin_user, user.id, target)

    db.refresh(user)
    assert user.profile_status == ProfileStatus.PENDING_REVIEW.value


@pytest.mark.asyncio
async def test_previously_rejected_profile_can_be_approved(db, admin_user, submit, outbox):
    user = submit("second@test.com")
    await review_service.transition_status(db, admin_user, user.id, "REJECTED", "Missing ID")

    result = await review_service.transition_status(db, admin_user, user.id, "ACTIVE")

    assert result.profile_status == ProfileStatus.ACTIVE.value
    assert result.rejection_reason is None


@pytest.mark.asyncio
async def test_unknown_user_is_not_found(db, admin_user):
    with pytest.raises(NotFoundError):
        await review_service.transition_status(db, admin_user, uuid.uuid4(), "ACTIVE")


@pytest.mark.asyncio
async def test_actor_needs_approve_permission(db, seeded, make_user, submit):
    user = submit("target@test.com")
    plain = make_user("plain@test.com", role_name=STANDARD_USER_ROLE)

    with pytest.raises(AuthorizationError) as exc_info:
        await review_service.transition_status(db, plain, user.id, "ACTIVE")

    assert exc_info.value.required_permission == "profiles.approve"
    db.refresh(user)
    assert user.profile_status == ProfileStatus.PENDING_REVIEW.value


@pytest.mark.asyncio
async def test_moderator_can_decide(db, moderator_user, submit, outbox):
    user = submit("mod@test.com")

    result = await review_service.transition_status(db, moderator_user, user.id, "ACTIVE")

    assert result.profile_status == ProfileStatus.ACTIVE.value


@pytest.mark.asyncio
async def test_email_failure_does_not_undo_decision(db, admin_user, submit, outbox):
    user = submit("mailfail@test.com")
    outbox.fail = True

    result = await review_service.transition_status(db, admin_user, user.id, "ACTIVE")

    assert result.profile_status == ProfileStatus.ACTIVE.value
    db.refresh(user)
    assert user.profile_status == ProfileStatus.ACTIVE.value


def test_validate_transition_normalizes_reason():
    assert review_service.validate_transition("ACTIVE", "ignored") is None
    assert review_service.validate_transition("REJECTED", " too young ") == "too young"


def test_submission_alone_does_not_review(db, make_user):
    user = make_user(onboarded=True)
    onboarding_service.submit_for_review(db, user)
    db.commit()

    db.refresh(user)
    assert user.reviewed_at is None
