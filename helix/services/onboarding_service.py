"""Onboarding step tracking (0-6) and pre-wizard answers.

The step counter is the only record of wizard progress. It is never
inferred from which profile fields happen to be filled in.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session

from helix.core.errors import ValidationError
from helix.core.structured_logging import build_log_context
from helix.db.enums import FINAL_ONBOARDING_STEP, INITIAL_ONBOARDING_STEP, ProfileStatus
from helix.db.models import User

logger = logging.getLogger(__name__)


def advance(db: Session, user: User, target_step: int) -> bool:
    """
    Move ``user.onboarding_step`` forward to ``target_step``.

    A conditional max-write: rows already at or beyond the target are left
    untouched, so retries and out-of-order submissions are silent no-ops.
    Runs inside the caller's transaction; the caller commits.

    Returns:
        True if the step changed.
    """
    if not INITIAL_ONBOARDING_STEP <= target_step <= FINAL_ONBOARDING_STEP:
        raise ValidationError(
            f"Onboarding step must be between {INITIAL_ONBOARDING_STEP} and {FINAL_ONBOARDING_STEP}"
        )

    result = db.execute(
        update(User)
        .where(User.id == user.id, User.onboarding_step < target_step)
        .values(onboarding_step=target_step)
        .execution_options(synchronize_session=False)
    )
    # Reload on next access so the in-memory user reflects the stored value
    db.expire(user, ["onboarding_step"])

    advanced = result.rowcount == 1
    if advanced:
        logger.info(
            "Advanced onboarding step",
            extra=build_log_context(user_id=user.id, step=target_step),
        )
    return advanced


def submit_for_review(db: Session, user: User) -> None:
    """
    Stage 6 submission: step 6 and PENDING_REVIEW, unconditionally.

    Runs inside the caller's transaction; the caller commits.
    """
    user.onboarding_step = FINAL_ONBOARDING_STEP
    user.profile_status = ProfileStatus.PENDING_REVIEW.value
    user.submitted_at = datetime.now(timezone.utc)
    logger.info("Profile submitted for review", extra=build_log_context(user_id=user.id))


def update_onboarding_data(
    db: Session,
    user: User,
    *,
    gender: str,
    role: str,
    service_type: str,
    interested_in: str,
    pairing_types: list[str] | None,
    terms_accepted: bool,
) -> User:
    """Record the pre-wizard answers. Does not touch the onboarding step."""
    if terms_accepted is not True:
        raise ValidationError(
            "You must accept the terms and conditions",
            errors=["terms_accepted: You must accept the terms and conditions"],
        )

    user.gender = gender
    user.role = role
    user.service_type = service_type
    user.interested_in = interested_in
    user.pairing_types = list(pairing_types or [])
    user.terms_accepted = True
    db.commit()
    db.refresh(user)
    return user
