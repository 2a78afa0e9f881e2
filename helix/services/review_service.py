"""Administrator review of submitted profiles.

DRAFT → PENDING_REVIEW happens on stage 6 submission. This module owns the
reviewer decision: PENDING_REVIEW → ACTIVE | REJECTED, followed by a
best-effort email that is sent only after the decision is committed.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from helix.core.errors import InvalidStatusTransitionError, NotFoundError
from helix.core.permissions import PermissionKey
from helix.core.structured_logging import build_log_context
from helix.db.enums import ProfileStatus
from helix.db.models import User
from helix.services import notification_service, permission_service, user_service
from helix.services.settings_service import SettingsProvider

logger = logging.getLogger(__name__)


def list_pending(db: Session) -> list[User]:
    """
    FIFO review queue: oldest submission first.

    Each user comes with every sub-record loaded so a reviewer can decide
    without further round trips.
    """
    return (
        db.query(User)
        .options(*user_service.FULL_PROFILE_OPTIONS)
        .filter(User.profile_status == ProfileStatus.PENDING_REVIEW.value)
        .order_by(User.submitted_at.asc(), User.created_at.asc(), User.id.asc())
        .all()
    )


def validate_transition(target_status: str, rejection_reason: str | None) -> str | None:
    """
    Check a decision before anything is written.

    Returns the normalized rejection reason (None for ACTIVE).

    Raises:
        InvalidStatusTransitionError: target is not ACTIVE/REJECTED, or a
            rejection has no reason
    """
    allowed = {status.value for status in ProfileStatus.review_outcomes()}
    if target_status not in allowed:
        raise InvalidStatusTransitionError(
            f"Status must be one of {', '.join(sorted(allowed))}"
        )

    if target_status == ProfileStatus.REJECTED.value:
        reason = (rejection_reason or "").strip()
        if not reason:
            raise InvalidStatusTransitionError(
                "Rejection reason is required when rejecting a profile"
            )
        return reason
    return None


async def transition_status(
    db: Session,
    actor: User,
    user_id: UUID,
    target_status: str,
    rejection_reason: str | None = None,
    provider: SettingsProvider | None = None,
) -> User:
    """
    Apply a reviewer decision.

    The status change is the durable fact; the notification email goes out
    after commit and its failure does not undo anything.

    Raises:
        AuthorizationError: actor lacks profiles.approve
        InvalidStatusTransitionError: bad target or missing reason
        NotFoundError: unknown user
    """
    permission_service.require_permission(db, actor, PermissionKey.PROFILES_APPROVE.value)
    target_status = getattr(target_status, "value", target_status)
    reason = validate_transition(target_status, rejection_reason)

    user = user_service.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    previous = user.profile_status
    user.profile_status = target_status
    user.reviewed_at = datetime.now(timezone.utc)
    user.rejection_reason = reason
    db.commit()
    db.refresh(user)

    logger.info(
        "Profile review decision",
        extra=build_log_context(
            user_id=user.id,
            actor_id=str(actor.id),
            from_status=previous,
            to_status=target_status,
        ),
    )

    sent = await notification_service.send_profile_status_email(
        user, target_status, reason, provider
    )
    if not sent:
        logger.warning(
            "Review notification not delivered",
            extra=build_log_context(user_id=user.id, to_status=target_status),
        )
    return user
