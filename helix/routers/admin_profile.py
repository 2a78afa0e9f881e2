"""Admin review queue and approval decisions."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from helix.core.deps import get_db, require_permission
from helix.core.permissions import PermissionKey as P
from helix.db.models import User
from helix.schemas.profile import ProfileAggregateRead, ReviewDecisionRequest
from helix.services import review_service
from helix.services.settings_service import DbSettingsProvider

router = APIRouter()


@router.get("/pending", response_model=list[ProfileAggregateRead])
def list_pending_profiles(
    _: User = Depends(require_permission(P.PROFILES_VIEW_PENDING)),
    db: Session = Depends(get_db),
):
    """Profiles awaiting review, oldest submission first."""
    return review_service.list_pending(db)


@router.patch("/approve/{user_id}", response_model=ProfileAggregateRead)
async def approve_profile(
    user_id: UUID,
    body: ReviewDecisionRequest,
    actor: User = Depends(require_permission(P.PROFILES_APPROVE)),
    db: Session = Depends(get_db),
):
    """Move a profile to ACTIVE or REJECTED (reason required) and email the user."""
    return await review_service.transition_status(
        db,
        actor,
        user_id,
        body.status,
        body.reason,
        provider=DbSettingsProvider(db),
    )
