"""Login flow helpers: redirect hints after verification."""

from sqlalchemy.orm import Session

from helix.db.enums import ProfileStatus
from helix.db.models import User
from helix.services import permission_service

ADMIN_ROUTE = "/admin"
ONBOARDING_ROUTE = "/onboarding"

STATUS_ROUTES = {
    ProfileStatus.PENDING_REVIEW.value: "/profile/pending",
    ProfileStatus.ACTIVE.value: "/home",
    ProfileStatus.REJECTED.value: "/profile/rejected",
}
DEFAULT_PROFILE_ROUTE = "/profile/complete"


def is_admin(db: Session, user: User) -> bool:
    """Anyone whose role grants at least one permission is routed to the admin app."""
    return bool(permission_service.get_effective_permissions(db, user))


def resolve_redirect_route(db: Session, user: User) -> str:
    """
    Where the frontend should send a freshly authenticated user.

    Admins go to the admin app. Everyone else: onboarding until terms are
    accepted and a platform role chosen, then by review status.
    """
    if is_admin(db, user):
        return ADMIN_ROUTE
    if user.terms_accepted and user.role:
        return STATUS_ROUTES.get(user.profile_status, DEFAULT_PROFILE_ROUTE)
    return ONBOARDING_ROUTE
