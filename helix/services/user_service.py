"""User lookup and aggregate loading."""

from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from helix.db.models import Role, User
from helix.utils.normalization import normalize_email

# Every sub-record a reviewer or the profile page needs in one round trip
FULL_PROFILE_OPTIONS = (
    selectinload(User.profile),
    selectinload(User.identity_documents),
    selectinload(User.health),
    selectinload(User.genetic),
    selectinload(User.compensation),
    selectinload(User.legal),
)


def get_user_by_id(db: Session, user_id: UUID) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return db.query(User).filter(User.email == normalized).first()


def get_user_with_access(db: Session, user_id: UUID) -> User | None:
    """Load a user with access role and its permissions, bypassing stale identity-map state."""
    return (
        db.query(User)
        .options(selectinload(User.access_role).selectinload(Role.permissions))
        .filter(User.id == user_id)
        .execution_options(populate_existing=True)
        .first()
    )


def get_full_profile(db: Session, user_id: UUID) -> User | None:
    """User with every profile sub-record and access role eagerly loaded."""
    return (
        db.query(User)
        .options(
            *FULL_PROFILE_OPTIONS,
            selectinload(User.access_role).selectinload(Role.permissions),
        )
        .filter(User.id == user_id)
        .execution_options(populate_existing=True)
        .first()
    )


def get_permission_slugs(user: User) -> list[str]:
    if not user.access_role:
        return []
    return sorted(user.access_role.permission_slugs)
