"""RBAC engine: permission checks, role management and seeding.

Resolution: user → access role → permission slugs, read fresh from the
database on every check. Missing role, dangling role reference and missing
slug all deny.
"""

import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from helix.core.config import settings
from helix.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from helix.core.permissions import (
    PERMISSION_REGISTRY,
    SUPER_ADMIN_ROLE,
    SYSTEM_ROLES,
    is_valid_permission,
)
from helix.core.structured_logging import build_log_context
from helix.db.models import Permission, Role, User

logger = logging.getLogger(__name__)


# =============================================================================
# Permission Resolution
# =============================================================================

def _load_role(db: Session, role_id: uuid.UUID) -> Role | None:
    return (
        db.query(Role)
        .options(selectinload(Role.permissions))
        .filter(Role.id == role_id)
        .execution_options(populate_existing=True)
        .first()
    )


def get_effective_permissions(db: Session, user: User) -> set[str]:
    """
    Permission slugs the user holds right now.

    Empty when the user has no role or the role reference no longer resolves.
    """
    role_id = db.query(User.access_role_id).filter(User.id == user.id).scalar()
    if role_id is None:
        return set()
    role = _load_role(db, role_id)
    if role is None:
        return set()
    return role.permission_slugs


def require_permission(db: Session, user: User, slug: str) -> None:
    """
    Authorization gate. Returns None when allowed.

    Raises:
        AuthorizationError: no role, dangling role, or slug not granted
    """
    role_id = db.query(User.access_role_id).filter(User.id == user.id).scalar()
    if role_id is None:
        logger.info(
            "Permission denied: no role",
            extra=build_log_context(user_id=user.id, permission=slug),
        )
        raise AuthorizationError("No access role assigned", required_permission=slug)

    role = _load_role(db, role_id)
    if role is None:
        logger.warning(
            "Permission denied: assigned role no longer exists",
            extra=build_log_context(user_id=user.id, permission=slug),
        )
        raise AuthorizationError("Assigned role no longer exists", required_permission=slug)

    if slug not in role.permission_slugs:
        logger.info(
            "Permission denied: slug not granted",
            extra=build_log_context(user_id=user.id, permission=slug, role=role.name),
        )
        raise AuthorizationError(required_permission=slug)


def check_permission(db: Session, user: User, slug: str) -> bool:
    """Non-raising form of require_permission."""
    return slug in get_effective_permissions(db, user)


# =============================================================================
# Role Management
# =============================================================================

def list_roles(db: Session) -> list[Role]:
    return db.query(Role).options(selectinload(Role.permissions)).order_by(Role.name).all()


def list_permissions(db: Session) -> list[Permission]:
    return db.query(Permission).order_by(Permission.slug).all()


def get_role_by_name(db: Session, name: str) -> Role | None:
    return db.query(Role).filter(Role.name == name).first()


def _resolve_permissions(db: Session, slugs: list[str]) -> list[Permission]:
    """
    Map slugs to Permission rows.

    Unknown slugs are dropped with a warning, or rejected outright when
    RBAC_STRICT_PERMISSION_SLUGS is set.
    """
    requested = list(dict.fromkeys(slugs))
    if not requested:
        return []
    known = [slug for slug in requested if is_valid_permission(slug)]
    found = db.query(Permission).filter(Permission.slug.in_(known)).all() if known else []
    unknown = sorted(set(requested) - {p.slug for p in found})
    if unknown:
        if settings.RBAC_STRICT_PERMISSION_SLUGS:
            raise ValidationError(
                "Unknown permission slugs",
                errors=[f"Unknown permission: {slug}" for slug in unknown],
            )
        logger.warning("Dropping unknown permission slugs: %s", ", ".join(unknown))
    return found


def create_role(
    db: Session,
    name: str,
    description: str | None,
    permission_slugs: list[str],
) -> Role:
    """
    Create a non-system role with the given permissions.

    Raises:
        ConflictError: a role with this name already exists
        ValidationError: unknown slugs while strict mode is on
    """
    name = name.strip()
    if not name:
        raise ValidationError("Role name is required", errors=["name: Role name is required"])
    if get_role_by_name(db, name):
        raise ConflictError(f"Role '{name}' already exists")

    permissions = _resolve_permissions(db, permission_slugs)
    role = Role(name=name, description=description, is_system=False, permissions=permissions)
    db.add(role)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"Role '{name}' already exists")
    db.refresh(role)

    logger.info(
        "Created role",
        extra=build_log_context(role=role.name, permission_count=len(permissions)),
    )
    return role


def assign_role(db: Session, user_id: uuid.UUID, role_name: str) -> User:
    """
    Set a user's access role by name.

    No guard against self-demotion or removing the last holder of a
    permission; operators own that.

    Raises:
        NotFoundError: unknown role or user
    """
    role = get_role_by_name(db, role_name)
    if not role:
        raise NotFoundError(f"Role '{role_name}' not found")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")

    user.access_role_id = role.id
    db.commit()
    db.refresh(user)
    logger.info("Assigned role", extra=build_log_context(user_id=user.id, role=role.name))
    return user


def delete_role(db: Session, role_id: uuid.UUID) -> None:
    """
    Delete a custom role. Users holding it are left without a role.

    Raises:
        NotFoundError: unknown role
        ConflictError: system role
    """
    role = db.query(Role).filter(Role.id == role_id).first()
    if not role:
        raise NotFoundError("Role not found")
    if role.is_system:
        raise ConflictError(f"System role '{role.name}' cannot be deleted")

    name = role.name
    db.delete(role)
    db.commit()
    logger.info("Deleted role", extra=build_log_context(role=name))


# =============================================================================
# Seeding
# =============================================================================

def seed_rbac(db: Session) -> dict[str, int]:
    """
    Upsert the permission registry and system roles.

    Idempotent. Super Admin is reconciled to hold every defined permission;
    other existing roles keep whatever an operator configured.

    Returns counts of created rows.
    """
    created_permissions = 0
    existing = {p.slug: p for p in db.query(Permission).all()}
    for key, definition in PERMISSION_REGISTRY.items():
        permission = existing.get(key)
        if permission is None:
            permission = Permission(slug=key, description=definition.description)
            db.add(permission)
            existing[key] = permission
            created_permissions += 1
        else:
            permission.description = definition.description

    created_roles = 0
    for role_def in SYSTEM_ROLES:
        role = get_role_by_name(db, role_def.name)
        if role is None:
            role = Role(
                name=role_def.name,
                description=role_def.description,
                is_system=role_def.is_system,
                permissions=[existing[slug] for slug in sorted(role_def.permissions)],
            )
            db.add(role)
            created_roles += 1
        elif role_def.name == SUPER_ADMIN_ROLE:
            role.permissions = [existing[slug] for slug in sorted(PERMISSION_REGISTRY)]

    db.commit()
    logger.info(
        "Seeded RBAC",
        extra=build_log_context(
            permissions_created=created_permissions, roles_created=created_roles
        ),
    )
    return {"permissions_created": created_permissions, "roles_created": created_roles}
