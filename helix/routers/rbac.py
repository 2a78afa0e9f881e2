"""RBAC administration: roles, permissions, assignments."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from helix.core.deps import get_db, require_permission
from helix.core.errors import NotFoundError
from helix.core.permissions import PermissionKey as P
from helix.db.models import User
from helix.schemas.rbac import AssignRoleRequest, PermissionRead, RoleCreate, RoleRead
from helix.schemas.user import UserRead
from helix.services import permission_service, user_service

router = APIRouter()

manage_users = require_permission(P.USERS_MANAGE)


@router.get("/roles", response_model=list[RoleRead])
def list_roles(_: User = Depends(manage_users), db: Session = Depends(get_db)):
    return permission_service.list_roles(db)


@router.post("/roles", response_model=RoleRead, status_code=201)
def create_role(
    body: RoleCreate,
    _: User = Depends(manage_users),
    db: Session = Depends(get_db),
):
    """Create a custom role. Unknown permission slugs are dropped (or rejected in strict mode)."""
    return permission_service.create_role(db, body.name, body.description, body.permissions)


@router.delete("/roles/{role_id}", status_code=204)
def delete_role(
    role_id: UUID,
    _: User = Depends(manage_users),
    db: Session = Depends(get_db),
):
    permission_service.delete_role(db, role_id)


@router.get("/permissions", response_model=list[PermissionRead])
def list_permissions(_: User = Depends(manage_users), db: Session = Depends(get_db)):
    return permission_service.list_permissions(db)


@router.post("/assign", response_model=UserRead)
def assign_role(
    body: AssignRoleRequest,
    _: User = Depends(manage_users),
    db: Session = Depends(get_db),
):
    user_id = body.user_id
    if user_id is None:
        target = user_service.get_user_by_email(db, body.email)
        if not target:
            raise NotFoundError("User not found")
        user_id = target.id
    return permission_service.assign_role(db, user_id, body.role_name)
