"""System settings router (key/value store)."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from helix.core.deps import get_db, require_permission
from helix.core.permissions import PermissionKey as P
from helix.db.models import User
from helix.schemas.settings import SettingsUpdate
from helix.services import settings_service

router = APIRouter()


@router.get("", response_model=dict[str, str])
def get_settings(
    _: User = Depends(require_permission(P.SETTINGS_VIEW)),
    db: Session = Depends(get_db),
):
    return settings_service.get_all_settings(db)


@router.put("", response_model=dict[str, str])
def update_settings(
    body: SettingsUpdate,
    _: User = Depends(require_permission(P.SETTINGS_MANAGE)),
    db: Session = Depends(get_db),
):
    return settings_service.update_settings(db, body.settings)


@router.delete("/{key}", status_code=204)
def delete_setting(
    key: str,
    _: User = Depends(require_permission(P.SETTINGS_MANAGE)),
    db: Session = Depends(get_db),
):
    """Protected keys (business name, admin email) cannot be deleted."""
    settings_service.delete_setting(db, key)
