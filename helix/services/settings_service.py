"""System settings key/value store.

Values are stored as strings. Email composition reads them through the
narrow ``DbSettingsProvider`` rather than touching the table directly.
"""

import logging
from typing import Any, Protocol

from sqlalchemy.orm import Session

from helix.core.errors import ConflictError, NotFoundError
from helix.db.models import SystemSetting

logger = logging.getLogger(__name__)

# Keys the platform relies on; they can be edited but never deleted
PROTECTED_KEYS = frozenset({"BUSINESS_NAME", "ADMIN_EMAIL"})

DEFAULT_SETTINGS: dict[str, str] = {
    "BUSINESS_NAME": "Helix",
    "ADMIN_EMAIL": "admin@helix.com",
    "MAIL_FOOTER_TEXT": "",
}


class SettingsProvider(Protocol):
    def get(self, key: str, default: str | None = None) -> str | None: ...


class DbSettingsProvider:
    """Reads settings at call time from the database."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str, default: str | None = None) -> str | None:
        row = self.db.query(SystemSetting).filter(SystemSetting.key == key).first()
        if row is None:
            return default
        return row.value


def get_all_settings(db: Session) -> dict[str, str]:
    rows = db.query(SystemSetting).order_by(SystemSetting.key).all()
    return {row.key: row.value for row in rows}


def update_settings(db: Session, values: dict[str, Any]) -> dict[str, str]:
    """Bulk upsert in one transaction. Non-string values are stringified."""
    existing = {
        row.key: row
        for row in db.query(SystemSetting).filter(SystemSetting.key.in_(list(values))).all()
    }
    try:
        for key, value in values.items():
            text = "" if value is None else str(value)
            row = existing.get(key)
            if row is None:
                db.add(SystemSetting(key=key, value=text))
            else:
                row.value = text
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Updated settings: %s", ", ".join(sorted(values)))
    return get_all_settings(db)


def delete_setting(db: Session, key: str) -> None:
    """
    Raises:
        ConflictError: protected key
        NotFoundError: unknown key
    """
    if key in PROTECTED_KEYS:
        raise ConflictError(f"Cannot delete critical system setting '{key}'")
    row = db.query(SystemSetting).filter(SystemSetting.key == key).first()
    if row is None:
        raise NotFoundError(f"Setting '{key}' not found")
    db.delete(row)
    db.commit()
    logger.info("Deleted setting %s", key)


def seed_default_settings(db: Session) -> int:
    """Insert defaults for missing keys; existing values are kept. Returns count created."""
    existing = set(get_all_settings(db))
    created = 0
    for key, value in DEFAULT_SETTINGS.items():
        if key not in existing:
            db.add(SystemSetting(key=key, value=value))
            created += 1
    db.commit()
    return created
