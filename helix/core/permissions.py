"""Permission registry with metadata for UI and validation.

Slugs are the contract between code and data: once a policy check in
deployed code references one, it must not be renamed.

Super Admin always holds every permission defined here; `seed_rbac`
reconciles it whenever the registry grows.
"""

from dataclasses import dataclass
from enum import Enum


class PermissionKey(str, Enum):
    SETTINGS_VIEW = "settings.view"
    SETTINGS_MANAGE = "settings.manage"
    USERS_VIEW = "users.view"
    USERS_MANAGE = "users.manage"
    PROFILES_VIEW_PENDING = "profiles.view_pending"
    PROFILES_APPROVE = "profiles.approve"
    PROFILES_VIEW_SENSITIVE = "profiles.view_sensitive"
    DASHBOARD_VIEW = "dashboard.view"


@dataclass(frozen=True)
class PermissionDef:
    """Permission definition with metadata."""
    key: str
    description: str
    category: str


class PermissionCategory(str, Enum):
    """Permission categories for UI grouping."""
    SETTINGS = "Settings"
    USERS = "Users"
    PROFILES = "Profiles"
    DASHBOARD = "Dashboard"


P = PermissionKey

# =============================================================================
# Permission Registry
# =============================================================================

PERMISSION_REGISTRY: dict[str, PermissionDef] = {
    P.SETTINGS_VIEW.value: PermissionDef(
        P.SETTINGS_VIEW.value, "View system settings", PermissionCategory.SETTINGS
    ),
    P.SETTINGS_MANAGE.value: PermissionDef(
        P.SETTINGS_MANAGE.value,
        "Update system settings (SMTP, Business Name)",
        PermissionCategory.SETTINGS,
    ),
    P.USERS_VIEW.value: PermissionDef(
        P.USERS_VIEW.value, "View user list", PermissionCategory.USERS
    ),
    P.USERS_MANAGE.value: PermissionDef(
        P.USERS_MANAGE.value, "Ban, delete, or edit users", PermissionCategory.USERS
    ),
    P.PROFILES_VIEW_PENDING.value: PermissionDef(
        P.PROFILES_VIEW_PENDING.value,
        "View profiles waiting for review",
        PermissionCategory.PROFILES,
    ),
    P.PROFILES_APPROVE.value: PermissionDef(
        P.PROFILES_APPROVE.value, "Approve or Reject profiles", PermissionCategory.PROFILES
    ),
    P.PROFILES_VIEW_SENSITIVE.value: PermissionDef(
        P.PROFILES_VIEW_SENSITIVE.value,
        "View private health/genetic data",
        PermissionCategory.PROFILES,
    ),
    P.DASHBOARD_VIEW.value: PermissionDef(
        P.DASHBOARD_VIEW.value, "View admin analytics", PermissionCategory.DASHBOARD
    ),
}


# =============================================================================
# System Roles
# =============================================================================

SUPER_ADMIN_ROLE = "Super Admin"
MODERATOR_ROLE = "Moderator"
STANDARD_USER_ROLE = "User"


@dataclass(frozen=True)
class RoleDef:
    name: str
    description: str
    is_system: bool
    permissions: frozenset[str]


SYSTEM_ROLES: list[RoleDef] = [
    RoleDef(
        SUPER_ADMIN_ROLE,
        "Full system access",
        True,
        frozenset(PERMISSION_REGISTRY.keys()),
    ),
    RoleDef(
        MODERATOR_ROLE,
        "Can review profiles and view users",
        False,
        frozenset(
            key
            for key in PERMISSION_REGISTRY
            if key.startswith("profiles.") or key in (P.USERS_VIEW.value, P.DASHBOARD_VIEW.value)
        ),
    ),
    RoleDef(STANDARD_USER_ROLE, "Standard App User", True, frozenset()),
]


# =============================================================================
# Helper Functions
# =============================================================================

def is_valid_permission(key: str) -> bool:
    """Check if permission key exists."""
    return key in PERMISSION_REGISTRY
