"""RBAC administration schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator


class PermissionRead(BaseModel):
    id: UUID
    slug: str
    description: str | None

    model_config = {"from_attributes": True}


class RoleRead(BaseModel):
    id: UUID
    name: str
    description: str | None
    is_system: bool
    permissions: list[PermissionRead]

    model_config = {"from_attributes": True}


class RoleCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: str | None = Field(None, max_length=255)
    permissions: list[str] = Field(default_factory=list)


class AssignRoleRequest(BaseModel):
    """Target by user id or email."""
    user_id: UUID | None = None
    email: EmailStr | None = None
    role_name: str = Field(min_length=1, max_length=100)

    @model_validator(mode="after")
    def check_target(self):
        if not self.user_id and not self.email:
            raise ValueError("user_id or email is required")
        return self
