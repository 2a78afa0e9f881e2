"""User-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class UserRead(BaseModel):
    """Response schema for reading a user."""

    id: UUID
    email: str
    gender: str | None
    role: str | None
    service_type: str | None
    interested_in: str | None
    pairing_types: list[str]
    terms_accepted: bool
    onboarding_step: int
    profile_status: str
    access_role_id: UUID | None
    submitted_at: datetime | None
    reviewed_at: datetime | None
    rejection_reason: str | None
    last_login_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}
