"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from helix.schemas.user import UserRead


class TokenPayload(BaseModel):
    """Decoded JWT payload structure. Identity only; no role claims."""
    sub: UUID  # user_id
    iat: int
    exp: int


class LoginRequest(BaseModel):
    """Request a login code."""
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class LoginResponse(BaseModel):
    message: str
    email: str  # masked


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: str = Field(min_length=6, max_length=6, pattern=r"^[0-9]+$")

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class VerifyOtpResponse(BaseModel):
    token: str
    user: UserRead
    redirect_route: str
    is_admin: bool


class MeResponse(BaseModel):
    """Response schema for GET /auth/me endpoint."""
    user: UserRead
    role_name: str | None
    permissions: list[str]
