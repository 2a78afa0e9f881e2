"""Authentication router: emailed one-time codes and session management."""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from helix.core.config import settings
from helix.core.deps import COOKIE_NAME, get_current_user, get_db
from helix.core.rate_limit import AUTH_LIMIT, limiter
from helix.core.security import create_session_token
from helix.db.models import User
from helix.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from helix.schemas.user import UserRead
from helix.services import auth_service, notification_service, otp_service, user_service
from helix.services.settings_service import DbSettingsProvider
from helix.utils.normalization import mask_email

router = APIRouter()


# =============================================================================
# One-time code login
# =============================================================================

@router.post("/login", response_model=LoginResponse)
@limiter.limit(AUTH_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Issue a login code and email it.

    Unknown addresses get an account on the spot. The code itself is never
    returned; delivery failures are logged, not surfaced.
    """
    user, code = otp_service.issue_challenge(db, body.email)
    await notification_service.send_otp_email(user.email, code, DbSettingsProvider(db))
    return LoginResponse(message="OTP sent to your email", email=mask_email(user.email))


@router.post("/verify-otp", response_model=VerifyOtpResponse)
@limiter.limit(AUTH_LIMIT)
def verify_otp(
    request: Request,
    response: Response,
    body: VerifyOtpRequest,
    db: Session = Depends(get_db),
):
    """
    Exchange a valid code for a session.

    The token goes in an httponly cookie and in the body (for clients that
    send it as a Bearer header).
    """
    user = otp_service.verify_challenge(db, body.email, body.otp)
    token = create_session_token(user.id)

    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRES_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )
    return VerifyOtpResponse(
        token=token,
        user=UserRead.model_validate(user),
        redirect_route=auth_service.resolve_redirect_route(db, user),
        is_admin=auth_service.is_admin(db, user),
    )


# =============================================================================
# Session
# =============================================================================

@router.get("/me", response_model=MeResponse)
def get_me(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Current user with role name and permission slugs, read fresh."""
    user = user_service.get_user_with_access(db, user.id)
    return MeResponse(
        user=UserRead.model_validate(user),
        role_name=user.access_role.name if user.access_role else None,
        permissions=user_service.get_permission_slugs(user),
    )


@router.post("/logout")
def logout(response: Response):
    """Clear session cookie. Tokens are stateless; this only drops the cookie."""
    response.delete_cookie(COOKIE_NAME, path="/")
    return {"status": "logged_out"}
