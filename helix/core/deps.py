"""FastAPI dependencies for authentication, authorization, and database access."""

import logging
from typing import Generator

import jwt
from fastapi import Depends, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from helix.core.errors import AuthenticationError
from helix.core.security import decode_session_token
from helix.db.session import SessionLocal
from helix.schemas.auth import TokenPayload

logger = logging.getLogger(__name__)

# Cookie name
COOKIE_NAME = "helix_session"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _extract_token(request: Request) -> str | None:
    """Bearer header wins over the cookie when both are present."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(COOKIE_NAME)


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Get authenticated user from the session token.

    Validates:
    - Token exists (Authorization header or session cookie)
    - JWT is valid and not expired
    - User still exists

    The token only identifies the user; role and permissions are read from
    the database on every request.

    Raises:
        AuthenticationError: Authentication failed
    """
    # Import here to avoid circular imports
    from helix.services import user_service

    token = _extract_token(request)
    if not token:
        raise AuthenticationError("Not authenticated")

    try:
        payload = decode_session_token(token)
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Session expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid session")

    try:
        claims = TokenPayload.model_validate(payload)
    except PydanticValidationError:
        raise AuthenticationError("Invalid session")

    user = user_service.get_user_by_id(db, claims.sub)
    if not user:
        raise AuthenticationError("User not found")
    return user


def require_permission(permission: str):
    """
    Dependency factory for permission-based authorization.

    Checks the caller's role from the database on every call (no caching).

    Usage:
        @router.get("/pending")
        def list_pending(user = Depends(require_permission(P.PROFILES_VIEW_PENDING))):
            ...

    Raises:
        AuthorizationError: If the caller's role does not grant the permission
    """
    from helix.services import permission_service

    slug = getattr(permission, "value", permission)

    def dependency(
        user=Depends(get_current_user),
        db: Session = Depends(get_db),
    ):
        permission_service.require_permission(db, user, slug)
        return user

    return dependency
