"""Security utilities for JWT session tokens and one-time code hashing."""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from helix.core.config import settings


# =============================================================================
# Session Token (JWT in cookie or Authorization header)
# =============================================================================

def create_session_token(user_id: UUID) -> str:
    """
    Create signed session JWT.

    Always signs with current secret (JWT_SECRET). The token carries only the
    user id and an expiry; role and permissions are re-resolved per request.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_session_token(token: str) -> dict:
    """
    Decode and verify session JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.ExpiredSignatureError:
            raise
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore


# =============================================================================
# One-time codes
# =============================================================================

def generate_numeric_code(length: int | None = None) -> str:
    """Generate a random numeric code using the system CSPRNG."""
    length = length or settings.OTP_LENGTH
    return "".join(secrets.choice("0123456789") for _ in range(length))


def hash_otp_code(user_id: UUID, code: str) -> str:
    """Keyed one-way hash of a code, bound to its owner."""
    message = f"{user_id}:{code.strip()}".encode()
    return hmac.new(settings.otp_hash_secret.encode(), message, hashlib.sha256).hexdigest()


def verify_otp_hash(user_id: UUID, code: str, stored_hash: str) -> bool:
    """Constant-time comparison of a candidate code against a stored hash."""
    return hmac.compare_digest(hash_otp_code(user_id, code), stored_hash)
