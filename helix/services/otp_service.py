"""One-time login code lifecycle.

Provides:
- Challenge issuance (find-or-create user, store keyed hash only)
- Verification against the newest challenge with single-use consumption
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from helix.core.config import settings
from helix.core.errors import (
    OtpAlreadyConsumedError,
    OtpExpiredError,
    OtpMismatchError,
    OtpNoChallengeError,
    OtpUserNotFoundError,
    ValidationError,
)
from helix.core.security import generate_numeric_code, hash_otp_code, verify_otp_hash
from helix.core.structured_logging import build_log_context
from helix.db.enums import DEFAULT_PROFILE_STATUS, INITIAL_ONBOARDING_STEP
from helix.db.models import OtpChallenge, User
from helix.services import user_service
from helix.utils.normalization import normalize_email

logger = logging.getLogger(__name__)


# =============================================================================
# Issuance
# =============================================================================


def _get_or_create_user(db: Session, email: str) -> User:
    user = user_service.get_user_by_email(db, email)
    if user:
        return user

    user = User(
        email=email,
        profile_status=DEFAULT_PROFILE_STATUS.value,
        onboarding_step=INITIAL_ONBOARDING_STEP,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        # Concurrent first login for the same address
        db.rollback()
        user = user_service.get_user_by_email(db, email)
        if not user:
            raise
        return user

    logger.info("Created user on first login", extra=build_log_context(user_id=user.id))
    return user


def issue_challenge(db: Session, email: str) -> tuple[User, str]:
    """
    Issue a new login code for an email, creating the user if unseen.

    Exactly one challenge row is written per call. Earlier outstanding
    challenges are left alone; verification only considers the newest.

    Returns:
        (user, plaintext_code) - the code must be delivered out of band
        and is never persisted.
    """
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationError("Email is required", errors=["email: Email is required"])

    user = _get_or_create_user(db, normalized)

    code = generate_numeric_code()
    now = datetime.now(timezone.utc)
    challenge = OtpChallenge(
        user_id=user.id,
        code_hash=hash_otp_code(user.id, code),
        expires_at=now + timedelta(minutes=settings.OTP_TTL_MINUTES),
        created_at=now,
    )
    db.add(challenge)
    db.commit()
    db.refresh(user)

    logger.info(
        "Issued OTP challenge",
        extra=build_log_context(user_id=user.id, challenge_id=challenge.id),
    )
    return user, code


# =============================================================================
# Verification
# =============================================================================


def get_latest_challenge(db: Session, user_id) -> OtpChallenge | None:
    return (
        db.query(OtpChallenge)
        .filter(OtpChallenge.user_id == user_id)
        .order_by(OtpChallenge.created_at.desc(), OtpChallenge.id.desc())
        .first()
    )


def _consume(db: Session, challenge_id: int, now: datetime) -> bool:
    """Mark a challenge consumed iff nobody else has. True when this call won."""
    result = db.execute(
        update(OtpChallenge)
        .where(OtpChallenge.id == challenge_id, OtpChallenge.consumed_at.is_(None))
        .values(consumed_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def verify_challenge(db: Session, email: str, candidate_code: str) -> User:
    """
    Verify a login code against the user's most recent challenge.

    Checks run in a fixed order: user exists, a challenge exists, not
    expired, not consumed, code matches. The consume step is a conditional
    UPDATE so two concurrent verifications of the same code cannot both win.

    Returns:
        The user with access role and permissions loaded.

    Raises:
        OtpVerificationError subclass describing the failure
    """
    user = user_service.get_user_by_email(db, email)
    if not user:
        raise OtpUserNotFoundError()

    challenge = get_latest_challenge(db, user.id)
    if not challenge:
        raise OtpNoChallengeError()

    now = datetime.now(timezone.utc)
    if now > challenge.expires_at:
        raise OtpExpiredError()

    if challenge.consumed_at is not None:
        raise OtpAlreadyConsumedError()

    if not verify_otp_hash(user.id, candidate_code or "", challenge.code_hash):
        logger.info(
            "OTP mismatch",
            extra=build_log_context(user_id=user.id, challenge_id=challenge.id),
        )
        raise OtpMismatchError()

    if not _consume(db, challenge.id, now):
        db.rollback()
        raise OtpAlreadyConsumedError()
    user.last_login_at = now
    db.commit()

    logger.info(
        "OTP verified",
        extra=build_log_context(user_id=user.id, challenge_id=challenge.id),
    )
    return user_service.get_user_with_access(db, user.id)
