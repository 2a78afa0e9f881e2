"""SQLAlchemy ORM models for identity, onboarding profile and access control."""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    BigInteger, Boolean, Column, Date, Float, ForeignKey, Index, Integer,
    JSON, String, Table, Text, Uuid, func
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from helix.db.base import Base
from helix.db.enums import DEFAULT_PROFILE_STATUS, INITIAL_ONBOARDING_STEP


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Access Control (RBAC)
# =============================================================================

role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "permission_id", Uuid, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True
    ),
)


class Permission(Base):
    """
    A stable capability slug (e.g. ``profiles.approve``).

    Slugs are referenced from code; never rename one that is in use.
    """
    __tablename__ = "permissions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    roles: Mapped[list["Role"]] = relationship(
        secondary=role_permissions, back_populates="permissions"
    )


class Role(Base):
    """Named bundle of permissions assigned to users."""
    __tablename__ = "roles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # System roles cannot be deleted
    is_system: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    permissions: Mapped[list[Permission]] = relationship(
        secondary=role_permissions, back_populates="roles"
    )
    users: Mapped[list["User"]] = relationship(back_populates="access_role")

    @property
    def permission_slugs(self) -> set[str]:
        return {p.slug for p in self.permissions}


# =============================================================================
# Identity
# =============================================================================

class User(Base):
    """
    Platform user.

    Created on the first login attempt for an unseen email. Authentication is
    by emailed one-time code; no passwords are stored.
    """
    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_profile_status", "profile_status", "submitted_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    # Onboarding answers
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    role: Mapped[str | None] = mapped_column(String(30), nullable=True)
    service_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    interested_in: Mapped[str | None] = mapped_column(String(20), nullable=True)
    pairing_types: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    terms_accepted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Wizard progress (0-6, never decreases) and review lifecycle
    onboarding_step: Mapped[int] = mapped_column(
        Integer, default=INITIAL_ONBOARDING_STEP, server_default="0", nullable=False
    )
    profile_status: Mapped[str] = mapped_column(
        String(30), default=DEFAULT_PROFILE_STATUS.value, nullable=False
    )
    submitted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    access_role_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("roles.id", ondelete="SET NULL"), nullable=True
    )

    last_login_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    access_role: Mapped[Role | None] = relationship(back_populates="users")
    otp_challenges: Mapped[list["OtpChallenge"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    profile: Mapped["UserProfile | None"] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False
    )
    identity_documents: Mapped[list["IdentityDocument"]] = relationship(
        back_populates="user", cascade="all, delete-orphan",
        order_by="IdentityDocument.uploaded_at",
    )
    health: Mapped["UserHealth | None"] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False
    )
    genetic: Mapped["UserGenetic | None"] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False
    )
    compensation: Mapped["UserCompensation | None"] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False
    )
    legal: Mapped["UserLegal | None"] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False
    )


class OtpChallenge(Base):
    """
    One row per issued login code.

    Only a keyed hash of the code is stored. A challenge is consumed at most
    once; verification only ever looks at the newest row for a user.
    """
    __tablename__ = "otp_challenges"
    __table_args__ = (
        Index("idx_otp_challenges_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    code_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    consumed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    user: Mapped[User] = relationship(back_populates="otp_challenges")


# =============================================================================
# Profile Sub-records (one per user, except identity documents)
# =============================================================================

class UserProfile(Base):
    """Basics (stage 1) and background (stage 2)."""
    __tablename__ = "user_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    # Stage 1
    legal_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    dob: Mapped[date | None] = mapped_column(Date, nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    baby_photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    current_photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Stage 2
    education: Mapped[str | None] = mapped_column(String(200), nullable=True)
    occupation: Mapped[str | None] = mapped_column(String(200), nullable=True)
    nationality: Mapped[str | None] = mapped_column(String(100), nullable=True)
    diet: Mapped[str | None] = mapped_column(String(30), nullable=True)
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)  # cm
    weight: Mapped[int | None] = mapped_column(Integer, nullable=True)  # kg
    body_build: Mapped[str | None] = mapped_column(String(30), nullable=True)
    hair_color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    eye_color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    race: Mapped[str | None] = mapped_column(String(100), nullable=True)
    orientation: Mapped[str | None] = mapped_column(String(30), nullable=True)
    bio: Mapped[str | None] = mapped_column(String(500), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    user: Mapped[User] = relationship(back_populates="profile")


class IdentityDocument(Base):
    __tablename__ = "identity_documents"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    file_url: Mapped[str] = mapped_column(String(500), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    user: Mapped[User] = relationship(back_populates="identity_documents")


class UserHealth(Base):
    """Stage 3 medical history."""
    __tablename__ = "user_health"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    has_diabetes: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    has_heart_condition: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    has_autoimmune: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    has_cancer: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    has_neuro_disorder: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    has_respiratory: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    mental_health_history: Mapped[str | None] = mapped_column(Text, nullable=True)
    other_conditions: Mapped[str | None] = mapped_column(Text, nullable=True)
    major_surgeries: Mapped[str | None] = mapped_column(Text, nullable=True)
    medications: Mapped[str | None] = mapped_column(Text, nullable=True)
    allergies: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    allergies_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    cmv_status: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Reproductive history (mandatory before stage 3 for surrogacy candidates)
    biological_children: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    reproductive_issues: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    reproductive_conds: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    menstrual_regularity: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    pregnancy_history: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    # Infectious disease risk
    hiv_hep_status: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    needle_usage: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    transfusion_history: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    malaria_risk: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    zika_risk: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    user: Mapped[User] = relationship(back_populates="health")


class UserGenetic(Base):
    """Stage 4 carrier screening."""
    __tablename__ = "user_genetics"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    carrier_conditions: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    report_file_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    user: Mapped[User] = relationship(back_populates="genetic")


class UserCompensation(Base):
    """Stage 5 compensation and bidding preferences."""
    __tablename__ = "user_compensation"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    is_interested: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    allow_bidding: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    asking_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    min_accepted_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    buy_now_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    user: Mapped[User] = relationship(back_populates="compensation")


class UserLegal(Base):
    """Stage 6 consent. Saving it is the submission act."""
    __tablename__ = "user_legal"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    consent_agreed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    anonymity_preference: Mapped[str | None] = mapped_column(String(30), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    user: Mapped[User] = relationship(back_populates="legal")


# =============================================================================
# System Settings (key/value)
# =============================================================================

class SystemSetting(Base):
    """Operator-editable configuration consulted at call time (e.g. email branding)."""
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )
