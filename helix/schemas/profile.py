"""Onboarding and profile Pydantic schemas.

Stage request models carry only shape/range checks. Business rules
(mandatory fields per service type, bidding floor, consent) live in the
stage rules so they also apply to non-HTTP callers.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from helix.db.enums import (
    AnonymityPreference,
    BodyBuild,
    CmvStatus,
    Diet,
    EyeColor,
    GameteType,
    Gender,
    HairColor,
    Orientation,
    PlatformRole,
    ServiceType,
)
from helix.schemas.user import UserRead


class _Request(BaseModel):
    model_config = ConfigDict(use_enum_values=True, extra="forbid")


class StageRequest(_Request):
    """Common envelope: stage data plus the caller's completion signal."""
    is_complete: bool = False

    def stage_data(self) -> dict:
        """Only the fields the client actually sent (partial update)."""
        return self.model_dump(exclude_unset=True, exclude={"is_complete"})


# =============================================================================
# Requests
# =============================================================================

class OnboardingRequest(_Request):
    gender: Gender
    role: PlatformRole
    service_type: ServiceType
    interested_in: GameteType
    pairing_types: list[str] = Field(default_factory=list)
    terms_accepted: bool


class BasicInfoRequest(StageRequest):
    legal_name: str | None = Field(None, min_length=2, max_length=100)
    dob: date | None = None
    phone_number: str | None = Field(None, max_length=50, pattern=r"^[\d\s\-+()]*$")
    address: str | None = Field(None, max_length=500)


class BackgroundRequest(StageRequest):
    education: str | None = Field(None, max_length=200)
    occupation: str | None = Field(None, max_length=200)
    nationality: str | None = Field(None, max_length=100)
    diet: Diet | None = None
    height: int | None = Field(None, ge=50, le=300)
    weight: int | None = Field(None, ge=20, le=500)
    body_build: BodyBuild | None = None
    hair_color: HairColor | None = None
    eye_color: EyeColor | None = None
    race: str | None = Field(None, max_length=100)
    orientation: Orientation | None = None
    bio: str | None = Field(None, max_length=500)


class HealthRequest(StageRequest):
    has_diabetes: bool | None = None
    has_heart_condition: bool | None = None
    has_autoimmune: bool | None = None
    has_cancer: bool | None = None
    has_neuro_disorder: bool | None = None
    has_respiratory: bool | None = None
    mental_health_history: str | None = Field(None, max_length=1000)
    other_conditions: str | None = Field(None, max_length=1000)
    major_surgeries: str | None = Field(None, max_length=1000)
    medications: str | None = Field(None, max_length=1000)
    allergies: bool | None = None
    allergies_details: str | None = Field(None, max_length=500)
    cmv_status: CmvStatus | None = None
    biological_children: bool | None = None
    reproductive_issues: bool | None = None
    reproductive_conds: bool | None = None
    menstrual_regularity: bool | None = None
    pregnancy_history: bool | None = None
    hiv_hep_status: bool | None = None
    needle_usage: bool | None = None
    transfusion_history: bool | None = None
    malaria_risk: bool | None = None
    zika_risk: bool | None = None


class GeneticRequest(StageRequest):
    carrier_conditions: list[str] | None = None


class CompensationRequest(StageRequest):
    is_interested: bool | None = None
    allow_bidding: bool | None = None
    asking_price: float | None = Field(None, ge=0, le=1_000_000)
    min_accepted_price: float | None = Field(None, ge=0, le=1_000_000)
    buy_now_price: float | None = Field(None, ge=0, le=1_000_000)


class LegalRequest(_Request):
    """Stage 6. Saving it submits the profile for review."""
    consent_agreed: bool
    anonymity_preference: AnonymityPreference | None = None

    def stage_data(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ProfileUpdateRequest(_Request):
    """Comprehensive edit. Every field optional; only provided ones change."""
    # Core user
    gender: Gender | None = None
    service_type: ServiceType | None = None
    interested_in: GameteType | None = None
    pairing_types: list[str] | None = None
    # Basics & background
    legal_name: str | None = Field(None, min_length=2, max_length=100)
    dob: date | None = None
    phone_number: str | None = Field(None, max_length=50, pattern=r"^[\d\s\-+()]*$")
    address: str | None = Field(None, max_length=500)
    education: str | None = Field(None, max_length=200)
    occupation: str | None = Field(None, max_length=200)
    nationality: str | None = Field(None, max_length=100)
    diet: Diet | None = None
    height: int | None = Field(None, ge=50, le=300)
    weight: int | None = Field(None, ge=20, le=500)
    body_build: BodyBuild | None = None
    hair_color: HairColor | None = None
    eye_color: EyeColor | None = None
    race: str | None = Field(None, max_length=100)
    orientation: Orientation | None = None
    bio: str | None = Field(None, max_length=500)
    # Health
    has_diabetes: bool | None = None
    has_heart_condition: bool | None = None
    has_autoimmune: bool | None = None
    has_cancer: bool | None = None
    has_neuro_disorder: bool | None = None
    has_respiratory: bool | None = None
    mental_health_history: str | None = Field(None, max_length=1000)
    other_conditions: str | None = Field(None, max_length=1000)
    major_surgeries: str | None = Field(None, max_length=1000)
    medications: str | None = Field(None, max_length=1000)
    allergies: bool | None = None
    allergies_details: str | None = Field(None, max_length=500)
    cmv_status: CmvStatus | None = None
    biological_children: bool | None = None
    reproductive_issues: bool | None = None
    reproductive_conds: bool | None = None
    menstrual_regularity: bool | None = None
    pregnancy_history: bool | None = None
    hiv_hep_status: bool | None = None
    needle_usage: bool | None = None
    transfusion_history: bool | None = None
    malaria_risk: bool | None = None
    zika_risk: bool | None = None
    # Genetic, compensation, legal
    carrier_conditions: list[str] | None = None
    is_interested: bool | None = None
    allow_bidding: bool | None = None
    asking_price: float | None = Field(None, ge=0, le=1_000_000)
    min_accepted_price: float | None = Field(None, ge=0, le=1_000_000)
    buy_now_price: float | None = Field(None, ge=0, le=1_000_000)
    anonymity_preference: AnonymityPreference | None = None


# =============================================================================
# Responses
# =============================================================================

class _Read(BaseModel):
    model_config = {"from_attributes": True}


class ProfileRead(_Read):
    legal_name: str | None
    dob: date | None
    phone_number: str | None
    address: str | None
    baby_photo_url: str | None
    current_photo_url: str | None
    education: str | None
    occupation: str | None
    nationality: str | None
    diet: str | None
    height: int | None
    weight: int | None
    body_build: str | None
    hair_color: str | None
    eye_color: str | None
    race: str | None
    orientation: str | None
    bio: str | None


class PhotosRead(_Read):
    baby_photo_url: str | None
    current_photo_url: str | None


class IdentityDocumentRead(_Read):
    id: UUID
    type: str
    file_url: str
    uploaded_at: datetime


class HealthRead(_Read):
    has_diabetes: bool | None
    has_heart_condition: bool | None
    has_autoimmune: bool | None
    has_cancer: bool | None
    has_neuro_disorder: bool | None
    has_respiratory: bool | None
    mental_health_history: str | None
    other_conditions: str | None
    major_surgeries: str | None
    medications: str | None
    allergies: bool | None
    allergies_details: str | None
    cmv_status: str | None
    biological_children: bool | None
    reproductive_issues: bool | None
    reproductive_conds: bool | None
    menstrual_regularity: bool | None
    pregnancy_history: bool | None
    hiv_hep_status: bool | None
    needle_usage: bool | None
    transfusion_history: bool | None
    malaria_risk: bool | None
    zika_risk: bool | None


class GeneticRead(_Read):
    carrier_conditions: list[str]
    report_file_url: str | None


class CompensationRead(_Read):
    is_interested: bool | None
    allow_bidding: bool | None
    asking_price: float | None
    min_accepted_price: float | None
    buy_now_price: float | None


class LegalRead(_Read):
    consent_agreed: bool
    anonymity_preference: str | None


class ProfileAggregateRead(UserRead):
    """User with every profile sub-record."""
    profile: ProfileRead | None = None
    identity_documents: list[IdentityDocumentRead] = Field(default_factory=list)
    health: HealthRead | None = None
    genetic: GeneticRead | None = None
    compensation: CompensationRead | None = None
    legal: LegalRead | None = None


class CurrentProfileResponse(BaseModel):
    user: ProfileAggregateRead
    permissions: list[str]
    suggested_stage: int
    is_complete: bool


# =============================================================================
# Review
# =============================================================================

class ReviewDecisionRequest(BaseModel):
    """Target status is validated by the review service (409 on bad values)."""
    status: str
    reason: str | None = Field(None, max_length=500)
