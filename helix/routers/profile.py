"""Profile router: onboarding answers, wizard stages 1-6, current profile."""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from helix.core.deps import get_current_user, get_db
from helix.core.errors import ValidationError
from helix.db.enums import IdentityDocumentType, PhotoKind
from helix.db.models import User
from helix.schemas.profile import (
    BackgroundRequest,
    BasicInfoRequest,
    CompensationRead,
    CompensationRequest,
    CurrentProfileResponse,
    GeneticRead,
    GeneticRequest,
    HealthRead,
    HealthRequest,
    IdentityDocumentRead,
    LegalRead,
    LegalRequest,
    OnboardingRequest,
    PhotosRead,
    ProfileAggregateRead,
    ProfileRead,
    ProfileUpdateRequest,
)
from helix.schemas.user import UserRead
from helix.services import (
    notification_service,
    onboarding_service,
    profile_service,
    storage_service,
    user_service,
)
from helix.services.settings_service import DbSettingsProvider

router = APIRouter()


def _store(upload: UploadFile, folder: str) -> str:
    return storage_service.store_upload(
        folder, upload.filename or "", upload.content_type, upload.file
    )


# =============================================================================
# Onboarding (pre-wizard)
# =============================================================================

@router.put("/onboarding", response_model=UserRead)
async def submit_onboarding(
    body: OnboardingRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Record gender, platform role, service type and terms. Step is unchanged."""
    first_acceptance = not user.terms_accepted
    user = onboarding_service.update_onboarding_data(
        db,
        user,
        gender=body.gender,
        role=body.role,
        service_type=body.service_type,
        interested_in=body.interested_in,
        pairing_types=body.pairing_types,
        terms_accepted=body.terms_accepted,
    )
    if first_acceptance:
        await notification_service.send_welcome_email(user, DbSettingsProvider(db))
    return user


# =============================================================================
# Stage 1: Basics, photos, identity
# =============================================================================

@router.get("/stage-1/basics", response_model=ProfileRead | None)
def get_basic_info(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return profile_service.get_stage_record(db, user.id, "profile")


@router.post("/stage-1/basics", response_model=ProfileRead)
def update_basic_info(
    body: BasicInfoRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return profile_service.upsert_stage(db, user, 1, body.stage_data(), body.is_complete)


@router.get("/stage-1/photos", response_model=PhotosRead | None)
def get_photos(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return profile_service.get_stage_record(db, user.id, "profile")


@router.post("/stage-1/photos", response_model=PhotosRead)
def upload_photos(
    baby: UploadFile | None = File(None),
    current: UploadFile | None = File(None),
    is_complete: bool = Form(False),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Upload the baby and/or current photo. At least one file is required."""
    if baby is None and current is None:
        raise ValidationError("At least one photo is required", errors=["baby or current file is required"])

    # Reject before anything reaches storage
    profile_service.validate_stage(user, 1, {}, is_complete)

    payload = {}
    if baby is not None:
        payload["baby_photo_url"] = _store(baby, f"photos/{PhotoKind.BABY.value}")
    if current is not None:
        payload["current_photo_url"] = _store(current, f"photos/{PhotoKind.CURRENT.value}")
    return profile_service.upsert_stage(db, user, 1, payload, is_complete)


@router.get("/stage-1/identity", response_model=list[IdentityDocumentRead])
def get_identity(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return profile_service.list_identity_documents(db, user.id)


@router.post("/stage-1/identity", response_model=IdentityDocumentRead, status_code=201)
def upload_identity_document(
    document_type: IdentityDocumentType = Form(..., alias="type"),
    document: UploadFile = File(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    file_url = _store(document, "identity")
    return profile_service.add_identity_document(db, user, document_type.value, file_url)


# =============================================================================
# Stages 2-5
# =============================================================================

@router.get("/stage-2/background", response_model=ProfileRead | None)
def get_background(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return profile_service.get_stage_record(db, user.id, "profile")


@router.post("/stage-2/background", response_model=ProfileRead)
def update_background(
    body: BackgroundRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return profile_service.upsert_stage(db, user, 2, body.stage_data(), body.is_complete)


@router.get("/stage-3/health", response_model=HealthRead | None)
def get_health(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return profile_service.get_stage_record(db, user.id, "health")


@router.post("/stage-3/health", response_model=HealthRead)
def update_health(
    body: HealthRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return profile_service.upsert_stage(db, user, 3, body.stage_data(), body.is_complete)


@router.get("/stage-4/genetic", response_model=GeneticRead | None)
def get_genetic(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return profile_service.get_stage_record(db, user.id, "genetic")


@router.post("/stage-4/genetic", response_model=GeneticRead)
def update_genetic(
    body: GeneticRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return profile_service.upsert_stage(db, user, 4, body.stage_data(), body.is_complete)


@router.post("/stage-4/genetic/report", response_model=GeneticRead)
def upload_genetic_report(
    report: UploadFile = File(...),
    conditions: str | None = Form(None),
    is_complete: bool = Form(False),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Multipart variant: report file plus optional JSON-encoded condition list."""
    payload = {}
    if conditions is not None:
        payload["carrier_conditions"] = conditions
    # Reject before anything reaches storage
    profile_service.validate_stage(user, 4, payload, is_complete)

    payload["report_file_url"] = _store(report, "genetic")
    return profile_service.upsert_stage(db, user, 4, payload, is_complete)


@router.get("/stage-5/compensation", response_model=CompensationRead | None)
def get_compensation(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return profile_service.get_stage_record(db, user.id, "compensation")


@router.post("/stage-5/compensation", response_model=CompensationRead)
def update_compensation(
    body: CompensationRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return profile_service.upsert_stage(db, user, 5, body.stage_data(), body.is_complete)


# =============================================================================
# Stage 6: Legal & submit
# =============================================================================

@router.get("/stage-6/complete", response_model=LegalRead | None)
def get_legal(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return profile_service.get_stage_record(db, user.id, "legal")


@router.post("/stage-6/complete", response_model=LegalRead)
def complete_profile(
    body: LegalRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Agree to legal terms and submit the profile for review."""
    return profile_service.upsert_stage(db, user, 6, body.stage_data(), True)


# =============================================================================
# Whole profile
# =============================================================================

@router.get("/current", response_model=CurrentProfileResponse)
def get_current_profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Full aggregate with resume hints for the wizard."""
    current = profile_service.get_current_profile(db, user.id)
    return CurrentProfileResponse(
        user=ProfileAggregateRead.model_validate(current["user"]),
        permissions=user_service.get_permission_slugs(current["user"]),
        suggested_stage=current["suggested_stage"],
        is_complete=current["is_complete"],
    )


@router.patch("", response_model=ProfileAggregateRead)
def update_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Edit any provided fields across the profile. Never advances the wizard."""
    return profile_service.update_profile(db, user, body.model_dump(exclude_unset=True))
