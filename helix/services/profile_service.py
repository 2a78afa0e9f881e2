"""Profile aggregate writer.

Each wizard stage writes one sub-record (create-or-update, keyed by user)
and, in the same transaction, advances the onboarding step when the caller
marks the stage complete. Mandatory-field checks run before any write; a
failing check rejects the whole call.
"""

import json
import logging
from datetime import date
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Session

from helix.core.errors import NotFoundError, ValidationError
from helix.core.structured_logging import build_log_context
from helix.db.enums import FINAL_ONBOARDING_STEP
from helix.db.models import IdentityDocument, User
from helix.services import onboarding_service, user_service
from helix.services.stage_rules import (
    EDITABLE_FIELDS_BY_RELATIONSHIP,
    STAGES,
    StageDefinition,
)
from helix.utils.normalization import parse_optional_number

logger = logging.getLogger(__name__)

# Core user columns the comprehensive edit may change
EDITABLE_USER_FIELDS = frozenset({"gender", "service_type", "interested_in", "pairing_types"})


# =============================================================================
# Payload cleaning
# =============================================================================

def get_stage(stage_number: int) -> StageDefinition:
    stage = STAGES.get(stage_number)
    if stage is None:
        raise ValidationError(f"Unknown stage {stage_number}")
    return stage


def _clean_value(name: str, value: Any, stage: StageDefinition, errors: list[str]) -> Any:
    if isinstance(value, Enum):
        value = value.value
    if name in stage.integer_fields or name in stage.decimal_fields:
        try:
            return parse_optional_number(value, integer=name in stage.integer_fields)
        except ValueError:
            errors.append(f"{name} must be a number")
            return None
    if name == "dob" and isinstance(value, str):
        try:
            return date.fromisoformat(value) if value.strip() else None
        except ValueError:
            errors.append("dob must be an ISO date")
            return None
    if name == "carrier_conditions":
        if value is None:
            return []
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                errors.append("carrier_conditions must be a list of strings")
                return []
        if not isinstance(value, list):
            errors.append("carrier_conditions must be a list of strings")
            return []
        return [str(item) for item in value]
    return value


def clean_stage_payload(stage: StageDefinition, payload: dict[str, Any]) -> dict[str, Any]:
    """
    Keep only the stage's fields and coerce numeric/date inputs.

    Keys absent from the payload stay absent (partial update). Explicit
    None is kept and clears the stored value.
    """
    errors: list[str] = []
    unknown = sorted(set(payload) - stage.fields)
    if unknown:
        errors.extend(f"{name} is not a stage {stage.number} field" for name in unknown)

    values = {
        name: _clean_value(name, value, stage, errors)
        for name, value in payload.items()
        if name in stage.fields
    }
    if errors:
        raise ValidationError("Invalid stage data", errors=errors)
    return values


def _snapshot(record) -> dict[str, Any]:
    if record is None:
        return {}
    return {attr.key: getattr(record, attr.key) for attr in sa_inspect(record).mapper.column_attrs}


# =============================================================================
# Stage upsert
# =============================================================================

def validate_stage(
    user: User,
    stage_number: int,
    payload: dict[str, Any],
    is_complete: bool = False,
) -> tuple[StageDefinition, dict[str, Any]]:
    """
    Clean a stage payload and run its precondition without writing anything.

    Upload routes call this before storing a file so a save that would be
    rejected leaves nothing behind in storage.

    Returns:
        (stage, cleaned_values)

    Raises:
        ValidationError: bad field values or missing mandatory fields
    """
    stage = get_stage(stage_number)
    values = clean_stage_payload(stage, payload)

    merged = _snapshot(getattr(user, stage.relationship))
    merged.update(values)

    problems = stage.precondition(user, merged, is_complete or stage.submits)
    if problems:
        raise ValidationError(
            f"Stage {stage.number} ({stage.label}) cannot be saved",
            errors=problems,
        )
    return stage, values


def upsert_stage(
    db: Session,
    user: User,
    stage_number: int,
    payload: dict[str, Any],
    is_complete: bool = False,
):
    """
    Create-or-update the stage's sub-record and, if complete, advance the step.

    Stage 6 is the submission act: saving it always moves the user to step 6
    and PENDING_REVIEW (``is_complete`` is implied).

    Raises:
        ValidationError: bad field values or missing mandatory fields, before
            anything is written
    """
    stage, values = validate_stage(user, stage_number, payload, is_complete)
    completing = is_complete or stage.submits
    record = getattr(user, stage.relationship)

    try:
        if record is None:
            record = stage.model(user_id=user.id)
            db.add(record)
            setattr(user, stage.relationship, record)
        for name, value in values.items():
            setattr(record, name, value)

        if stage.submits:
            onboarding_service.submit_for_review(db, user)
        elif is_complete:
            onboarding_service.advance(db, user, stage.number)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(record)
    logger.info(
        "Saved onboarding stage",
        extra=build_log_context(user_id=user.id, stage=stage.number, complete=completing),
    )
    return record


def add_identity_document(db: Session, user: User, doc_type: str, file_url: str) -> IdentityDocument:
    """Attach an uploaded identity document. Does not change the step."""
    document = IdentityDocument(
        user_id=user.id,
        type=getattr(doc_type, "value", doc_type),
        file_url=file_url,
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    return document


# =============================================================================
# Reads
# =============================================================================

def get_stage_record(db: Session, user_id: UUID, relationship: str):
    """Stored sub-record for one relationship (``profile``, ``health``...) or None."""
    user = user_service.get_full_profile(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return getattr(user, relationship)


def list_identity_documents(db: Session, user_id: UUID) -> list[IdentityDocument]:
    return (
        db.query(IdentityDocument)
        .filter(IdentityDocument.user_id == user_id)
        .order_by(IdentityDocument.uploaded_at)
        .all()
    )


def get_current_profile(db: Session, user_id: UUID) -> dict[str, Any]:
    """
    Full aggregate plus resume hints.

    ``suggested_stage`` is the stage after the last completed one;
    ``is_complete`` means the wizard has been submitted.
    """
    user = user_service.get_full_profile(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return {
        "user": user,
        "suggested_stage": user.onboarding_step + 1,
        "is_complete": user.onboarding_step >= FINAL_ONBOARDING_STEP,
    }


# =============================================================================
# Comprehensive edit
# =============================================================================

def update_profile(db: Session, user: User, payload: dict[str, Any]) -> User:
    """
    Partial update across core user fields and every sub-record.

    Only updates fields that are provided. Never advances the onboarding
    step and never changes review status. Bidding consistency is still
    enforced on compensation.
    """
    if not payload:
        raise ValidationError("At least one field must be provided for update")
    if "email" in payload:
        raise ValidationError("Email cannot be changed", errors=["email: Email cannot be changed"])

    errors: list[str] = []
    user_values: dict[str, Any] = {}
    by_relationship: dict[str, dict[str, Any]] = {}
    claimed: set[str] = set()

    for name in EDITABLE_USER_FIELDS & payload.keys():
        value = payload[name]
        user_values[name] = value.value if isinstance(value, Enum) else value
        claimed.add(name)

    for stage in STAGES.values():
        allowed = EDITABLE_FIELDS_BY_RELATIONSHIP[stage.relationship] & stage.fields
        subset = {name: payload[name] for name in allowed & payload.keys()}
        if not subset:
            continue
        claimed.update(subset)
        try:
            cleaned = clean_stage_payload(stage, subset)
        except ValidationError as exc:
            errors.extend(exc.errors)
            continue
        by_relationship.setdefault(stage.relationship, {}).update(cleaned)

    unknown = sorted(set(payload) - claimed)
    errors.extend(f"{name} cannot be edited" for name in unknown)

    compensation = by_relationship.get("compensation")
    if compensation is not None:
        merged = _snapshot(user.compensation)
        merged.update(compensation)
        errors.extend(STAGES[5].precondition(user, merged, False))

    if errors:
        raise ValidationError("Invalid profile update", errors=errors)

    models = {stage.relationship: stage.model for stage in STAGES.values()}
    try:
        for name, value in user_values.items():
            setattr(user, name, value)
        for relationship, values in by_relationship.items():
            record = getattr(user, relationship)
            if record is None:
                record = models[relationship](user_id=user.id)
                db.add(record)
                setattr(user, relationship, record)
            for name, value in values.items():
                setattr(record, name, value)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Updated profile",
        extra=build_log_context(user_id=user.id, sections=sorted(by_relationship)),
    )
    return user_service.get_full_profile(db, user.id)
