"""Wizard stage definitions and completion rules.

One entry per stage number. Each entry names the sub-record it writes, the
fields it accepts, which of those are numeric, and a precondition that
returns every missing/invalid field for a save.

Preconditions see the merged view: what is already stored on the
sub-record overlaid with the incoming payload. That way a value supplied
at an earlier stage (e.g. dob on stage 1) satisfies a later requirement.
"""

from dataclasses import dataclass, field
from typing import Any, Callable

from helix.db.enums import PlatformRole, ServiceType
from helix.db.models import (
    User,
    UserCompensation,
    UserGenetic,
    UserHealth,
    UserLegal,
    UserProfile,
)

Precondition = Callable[[User, dict[str, Any], bool], list[str]]


def is_surrogacy_candidate(user: User) -> bool:
    return (
        user.service_type == ServiceType.SURROGACY_SERVICES.value
        or user.role == PlatformRole.SURROGATE.value
    )


def _missing(merged: dict[str, Any], fields: tuple[str, ...]) -> list[str]:
    missing = []
    for name in fields:
        value = merged.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(f"{name} is required")
    return missing


# =============================================================================
# Preconditions
# =============================================================================

def _basics_rules(user: User, merged: dict[str, Any], is_complete: bool) -> list[str]:
    if not is_complete:
        return []
    return _missing(merged, ("legal_name",))


def _background_rules(user: User, merged: dict[str, Any], is_complete: bool) -> list[str]:
    if not is_complete or not is_surrogacy_candidate(user):
        return []
    return _missing(merged, ("dob", "height", "weight"))


def _health_rules(user: User, merged: dict[str, Any], is_complete: bool) -> list[str]:
    if not is_complete or not is_surrogacy_candidate(user):
        return []
    return _missing(merged, ("pregnancy_history", "menstrual_regularity"))


def _no_rules(user: User, merged: dict[str, Any], is_complete: bool) -> list[str]:
    return []


def _compensation_rules(user: User, merged: dict[str, Any], is_complete: bool) -> list[str]:
    # Applies on every save, not only on completion
    if merged.get("allow_bidding") and merged.get("min_accepted_price") is None:
        return ["min_accepted_price is required when bidding is allowed"]
    return []


def _legal_rules(user: User, merged: dict[str, Any], is_complete: bool) -> list[str]:
    if merged.get("consent_agreed") is not True:
        return ["consent_agreed must be true"]
    return []


# =============================================================================
# Stage Table
# =============================================================================

@dataclass(frozen=True)
class StageDefinition:
    number: int
    label: str
    model: type
    relationship: str
    fields: frozenset[str]
    precondition: Precondition
    integer_fields: frozenset[str] = field(default_factory=frozenset)
    decimal_fields: frozenset[str] = field(default_factory=frozenset)
    # Saving this stage is the submission act (step 6 + PENDING_REVIEW)
    submits: bool = False


BASICS_FIELDS = frozenset({
    "legal_name", "dob", "phone_number", "address", "baby_photo_url", "current_photo_url",
})
BACKGROUND_FIELDS = frozenset({
    "education", "occupation", "nationality", "diet", "height", "weight",
    "body_build", "hair_color", "eye_color", "race", "orientation", "bio",
})
HEALTH_FIELDS = frozenset({
    "has_diabetes", "has_heart_condition", "has_autoimmune", "has_cancer",
    "has_neuro_disorder", "has_respiratory", "mental_health_history",
    "other_conditions", "major_surgeries", "medications", "allergies",
    "allergies_details", "cmv_status", "biological_children",
    "reproductive_issues", "reproductive_conds", "menstrual_regularity",
    "pregnancy_history", "hiv_hep_status", "needle_usage",
    "transfusion_history", "malaria_risk", "zika_risk",
})
GENETIC_FIELDS = frozenset({"carrier_conditions", "report_file_url"})
COMPENSATION_FIELDS = frozenset({
    "is_interested", "allow_bidding", "asking_price", "min_accepted_price", "buy_now_price",
})
LEGAL_FIELDS = frozenset({"consent_agreed", "anonymity_preference"})


STAGES: dict[int, StageDefinition] = {
    1: StageDefinition(
        1, "Basics & Identity", UserProfile, "profile", BASICS_FIELDS, _basics_rules,
    ),
    2: StageDefinition(
        2, "Background", UserProfile, "profile", BACKGROUND_FIELDS, _background_rules,
        integer_fields=frozenset({"height", "weight"}),
    ),
    3: StageDefinition(3, "Health", UserHealth, "health", HEALTH_FIELDS, _health_rules),
    4: StageDefinition(4, "Genetic", UserGenetic, "genetic", GENETIC_FIELDS, _no_rules),
    5: StageDefinition(
        5, "Compensation", UserCompensation, "compensation", COMPENSATION_FIELDS,
        _compensation_rules,
        decimal_fields=frozenset({"asking_price", "min_accepted_price", "buy_now_price"}),
    ),
    6: StageDefinition(
        6, "Legal & Submit", UserLegal, "legal", LEGAL_FIELDS, _legal_rules, submits=True,
    ),
}

# Fields accepted by the comprehensive profile edit, per sub-record relationship
EDITABLE_FIELDS_BY_RELATIONSHIP: dict[str, frozenset[str]] = {
    "profile": BASICS_FIELDS | BACKGROUND_FIELDS,
    "health": HEALTH_FIELDS,
    "genetic": GENETIC_FIELDS,
    "compensation": COMPENSATION_FIELDS,
    "legal": frozenset({"anonymity_preference"}),
}
