"""Enum definitions for application constants."""

from enum import Enum


class ProfileStatus(str, Enum):
    """
    Administrator review lifecycle, independent of onboarding step.

    DRAFT → PENDING_REVIEW (stage 6 submission) → ACTIVE | REJECTED (review)
    """

    DRAFT = "DRAFT"
    PENDING_REVIEW = "PENDING_REVIEW"
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"

    @classmethod
    def review_outcomes(cls) -> tuple["ProfileStatus", ...]:
        """Statuses an administrator may move a profile into."""
        return (cls.ACTIVE, cls.REJECTED)


class PlatformRole(str, Enum):
    """What the user is on the platform (not their access role)."""

    DONOR = "DONOR"
    SURROGATE = "SURROGATE"
    RECIPIENT = "RECIPIENT"
    ASPIRING_PARENT = "ASPIRING_PARENT"


class ServiceType(str, Enum):
    DONOR_SERVICES = "DONOR_SERVICES"
    SURROGACY_SERVICES = "SURROGACY_SERVICES"


class GameteType(str, Enum):
    SPERM = "SPERM"
    EGG = "EGG"
    EMBRYO = "EMBRYO"


class Gender(str, Enum):
    WOMAN = "WOMAN"
    MAN = "MAN"
    OTHER = "OTHER"


class IdentityDocumentType(str, Enum):
    DRIVER_LICENSE = "DRIVER_LICENSE"
    PASSPORT = "PASSPORT"
    NATIONAL_ID = "NATIONAL_ID"


class BodyBuild(str, Enum):
    SLIM = "SLIM"
    ATHLETIC = "ATHLETIC"
    AVERAGE = "AVERAGE"
    CURVY = "CURVY"
    LARGE = "LARGE"


class HairColor(str, Enum):
    AUBURN = "AUBURN"
    BLACK = "BLACK"
    BLONDE = "BLONDE"
    BROWN = "BROWN"
    RED = "RED"
    GRAY = "GRAY"
    WHITE = "WHITE"
    OTHER = "OTHER"


class EyeColor(str, Enum):
    BLUE = "BLUE"
    BLACK = "BLACK"
    GREEN = "GREEN"
    BROWN = "BROWN"
    HAZEL = "HAZEL"
    GRAY = "GRAY"
    OTHER = "OTHER"


class Orientation(str, Enum):
    STRAIGHT = "STRAIGHT"
    GAY = "GAY"
    LESBIAN = "LESBIAN"
    BISEXUAL = "BISEXUAL"
    PREFER_NOT_TO_SAY = "PREFER_NOT_TO_SAY"


class Diet(str, Enum):
    OMNIVORE = "OMNIVORE"
    VEGETARIAN = "VEGETARIAN"
    VEGAN = "VEGAN"
    KOSHER = "KOSHER"
    HALAL = "HALAL"
    GLUTEN_FREE = "GLUTEN_FREE"
    OTHER = "OTHER"


class CmvStatus(str, Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    UNKNOWN = "UNKNOWN"


class AnonymityPreference(str, Enum):
    ANONYMOUS = "ANONYMOUS"
    SEMI_OPEN = "SEMI_OPEN"
    OPEN = "OPEN"


class PhotoKind(str, Enum):
    """Stage 1 photo slots."""

    BABY = "baby"
    CURRENT = "current"


# Defaults for new users
DEFAULT_PROFILE_STATUS = ProfileStatus.DRAFT
INITIAL_ONBOARDING_STEP = 0
FINAL_ONBOARDING_STEP = 6
