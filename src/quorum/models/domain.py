"""Domain models for Quorum.

Pure Python dataclasses representing domain entities.
These models are independent of SQLAlchemy and used throughout
the application for clean separation from the database layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


# ============================================================================
# Enumerations
# ============================================================================


class SurveyType(str, Enum):
    """Kind of answer a survey accepts."""

    BOOLEAN = "B"
    LIST = "L"


class SurveyStatus(str, Enum):
    """Survey lifecycle stage. Transitions only move forward."""

    DRAFT = "D"
    PUBLISHED = "P"
    CLOSED = "C"

    def next_status(self) -> SurveyStatus | None:
        """Return the only status this one may move to, if any."""
        if self is SurveyStatus.DRAFT:
            return SurveyStatus.PUBLISHED
        if self is SurveyStatus.PUBLISHED:
            return SurveyStatus.CLOSED
        return None


class SpecificationKind(str, Enum):
    """What respondent attribute a specification weights."""

    AGE = "A"
    GENDER = "G"


class Gender(str, Enum):
    MALE = "M"
    FEMALE = "F"


# ============================================================================
# Respondent Domain
# ============================================================================


def age_on(birthdate: date, reference: date) -> int:
    """Age in whole years at the reference date."""
    years = reference.year - birthdate.year
    if (reference.month, reference.day) < (birthdate.month, birthdate.day):
        years -= 1
    return years


@dataclass
class UserEntity:
    """Domain model for a user account."""

    user_id: str
    email: str
    gender: Gender
    birthdate: date


@dataclass(frozen=True)
class RespondentEntity:
    """Read-only projection of a user consumed by the summary engine."""

    gender: Gender
    birthdate: date

    def age(self, reference: date | None = None) -> int:
        return age_on(self.birthdate, reference or date.today())


# ============================================================================
# Survey Domain
# ============================================================================


@dataclass
class OptionEntity:
    """Domain model for a selectable option of a List survey."""

    option_id: str
    survey_id: str
    label: str


@dataclass
class SpecificationEntity:
    """Domain model for a weighting rule attached to a survey."""

    specification_id: str
    survey_id: str
    kind: SpecificationKind
    value: str
    weight: float


@dataclass
class SurveyEntity:
    """Domain model for a survey with its child collections."""

    survey_id: str
    user_id: str
    title: str
    description: str
    survey_type: SurveyType
    status: SurveyStatus
    options: list[OptionEntity] = field(default_factory=list)
    specifications: list[SpecificationEntity] = field(default_factory=list)


# ============================================================================
# Answer Domain
# ============================================================================


@dataclass
class AnswerEntity:
    """Domain model for a submitted answer.

    ``respondent`` is only populated when loaded for summarization.
    """

    answer_id: str
    survey_id: str
    user_id: str
    value: str
    respondent: RespondentEntity | None = None
