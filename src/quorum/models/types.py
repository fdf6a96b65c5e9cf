"""Pydantic models for the Quorum API.

Request payloads are shape-checked here; domain rules (ownership, lifecycle,
value ranges) are checked by the workflows in ``quorum.surveys``.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
    """Respondent account registration."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=3)
    gender: Literal["M", "F"]
    birthdate: date


class UserDetail(BaseModel):
    """User details for API response."""

    user_id: str
    email: str
    gender: Literal["M", "F"]
    birthdate: date


class SurveyPayload(BaseModel):
    """Survey creation or update body."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    type: Literal["B", "L"]
    options: list[str] = Field(default_factory=list)


class SpecificationInput(BaseModel):
    """Single weighting rule in a specification replacement request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    kind: Literal["A", "G"]
    value: str
    weight: float


class SpecificationsPayload(BaseModel):
    """Full replacement set of specifications for a survey."""

    specifications: list[SpecificationInput] = Field(default_factory=list)


class AnswerSubmission(BaseModel):
    """Answer submission body."""

    model_config = ConfigDict(str_strip_whitespace=True)

    value: str = Field(min_length=1)


class OptionDetail(BaseModel):
    option_id: str
    label: str


class SpecificationDetail(BaseModel):
    kind: Literal["A", "G"]
    value: str
    weight: float


class SurveyDetail(BaseModel):
    """Survey details for API response."""

    survey_id: str
    user_id: str
    title: str
    description: str
    type: Literal["B", "L"]
    status: Literal["D", "P", "C"]
    options: list[OptionDetail]
    specifications: list[SpecificationDetail]


class AnswerDetail(BaseModel):
    """Stored answer for API response."""

    answer_id: str
    survey_id: str
    user_id: str
    value: str


class OptionSummary(BaseModel):
    """Tally for one observed answer value.

    ``option_id`` is set for List surveys only; ``label`` is the option text
    for List surveys and the parsed boolean for Boolean surveys.
    """

    option_id: str | None
    label: str | bool
    raw_count: int
    weighted_total: float


class SurveySummary(BaseModel):
    """Weighted summary of a closed survey."""

    survey_id: str
    title: str
    results: list[OptionSummary]
