"""Answer submission and respondent registration.

Handles answer storage for published surveys.
Domain logic is pure - database operations go through repo.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.exc import IntegrityError

from quorum.aggregation.specifications import MAX_AGE
from quorum.core.errors import FieldError, InvalidStateError, NotFoundError, ValidationError
from quorum.core.identity import new_id
from quorum.core.validation import FieldErrors
from quorum.db import repo
from quorum.db.repo import DbSession
from quorum.models.domain import (
    AnswerEntity,
    Gender,
    SurveyEntity,
    SurveyStatus,
    SurveyType,
    UserEntity,
    age_on,
)
from quorum.models.types import UserCreate

logger = logging.getLogger(__name__)

BOOLEAN_VALUES = ("true", "false")


@dataclass
class AnswerInput:
    """Input for answer submission."""

    survey_id: str
    user_id: str
    value: str


def _canonical_value(survey: SurveyEntity, raw: str, errors: FieldErrors) -> str | None:
    """Check an answer value against the survey type.

    Pure function - no database access.
    """
    survey_type = SurveyType(survey.survey_type)
    if survey_type is SurveyType.BOOLEAN:
        value = raw.strip().lower()
        if value not in BOOLEAN_VALUES:
            errors.add("value", "Value must be true or false.")
            return None
        return value

    value = raw.strip()
    if not any(option.option_id == value for option in survey.options):
        errors.add("value", "Option not found.")
        return None
    return value


def submit_answer(session: DbSession, answer_input: AnswerInput) -> AnswerEntity:
    """Record a user's answer to a published survey.

    Args:
        session: Database session.
        answer_input: Survey, user and raw answer value.

    Returns:
        The stored AnswerEntity.

    Raises:
        ValidationError: Malformed ids, invalid value, or a second answer
            from the same user.
        NotFoundError: Survey or user missing.
        InvalidStateError: Survey is not published.
    """
    errors = FieldErrors()
    errors.require_id("survey_id", answer_input.survey_id)
    errors.require_id("user_id", answer_input.user_id)
    errors.require_text("value", answer_input.value)
    errors.raise_if_any()

    survey_id = answer_input.survey_id.strip()
    user_id = answer_input.user_id.strip()

    survey = repo.get_survey_with_relations(session, survey_id)
    if survey is None:
        raise NotFoundError("Survey not found.")
    if survey.status is not SurveyStatus.PUBLISHED:
        raise InvalidStateError("Survey is not published.")
    if repo.get_user(session, user_id) is None:
        raise NotFoundError("User not found.")

    value = _canonical_value(survey, answer_input.value, errors)
    if repo.get_answer_by_user_and_survey(session, user_id, survey_id) is not None:
        errors.add("user_id", "User already answered this survey.")
    errors.raise_if_any()

    answer = AnswerEntity(answer_id=new_id(), survey_id=survey_id, user_id=user_id, value=value)
    repo.create_answer(session, answer)
    try:
        repo.commit(session)
    except IntegrityError as e:
        session.rollback()
        raise ValidationError(
            [FieldError("user_id", "User already answered this survey.")]
        ) from e

    logger.info(f"Stored answer {answer.answer_id} for survey {survey_id}")
    return answer


def register_user(session: DbSession, payload: UserCreate, today: date | None = None) -> UserEntity:
    """Create a respondent account.

    Birthdates must give an age within 0..MAX_AGE so every respondent can be
    weighted by age specifications.
    """
    errors = FieldErrors()
    email = payload.email.strip().lower()
    if repo.get_user_by_email(session, email) is not None:
        errors.add("email", '"email" is already registered.')

    age = age_on(payload.birthdate, today or date.today())
    if age < 0 or age > MAX_AGE:
        errors.add("birthdate", f'"birthdate" must give an age between 0 and {MAX_AGE}.')
    errors.raise_if_any()

    user = UserEntity(
        user_id=new_id(),
        email=email,
        gender=Gender(payload.gender),
        birthdate=payload.birthdate,
    )
    repo.create_user(session, user)
    try:
        repo.commit(session)
    except IntegrityError as e:
        session.rollback()
        raise ValidationError([FieldError("email", '"email" is already registered.')]) from e
    logger.info(f"Registered user {user.user_id}")
    return user
