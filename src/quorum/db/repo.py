"""Repository pattern for database operations.

Encapsulates all SQLAlchemy queries, keeping domain logic pure.
Returns domain models (not SQLAlchemy entities) to external callers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from sqlalchemy.orm import Session, joinedload, selectinload

from quorum.core.identity import new_id
from quorum.db.schema import (
    Survey,
    SurveyAnswer,
    SurveyOption,
    SurveySpecification,
    User,
)
from quorum.models.domain import (
    AnswerEntity,
    Gender,
    OptionEntity,
    RespondentEntity,
    SpecificationEntity,
    SpecificationKind,
    SurveyEntity,
    SurveyStatus,
    SurveyType,
    UserEntity,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session as DbSession
else:
    DbSession = Session

__all__ = ["AnswerAccess", "DbSession", "SurveyAccess"]


# ============================================================================
# Converters: SQLAlchemy -> Domain
# ============================================================================


def _user_to_entity(user: User) -> UserEntity:
    return UserEntity(
        user_id=user.user_id,
        email=user.email,
        gender=Gender(user.gender),
        birthdate=user.birthdate,
    )


def _option_to_entity(option: SurveyOption) -> OptionEntity:
    return OptionEntity(
        option_id=option.option_id,
        survey_id=option.survey_id,
        label=option.label,
    )


def _specification_to_entity(spec: SurveySpecification) -> SpecificationEntity:
    return SpecificationEntity(
        specification_id=spec.specification_id,
        survey_id=spec.survey_id,
        kind=SpecificationKind(spec.kind),
        value=spec.value,
        weight=spec.weight,
    )


def _survey_to_entity(survey: Survey) -> SurveyEntity:
    """Convert SQLAlchemy Survey, including its options and specifications."""
    return SurveyEntity(
        survey_id=survey.survey_id,
        user_id=survey.user_id,
        title=survey.title,
        description=survey.description,
        survey_type=SurveyType(survey.type),
        status=SurveyStatus(survey.status),
        options=[_option_to_entity(o) for o in survey.options],
        specifications=[_specification_to_entity(s) for s in survey.specifications],
    )


def _answer_to_entity(answer: SurveyAnswer, with_respondent: bool = False) -> AnswerEntity:
    respondent = None
    if with_respondent:
        respondent = RespondentEntity(
            gender=Gender(answer.user.gender),
            birthdate=answer.user.birthdate,
        )
    return AnswerEntity(
        answer_id=answer.answer_id,
        survey_id=answer.survey_id,
        user_id=answer.user_id,
        value=answer.value,
        respondent=respondent,
    )


# ============================================================================
# User Repository
# ============================================================================


def get_user(session: DbSession, user_id: str) -> UserEntity | None:
    """Get user by ID."""
    user = session.query(User).filter(User.user_id == user_id).first()
    return _user_to_entity(user) if user else None


def get_user_by_email(session: DbSession, email: str) -> UserEntity | None:
    """Get user by email address."""
    user = session.query(User).filter(User.email == email).first()
    return _user_to_entity(user) if user else None


def create_user(session: DbSession, entity: UserEntity) -> UserEntity:
    """Create a new user."""
    session.add(
        User(
            user_id=entity.user_id,
            email=entity.email,
            gender=Gender(entity.gender).value,
            birthdate=entity.birthdate,
        )
    )
    return entity


# ============================================================================
# Survey Repository
# ============================================================================


def _find_survey(session: DbSession, survey_id: str) -> Survey | None:
    return session.query(Survey).filter(Survey.survey_id == survey_id).first()


def get_survey(session: DbSession, survey_id: str) -> SurveyEntity | None:
    """Get survey by ID (children loaded lazily)."""
    survey = _find_survey(session, survey_id)
    return _survey_to_entity(survey) if survey else None


def get_survey_with_relations(session: DbSession, survey_id: str) -> SurveyEntity | None:
    """Get survey by ID with options and specifications eagerly loaded."""
    survey = (
        session.query(Survey)
        .options(selectinload(Survey.options), selectinload(Survey.specifications))
        .filter(Survey.survey_id == survey_id)
        .first()
    )
    return _survey_to_entity(survey) if survey else None


def find_open_survey_by_title(
    session: DbSession, user_id: str, title: str
) -> SurveyEntity | None:
    """Get a non-closed survey of a user with the given title."""
    survey = (
        session.query(Survey)
        .filter(
            Survey.user_id == user_id,
            Survey.title == title,
            Survey.status != SurveyStatus.CLOSED.value,
        )
        .first()
    )
    return _survey_to_entity(survey) if survey else None


def create_survey(session: DbSession, entity: SurveyEntity) -> SurveyEntity:
    """Create a survey together with its options."""
    survey = Survey(
        survey_id=entity.survey_id,
        user_id=entity.user_id,
        title=entity.title,
        description=entity.description,
        type=SurveyType(entity.survey_type).value,
        status=SurveyStatus(entity.status).value,
    )
    survey.options = [
        SurveyOption(option_id=o.option_id, survey_id=entity.survey_id, label=o.label)
        for o in entity.options
    ]
    session.add(survey)
    session.flush()
    return _survey_to_entity(survey)


def update_survey_fields(
    session: DbSession,
    survey_id: str,
    *,
    title: str,
    description: str,
    survey_type: SurveyType,
) -> None:
    """Update the editable scalar fields of a survey."""
    survey = _find_survey(session, survey_id)
    if survey:
        survey.title = title
        survey.description = description
        survey.type = SurveyType(survey_type).value


def update_survey_status(session: DbSession, survey_id: str, status: SurveyStatus) -> None:
    """Update survey lifecycle status."""
    survey = _find_survey(session, survey_id)
    if survey:
        survey.status = SurveyStatus(status).value


def replace_options(
    session: DbSession, survey_id: str, labels: Sequence[str]
) -> list[OptionEntity]:
    """Delete every option of a survey and insert the given labels.

    Old rows are removed as orphans at flush, inside the caller's
    transaction, so the swap is all-or-nothing.
    """
    survey = _find_survey(session, survey_id)
    if survey is None:
        return []
    survey.options = [
        SurveyOption(option_id=new_id(), survey_id=survey_id, label=label) for label in labels
    ]
    session.flush()
    return [_option_to_entity(o) for o in survey.options]


def replace_specifications(
    session: DbSession, survey_id: str, specifications: Sequence[SpecificationEntity]
) -> list[SpecificationEntity]:
    """Delete every specification of a survey and insert the given set."""
    survey = _find_survey(session, survey_id)
    if survey is None:
        return []
    survey.specifications = [
        SurveySpecification(
            specification_id=spec.specification_id,
            survey_id=survey_id,
            kind=SpecificationKind(spec.kind).value,
            value=spec.value,
            weight=spec.weight,
        )
        for spec in specifications
    ]
    session.flush()
    return [_specification_to_entity(s) for s in survey.specifications]


def delete_survey(session: DbSession, survey_id: str) -> bool:
    """Delete a survey and, by cascade, its options, specifications and answers."""
    survey = _find_survey(session, survey_id)
    if survey is None:
        return False
    session.delete(survey)
    return True


# ============================================================================
# Answer Repository
# ============================================================================


def get_answer_by_user_and_survey(
    session: DbSession, user_id: str, survey_id: str
) -> AnswerEntity | None:
    """Get the answer a user gave to a survey, if any."""
    answer = (
        session.query(SurveyAnswer)
        .filter(SurveyAnswer.user_id == user_id, SurveyAnswer.survey_id == survey_id)
        .first()
    )
    return _answer_to_entity(answer) if answer else None


def create_answer(session: DbSession, entity: AnswerEntity) -> AnswerEntity:
    """Create a new answer."""
    session.add(
        SurveyAnswer(
            answer_id=entity.answer_id,
            survey_id=entity.survey_id,
            user_id=entity.user_id,
            value=entity.value,
        )
    )
    return entity


def get_answers_with_respondents(session: DbSession, survey_id: str) -> list[AnswerEntity]:
    """Get all answers of a survey with each respondent's gender and birthdate."""
    answers = (
        session.query(SurveyAnswer)
        .options(joinedload(SurveyAnswer.user))
        .filter(SurveyAnswer.survey_id == survey_id)
        .all()
    )
    return [_answer_to_entity(a, with_respondent=True) for a in answers]


# ============================================================================
# Collaborators for the summary engine
# ============================================================================


class SurveyAccess:
    """Survey reader bound to a session."""

    def __init__(self, session: DbSession):
        self.session = session

    def get_survey_with_relations(self, survey_id: str) -> SurveyEntity | None:
        return get_survey_with_relations(self.session, survey_id)


class AnswerAccess:
    """Answer reader bound to a session."""

    def __init__(self, session: DbSession):
        self.session = session

    def get_answers_with_respondents(self, survey_id: str) -> list[AnswerEntity]:
        return get_answers_with_respondents(self.session, survey_id)


# ============================================================================
# Batch Operations
# ============================================================================


def commit(session: DbSession) -> None:
    """Commit current transaction."""
    session.commit()
