"""Surveys API endpoint.

POST /api/surveys - Create draft survey
GET /api/surveys/{survey_id} - Get survey with options and specifications
PUT /api/surveys/{survey_id} - Update draft survey
POST /api/surveys/{survey_id}/publish - Draft -> Published
POST /api/surveys/{survey_id}/close - Published -> Closed
PUT /api/surveys/{survey_id}/specifications - Replace weighting rules
POST /api/surveys/{survey_id}/answers - Submit answer
GET /api/surveys/{survey_id}/summary - Weighted summary of a closed survey
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException, Response

from quorum.aggregation.summary import summarize_survey
from quorum.api.app import get_db_session, to_http_exception
from quorum.core.errors import QuorumError
from quorum.db import repo
from quorum.db.repo import AnswerAccess, DbSession, SurveyAccess
from quorum.models.domain import SurveyEntity
from quorum.models.types import (
    AnswerDetail,
    AnswerSubmission,
    OptionDetail,
    SpecificationDetail,
    SpecificationsPayload,
    SurveyDetail,
    SurveyPayload,
    SurveySummary,
)
from quorum.surveys import lifecycle
from quorum.surveys.answers import AnswerInput, submit_answer

router = APIRouter()


def _survey_to_detail(survey: SurveyEntity) -> SurveyDetail:
    """Convert SurveyEntity to SurveyDetail."""
    return SurveyDetail(
        survey_id=survey.survey_id,
        user_id=survey.user_id,
        title=survey.title,
        description=survey.description,
        type=survey.survey_type.value,
        status=survey.status.value,
        options=[OptionDetail(option_id=o.option_id, label=o.label) for o in survey.options],
        specifications=[
            SpecificationDetail(kind=s.kind.value, value=s.value, weight=s.weight)
            for s in survey.specifications
        ],
    )


@router.post("/surveys", response_model=SurveyDetail, status_code=201)
def create_survey(
    payload: SurveyPayload,
    x_user_id: str = Header(...),
    session: DbSession = Depends(get_db_session),
) -> SurveyDetail:
    """Create a draft survey owned by the requesting user."""
    try:
        survey = lifecycle.create_survey(session, x_user_id, payload)
    except QuorumError as e:
        raise to_http_exception(e) from e
    return _survey_to_detail(survey)


@router.get("/surveys/{survey_id}", response_model=SurveyDetail)
def get_survey(
    survey_id: str,
    session: DbSession = Depends(get_db_session),
) -> SurveyDetail:
    """Get survey with options and specifications.

    Raises:
        HTTPException: 404 if survey not found.
    """
    survey = repo.get_survey_with_relations(session, survey_id)
    if survey is None:
        raise HTTPException(status_code=404, detail="Survey not found")
    return _survey_to_detail(survey)


@router.put("/surveys/{survey_id}", response_model=SurveyDetail)
def update_survey(
    survey_id: str,
    payload: SurveyPayload,
    x_user_id: str = Header(...),
    session: DbSession = Depends(get_db_session),
) -> SurveyDetail:
    """Update a draft survey; options are replaced only when they changed."""
    try:
        survey = lifecycle.update_survey(session, survey_id, x_user_id, payload)
    except QuorumError as e:
        raise to_http_exception(e) from e
    return _survey_to_detail(survey)


@router.post("/surveys/{survey_id}/publish", status_code=204)
def publish_survey(
    survey_id: str,
    x_user_id: str = Header(...),
    session: DbSession = Depends(get_db_session),
) -> Response:
    try:
        lifecycle.publish_survey(session, survey_id, x_user_id)
    except QuorumError as e:
        raise to_http_exception(e) from e
    return Response(status_code=204)


@router.post("/surveys/{survey_id}/close", status_code=204)
def close_survey(
    survey_id: str,
    x_user_id: str = Header(...),
    session: DbSession = Depends(get_db_session),
) -> Response:
    try:
        lifecycle.close_survey(session, survey_id, x_user_id)
    except QuorumError as e:
        raise to_http_exception(e) from e
    return Response(status_code=204)


@router.put("/surveys/{survey_id}/specifications", response_model=list[SpecificationDetail])
def replace_specifications(
    survey_id: str,
    payload: SpecificationsPayload,
    x_user_id: str = Header(...),
    session: DbSession = Depends(get_db_session),
) -> list[SpecificationDetail]:
    """Replace the full specification set of a draft survey."""
    try:
        stored = lifecycle.manage_specifications(
            session, survey_id, x_user_id, payload.specifications
        )
    except QuorumError as e:
        raise to_http_exception(e) from e
    return [SpecificationDetail(kind=s.kind.value, value=s.value, weight=s.weight) for s in stored]


@router.post("/surveys/{survey_id}/answers", response_model=AnswerDetail, status_code=201)
def create_answer(
    survey_id: str,
    submission: AnswerSubmission,
    x_user_id: str = Header(...),
    session: DbSession = Depends(get_db_session),
) -> AnswerDetail:
    """Answer a published survey as the requesting user."""
    answer_input = AnswerInput(survey_id=survey_id, user_id=x_user_id, value=submission.value)
    try:
        answer = submit_answer(session, answer_input)
    except QuorumError as e:
        raise to_http_exception(e) from e
    return AnswerDetail(
        answer_id=answer.answer_id,
        survey_id=answer.survey_id,
        user_id=answer.user_id,
        value=answer.value,
    )


@router.get("/surveys/{survey_id}/summary", response_model=SurveySummary)
def get_survey_summary(
    survey_id: str,
    x_user_id: str = Header(...),
    session: DbSession = Depends(get_db_session),
) -> SurveySummary:
    """Get the weighted summary of a closed survey.

    Raises:
        HTTPException: 400 malformed ids, 403 not the owner, 404 survey
            not found, 409 survey not closed.
    """
    try:
        return summarize_survey(
            SurveyAccess(session),
            AnswerAccess(session),
            survey_id,
            x_user_id,
        )
    except QuorumError as e:
        raise to_http_exception(e) from e
