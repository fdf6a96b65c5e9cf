"""Weighted survey summary aggregation.

Computes per-answer-value tallies for a closed survey, weighting each
respondent by the survey's gender and age specifications.
Domain logic is pure - data access goes through the injected readers.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Protocol

from quorum.aggregation.specifications import normalize_specifications
from quorum.aggregation.weights import compute_weight
from quorum.core.errors import ForbiddenError, InvalidStateError, NotFoundError
from quorum.core.validation import FieldErrors
from quorum.models.domain import AnswerEntity, Gender, SurveyEntity, SurveyStatus, SurveyType
from quorum.models.types import OptionSummary, SurveySummary

logger = logging.getLogger(__name__)


class SurveyReader(Protocol):
    """Loads a survey with its options and specifications."""

    def get_survey_with_relations(self, survey_id: str) -> SurveyEntity | None: ...


class AnswerReader(Protocol):
    """Loads a survey's answers with their respondents."""

    def get_answers_with_respondents(self, survey_id: str) -> list[AnswerEntity]: ...


@dataclass
class _Tally:
    """Running totals for one answer value."""

    option_id: str | None
    label: str | bool
    raw_count: int = 0
    weights: list[float] = field(default_factory=list)

    @property
    def weighted_total(self) -> float:
        # exactly rounded sum, independent of answer order
        return math.fsum(self.weights)


def _initial_tally(survey: SurveyEntity, value: str, labels: dict[str, str]) -> _Tally:
    survey_type = SurveyType(survey.survey_type)
    if survey_type is SurveyType.LIST:
        return _Tally(option_id=value, label=labels.get(value, value))
    if survey_type is SurveyType.BOOLEAN:
        return _Tally(option_id=None, label=value.strip().lower() == "true")
    raise InvalidStateError(f"Unsupported survey type: {survey.survey_type}")


def summarize_answers(
    survey: SurveyEntity,
    answers: Iterable[AnswerEntity],
    today: date | None = None,
) -> list[OptionSummary]:
    """Tally answers of a survey into weighted per-value summaries.

    Pure function - no database access. Only observed values get an entry;
    entries are ordered by first observation.

    Args:
        survey: Survey with options and specifications loaded.
        answers: All answers of the survey, each with its respondent.
        today: Reference date for respondent ages. Defaults to today.

    Returns:
        List of OptionSummary, one per distinct answer value.

    Raises:
        InvalidStateError: If an answer has no respondent or a respondent's
            age is outside the specification range.
    """
    reference = today or date.today()
    specs = normalize_specifications(survey.specifications)
    labels = {option.option_id: option.label for option in survey.options}

    tallies: dict[str, _Tally] = {}
    for answer in answers:
        if answer.respondent is None:
            raise InvalidStateError(f"Answer {answer.answer_id} has no respondent loaded")

        tally = tallies.get(answer.value)
        if tally is None:
            tally = _initial_tally(survey, answer.value, labels)
            tallies[answer.value] = tally

        respondent = answer.respondent
        weight = compute_weight(Gender(respondent.gender).value, respondent.age(reference), specs)
        tally.raw_count += 1
        tally.weights.append(weight)

    return [
        OptionSummary(
            option_id=t.option_id,
            label=t.label,
            raw_count=t.raw_count,
            weighted_total=t.weighted_total,
        )
        for t in tallies.values()
    ]


def summarize_survey(
    surveys: SurveyReader,
    answers: AnswerReader,
    survey_id: str,
    requesting_user_id: str,
    today: date | None = None,
) -> SurveySummary:
    """Compute the weighted summary of a survey for its owner.

    All preconditions are checked before any answer is read; a failure
    aborts the whole operation.

    Args:
        surveys: Survey collaborator.
        answers: Answer collaborator.
        survey_id: Survey to summarize.
        requesting_user_id: User asking for the summary.
        today: Reference date for respondent ages.

    Returns:
        SurveySummary with one result per observed answer value.

    Raises:
        ValidationError: If either identifier is malformed.
        NotFoundError: If the survey does not exist.
        ForbiddenError: If the requester does not own the survey.
        InvalidStateError: If the survey is not closed.
    """
    errors = FieldErrors()
    errors.require_id("survey_id", survey_id)
    errors.require_id("user_id", requesting_user_id)
    errors.raise_if_any()

    survey = surveys.get_survey_with_relations(survey_id.strip())
    if survey is None:
        raise NotFoundError("Survey not found.")
    if survey.user_id != requesting_user_id.strip():
        logger.warning(f"User {requesting_user_id} denied summary of survey {survey_id}")
        raise ForbiddenError("You don't have permission to manage this survey.")
    if SurveyStatus(survey.status) is not SurveyStatus.CLOSED:
        raise InvalidStateError("Survey is not closed.")

    survey_answers = answers.get_answers_with_respondents(survey.survey_id)
    results = summarize_answers(survey, survey_answers, today=today)
    logger.info(
        f"Summarized survey {survey.survey_id}: {len(survey_answers)} answers, "
        f"{len(results)} distinct values"
    )

    return SurveySummary(
        survey_id=survey.survey_id,
        title=survey.title,
        results=results,
    )
