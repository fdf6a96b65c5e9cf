"""Tests for weighted survey summaries."""

from itertools import permutations

import pytest

from conftest import TODAY, respondent
from quorum.aggregation.summary import summarize_answers, summarize_survey
from quorum.core.errors import ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from quorum.models.domain import (
    AnswerEntity,
    OptionEntity,
    SpecificationEntity,
    SpecificationKind,
    SurveyEntity,
    SurveyStatus,
    SurveyType,
)

USER_ID = "5273fd64-dbe0-4090-b651-0ef02be28be2"
SURVEY_ID = "a974e16a-d34f-4d24-bad9-46ce14571e26"
OPTION_A = "0b0c8f7e-3b55-4d0e-9a0c-2f5f3c1a7a01"
OPTION_B = "0b0c8f7e-3b55-4d0e-9a0c-2f5f3c1a7a02"


def make_spec(kind: str, value: str, weight: float) -> SpecificationEntity:
    return SpecificationEntity(
        specification_id=f"{kind}-{value}",
        survey_id=SURVEY_ID,
        kind=SpecificationKind(kind),
        value=value,
        weight=weight,
    )


def make_survey(
    survey_type: SurveyType = SurveyType.BOOLEAN,
    specifications: list[SpecificationEntity] | None = None,
    status: SurveyStatus = SurveyStatus.CLOSED,
) -> SurveyEntity:
    options = []
    if survey_type is SurveyType.LIST:
        options = [
            OptionEntity(option_id=OPTION_A, survey_id=SURVEY_ID, label="A"),
            OptionEntity(option_id=OPTION_B, survey_id=SURVEY_ID, label="B"),
        ]
    return SurveyEntity(
        survey_id=SURVEY_ID,
        user_id=USER_ID,
        title="Coffee or tea",
        description="Morning habits",
        survey_type=survey_type,
        status=status,
        options=options,
        specifications=specifications or [],
    )


def make_answer(value: str, gender: str = "F", age: int = 40, n: int = 0) -> AnswerEntity:
    return AnswerEntity(
        answer_id=f"answer-{value}-{n}",
        survey_id=SURVEY_ID,
        user_id=f"user-{n}",
        value=value,
        respondent=respondent(gender, age),
    )


def by_key(results):
    return {(r.option_id, r.label): (r.raw_count, r.weighted_total) for r in results}


class TestSummarizeAnswers:
    """Pure aggregation over an answer list."""

    def test_gender_weight_applied_to_matching_respondent(self):
        """A matching gender rule multiplies the respondent's weight."""
        survey = make_survey(specifications=[make_spec("G", "F", 2)])
        results = summarize_answers(survey, [make_answer("true", "F", 60)], today=TODAY)

        assert len(results) == 1
        entry = results[0]
        assert entry.label is True
        assert entry.option_id is None
        assert entry.raw_count == 1
        assert entry.weighted_total == 2

    def test_age_weight_at_exact_breakpoint(self):
        """An age on a breakpoint takes that breakpoint's weight."""
        specs = [make_spec("A", "100", 2), make_spec("A", "80", 3), make_spec("A", "90", 5)]
        survey = make_survey(specifications=specs)
        results = summarize_answers(survey, [make_answer("true", "M", 90)], today=TODAY)
        assert results[0].weighted_total == 5

    def test_false_answers_are_labelled_false(self):
        """Boolean labels are parsed, not truthy strings."""
        survey = make_survey()
        results = summarize_answers(survey, [make_answer("false")], today=TODAY)
        assert results[0].label is False

    def test_list_survey_counts_only_observed_options(self):
        """Options nobody chose get no entry."""
        survey = make_survey(SurveyType.LIST)
        answers = [make_answer(OPTION_A, n=i) for i in range(3)]
        results = summarize_answers(survey, answers, today=TODAY)

        assert len(results) == 1
        assert results[0].option_id == OPTION_A
        assert results[0].label == "A"
        assert results[0].raw_count == 3
        assert results[0].weighted_total == 3

    def test_without_specifications_weighted_equals_raw(self):
        """Every respondent weighs 1 without specifications."""
        survey = make_survey()
        answers = [
            make_answer("true", "F", 20, 1),
            make_answer("false", "M", 70, 2),
            make_answer("true", "M", 35, 3),
        ]
        for entry in summarize_answers(survey, answers, today=TODAY):
            assert entry.weighted_total == entry.raw_count

    def test_no_answers_gives_no_entries(self):
        """An unanswered survey has an empty summary."""
        assert summarize_answers(make_survey(), [], today=TODAY) == []

    def test_order_independent(self):
        """Every permutation of the answers gives identical tallies."""
        specs = [make_spec("G", "M", 0.5), make_spec("A", "30", 2), make_spec("A", "70", 1)]
        survey = make_survey(specifications=specs)
        answers = [
            make_answer("true", "F", 25, 1),
            make_answer("false", "M", 45, 2),
            make_answer("true", "M", 70, 3),
            make_answer("false", "F", 100, 4),
        ]
        expected = by_key(summarize_answers(survey, answers, today=TODAY))

        for ordering in permutations(answers):
            assert by_key(summarize_answers(survey, list(ordering), today=TODAY)) == expected

    def test_fractional_weights_sum_exactly(self):
        """0.1 + 0.2 + 0.3 is the same total in every answer order."""
        specs = [make_spec("A", "10", 0.1), make_spec("A", "20", 0.2), make_spec("A", "30", 0.3)]
        survey = make_survey(specifications=specs)
        answers = [make_answer("true", "F", age, age) for age in (10, 20, 30)]

        totals = {
            summarize_answers(survey, list(ordering), today=TODAY)[0].weighted_total
            for ordering in permutations(answers)
        }
        assert totals == {0.6}

    def test_answer_without_respondent_rejected(self):
        """Answers must be loaded with their respondent."""
        answer = make_answer("true")
        answer.respondent = None
        with pytest.raises(InvalidStateError):
            summarize_answers(make_survey(), [answer], today=TODAY)


class StubSurveys:
    def __init__(self, survey: SurveyEntity | None):
        self.survey = survey

    def get_survey_with_relations(self, survey_id: str) -> SurveyEntity | None:
        return self.survey


class StubAnswers:
    def __init__(self, answers: list[AnswerEntity]):
        self.answers = answers
        self.calls = 0

    def get_answers_with_respondents(self, survey_id: str) -> list[AnswerEntity]:
        self.calls += 1
        return self.answers


class TestSummarizeSurvey:
    """Preconditions and result shape of the summarize operation."""

    def test_returns_summary_for_owner(self):
        """The owner of a closed survey gets its summary."""
        survey = make_survey(specifications=[make_spec("G", "F", 2)])
        answers = StubAnswers([make_answer("true", "F", 60)])

        summary = summarize_survey(StubSurveys(survey), answers, SURVEY_ID, USER_ID, today=TODAY)

        assert summary.survey_id == SURVEY_ID
        assert summary.title == "Coffee or tea"
        assert summary.results[0].weighted_total == 2

    @pytest.mark.parametrize(
        "survey_id,user_id,fields",
        [
            ("", USER_ID, {"survey_id"}),
            ("invalid_uuid", USER_ID, {"survey_id"}),
            (SURVEY_ID, "", {"user_id"}),
            (SURVEY_ID, "invalid_uuid", {"user_id"}),
            ("invalid_uuid", "invalid_uuid", {"survey_id", "user_id"}),
        ],
    )
    def test_malformed_ids_rejected(self, survey_id, user_id, fields):
        """Malformed ids are reported per field before any read."""
        answers = StubAnswers([])
        with pytest.raises(ValidationError) as exc:
            summarize_survey(StubSurveys(make_survey()), answers, survey_id, user_id)
        assert exc.value.fields() == fields
        assert answers.calls == 0

    def test_missing_survey(self):
        """Unknown survey raises NotFoundError."""
        with pytest.raises(NotFoundError):
            summarize_survey(StubSurveys(None), StubAnswers([]), SURVEY_ID, USER_ID)

    def test_non_owner_forbidden(self):
        """Only the owner may read the summary."""
        other_user = "9d6c7a3e-1111-4b2b-8c8c-222233334444"
        answers = StubAnswers([])
        with pytest.raises(ForbiddenError):
            summarize_survey(StubSurveys(make_survey()), answers, SURVEY_ID, other_user)
        assert answers.calls == 0

    @pytest.mark.parametrize("status", [SurveyStatus.DRAFT, SurveyStatus.PUBLISHED])
    def test_survey_must_be_closed(self, status):
        """Open surveys cannot be summarized."""
        answers = StubAnswers([])
        survey = make_survey(status=status)
        with pytest.raises(InvalidStateError):
            summarize_survey(StubSurveys(survey), answers, SURVEY_ID, USER_ID)
        assert answers.calls == 0
