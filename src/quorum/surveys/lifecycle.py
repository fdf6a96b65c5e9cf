"""Survey authoring workflows.

Create and edit drafts, manage weighting specifications, and move surveys
through the one-way lifecycle Draft -> Published -> Closed.
Domain logic is pure - database operations go through repo.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from quorum.aggregation.specifications import MAX_AGE, MIN_AGE
from quorum.core.errors import ForbiddenError, InvalidStateError, NotFoundError
from quorum.core.identity import new_id
from quorum.core.validation import FieldErrors
from quorum.db import repo
from quorum.db.repo import DbSession
from quorum.models.domain import (
    Gender,
    OptionEntity,
    SpecificationEntity,
    SpecificationKind,
    SurveyEntity,
    SurveyStatus,
    SurveyType,
)
from quorum.models.types import SpecificationInput, SurveyPayload
from quorum.surveys.options import dedupe_labels, reconcile_options

logger = logging.getLogger(__name__)

MIN_LIST_OPTIONS = 2


def _check_ids(survey_id: str, user_id: str) -> None:
    errors = FieldErrors()
    errors.require_id("survey_id", survey_id)
    errors.require_id("user_id", user_id)
    errors.raise_if_any()


def _load_owned_survey(session: DbSession, survey_id: str, user_id: str) -> SurveyEntity:
    """Fetch a survey with relations and check the user owns it."""
    _check_ids(survey_id, user_id)
    survey = repo.get_survey_with_relations(session, survey_id.strip())
    if survey is None:
        raise NotFoundError("Survey not found.")
    if survey.user_id != user_id.strip():
        logger.warning(f"User {user_id} denied access to survey {survey_id}")
        raise ForbiddenError("You don't have permission to manage this survey.")
    return survey


def _check_payload(
    session: DbSession,
    errors: FieldErrors,
    user_id: str,
    payload: SurveyPayload,
    current_survey_id: str | None = None,
) -> list[str]:
    """Validate title and options; return the de-duplicated option labels."""
    errors.require_text("title", payload.title)
    errors.require_text("description", payload.description)

    if not errors.has("title"):
        clash = repo.find_open_survey_by_title(session, user_id, payload.title.strip())
        if clash is not None and clash.survey_id != current_survey_id:
            errors.add("title", '"title" is already used by another open survey.')

    labels: list[str] = []
    if SurveyType(payload.type) is SurveyType.LIST:
        labels = dedupe_labels(payload.options)
        if len(labels) < MIN_LIST_OPTIONS:
            errors.add("options", '"options" must have at least two values.')
    return labels


def create_survey(session: DbSession, user_id: str, payload: SurveyPayload) -> SurveyEntity:
    """Create a draft survey owned by ``user_id``.

    Args:
        session: Database session.
        user_id: Owner of the new survey.
        payload: Title, description, type and (for List surveys) options.

    Returns:
        The stored SurveyEntity.

    Raises:
        ValidationError: Unknown owner, duplicate open title, or fewer than
            two distinct options on a List survey.
    """
    errors = FieldErrors()
    errors.require_id("user_id", user_id)
    if not errors.has("user_id") and repo.get_user(session, user_id.strip()) is None:
        errors.add("user_id", '"user" not found.')

    labels = _check_payload(session, errors, user_id.strip(), payload)
    errors.raise_if_any()

    survey_id = new_id()
    entity = SurveyEntity(
        survey_id=survey_id,
        user_id=user_id.strip(),
        title=payload.title.strip(),
        description=payload.description.strip(),
        survey_type=SurveyType(payload.type),
        status=SurveyStatus.DRAFT,
        options=[
            OptionEntity(option_id=new_id(), survey_id=survey_id, label=label) for label in labels
        ],
    )
    created = repo.create_survey(session, entity)
    repo.commit(session)
    logger.info(f"Created survey {survey_id} ({entity.survey_type.name}) for user {user_id}")
    return created


def update_survey(
    session: DbSession, survey_id: str, user_id: str, payload: SurveyPayload
) -> SurveyEntity:
    """Edit a draft survey.

    Options are only rewritten when reconciliation says they changed;
    switching to Boolean always clears them.

    Raises:
        ValidationError: Duplicate open title or too few options.
        NotFoundError: Survey or user missing.
        ForbiddenError: User does not own the survey.
        InvalidStateError: Survey is not a draft.
    """
    survey = _load_owned_survey(session, survey_id, user_id)
    if repo.get_user(session, survey.user_id) is None:
        raise NotFoundError("User not found.")
    if survey.status is not SurveyStatus.DRAFT:
        raise InvalidStateError("You can't update a published or closed survey.")

    errors = FieldErrors()
    labels = _check_payload(session, errors, survey.user_id, payload, survey.survey_id)
    errors.raise_if_any()

    decision = reconcile_options(survey, payload.type, labels)

    repo.update_survey_fields(
        session,
        survey.survey_id,
        title=payload.title.strip(),
        description=payload.description.strip(),
        survey_type=SurveyType(payload.type),
    )
    if decision.should_replace:
        repo.replace_options(session, survey.survey_id, decision.labels)
        logger.info(f"Replaced options of survey {survey.survey_id} ({len(decision.labels)} new)")
    else:
        logger.debug(f"Options of survey {survey.survey_id} unchanged")

    repo.commit(session)
    return repo.get_survey_with_relations(session, survey.survey_id)


def _advance_status(
    session: DbSession, survey_id: str, user_id: str, target: SurveyStatus
) -> SurveyEntity:
    survey = _load_owned_survey(session, survey_id, user_id)
    current = survey.status
    if current.next_status() is not target:
        if current is target or current is SurveyStatus.CLOSED:
            raise InvalidStateError(f"Survey was already {current.name.lower()}.")
        raise InvalidStateError("Survey has not been published yet.")

    repo.update_survey_status(session, survey.survey_id, target)
    repo.commit(session)
    logger.info(f"Survey {survey.survey_id} moved {current.name} -> {target.name}")
    survey.status = target
    return survey


def publish_survey(session: DbSession, survey_id: str, user_id: str) -> SurveyEntity:
    """Open a draft survey for answers."""
    return _advance_status(session, survey_id, user_id, SurveyStatus.PUBLISHED)


def close_survey(session: DbSession, survey_id: str, user_id: str) -> SurveyEntity:
    """Stop accepting answers on a published survey."""
    return _advance_status(session, survey_id, user_id, SurveyStatus.CLOSED)


def _check_specification(errors: FieldErrors, idx: int, spec: SpecificationInput) -> str | None:
    """Validate one rule; return its canonical value or None when invalid."""
    prefix = f"specifications[{idx}]"

    if not math.isfinite(spec.weight) or spec.weight < 0:
        errors.add(f"{prefix}.weight", '"weight" must be greater than or equal to 0.')

    try:
        kind = SpecificationKind(spec.kind)
    except ValueError:
        errors.add(f"{prefix}.kind", '"kind" must be one of [A, G].')
        return None

    raw = spec.value.strip()
    if kind is SpecificationKind.GENDER:
        if raw.upper() not in {g.value for g in Gender}:
            errors.add(f"{prefix}.value", "Value must be M or F when type is gender.")
            return None
        return raw.upper()

    # plain ASCII digits only: no sign, underscores or non-Latin numerals
    age = int(raw) if raw.isascii() and raw.isdigit() else None
    if age is None or not MIN_AGE <= age <= MAX_AGE:
        errors.add(
            f"{prefix}.value",
            f"Value must be between {MIN_AGE} and {MAX_AGE} when type is age.",
        )
        return None
    return str(age)


def manage_specifications(
    session: DbSession,
    survey_id: str,
    user_id: str,
    specifications: Sequence[SpecificationInput],
) -> list[SpecificationEntity]:
    """Replace the whole specification set of a draft survey.

    Every rule is validated and all field errors are reported together.

    Raises:
        ValidationError: Negative weight, bad gender code or age outside 0..150.
        NotFoundError: Survey missing.
        ForbiddenError: User does not own the survey.
        InvalidStateError: Survey already published.
    """
    survey = _load_owned_survey(session, survey_id, user_id)
    if survey.status is not SurveyStatus.DRAFT:
        raise InvalidStateError("Survey was already published.")

    errors = FieldErrors()
    entities: list[SpecificationEntity] = []
    for idx, spec in enumerate(specifications):
        value = _check_specification(errors, idx, spec)
        if value is None or errors.has(f"specifications[{idx}]"):
            continue
        entities.append(
            SpecificationEntity(
                specification_id=new_id(),
                survey_id=survey.survey_id,
                kind=SpecificationKind(spec.kind),
                value=value,
                weight=float(spec.weight),
            )
        )
    errors.raise_if_any()

    stored = repo.replace_specifications(session, survey.survey_id, entities)
    repo.commit(session)
    logger.info(f"Stored {len(stored)} specifications for survey {survey.survey_id}")
    return stored
