"""Option reconciliation for survey updates.

Decides whether a survey's stored options must be replaced by an edited
list. Replacement is all-or-nothing: every stored option is deleted and the
proposed list recreated, so option ids are not preserved across a replace.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

from quorum.core.errors import InvalidStateError
from quorum.models.domain import OptionEntity, SurveyEntity, SurveyStatus, SurveyType

OptionAction = Literal["keep", "replace"]


@dataclass(frozen=True)
class OptionDecision:
    """Outcome of reconciliation.

    ``labels`` holds the new option set when ``action`` is "replace" and is
    empty otherwise.
    """

    action: OptionAction
    labels: tuple[str, ...] = ()

    @property
    def should_replace(self) -> bool:
        return self.action == "replace"


KEEP = OptionDecision(action="keep")


def dedupe_labels(labels: Sequence[str]) -> list[str]:
    """Drop case-insensitive duplicates and blanks, keeping first spelling."""
    seen: set[str] = set()
    result: list[str] = []
    for label in labels:
        cleaned = label.strip()
        key = cleaned.casefold()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        result.append(cleaned)
    return result


def options_changed(proposed: Sequence[str], stored: Sequence[OptionEntity]) -> bool:
    """Case-insensitive, order-independent comparison of option sets."""
    if len(proposed) != len(stored):
        return True
    stored_keys = {option.label.casefold() for option in stored}
    return any(label.casefold() not in stored_keys for label in proposed)


def reconcile_options(
    survey: SurveyEntity,
    proposed_type: SurveyType | str,
    proposed_labels: Sequence[str],
) -> OptionDecision:
    """Decide what to do with a survey's options on update.

    Args:
        survey: Survey as currently stored, options loaded.
        proposed_type: Survey type after the update.
        proposed_labels: Option labels submitted with the update.

    Returns:
        KEEP when the List options are unchanged, otherwise a replace
        decision carrying the full new option set (empty for Boolean).

    Raises:
        InvalidStateError: If the survey is no longer a draft.
    """
    if SurveyStatus(survey.status) is not SurveyStatus.DRAFT:
        raise InvalidStateError("You can't update a published or closed survey.")

    new_type = SurveyType(proposed_type)
    if new_type is SurveyType.BOOLEAN:
        return OptionDecision(action="replace")

    if options_changed(proposed_labels, survey.options):
        return OptionDecision(action="replace", labels=tuple(proposed_labels))
    return KEEP
