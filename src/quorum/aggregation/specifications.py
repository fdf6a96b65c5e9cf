"""Specification normalization.

Splits a survey's weighting rules into gender rules and an ordered sequence
of age breakpoints closed over [MIN_AGE, MAX_AGE].
Pure transform - the input specifications are never modified.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from quorum.core.errors import InvalidStateError
from quorum.models.domain import SpecificationEntity, SpecificationKind

MIN_AGE = 0
MAX_AGE = 150


@dataclass(frozen=True)
class GenderRule:
    """Multiplier applied to respondents of one gender."""

    gender: str
    weight: float


@dataclass(frozen=True)
class AgeRule:
    """Weight defined at an age breakpoint."""

    breakpoint: int
    weight: float
    synthetic: bool = False


@dataclass(frozen=True)
class NormalizedSpecifications:
    """Rule sets ready for weight computation.

    Invariant: ``age_rules`` is empty or starts at MIN_AGE, ends at MAX_AGE
    and is non-decreasing by breakpoint.
    """

    gender_rules: tuple[GenderRule, ...] = ()
    age_rules: tuple[AgeRule, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.gender_rules and not self.age_rules


def _parse_breakpoint(spec: SpecificationEntity) -> int:
    try:
        return int(spec.value.strip())
    except ValueError as e:
        raise InvalidStateError(
            f"Age specification {spec.specification_id} has non-integer value {spec.value!r}"
        ) from e


def normalize_specifications(
    specifications: Iterable[SpecificationEntity],
) -> NormalizedSpecifications:
    """Partition and order specifications for weighting.

    Age rules are stable-sorted by breakpoint. When any age rule exists,
    zero-weight synthetic breakpoints are added at MIN_AGE and MAX_AGE
    unless the caller already declared them. Without age rules the age
    sequence stays empty and no age weighting applies.

    Args:
        specifications: Stored specifications of one survey, any order.

    Returns:
        NormalizedSpecifications with immutable rule tuples.
    """
    gender_rules: list[GenderRule] = []
    age_rules: list[AgeRule] = []

    for spec in specifications:
        kind = SpecificationKind(spec.kind)
        if kind is SpecificationKind.GENDER:
            gender_rules.append(
                GenderRule(gender=spec.value.strip().upper(), weight=float(spec.weight))
            )
        elif kind is SpecificationKind.AGE:
            age_rules.append(AgeRule(breakpoint=_parse_breakpoint(spec), weight=float(spec.weight)))

    # sorted() is stable: equal breakpoints keep their input order
    age_rules = sorted(age_rules, key=lambda rule: rule.breakpoint)

    if age_rules:
        if age_rules[0].breakpoint != MIN_AGE:
            age_rules.insert(0, AgeRule(breakpoint=MIN_AGE, weight=0.0, synthetic=True))
        if age_rules[-1].breakpoint != MAX_AGE:
            age_rules.append(AgeRule(breakpoint=MAX_AGE, weight=0.0, synthetic=True))

    return NormalizedSpecifications(
        gender_rules=tuple(gender_rules),
        age_rules=tuple(age_rules),
    )
