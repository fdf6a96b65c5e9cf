"""Respondent weight computation.

weight = gender factor * age factor

Gender factor: product of the weights of every gender rule matching the
respondent (1 when none match).
Age factor: linear interpolation between the two breakpoints bracketing the
respondent's age (1 when there are no age rules).
"""

from __future__ import annotations

from typing import Sequence

from quorum.aggregation.specifications import AgeRule, GenderRule, NormalizedSpecifications
from quorum.core.errors import InvalidStateError


def gender_factor(gender: str, rules: Sequence[GenderRule]) -> float:
    """Multiply together the weights of rules matching ``gender``."""
    factor = 1.0
    for rule in rules:
        if rule.gender == gender:
            factor *= rule.weight
    return factor


def age_factor(age: int, rules: Sequence[AgeRule]) -> float:
    """Interpolate the weight for ``age`` over ordered age breakpoints.

    Uses the smallest index i >= 1 with ``age <= rules[i].breakpoint`` as the
    bracket end and ``rules[i - 1]`` as its start:

        t = (age - start) / (end - start)       # 0 when start == end
        weight = min(w_start, w_end) + t * (w_end - w_start)

    and returns ``abs(weight)``. An age sitting exactly on a bracket endpoint
    returns that endpoint's weight.

    Args:
        age: Respondent age in whole years.
        rules: Normalized age rules (empty or spanning 0..150).

    Returns:
        Non-negative age factor.

    Raises:
        InvalidStateError: If the age falls outside the breakpoint range.
    """
    if not rules:
        return 1.0

    if age < rules[0].breakpoint or age > rules[-1].breakpoint:
        raise InvalidStateError(
            f"Age {age} outside specification range "
            f"[{rules[0].breakpoint}, {rules[-1].breakpoint}]"
        )

    if len(rules) == 1:
        return abs(rules[0].weight)

    for idx in range(1, len(rules)):
        end = rules[idx]
        if age <= end.breakpoint:
            start = rules[idx - 1]
            break

    if age == end.breakpoint:
        return abs(end.weight)
    if age == start.breakpoint:
        return abs(start.weight)

    span = end.breakpoint - start.breakpoint
    t = (age - start.breakpoint) / span if span else 0.0
    weight = min(start.weight, end.weight) + t * (end.weight - start.weight)
    return abs(weight)


def compute_weight(gender: str, age: int, specs: NormalizedSpecifications) -> float:
    """Scalar weight of one respondent under a survey's specifications."""
    return gender_factor(gender, specs.gender_rules) * age_factor(age, specs.age_rules)
