"""Tests for specification normalization."""

import pytest

from quorum.aggregation.specifications import (
    MAX_AGE,
    MIN_AGE,
    AgeRule,
    normalize_specifications,
)
from quorum.core.errors import InvalidStateError
from quorum.models.domain import SpecificationEntity, SpecificationKind


def make_spec(kind: str, value: str, weight: float = 2.0) -> SpecificationEntity:
    return SpecificationEntity(
        specification_id=f"spec-{kind}-{value}-{weight}",
        survey_id="survey-1",
        kind=SpecificationKind(kind),
        value=value,
        weight=weight,
    )


class TestPartitioning:
    """Specifications are split by kind."""

    def test_no_specifications_gives_empty_rules(self):
        """Nothing in, nothing out."""
        result = normalize_specifications([])
        assert result.gender_rules == ()
        assert result.age_rules == ()
        assert result.is_empty

    def test_gender_only_adds_no_age_boundaries(self):
        """Without age rules no synthetic breakpoints are created."""
        result = normalize_specifications([make_spec("G", "F")])
        assert len(result.gender_rules) == 1
        assert result.age_rules == ()

    def test_gender_value_is_upper_cased(self):
        """Gender codes are normalized to upper case."""
        result = normalize_specifications([make_spec("G", " f ", 3.0)])
        assert result.gender_rules[0].gender == "F"
        assert result.gender_rules[0].weight == 3.0


class TestAgeBoundaries:
    """Age rules are sorted and closed over [0, 150]."""

    def test_sorted_with_synthetic_endpoints(self):
        """Breakpoints are ascending with zero-weight ends added."""
        specs = [make_spec("A", "100"), make_spec("A", "80"), make_spec("A", "90")]
        result = normalize_specifications(specs)

        assert [r.breakpoint for r in result.age_rules] == [0, 80, 90, 100, 150]
        assert result.age_rules[0] == AgeRule(breakpoint=0, weight=0.0, synthetic=True)
        assert result.age_rules[-1] == AgeRule(breakpoint=150, weight=0.0, synthetic=True)

    def test_declared_endpoints_are_kept(self):
        """Explicit 0 and 150 rules are not duplicated."""
        specs = [make_spec("A", "150", 1.5), make_spec("A", "0", 0.5)]
        result = normalize_specifications(specs)

        assert [(r.breakpoint, r.weight) for r in result.age_rules] == [(0, 0.5), (150, 1.5)]
        assert not any(r.synthetic for r in result.age_rules)

    def test_single_rule_spans_full_range(self):
        """One rule still yields a sequence from MIN_AGE to MAX_AGE."""
        result = normalize_specifications([make_spec("A", "30")])
        breakpoints = [r.breakpoint for r in result.age_rules]
        assert breakpoints[0] == MIN_AGE
        assert breakpoints[-1] == MAX_AGE
        assert breakpoints == sorted(breakpoints)

    def test_equal_breakpoints_keep_input_order(self):
        """Sorting is stable."""
        specs = [make_spec("A", "50", 1.0), make_spec("A", "20"), make_spec("A", "50", 4.0)]
        result = normalize_specifications(specs)

        fifties = [r.weight for r in result.age_rules if r.breakpoint == 50]
        assert fifties == [1.0, 4.0]

    def test_sorting_is_numeric_not_lexical(self):
        """Numeric order puts 9 before 10."""
        specs = [make_spec("A", "9"), make_spec("A", "10")]
        result = normalize_specifications(specs)
        assert [r.breakpoint for r in result.age_rules] == [0, 9, 10, 150]

    def test_input_is_not_modified(self):
        """Normalization is a pure transform."""
        specs = [make_spec("A", "90"), make_spec("A", "80")]
        normalize_specifications(specs)
        assert [s.value for s in specs] == ["90", "80"]

    def test_non_integer_age_raises(self):
        """Corrupt stored age values are an invalid state."""
        with pytest.raises(InvalidStateError):
            normalize_specifications([make_spec("A", "forty")])
