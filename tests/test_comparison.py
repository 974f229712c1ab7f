"""Comparison engine tests: normalisation, operators and group combination.

Pure functions only; no actors involved.
"""

import pytest

from enrollment_workflow.comparison import combine, evaluate, evaluate_group, evaluate_question
from enrollment_workflow.errors import UnsupportedComparisonError
from enrollment_workflow.models import (
    BooleanComparison,
    DateComparison,
    GroupEvaluation,
    QuestionEvaluation,
    StringComparison,
)

from helpers.builders import bool_eval, group_eval, string_eval


def _boolean(operator: str, value: bool = True) -> BooleanComparison:
    return BooleanComparison(comparison_operator=operator, comparison_value=value)


# =====================================================================
# Boolean comparisons
# =====================================================================


class TestBooleanComparison:
    """Answers "yes"/"no" are normalised to True/False before comparing."""

    def test_yes_equals_true(self):
        assert evaluate("yes", _boolean("equals", True)) is True

    def test_no_equals_true_is_false(self):
        assert evaluate("no", _boolean("equals", True)) is False

    def test_no_equals_false(self):
        assert evaluate("no", _boolean("equals", False)) is True

    def test_anything_but_yes_is_false(self):
        """Only the exact string "yes" normalises to True."""
        assert evaluate("YES", _boolean("equals", False)) is True

    def test_not_equals(self):
        assert evaluate("yes", _boolean("notEquals", False)) is True

    @pytest.mark.parametrize("answer, expected", [("yes", True), ("no", False)])
    def test_has_value_uses_normalised_candidate(self, answer, expected):
        """hasValue on a boolean is the normalised value itself, so "no" has no value."""
        assert evaluate(answer, _boolean("hasValue")) is expected


# =====================================================================
# String and date comparisons
# =====================================================================


class TestStringComparison:

    def test_equals(self):
        comparison = StringComparison(comparison_operator="equals", comparison_value="TX")
        assert evaluate("TX", comparison) is True
        assert evaluate("tx", comparison) is False

    def test_ordering_is_lexicographic(self):
        comparison = StringComparison(comparison_operator="greaterThan", comparison_value="b")
        assert evaluate("c", comparison) is True
        assert evaluate("a", comparison) is False

    def test_has_value_ignores_literal(self):
        comparison = StringComparison(comparison_operator="hasValue", comparison_value="ignored")
        assert evaluate("anything", comparison) is True


class TestDateComparison:
    """Dates compare as strings; ISO dates therefore order correctly."""

    def test_iso_dates_order(self):
        comparison = DateComparison(comparison_operator="lesserThan", comparison_value="2024-06-01")
        assert evaluate("2024-01-15", comparison) is True
        assert evaluate("2024-12-01", comparison) is False

    def test_inclusive_bounds(self):
        comparison = DateComparison(
            comparison_operator="greaterThanOrEqual", comparison_value="2024-06-01"
        )
        assert evaluate("2024-06-01", comparison) is True

    def test_date_comparison_type_defaults_to_exact(self):
        comparison = DateComparison.model_validate(
            {"comparisonType": "date", "comparisonOperator": "equals", "comparisonValue": "2024-01-01"}
        )
        assert comparison.date_comparison_type == "exact"


class TestUnsupported:
    """Malformed comparisons are structural errors, not silent False."""

    def test_unknown_operator_raises(self):
        comparison = BooleanComparison.model_construct(
            comparison_operator="between", comparison_value=True
        )
        with pytest.raises(UnsupportedComparisonError):
            evaluate("yes", comparison)

    def test_unknown_logical_operator_raises(self):
        with pytest.raises(UnsupportedComparisonError):
            combine([True], "xor")


# =====================================================================
# Question and group evaluation
# =====================================================================


class TestQuestionEvaluation:

    def test_empty_answer_is_false(self):
        """Even a notEquals rule fails when there is no answer yet."""
        evaluation = QuestionEvaluation.model_validate(bool_eval("q1", False, "notEquals"))
        assert evaluate_question("", evaluation) is False
        assert evaluate_question(None, evaluation) is False

    def test_answer_is_compared(self):
        evaluation = QuestionEvaluation.model_validate(string_eval("q1", "TX"))
        assert evaluate_question("TX", evaluation) is True


class TestGroupEvaluation:

    def test_and_requires_every_sub_rule(self):
        group = GroupEvaluation.model_validate(
            group_eval("and", bool_eval("q1"), string_eval("q2", "TX"))
        )
        assert evaluate_group({"q1": "yes", "q2": "TX"}, group) is True
        assert evaluate_group({"q1": "yes", "q2": "FL"}, group) is False

    def test_or_needs_one_sub_rule(self):
        group = GroupEvaluation.model_validate(
            group_eval("or", bool_eval("q1"), string_eval("q2", "TX"))
        )
        assert evaluate_group({"q1": "no", "q2": "TX"}, group) is True
        assert evaluate_group({"q1": "no", "q2": "FL"}, group) is False

    def test_missing_slot_evaluates_false(self):
        group = GroupEvaluation.model_validate(
            group_eval("and", bool_eval("q1"), string_eval("q2", "TX"))
        )
        assert evaluate_group({"q1": "yes"}, group) is False

    def test_question_ids_are_unique_and_ordered(self):
        group = GroupEvaluation.model_validate(
            group_eval("or", bool_eval("q2"), bool_eval("q1"), bool_eval("q2", False))
        )
        assert group.question_ids == ["q2", "q1"]

    def test_combine(self):
        assert combine([False, True], "or") is True
        assert combine([False, True], "and") is False
        assert combine([], "and") is True
