"""ComparisonEngine — pure evaluation of typed comparisons against answers.

Answers travel between actors as strings.  Before an operator is applied the
candidate is normalised according to the comparison type:

  - **boolean**: ``"yes"`` → True, anything else (``"no"``, ``""``) → False
  - **string**: compared as-is against the literal
  - **date**: compared as-is (string ordering, no calendar semantics; ISO
    dates therefore order correctly, other formats may not)

``hasValue`` ignores the literal and returns the truthiness of the normalised
candidate.  An operator or comparison type outside the supported set is a
malformed workflow and raises :class:`UnsupportedComparisonError`.

Group combination (``and``/``or``) lives here too so the GroupEvaluator
stays a thin coordinator around pure functions.
"""

from __future__ import annotations

import logging
import operator
from typing import Any, Callable, Iterable

from enrollment_workflow.constants import YES
from enrollment_workflow.errors import UnsupportedComparisonError
from enrollment_workflow.models.comparison import (
    BooleanComparison,
    Comparison,
    DateComparison,
    StringComparison,
)
from enrollment_workflow.models.evaluation import GroupEvaluation, QuestionEvaluation

logger = logging.getLogger(__name__)

# --- Binary operators keyed by wire name ---
_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "equals": operator.eq,
    "notEquals": operator.ne,
    "greaterThan": operator.gt,
    "greaterThanOrEqual": operator.ge,
    "lesserThan": operator.lt,
    "lesserThanOrEqual": operator.le,
}

HAS_VALUE = "hasValue"


def normalize(value: str, comparison: Comparison) -> Any:
    """Convert an answer string into the comparison's value domain."""
    if isinstance(comparison, BooleanComparison):
        return value == YES
    if isinstance(comparison, (StringComparison, DateComparison)):
        return value
    raise UnsupportedComparisonError(
        f"Unsupported comparison type: {getattr(comparison, 'comparison_type', comparison)!r}"
    )


def evaluate(value: str, comparison: Comparison) -> bool:
    """Apply one comparison to a candidate answer.

    Args:
        value: the candidate answer as stored by a question actor
        comparison: the typed comparison from a rule

    Returns:
        The comparison's truth value.

    Raises:
        UnsupportedComparisonError: unknown operator or comparison type.
    """
    candidate = normalize(value, comparison)
    op = comparison.comparison_operator
    if op == HAS_VALUE:
        return bool(candidate)

    compare = _OPERATORS.get(op)
    if compare is None:
        raise UnsupportedComparisonError(f"Unsupported comparison operator: {op!r}")
    return bool(compare(candidate, comparison.comparison_value))


def evaluate_question(value: str | None, evaluation: QuestionEvaluation) -> bool:
    """Evaluate a single-question rule; an empty answer is always False."""
    if not value:
        return False
    return evaluate(value, evaluation.comparison)


def combine(results: Iterable[bool], logical_operator: str) -> bool:
    """Fold sub-results with ``or`` (any) or ``and`` (all)."""
    if logical_operator == "or":
        return any(results)
    if logical_operator == "and":
        return all(results)
    raise UnsupportedComparisonError(f"Unsupported logical operator: {logical_operator!r}")


def evaluate_group(values: dict[str, str], group: GroupEvaluation) -> bool:
    """Evaluate every sub-rule of a group against collected answers.

    Missing or empty slots evaluate to False.
    """
    results = [evaluate_question(values.get(e.question_id, ""), e) for e in group.evaluations]
    logger.debug(
        "group %s over %s -> %s", group.logical_operator, group.question_ids, results
    )
    return combine(results, group.logical_operator)
