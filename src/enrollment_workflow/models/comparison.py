"""Comparison models — one typed operator applied to a candidate answer.

Three comparison types exist, each carrying a literal of matching type:
  - BooleanComparison: literal is a bool; answers are normalised from "yes"/"no"
  - StringComparison: literal is a string compared as-is
  - DateComparison: literal is a date string; ``date_comparison_type``
    selects the date semantics (only string ordering is implemented)

Operators are shared by all types.  ``hasValue`` ignores the literal.
"""

from typing import Annotated, Literal, Union

from pydantic import Field

from .base import WireModel

ComparisonOperator = Literal[
    "equals",
    "notEquals",
    "greaterThan",
    "greaterThanOrEqual",
    "lesserThan",
    "lesserThanOrEqual",
    "hasValue",
]

DateComparisonType = Literal[
    "exact",
    "monthOffset",
    "monthOffsetRange",
    "dateDifference",
    "dateRange",
    "multipleDateMonthOffsetRange",
]


class BooleanComparison(WireModel):
    """Compare a yes/no answer against a boolean literal."""

    comparison_type: Literal["boolean"] = "boolean"
    comparison_operator: ComparisonOperator
    comparison_value: bool = False


class StringComparison(WireModel):
    """Compare a raw answer against a string literal."""

    comparison_type: Literal["string"] = "string"
    comparison_operator: ComparisonOperator
    comparison_value: str = ""


class DateComparison(WireModel):
    """Compare a date answer against a date literal (string ordering)."""

    comparison_type: Literal["date"] = "date"
    date_comparison_type: DateComparisonType = "exact"
    comparison_operator: ComparisonOperator
    comparison_value: str = ""


Comparison = Annotated[
    Union[BooleanComparison, StringComparison, DateComparison],
    Field(discriminator="comparison_type"),
]
