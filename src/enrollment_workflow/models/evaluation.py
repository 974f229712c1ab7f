"""Evaluation models — the condition half of a conditional rule.

  - QuestionEvaluation: one question's answer against one comparison
  - GroupEvaluation: several question evaluations combined with and/or
  - AlwaysTrueEvaluation: a fixed boolean, no answer needed

A ``ConditionalAction`` pairs an evaluation with the actions to apply.
"""

from typing import Annotated, List, Literal, Union

from pydantic import Field

from .action import Action
from .base import WireModel
from .comparison import Comparison


class QuestionEvaluation(WireModel):
    """Evaluate ``comparison`` against the answer of ``question_id``."""

    evaluation_type: Literal["question"] = "question"
    question_id: str
    comparison: Comparison


class GroupEvaluation(WireModel):
    """Combine several question evaluations with a logical operator."""

    evaluation_type: Literal["group"] = "group"
    logical_operator: Literal["and", "or"]
    evaluations: List[QuestionEvaluation]

    @property
    def question_ids(self) -> List[str]:
        """Referenced question ids in authored order, without duplicates."""
        return list(dict.fromkeys(e.question_id for e in self.evaluations))


class AlwaysTrueEvaluation(WireModel):
    """A rule whose result is fixed at authoring time."""

    evaluation_type: Literal["alwaysTrue"] = "alwaysTrue"
    evaluation_value: bool = True


Evaluation = Annotated[
    Union[QuestionEvaluation, GroupEvaluation, AlwaysTrueEvaluation],
    Field(discriminator="evaluation_type"),
]


class ConditionalAction(WireModel):
    """An evaluation plus the actions to perform with its result."""

    evaluation: Evaluation
    actions: List[Action] = []
