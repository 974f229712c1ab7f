"""Step models as authored in a workflow definition.

A workflow is an ordered list of ``GroupStep`` pages.  Each page nests
sub-steps:
  - QuestionStep: a question with its own visibility/required flags and
    conditional rules
  - TextStep: a static display block
  - SummaryStep: recap of other steps' answers
  - GroupStep: a page (may nest further groups)

Only question and text sub-steps become child actors of a page; the page's
own ``on_complete_conditional_actions`` decide its next step and whether it
is the terminal pass-workflow page.
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field

from .base import WireModel
from .evaluation import ConditionalAction
from .question import Question


class BaseStep(WireModel):
    id: str
    header_text: str = ""
    is_visible: bool = True
    on_complete_conditional_actions: Optional[List[ConditionalAction]] = None

    @property
    def conditional_actions(self) -> List[ConditionalAction]:
        return self.on_complete_conditional_actions or []


class QuestionStep(BaseStep):
    """A page node holding one question."""

    step_type: Literal["question"] = "question"
    label_text: str = ""
    display_text: str = ""
    is_required: bool = False
    question: Question


class TextStep(BaseStep):
    """A non-interactive display block."""

    step_type: Literal["text"] = "text"
    display_text: str = ""


class SummaryStep(BaseStep):
    step_type: Literal["summary"] = "summary"
    step_ids: List[str] = []


class GroupStep(BaseStep):
    """A page: the unit a StepActor owns."""

    step_type: Literal["group"] = "group"
    label_text: str = ""
    display_text: str = ""
    sub_steps: List[Step] = []


Step = Annotated[
    Union[QuestionStep, TextStep, SummaryStep, GroupStep],
    Field(discriminator="step_type"),
]

GroupStep.model_rebuild()
