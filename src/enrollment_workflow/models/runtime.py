"""Runtime models — the state actors exchange and expose to observers.

These models are produced by the loader and the actors, never authored:
  - ChildQuestion / ChildText: the slice of a page a child actor is spawned with
  - StepDefinition: one page flattened for the orchestrator
  - ActionsQueueItem: one rule result waiting to be applied by a step
  - Knockout: a question currently (or formerly) disqualifying the applicant
  - DataSourceDependency: which question's answer refreshes which options
  - QuestionDetails: one line of a step summary
  - QuestionSnapshot / TextSnapshot / StepSnapshot / WorkflowSnapshot:
    read-only views for callers and tests
"""

from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .action import Action
from .evaluation import ConditionalAction
from .question import DataSource, OptionValue, PrePopulatedResponse


# --- Child nodes of a page ---

class ChildQuestion(BaseModel):
    """Everything a QuestionActor needs at spawn time."""

    kind: Literal["question"] = "question"
    id: str
    question_id: str
    question_type: str
    label_text: str = ""
    is_visible: bool = True
    is_required: bool = False
    initial_value: str = ""
    pre_populated_response: Optional[PrePopulatedResponse] = None
    conditional_actions: List[ConditionalAction] = []
    options: Optional[List[OptionValue]] = None
    data_source: Optional[DataSource] = None


class ChildText(BaseModel):
    """Everything a TextActor needs at spawn time."""

    kind: Literal["text"] = "text"
    id: str
    header_text: str = ""
    display_text: str = ""
    is_visible: bool = True


ChildStep = Annotated[Union[ChildQuestion, ChildText], Field(discriminator="kind")]


class StepDefinition(BaseModel):
    """A page flattened from its GroupStep."""

    id: str
    name: str = ""
    child_steps: List[ChildStep] = []
    next_step_id: str = ""
    has_pass_workflow: bool = False

    @property
    def questions(self) -> List[ChildQuestion]:
        return [c for c in self.child_steps if isinstance(c, ChildQuestion)]


# --- Step bookkeeping ---

class ActionsQueueItem(BaseModel):
    """A rule result and the actions still to apply for it."""

    evaluation_result: bool
    actions: List[Action] = []


class Knockout(BaseModel):
    is_knockout: bool
    question_id: str
    message: Optional[str] = None


class DataSourceDependency(BaseModel):
    """``question_id`` is the source answer; ``origin_id`` the dependent node id."""

    question_id: str
    origin_id: str


class QuestionDetails(BaseModel):
    """One question/answer line of a step summary."""

    question_id: str
    question: str = ""
    answer: str = ""


# --- Snapshots ---

class QuestionSnapshot(BaseModel):
    kind: Literal["question"] = "question"
    id: str
    question_id: str
    is_visible: bool
    is_required: bool
    value: str
    options: Optional[List[OptionValue]] = None
    is_evaluating: bool = False
    is_fetching: bool = False
    is_knockout: bool = False
    knockout_message: Optional[str] = None


class TextSnapshot(BaseModel):
    kind: Literal["text"] = "text"
    id: str
    is_visible: bool


class StepSnapshot(BaseModel):
    """Public view of one page."""

    id: str
    name: str
    form_state: str
    submit_state: Optional[str] = None
    values: Dict[str, str] = {}
    has_new_values: bool = False
    parent_updated: bool = False
    was_submitted: bool = False
    submit_error: Optional[str] = None
    knockouts: List[Knockout] = []
    children: List[Union[QuestionSnapshot, TextSnapshot]] = []


class WorkflowSnapshot(BaseModel):
    """Public view of the whole session."""

    state: str
    workflow_id: Optional[str] = None
    current_step_id: Optional[str] = None
    step_ids: List[str] = []
    summaries: Dict[str, List[QuestionDetails]] = {}
    knockout_message: Optional[str] = None
    steps: List[StepSnapshot] = []
