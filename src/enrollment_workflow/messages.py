"""Messages exchanged between actors.

Messages are small frozen dataclasses; an actor dispatches on the message
class.  They are grouped by the actor that receives them:

  - Question / Text: visibility and required signals, value updates,
    evaluation and data-source triggers
  - Collectors and evaluators: value requests/replies, collected results,
    timeouts
  - Step: child outcomes, value updates, sync requests, submission events
  - Orchestrator: workflow data, summaries, navigation, status updates
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from enrollment_workflow.models.runtime import ActionsQueueItem, QuestionDetails
from enrollment_workflow.models.workflow import Application, Workflow


@dataclass(frozen=True)
class Started:
    """First message of every actor; runs ``on_start`` inside the mailbox."""


# --- Question / Text ---

@dataclass(frozen=True)
class Show:
    pass


@dataclass(frozen=True)
class Hide:
    pass


@dataclass(frozen=True)
class Required:
    pass


@dataclass(frozen=True)
class NotRequired:
    pass


@dataclass(frozen=True)
class UpdateValue:
    value: str


@dataclass(frozen=True)
class EvaluateRules:
    """Run the question's conditional rules against its current value."""


@dataclass(frozen=True)
class FetchDataSource:
    """The data-source dependency answered ``value``; refresh the options."""

    value: str


@dataclass(frozen=True)
class DataSourceLoaded:
    records: list[dict[str, Any]]
    request_value: str


@dataclass(frozen=True)
class DataSourceFailed:
    error: str
    request_value: str


@dataclass(frozen=True)
class RulesEvaluated:
    evaluator: str
    results: list[ActionsQueueItem]


# --- Value collection ---

@dataclass(frozen=True)
class RequestValue:
    """Ask a question for its current value; the answer goes to ``reply_to``."""

    reply_to: str


@dataclass(frozen=True)
class ValueReply:
    question_id: str
    value: str


@dataclass(frozen=True)
class CollectTimeout:
    pass


@dataclass(frozen=True)
class GroupEvaluated:
    index: int
    item: ActionsQueueItem
    timed_out: bool = False


@dataclass(frozen=True)
class ValuesCollected:
    collector: str
    values: dict[str, str]
    missing: tuple[str, ...] = ()

    @property
    def timed_out(self) -> bool:
        return bool(self.missing)


# --- Step ---

@dataclass(frozen=True)
class QuestionUpdate:
    """A child question's evaluation outcome."""

    question_id: str
    actions_queue: list[ActionsQueueItem]
    is_knockout: bool
    knockout_message: Optional[str] = None


@dataclass(frozen=True)
class ValueUpdate:
    question_id: str
    value: str


@dataclass(frozen=True)
class SyncRequest:
    """Resynchronise the step's values map from every child question."""

    requested_by: str = ""


@dataclass(frozen=True)
class Submit:
    """Submit the page; ``values`` defaults to the step's own values map."""

    values: Optional[dict[str, str]] = None
    step_summary: list[QuestionDetails] = field(default_factory=list)


@dataclass(frozen=True)
class ResponsesSent:
    pass


@dataclass(frozen=True)
class ApplicationSubmitted:
    confirmation_id: str


@dataclass(frozen=True)
class SubmissionFailed:
    error_message: str


@dataclass(frozen=True)
class Retry:
    pass


@dataclass(frozen=True)
class Back:
    pass


# --- Orchestrator ---

@dataclass(frozen=True)
class ReceiveWorkflowData:
    workflow: Workflow
    application: Optional[Application] = None


@dataclass(frozen=True)
class ReceiveStepSummary:
    step_id: str
    step_summary: list[QuestionDetails]


@dataclass(frozen=True)
class GoToStep:
    step_id: str


@dataclass(frozen=True)
class RefetchWorkflow:
    pass


@dataclass(frozen=True)
class StatusUpdate:
    kind: str
    message: Optional[str]


@dataclass(frozen=True)
class StepCancelled:
    step_id: str
    message: Optional[str] = None
