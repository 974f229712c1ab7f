"""Workflow, application and submission payload models.

  - Workflow: the authored questionnaire (ordered GroupStep pages)
  - Application: enrollment metadata fetched by application key
  - QuestionStepResponse / WorkflowResponsesBody: the body posted when a
    page's answers are saved
"""

from typing import List, Optional

from .base import WireModel
from .step import GroupStep


class Workflow(WireModel):
    """An authored workflow.  Immutable once loaded."""

    id: str
    name: str = ""
    first_step_id: str
    sort_order: Optional[int] = None
    steps: List[GroupStep] = []


class Application(WireModel):
    """Enrollment application metadata.

    A non-empty ``confirmation_id`` means the application was already
    submitted, which disables a second final submission.
    """

    application_key: str
    workflow_id: str
    account_id: Optional[str] = None
    individual_id: Optional[str] = None
    contract_id: Optional[str] = None
    plan_benefit_package_id: Optional[str] = None
    segment_id: Optional[str] = None
    carrier_name: Optional[str] = None
    plan_name: Optional[str] = None
    monthly_premium: Optional[float] = None
    effective_year: Optional[int] = None
    agent_user_key: Optional[str] = None
    agent_writing_number: Optional[str] = None
    applicant_first_name: Optional[str] = None
    applicant_last_name: Optional[str] = None
    agent_first_name: Optional[str] = None
    agent_last_name: Optional[str] = None
    agent_email: Optional[str] = None
    start_timestamp: Optional[str] = None
    submitted_timestamp: Optional[str] = None
    confirmation_id: Optional[str] = None

    @property
    def is_submitted(self) -> bool:
        return bool(self.confirmation_id)


class QuestionStepResponse(WireModel):
    """One saved answer."""

    step_id: str
    question_id: str
    data_type: int
    response_date: str
    response_value: str
    response_source: int


class WorkflowResponsesBody(WireModel):
    """Body of ``POST /api/Applications/{key}/workflowresponses``."""

    workflow_id: str
    question_step_responses: List[QuestionStepResponse] = []
