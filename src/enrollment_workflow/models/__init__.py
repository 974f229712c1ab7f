"""Public model re-exports for enrollment_workflow.

Consumers should import from ``enrollment_workflow.models`` rather than
reaching into sub-modules directly.
"""

# --- Actions ---
from enrollment_workflow.models.action import (
    Action,
    FailWorkflowAction,
    NextStepAction,
    PassWorkflowAction,
    RequiredAction,
    UpdateMultipleStepsIsRequiredAction,
    UpdateMultipleStepsVisibilityAction,
    UpdateStepIsRequiredAction,
    UpdateStepVisibilityAction,
    VisibilityAction,
)

# --- Comparisons / evaluations ---
from enrollment_workflow.models.comparison import (
    BooleanComparison,
    Comparison,
    DateComparison,
    StringComparison,
)
from enrollment_workflow.models.evaluation import (
    AlwaysTrueEvaluation,
    ConditionalAction,
    Evaluation,
    GroupEvaluation,
    QuestionEvaluation,
)

# --- Questions ---
from enrollment_workflow.models.question import (
    BaseQuestion,
    BooleanQuestion,
    DataSource,
    DateQuestion,
    MultipleChoiceQuestion,
    NumberQuestion,
    OptionValue,
    PrePopulatedResponse,
    QueryStringParameter,
    Question,
    TextQuestion,
)

# --- Steps / workflow ---
from enrollment_workflow.models.step import (
    GroupStep,
    QuestionStep,
    Step,
    SummaryStep,
    TextStep,
)
from enrollment_workflow.models.workflow import (
    Application,
    QuestionStepResponse,
    Workflow,
    WorkflowResponsesBody,
)

# --- Runtime ---
from enrollment_workflow.models.runtime import (
    ActionsQueueItem,
    ChildQuestion,
    ChildStep,
    ChildText,
    DataSourceDependency,
    Knockout,
    QuestionDetails,
    QuestionSnapshot,
    StepDefinition,
    StepSnapshot,
    TextSnapshot,
    WorkflowSnapshot,
)

__all__ = [
    # Actions
    "Action",
    "FailWorkflowAction",
    "NextStepAction",
    "PassWorkflowAction",
    "RequiredAction",
    "UpdateMultipleStepsIsRequiredAction",
    "UpdateMultipleStepsVisibilityAction",
    "UpdateStepIsRequiredAction",
    "UpdateStepVisibilityAction",
    "VisibilityAction",
    # Comparisons / evaluations
    "AlwaysTrueEvaluation",
    "BooleanComparison",
    "Comparison",
    "ConditionalAction",
    "DateComparison",
    "Evaluation",
    "GroupEvaluation",
    "QuestionEvaluation",
    "StringComparison",
    # Questions
    "BaseQuestion",
    "BooleanQuestion",
    "DataSource",
    "DateQuestion",
    "MultipleChoiceQuestion",
    "NumberQuestion",
    "OptionValue",
    "PrePopulatedResponse",
    "QueryStringParameter",
    "Question",
    "TextQuestion",
    # Steps / workflow
    "Application",
    "GroupStep",
    "QuestionStep",
    "QuestionStepResponse",
    "Step",
    "SummaryStep",
    "TextStep",
    "Workflow",
    "WorkflowResponsesBody",
    # Runtime
    "ActionsQueueItem",
    "ChildQuestion",
    "ChildStep",
    "ChildText",
    "DataSourceDependency",
    "Knockout",
    "QuestionDetails",
    "QuestionSnapshot",
    "StepDefinition",
    "StepSnapshot",
    "TextSnapshot",
    "WorkflowSnapshot",
]
