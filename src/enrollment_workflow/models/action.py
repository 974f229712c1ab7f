"""Action models — what happens when a conditional rule is applied.

Actions are attached to conditional rules on steps and questions:
  - NextStepAction: advance the workflow to another step
  - FailWorkflowAction: disqualify the applicant (knockout) with a message
  - PassWorkflowAction: mark the step as the terminal summary step
  - UpdateStepVisibilityAction / UpdateMultipleStepsVisibilityAction:
    show or hide one or several child nodes of the current step
  - UpdateStepIsRequiredAction / UpdateMultipleStepsIsRequiredAction:
    toggle the required flag of one or several child nodes

The discriminated ``Action`` union uses the ``actionType`` wire field as its
discriminator so Pydantic can deserialise workflow JSON/YAML directly into
the correct type.
"""

from typing import Annotated, List, Literal, Union

from pydantic import Field

from .base import WireModel


class NextStepAction(WireModel):
    """Advance to the step with the given id."""

    action_type: Literal["nextStep"] = "nextStep"
    step_id: str


class FailWorkflowAction(WireModel):
    """Disqualify the applicant; ``display_text`` becomes the knockout message."""

    action_type: Literal["failWorkflow"] = "failWorkflow"
    header_text: str = ""
    display_text: str = ""


class PassWorkflowAction(WireModel):
    """Flag the owning step as the workflow's terminal summary step."""

    action_type: Literal["passWorkflow"] = "passWorkflow"
    header_text: str = ""
    display_text: str = ""


class UpdateStepVisibilityAction(WireModel):
    """Show (``is_visible``) or hide one child node when the rule passes."""

    action_type: Literal["updateStepVisibility"] = "updateStepVisibility"
    step_id: str
    is_visible: bool


class UpdateMultipleStepsVisibilityAction(WireModel):
    """Multi-target variant of :class:`UpdateStepVisibilityAction`."""

    action_type: Literal["updateMultipleStepsVisibility"] = "updateMultipleStepsVisibility"
    step_ids: List[str]
    is_visible: bool


class UpdateStepIsRequiredAction(WireModel):
    """Mark one child node required (``is_required``) or optional when the rule passes."""

    action_type: Literal["updateStepIsRequired"] = "updateStepIsRequired"
    step_id: str
    is_required: bool


class UpdateMultipleStepsIsRequiredAction(WireModel):
    """Multi-target variant of :class:`UpdateStepIsRequiredAction`."""

    action_type: Literal["updateMultipleStepsIsRequired"] = "updateMultipleStepsIsRequired"
    step_ids: List[str]
    is_required: bool


# Discriminated union: Pydantic picks the right type based on "actionType".
Action = Annotated[
    Union[
        NextStepAction,
        FailWorkflowAction,
        PassWorkflowAction,
        UpdateStepVisibilityAction,
        UpdateMultipleStepsVisibilityAction,
        UpdateStepIsRequiredAction,
        UpdateMultipleStepsIsRequiredAction,
    ],
    Field(discriminator="action_type"),
]

# Actions a step applies to its children while draining its actions queue.
VisibilityAction = Union[UpdateStepVisibilityAction, UpdateMultipleStepsVisibilityAction]
RequiredAction = Union[UpdateStepIsRequiredAction, UpdateMultipleStepsIsRequiredAction]
