"""WorkflowOrchestrator — owns every step actor and the active-step pointer.

States:
  - ``waitingForData``: nothing spawned yet; accepts ``ReceiveWorkflowData``
  - ``dataLoaded``: steps spawned; accepts step summaries, ``GoToStep``,
    ``RefetchWorkflow`` (tears the steps down and waits for data again),
    status updates and cancellation notices from steps

Global loading/success/error messages are published on a
:class:`~enrollment_workflow.status.StatusChannel` for observers; the core
flow never reads them back.
"""

from __future__ import annotations

import logging
from typing import Optional

from enrollment_workflow.constants import ENROLLMENT_LOADED_MESSAGE
from enrollment_workflow.errors import MissingActorError, WorkflowError
from enrollment_workflow.loader import build_steps
from enrollment_workflow.messages import (
    GoToStep,
    ReceiveStepSummary,
    ReceiveWorkflowData,
    RefetchWorkflow,
    StatusUpdate,
    StepCancelled,
)
from enrollment_workflow.models.runtime import QuestionDetails, StepDefinition, WorkflowSnapshot
from enrollment_workflow.models.workflow import Application, Workflow
from enrollment_workflow.runtime import Actor
from enrollment_workflow.services import WorkflowServices
from enrollment_workflow.status import StatusChannel
from enrollment_workflow.step import StepActor, step_address

logger = logging.getLogger(__name__)

ORCHESTRATOR_ADDRESS = "workflow"

WAITING_FOR_DATA = "waitingForData"
DATA_LOADED = "dataLoaded"


class WorkflowOrchestrator(Actor):
    """Root actor of a workflow session."""

    def __init__(
        self,
        services: WorkflowServices,
        *,
        status: Optional[StatusChannel] = None,
        address: str = ORCHESTRATOR_ADDRESS,
    ) -> None:
        super().__init__(address, None)
        self.services = services
        self.status = status or StatusChannel(services.settings.status_reset_seconds)
        self.state = WAITING_FOR_DATA
        self.workflow: Optional[Workflow] = None
        self.application: Optional[Application] = None
        self.steps: list[StepDefinition] = []
        self.step_addresses: dict[str, str] = {}
        self.current_step_id: Optional[str] = None
        self.summaries: dict[str, list[QuestionDetails]] = {}
        self.knockout_message: Optional[str] = None
        self.cancelled_step_id: Optional[str] = None

    def handlers(self):
        return {
            ReceiveWorkflowData: self._on_workflow_data,
            ReceiveStepSummary: self._on_step_summary,
            GoToStep: self._on_go_to_step,
            RefetchWorkflow: self._on_refetch,
            StatusUpdate: self._on_status_update,
            StepCancelled: self._on_step_cancelled,
        }

    def step_address(self, step_id: str) -> str:
        address = self.step_addresses.get(step_id)
        if address is None:
            raise MissingActorError(f"{self.address}/{step_address(step_id)}")
        return address

    # ------------------------------------------------------------------
    # waitingForData
    # ------------------------------------------------------------------

    def _on_workflow_data(self, message: ReceiveWorkflowData) -> None:
        if self.state != WAITING_FOR_DATA:
            logger.warning("workflow data received while %s; ignored", self.state)
            return
        workflow = message.workflow
        application = message.application
        steps = build_steps(workflow)
        step_ids = {step.id for step in steps}
        if workflow.first_step_id not in step_ids:
            raise WorkflowError(
                f"Workflow {workflow.id}: first step {workflow.first_step_id!r} does not exist"
            )

        self.workflow = workflow
        self.application = application
        self.steps = steps
        for definition in steps:
            address = f"{self.address}/{step_address(definition.id)}"
            self.step_addresses[definition.id] = address
            self.spawn(
                StepActor(
                    address,
                    self.address,
                    definition,
                    services=self.services,
                    workflow_id=workflow.id,
                    application_key=application.application_key if application else "",
                    application_submitted=application.is_submitted if application else False,
                )
            )
        self.current_step_id = workflow.first_step_id
        self.state = DATA_LOADED
        logger.info("workflow %s loaded with %d steps", workflow.id, len(steps))
        self.status.clear_loading()
        self.status.publish_success(ENROLLMENT_LOADED_MESSAGE)

    # ------------------------------------------------------------------
    # dataLoaded
    # ------------------------------------------------------------------

    def _on_step_summary(self, message: ReceiveStepSummary) -> None:
        if message.step_id not in self.step_addresses:
            raise MissingActorError(f"{self.address}/{step_address(message.step_id)}")
        self.summaries[message.step_id] = list(message.step_summary)

    def _on_go_to_step(self, message: GoToStep) -> None:
        if self.state != DATA_LOADED:
            return
        if not message.step_id:
            logger.info("step %s has no next step", self.current_step_id)
            return
        if message.step_id not in self.step_addresses:
            raise MissingActorError(f"{self.address}/{step_address(message.step_id)}")
        logger.debug("current step %s -> %s", self.current_step_id, message.step_id)
        self.current_step_id = message.step_id

    def _on_refetch(self, message: RefetchWorkflow) -> None:
        for address in list(self.step_addresses.values()):
            self.system.stop(address)
        self.step_addresses.clear()
        self.steps = []
        self.summaries.clear()
        self.current_step_id = None
        self.knockout_message = None
        self.cancelled_step_id = None
        self.state = WAITING_FOR_DATA
        logger.info("workflow torn down for refetch")

    def _on_status_update(self, message: StatusUpdate) -> None:
        self.status.publish(message.kind, message.message)

    def _on_step_cancelled(self, message: StepCancelled) -> None:
        self.cancelled_step_id = message.step_id
        self.knockout_message = message.message
        self.status.publish_error(message.message or "Workflow cancelled")

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def snapshot(self) -> WorkflowSnapshot:
        steps = []
        for address in self.step_addresses.values():
            actor = self.system.find(address)
            if actor is not None:
                steps.append(actor.snapshot())
        return WorkflowSnapshot(
            state=self.state,
            workflow_id=self.workflow.id if self.workflow and self.state == DATA_LOADED else None,
            current_step_id=self.current_step_id,
            step_ids=[s.id for s in self.steps],
            summaries=dict(self.summaries),
            knockout_message=self.knockout_message,
            steps=steps,
        )
