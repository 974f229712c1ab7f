"""StepActor — one page of the workflow.

On start the step computes its ``initial_values``/``values`` maps from the
pre-populated answers, resolves its data-source dependencies, spawns one
child actor per question/text node (addresses kept in an arena keyed by node
id) and, once, pushes the initial dependency values to the questions whose
options depend on them.

Two regions run side by side.

**Conditional actions.**  Every ``QuestionUpdate`` from a child is merged
into the actions queue and the knockout list, then the queue is drained:
the highest-priority action kind present is applied to the addressed
children and exactly that action instance is removed, until nothing
drainable is left.  A visibility/required signal is the action's stated
state when the rule passed and the opposite state when it failed.

**Form submission.**  ``Submit`` moves the form from ``idle`` to
``submitting``, which starts in ``checkingSubmittedValues`` and picks the
first matching branch:

  1. a knockout is flagged       → ``sendingWorkflowResponses``
  2. nothing new, no pass-workflow flag, parent already told
                                 → ``idle``, re-announce the next step
  3. values changed              → ``sendingWorkflowResponses``
  4. pass-workflow page, application not yet submitted
                                 → ``submittingApplication``
  5. otherwise                   → report summary, ``idle``, next step

Saved responses with a knockout end in the final ``cancelled`` state;
otherwise the summary is reported and the check runs again.  A failed call
leaves the form in ``submittingFailed``: ``Retry`` re-enters the sub-state
that failed (``submit_history``), ``Back`` returns to ``idle``.
"""

from __future__ import annotations

import logging
from typing import Optional

from enrollment_workflow.actions_queue import (
    HIDE,
    NOT_REQUIRED,
    REQUIRED,
    SHOW,
    ActionsQueue,
    KnockoutList,
    action_signal,
    action_targets,
)
from enrollment_workflow.collector import FormSyncCollector
from enrollment_workflow.constants import (
    APPLICATION_SUBMITTED_MESSAGE,
    RESPONSES_SAVED_MESSAGE,
    SUBMIT_CACHE_KEY,
)
from enrollment_workflow.errors import MissingActorError, WorkflowError, describe_error
from enrollment_workflow.loader import build_data_source_dependencies
from enrollment_workflow.messages import (
    ApplicationSubmitted,
    Back,
    FetchDataSource,
    GoToStep,
    Hide,
    NotRequired,
    QuestionUpdate,
    ReceiveStepSummary,
    Required,
    ResponsesSent,
    Retry,
    Show,
    StatusUpdate,
    StepCancelled,
    SubmissionFailed,
    Submit,
    SyncRequest,
    ValuesCollected,
    ValueUpdate,
)
from enrollment_workflow.models.runtime import (
    ChildQuestion,
    DataSourceDependency,
    Knockout,
    QuestionDetails,
    StepDefinition,
    StepSnapshot,
)
from enrollment_workflow.question import QuestionActor
from enrollment_workflow.responses import build_workflow_responses
from enrollment_workflow.runtime import Actor
from enrollment_workflow.services import WorkflowServices
from enrollment_workflow.text import TextActor

logger = logging.getLogger(__name__)

# --- Form region states ---
FORM_IDLE = "idle"
FORM_SUBMITTING = "submitting"
FORM_SUBMITTING_FAILED = "submittingFailed"
FORM_CANCELLED = "cancelled"

# --- Sub-states of ``submitting`` ---
CHECKING_SUBMITTED_VALUES = "checkingSubmittedValues"
SENDING_WORKFLOW_RESPONSES = "sendingWorkflowResponses"
SUBMITTING_APPLICATION = "submittingApplication"

_SIGNAL_MESSAGES = {
    SHOW: Show,
    HIDE: Hide,
    REQUIRED: Required,
    NOT_REQUIRED: NotRequired,
}


def step_address(step_id: str) -> str:
    return f"step:{step_id}"


class StepActor(Actor):
    """Actor owning one page, its children and its submission lifecycle."""

    def __init__(
        self,
        address: str,
        parent: str,
        definition: StepDefinition,
        *,
        services: WorkflowServices,
        workflow_id: str = "",
        application_key: str = "",
        application_submitted: bool = False,
    ) -> None:
        super().__init__(address, parent)
        self.definition = definition
        self.step_id = definition.id
        self.services = services
        self.workflow_id = workflow_id
        self.application_key = application_key
        self.application_submitted = application_submitted

        # Arena of children: node id → address, plus question id → address
        self.child_addresses: dict[str, str] = {}
        self.question_addresses: dict[str, str] = {}

        self.initial_values: dict[str, str] = {}
        self.values: dict[str, str] = {}
        self.data_source_dependencies: list[DataSourceDependency] = []
        self.dep_initial_values_sent = False

        self.actions_queue = ActionsQueue()
        self.knockouts = KnockoutList()
        # (node id, signal) in dispatch order
        self.dispatched_signals: list[tuple[str, str]] = []

        self.has_new_values = False
        self.parent_updated = False
        self.was_submitted = False
        self.step_summary: list[QuestionDetails] = []

        self.form_state = FORM_IDLE
        self.submit_state: Optional[str] = None
        self.submit_history: Optional[str] = None
        self.submit_error: Optional[str] = None
        self.confirmation_id: Optional[str] = None

        self._syncs = 0

    def handlers(self):
        return {
            QuestionUpdate: self._on_question_update,
            ValueUpdate: self._on_value_update,
            SyncRequest: self._on_sync_request,
            ValuesCollected: self._on_values_collected,
            Submit: self._on_submit,
            ResponsesSent: self._on_responses_sent,
            ApplicationSubmitted: self._on_application_submitted,
            SubmissionFailed: self._on_submission_failed,
            Retry: self._on_retry,
            Back: self._on_back,
        }

    @property
    def questions(self) -> list[ChildQuestion]:
        return self.definition.questions

    @property
    def is_cancelled(self) -> bool:
        return self.form_state == FORM_CANCELLED

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def on_start(self) -> None:
        self.initial_values = {q.question_id: q.initial_value for q in self.questions}
        self.values = dict(self.initial_values)
        self.data_source_dependencies = build_data_source_dependencies(self.definition)

        for child in self.definition.child_steps:
            address = f"{self.address}/{child.kind}:{child.id}"
            self.child_addresses[child.id] = address
            if isinstance(child, ChildQuestion):
                if child.question_id in self.question_addresses:
                    logger.warning(
                        "step %s: question id %s appears more than once", self.step_id, child.question_id
                    )
                self.question_addresses[child.question_id] = address

        for child in self.definition.child_steps:
            address = self.child_addresses[child.id]
            if isinstance(child, ChildQuestion):
                siblings = {
                    qid: addr for qid, addr in self.question_addresses.items() if addr != address
                }
                self.spawn(
                    QuestionActor(
                        address,
                        self.address,
                        child,
                        sibling_addresses=siblings,
                        settings=self.services.settings,
                        fetcher=self.services.fetcher,
                    )
                )
            else:
                self.spawn(TextActor(address, self.address, child))

        self._send_initial_dependency_values()
        logger.info(
            "step %s started with %d children", self.step_id, len(self.definition.child_steps)
        )

    def _send_initial_dependency_values(self) -> None:
        if self.dep_initial_values_sent:
            return
        self.dep_initial_values_sent = True
        for dependency in self.data_source_dependencies:
            value = self.initial_values.get(dependency.question_id, "")
            if value:
                self.send(self.child_address(dependency.origin_id), FetchDataSource(value=value))

    def child_address(self, node_id: str) -> str:
        address = self.child_addresses.get(node_id)
        if address is None:
            raise MissingActorError(f"{self.address}/*:{node_id}")
        return address

    # ------------------------------------------------------------------
    # Conditional-actions region
    # ------------------------------------------------------------------

    def _on_question_update(self, message: QuestionUpdate) -> None:
        self.actions_queue.extend(message.actions_queue)
        self.knockouts.update(
            Knockout(
                is_knockout=message.is_knockout,
                question_id=message.question_id,
                message=message.knockout_message,
            )
        )
        self._drain_actions_queue()

    def _drain_actions_queue(self) -> None:
        while True:
            kind = self.actions_queue.next_kind()
            if kind is None:
                return
            item, action = self.actions_queue.take(kind)
            signal = action_signal(item.evaluation_result, action)
            for node_id in action_targets(action):
                self.send(self.child_address(node_id), _SIGNAL_MESSAGES[signal]())
                self.dispatched_signals.append((node_id, signal))
            self.actions_queue.remove(action)

    # ------------------------------------------------------------------
    # Values and cross-field dependencies
    # ------------------------------------------------------------------

    def _on_value_update(self, message: ValueUpdate) -> None:
        previous = self.values.get(message.question_id)
        self.values[message.question_id] = message.value
        if previous != message.value:
            self.has_new_values = True
            self.parent_updated = False
        for dependency in self.data_source_dependencies:
            if dependency.question_id == message.question_id:
                self.send(self.child_address(dependency.origin_id), FetchDataSource(value=message.value))

    def _on_sync_request(self, message: SyncRequest) -> None:
        self._syncs += 1
        self.spawn(
            FormSyncCollector(
                f"{self.address}/sync:{self._syncs}",
                self.address,
                targets=self.question_addresses,
                timeout=self.services.settings.ask_timeout_seconds,
            )
        )

    def _on_values_collected(self, message: ValuesCollected) -> None:
        if message.timed_out:
            logger.warning(
                "step %s: value sync missing %s, keeping local values", self.step_id, list(message.missing)
            )
        synced = dict(self.values)
        synced.update({k: v for k, v in message.values.items() if k not in message.missing})
        if synced != self.values:
            self.has_new_values = True
            self.parent_updated = False
        self.values = synced

    # ------------------------------------------------------------------
    # Form region
    # ------------------------------------------------------------------

    def build_summary(self) -> list[QuestionDetails]:
        return [
            QuestionDetails(
                question_id=q.question_id,
                question=q.label_text,
                answer=self.values.get(q.question_id, ""),
            )
            for q in self.questions
        ]

    def _on_submit(self, message: Submit) -> None:
        if self.form_state != FORM_IDLE:
            logger.debug("step %s: submit ignored in state %s", self.step_id, self.form_state)
            return
        values = dict(message.values) if message.values is not None else dict(self.values)
        changed = values != self.values and values != self.initial_values
        if changed:
            self.has_new_values = True
            self.parent_updated = False
        self.values = values
        self.step_summary = list(message.step_summary) or self.build_summary()
        self.was_submitted = True
        self.form_state = FORM_SUBMITTING
        self._check_submitted_values()

    def _check_submitted_values(self) -> None:
        self.submit_state = CHECKING_SUBMITTED_VALUES
        if self.knockouts.active is not None:
            self._send_workflow_responses()
        elif not self.has_new_values and not self.definition.has_pass_workflow and self.parent_updated:
            self._return_to_idle()
            self._announce_next_step()
        elif self.has_new_values:
            self._send_workflow_responses()
        elif self.definition.has_pass_workflow and not self.application_submitted:
            self._submit_application()
        else:
            self._report_summary()
            self._return_to_idle()
            self._announce_next_step()

    def _enter_submit_state(self, state: str) -> None:
        self.submit_state = state
        self.submit_history = state
        logger.debug("step %s: %s", self.step_id, state)

    def _gateway(self):
        if self.services.gateway is None:
            raise WorkflowError(f"step {self.step_id}: no workflow gateway configured")
        return self.services.gateway

    def _send_workflow_responses(self) -> None:
        self._enter_submit_state(SENDING_WORKFLOW_RESPONSES)
        body = build_workflow_responses(self.workflow_id, self.step_id, self.questions, self.values)
        self.run_task(
            self._gateway().send_workflow_responses(self.application_key, body),
            on_success=lambda _: ResponsesSent(),
            on_error=lambda exc: SubmissionFailed(error_message=describe_error(exc)),
        )

    def _submit_application(self) -> None:
        self._enter_submit_state(SUBMITTING_APPLICATION)
        gateway = self._gateway()
        self.run_task(
            self.services.cache.fetch(
                (SUBMIT_CACHE_KEY, self.application_key),
                lambda: gateway.submit_application(self.application_key),
            ),
            on_success=lambda confirmation: ApplicationSubmitted(confirmation_id=confirmation or ""),
            on_error=lambda exc: SubmissionFailed(error_message=describe_error(exc)),
        )

    def _on_responses_sent(self, message: ResponsesSent) -> None:
        if self.submit_state != SENDING_WORKFLOW_RESPONSES:
            return
        knockout = self.knockouts.active
        if knockout is not None:
            self.form_state = FORM_CANCELLED
            self.submit_state = None
            logger.info("step %s cancelled by knockout on %s", self.step_id, knockout.question_id)
            self.tell_parent(StepCancelled(step_id=self.step_id, message=knockout.message))
            return
        self._report_summary()
        self.has_new_values = False
        self.tell_parent(StatusUpdate(kind="success", message=RESPONSES_SAVED_MESSAGE))
        self._check_submitted_values()

    def _on_application_submitted(self, message: ApplicationSubmitted) -> None:
        if self.submit_state != SUBMITTING_APPLICATION:
            return
        self.application_submitted = True
        self.confirmation_id = message.confirmation_id or None
        if not self.parent_updated:
            self._report_summary()
        self.tell_parent(StatusUpdate(kind="success", message=APPLICATION_SUBMITTED_MESSAGE))
        self._return_to_idle()
        self._announce_next_step()

    def _on_submission_failed(self, message: SubmissionFailed) -> None:
        if self.form_state != FORM_SUBMITTING:
            return
        logger.warning(
            "step %s: %s failed: %s", self.step_id, self.submit_state, message.error_message
        )
        self.form_state = FORM_SUBMITTING_FAILED
        self.submit_state = None
        self.submit_error = message.error_message
        self.tell_parent(StatusUpdate(kind="error", message=message.error_message))

    def _on_retry(self, message: Retry) -> None:
        if self.form_state != FORM_SUBMITTING_FAILED:
            return
        self.submit_error = None
        self.form_state = FORM_SUBMITTING
        if self.submit_history == SENDING_WORKFLOW_RESPONSES:
            self._send_workflow_responses()
        elif self.submit_history == SUBMITTING_APPLICATION:
            self._submit_application()
        else:
            self._check_submitted_values()

    def _on_back(self, message: Back) -> None:
        if self.form_state != FORM_SUBMITTING_FAILED:
            return
        self.submit_error = None
        self._return_to_idle()

    def _return_to_idle(self) -> None:
        self.form_state = FORM_IDLE
        self.submit_state = None

    def _report_summary(self) -> None:
        self.tell_parent(ReceiveStepSummary(step_id=self.step_id, step_summary=self.step_summary))
        self.parent_updated = True

    def _announce_next_step(self) -> None:
        self.tell_parent(GoToStep(step_id=self.definition.next_step_id))

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def snapshot(self) -> StepSnapshot:
        children = []
        for address in self.child_addresses.values():
            actor = self.system.find(address)
            if actor is not None:
                children.append(actor.snapshot())
        return StepSnapshot(
            id=self.step_id,
            name=self.definition.name,
            form_state=self.form_state,
            submit_state=self.submit_state,
            values=dict(self.values),
            has_new_values=self.has_new_values,
            parent_updated=self.parent_updated,
            was_submitted=self.was_submitted,
            submit_error=self.submit_error,
            knockouts=self.knockouts.entries,
            children=children,
        )
