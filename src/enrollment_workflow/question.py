"""QuestionActor — one field of a step.

The actor owns the field's visibility, required flag, current value and,
for multipleChoice questions with a remote data source, its option list.
Three regions run side by side:

  **Visibility** (``invisible`` ⇄ ``visible``)
    Only a visible question accepts value updates and evaluation requests.
    Entering ``visible`` with no value yet, a pre-populated answer and at
    least one rule seeds the value and evaluates immediately.  While
    visible the question is ``idle`` or ``evaluating``: evaluation spawns a
    RuleEvaluator; its result becomes the question's actions-queue
    contribution.  A disqualify action in that result sets the knockout flag
    and message and is stripped out; the remainder, the knockout flag and
    the question id are then reported to the parent step.

  **Required** (``required`` ⇄ ``notRequired``)
    Toggled only by the parent step.

  **Data source** (``idle`` ⇄ ``fetching``)
    A fetch starts only when the dependency value differs from the last one
    seen.  Afterwards the option list is rebuilt, a value that is no longer
    offered resets to "", and the parent step is asked to resynchronise its
    values.  A failed fetch, or a response whose records are not objects,
    leaves a single empty placeholder option.

Value requests from collectors are answered in every state.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from enrollment_workflow.config import WorkflowSettings
from enrollment_workflow.errors import WorkflowError
from enrollment_workflow.evaluator import RuleEvaluator
from enrollment_workflow.interfaces import DataSourceFetcher
from enrollment_workflow.messages import (
    DataSourceFailed,
    DataSourceLoaded,
    EvaluateRules,
    FetchDataSource,
    Hide,
    NotRequired,
    QuestionUpdate,
    RequestValue,
    Required,
    RulesEvaluated,
    Show,
    SyncRequest,
    UpdateValue,
    ValueReply,
    ValueUpdate,
)
from enrollment_workflow.models.action import FailWorkflowAction
from enrollment_workflow.models.question import OptionValue
from enrollment_workflow.models.runtime import ActionsQueueItem, ChildQuestion, QuestionSnapshot
from enrollment_workflow.runtime import Actor

logger = logging.getLogger(__name__)

PLACEHOLDER_OPTION = OptionValue(value="", label="")


def strip_disqualification(
    queue: list[ActionsQueueItem],
) -> tuple[list[ActionsQueueItem], Optional[ActionsQueueItem], Optional[FailWorkflowAction]]:
    """Remove the first disqualify action from a rule result list.

    Returns the remaining items (items left empty are dropped), the item the
    action came from, and the action itself (both None when absent).
    """
    for index, item in enumerate(queue):
        for action in item.actions:
            if isinstance(action, FailWorkflowAction):
                rest = [a for a in item.actions if a is not action]
                remaining = list(queue[:index])
                if rest:
                    remaining.append(
                        ActionsQueueItem(evaluation_result=item.evaluation_result, actions=rest)
                    )
                remaining.extend(queue[index + 1:])
                return remaining, item, action
    return list(queue), None, None


class QuestionActor(Actor):
    """Actor for one question node of a step."""

    def __init__(
        self,
        address: str,
        parent: str,
        child: ChildQuestion,
        *,
        sibling_addresses: Mapping[str, str],
        settings: WorkflowSettings,
        fetcher: Optional[DataSourceFetcher] = None,
    ) -> None:
        super().__init__(address, parent)
        self.child = child
        self.node_id = child.id
        self.question_id = child.question_id
        self.is_visible = child.is_visible
        self.is_required = child.is_required
        self.initial_value = child.initial_value
        self.options: Optional[list[OptionValue]] = (
            list(child.options) if child.options is not None else None
        )
        self.data_source = child.data_source
        self.sibling_addresses = dict(sibling_addresses)
        self._settings = settings
        self._fetcher = fetcher

        # None until the question has been answered, seeded or reset
        self._value: Optional[str] = None

        # Evaluation region
        self.evaluator: Optional[str] = None
        self._reevaluate = False
        self._evaluations = 0
        self.is_knockout = False
        self.knockout_message: Optional[str] = None

        # Data-source region
        self.dependency_value = ""
        self.is_fetching = False

    def handlers(self):
        return {
            Show: self._on_show,
            Hide: self._on_hide,
            Required: self._on_required,
            NotRequired: self._on_not_required,
            UpdateValue: self._on_update_value,
            EvaluateRules: self._on_evaluate,
            RulesEvaluated: self._on_rules_evaluated,
            RequestValue: self._on_request_value,
            FetchDataSource: self._on_fetch_data_source,
            DataSourceLoaded: self._on_data_source_loaded,
            DataSourceFailed: self._on_data_source_failed,
        }

    @property
    def value(self) -> str:
        """Current answer; the pre-populated value until the question is touched."""
        return self._value if self._value is not None else self.initial_value

    @property
    def is_evaluating(self) -> bool:
        return self.evaluator is not None

    def on_start(self) -> None:
        if self.is_visible:
            self._enter_visible()

    # ------------------------------------------------------------------
    # Visibility region
    # ------------------------------------------------------------------

    def _enter_visible(self) -> None:
        if self._value is None and self.initial_value and self.child.conditional_actions:
            self._value = self.initial_value
            self._start_evaluation()

    def _on_show(self, message: Show) -> None:
        if self.is_visible:
            return
        self.is_visible = True
        self._enter_visible()

    def _on_hide(self, message: Hide) -> None:
        self.is_visible = False
        if self.evaluator is not None:
            # Results of an abandoned evaluation are never reported
            self.system.stop(self.evaluator)
            self.evaluator = None
        self._reevaluate = False

    def _on_update_value(self, message: UpdateValue) -> None:
        if not self.is_visible:
            logger.debug("%s: ignoring value update while hidden", self.address)
            return
        self._value = message.value
        self.tell_parent(ValueUpdate(question_id=self.question_id, value=message.value))

    def _on_request_value(self, message: RequestValue) -> None:
        self.reply(message.reply_to, ValueReply(question_id=self.question_id, value=self.value))

    # ------------------------------------------------------------------
    # Required region
    # ------------------------------------------------------------------

    def _on_required(self, message: Required) -> None:
        self.is_required = True

    def _on_not_required(self, message: NotRequired) -> None:
        self.is_required = False

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _on_evaluate(self, message: EvaluateRules) -> None:
        if not self.is_visible:
            logger.debug("%s: ignoring evaluation while hidden", self.address)
            return
        self._start_evaluation()

    def _start_evaluation(self) -> None:
        if not self.child.conditional_actions:
            return
        if self.evaluator is not None:
            # Re-run with the latest value once the current cycle reports
            self._reevaluate = True
            return
        self._evaluations += 1
        self.evaluator = self.spawn(
            RuleEvaluator(
                f"{self.address}/evaluator:{self._evaluations}",
                self.address,
                question_id=self.question_id,
                value=self.value,
                conditionals=self.child.conditional_actions,
                sibling_addresses=self.sibling_addresses,
                timeout=self._settings.ask_timeout_seconds,
                evaluate_all_groups=self._settings.evaluate_all_groups,
            )
        )

    def _on_rules_evaluated(self, message: RulesEvaluated) -> None:
        if message.evaluator != self.evaluator:
            logger.debug("%s: discarding stale result from %s", self.address, message.evaluator)
            return
        self.evaluator = None
        self._perform_actions(message.results)
        if self._reevaluate:
            self._reevaluate = False
            self._start_evaluation()

    def _perform_actions(self, results: list[ActionsQueueItem]) -> None:
        remaining, item, fail = strip_disqualification(results)
        if fail is not None:
            self.is_knockout = item.evaluation_result
            self.knockout_message = fail.display_text if item.evaluation_result else None
            logger.info(
                "%s: knockout %s", self.question_id, "set" if self.is_knockout else "cleared"
            )
        self.tell_parent(
            QuestionUpdate(
                question_id=self.question_id,
                actions_queue=remaining,
                is_knockout=self.is_knockout,
                knockout_message=self.knockout_message,
            )
        )

    # ------------------------------------------------------------------
    # Data-source region
    # ------------------------------------------------------------------

    def _on_fetch_data_source(self, message: FetchDataSource) -> None:
        if self.data_source is None:
            logger.warning("%s: fetch requested but no data source is configured", self.address)
            return
        if message.value == self.dependency_value:
            logger.debug("%s: dependency value unchanged, skipping fetch", self.address)
            return
        self.dependency_value = message.value
        if self.is_fetching:
            # The in-flight result will be stale; refetched on completion
            return
        self._fetch()

    def _fetch(self) -> None:
        if self._fetcher is None:
            raise WorkflowError(f"{self.address}: data source configured but no fetcher supplied")
        value = self.dependency_value
        params = self.data_source.build_params(value)
        logger.debug("%s: fetching %s %s", self.address, self.data_source.url, params)
        self.is_fetching = True
        self.run_task(
            self._fetcher.fetch_records(self.data_source.url, params),
            on_success=lambda records: DataSourceLoaded(records=list(records or []), request_value=value),
            on_error=lambda exc: DataSourceFailed(error=str(exc), request_value=value),
        )

    def _finish_fetch(self, request_value: str) -> bool:
        """Leave ``fetching``; returns False when the result is stale."""
        self.is_fetching = False
        if request_value != self.dependency_value:
            self._fetch()
            return False
        return True

    def _on_data_source_loaded(self, message: DataSourceLoaded) -> None:
        if not self._finish_fetch(message.request_value):
            return
        try:
            options = self.data_source.to_options(message.records)
        except ValueError as exc:
            logger.warning("%s: unusable data source response: %s", self.address, exc)
            options = [PLACEHOLDER_OPTION]
        self._apply_options(options)

    def _on_data_source_failed(self, message: DataSourceFailed) -> None:
        logger.warning("%s: data source fetch failed: %s", self.address, message.error)
        if not self._finish_fetch(message.request_value):
            return
        self._apply_options([PLACEHOLDER_OPTION])

    def _apply_options(self, options: list[OptionValue]) -> None:
        self.options = options
        valid = {option.value for option in options}
        current = self.value
        if self._settings.auto_select_single_option and len(options) == 1 and options[0].value:
            new_value = options[0].value
        elif current in valid:
            new_value = current
        else:
            new_value = ""
        if new_value != current:
            logger.info("%s: value %r reset to %r after options changed", self.address, current, new_value)
        self._value = new_value
        self.tell_parent(SyncRequest(requested_by=self.address))

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def snapshot(self) -> QuestionSnapshot:
        return QuestionSnapshot(
            id=self.node_id,
            question_id=self.question_id,
            is_visible=self.is_visible,
            is_required=self.is_required,
            value=self.value,
            options=self.options,
            is_evaluating=self.is_evaluating,
            is_fetching=self.is_fetching,
            is_knockout=self.is_knockout,
            knockout_message=self.knockout_message,
        )
