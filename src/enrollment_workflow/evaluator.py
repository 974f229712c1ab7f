"""RuleEvaluator and GroupEvaluator — ephemeral actors that run a question's rules.

A question spawns one :class:`RuleEvaluator` per evaluation cycle.  The
evaluator partitions the question's conditional rules by evaluation type:

  - **question** rules are evaluated directly against the current value
    (an empty value is always False)
  - **group** rules need sibling answers; each evaluated group gets a
    :class:`GroupEvaluator` that collects them first.  Only the first group
    rule is evaluated per cycle unless ``evaluate_all_groups`` is set.
  - **alwaysTrue** rules yield their fixed literal

The reply to the question is the concatenation question-rules, then
group-rules, then always-true-rules, each entry an ``ActionsQueueItem``.
The evaluator stops itself after replying.
"""

from __future__ import annotations

import logging
from typing import Mapping

from enrollment_workflow.collector import ValueCollector
from enrollment_workflow.comparison import evaluate_group, evaluate_question
from enrollment_workflow.messages import GroupEvaluated, RulesEvaluated
from enrollment_workflow.models.evaluation import (
    AlwaysTrueEvaluation,
    ConditionalAction,
    GroupEvaluation,
    QuestionEvaluation,
)
from enrollment_workflow.models.runtime import ActionsQueueItem
from enrollment_workflow.runtime import Actor

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def partition_conditionals(
    conditionals: list[ConditionalAction],
) -> tuple[list[ConditionalAction], list[ConditionalAction], list[ConditionalAction]]:
    """Split rules into (question, group, alwaysTrue) lists, order preserved."""
    question, group, always = [], [], []
    for conditional in conditionals:
        evaluation = conditional.evaluation
        if isinstance(evaluation, QuestionEvaluation):
            question.append(conditional)
        elif isinstance(evaluation, GroupEvaluation):
            group.append(conditional)
        elif isinstance(evaluation, AlwaysTrueEvaluation):
            always.append(conditional)
    return question, group, always


def evaluate_question_conditionals(
    value: str, conditionals: list[ConditionalAction]
) -> list[ActionsQueueItem]:
    return [
        ActionsQueueItem(
            evaluation_result=evaluate_question(value, c.evaluation),
            actions=c.actions,
        )
        for c in conditionals
    ]


def evaluate_always_true_conditionals(
    conditionals: list[ConditionalAction],
) -> list[ActionsQueueItem]:
    return [
        ActionsQueueItem(evaluation_result=c.evaluation.evaluation_value, actions=c.actions)
        for c in conditionals
    ]


# ---------------------------------------------------------------------------
# GroupEvaluator
# ---------------------------------------------------------------------------

class GroupEvaluator(ValueCollector):
    """Collects the answers a group rule references, then evaluates it.

    Slots start empty.  The triggering question's own slot is seeded with its
    fresh value, so only siblings are asked.  Referenced questions that are
    not on the page (no address) keep an empty slot.
    """

    def __init__(
        self,
        address: str,
        parent: str,
        *,
        index: int,
        conditional: ConditionalAction,
        question_id: str,
        value: str,
        sibling_addresses: Mapping[str, str],
        timeout: float,
    ) -> None:
        group: GroupEvaluation = conditional.evaluation
        referenced = group.question_ids
        seed = {qid: "" for qid in referenced}
        if question_id in seed:
            seed[question_id] = value
        targets = {
            qid: sibling_addresses[qid]
            for qid in referenced
            if qid != question_id and qid in sibling_addresses
        }
        super().__init__(address, parent, targets=targets, timeout=timeout, seed=seed)
        self.index = index
        self.conditional = conditional

    def on_collected(self, values: dict[str, str], missing: tuple[str, ...]) -> None:
        result = evaluate_group(values, self.conditional.evaluation)
        self.tell_parent(
            GroupEvaluated(
                index=self.index,
                item=ActionsQueueItem(evaluation_result=result, actions=self.conditional.actions),
                timed_out=bool(missing),
            )
        )


# ---------------------------------------------------------------------------
# RuleEvaluator
# ---------------------------------------------------------------------------

class RuleEvaluator(Actor):
    """Evaluates one question's rules and replies ``RulesEvaluated`` to it."""

    def __init__(
        self,
        address: str,
        parent: str,
        *,
        question_id: str,
        value: str,
        conditionals: list[ConditionalAction],
        sibling_addresses: Mapping[str, str],
        timeout: float,
        evaluate_all_groups: bool = False,
    ) -> None:
        super().__init__(address, parent)
        self.question_id = question_id
        self.value = value
        self.conditionals = conditionals
        self.sibling_addresses = dict(sibling_addresses)
        self._timeout = timeout
        self._evaluate_all_groups = evaluate_all_groups
        self._question_results: list[ActionsQueueItem] = []
        self._always_results: list[ActionsQueueItem] = []
        self._group_results: dict[int, ActionsQueueItem] = {}
        self._groups_expected = 0

    def handlers(self):
        return {GroupEvaluated: self._on_group_evaluated}

    def on_start(self) -> None:
        question, groups, always = partition_conditionals(self.conditionals)
        self._question_results = evaluate_question_conditionals(self.value, question)
        self._always_results = evaluate_always_true_conditionals(always)

        if not self._evaluate_all_groups and len(groups) > 1:
            logger.debug(
                "%s: evaluating first of %d group rules", self.address, len(groups)
            )
            groups = groups[:1]
        self._groups_expected = len(groups)
        if not groups:
            self._finish()
            return
        for index, conditional in enumerate(groups):
            self.spawn(
                GroupEvaluator(
                    f"{self.address}/group:{index}",
                    self.address,
                    index=index,
                    conditional=conditional,
                    question_id=self.question_id,
                    value=self.value,
                    sibling_addresses=self.sibling_addresses,
                    timeout=self._timeout,
                )
            )

    def _on_group_evaluated(self, message: GroupEvaluated) -> None:
        if message.timed_out:
            logger.warning("%s: group rule %d evaluated with missing answers", self.address, message.index)
        self._group_results[message.index] = message.item
        if len(self._group_results) == self._groups_expected:
            self._finish()

    def _finish(self) -> None:
        groups = [self._group_results[i] for i in sorted(self._group_results)]
        results = self._question_results + groups + self._always_results
        self.reply(self.parent, RulesEvaluated(evaluator=self.address, results=results))
        self.stop()
