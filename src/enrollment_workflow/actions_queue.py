"""Step bookkeeping: the actions queue and the knockout list.

**ActionsQueue** accumulates rule results reported by a step's questions.
A step drains it by repeatedly picking the highest-priority action kind
present, applying the first action of that kind, and removing exactly that
action instance.  An item whose last action is removed disappears from the
queue, so no empty items persist.

Drain priority (first present wins):
  1. UpdateMultipleStepsVisibilityAction
  2. UpdateMultipleStepsIsRequiredAction
  3. UpdateStepVisibilityAction
  4. UpdateStepIsRequiredAction

Only these four kinds are applied by a step; other actions reported by a
question (nextStep, passWorkflow) are dropped when merged.  Disqualification
is stripped by the question before it reports.

**KnockoutList** keeps at most one entry per question id.  Flagging a
question moves it to the end (the most recently flagged question is the
active knockout reason); clearing the flag deletes the entry.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional

from enrollment_workflow.errors import MissingActionError
from enrollment_workflow.models.action import (
    Action,
    UpdateMultipleStepsIsRequiredAction,
    UpdateMultipleStepsVisibilityAction,
    UpdateStepIsRequiredAction,
    UpdateStepVisibilityAction,
)
from enrollment_workflow.models.runtime import ActionsQueueItem, Knockout

logger = logging.getLogger(__name__)

DRAIN_PRIORITY: tuple[type, ...] = (
    UpdateMultipleStepsVisibilityAction,
    UpdateMultipleStepsIsRequiredAction,
    UpdateStepVisibilityAction,
    UpdateStepIsRequiredAction,
)

SHOW = "show"
HIDE = "hide"
REQUIRED = "required"
NOT_REQUIRED = "notRequired"


# ---------------------------------------------------------------------------
# Signal computation
# ---------------------------------------------------------------------------

def visibility_signal(evaluation_result: bool, is_visible: bool) -> str:
    """SHOW when the rule result agrees with the wanted visibility, else HIDE."""
    return SHOW if evaluation_result == is_visible else HIDE


def required_signal(evaluation_result: bool, is_required: bool) -> str:
    """REQUIRED when the rule result agrees with the wanted flag, else NOT_REQUIRED."""
    return REQUIRED if evaluation_result == is_required else NOT_REQUIRED


def action_targets(action: Action) -> list[str]:
    """Child node ids addressed by a visibility/required action."""
    if isinstance(action, (UpdateMultipleStepsVisibilityAction, UpdateMultipleStepsIsRequiredAction)):
        return list(action.step_ids)
    if isinstance(action, (UpdateStepVisibilityAction, UpdateStepIsRequiredAction)):
        return [action.step_id]
    raise MissingActionError(f"{type(action).__name__} has no child targets")


def action_signal(evaluation_result: bool, action: Action) -> str:
    if isinstance(action, (UpdateStepVisibilityAction, UpdateMultipleStepsVisibilityAction)):
        return visibility_signal(evaluation_result, action.is_visible)
    if isinstance(action, (UpdateStepIsRequiredAction, UpdateMultipleStepsIsRequiredAction)):
        return required_signal(evaluation_result, action.is_required)
    raise MissingActionError(f"{type(action).__name__} carries no signal")


# ---------------------------------------------------------------------------
# ActionsQueue
# ---------------------------------------------------------------------------

class ActionsQueue:
    """Ordered rule results awaiting application by a step."""

    def __init__(self, items: Iterable[ActionsQueueItem] = ()) -> None:
        self._items: list[ActionsQueueItem] = []
        self.extend(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ActionsQueueItem]:
        return iter(self._items)

    @property
    def items(self) -> list[ActionsQueueItem]:
        return list(self._items)

    def extend(self, items: Iterable[ActionsQueueItem]) -> None:
        """Append reported items, keeping only the actions a step applies."""
        for item in items:
            kept = [a for a in item.actions if isinstance(a, DRAIN_PRIORITY)]
            dropped = len(item.actions) - len(kept)
            if dropped:
                logger.debug("dropping %d non-child action(s) from queue item", dropped)
            if kept:
                self._items.append(
                    ActionsQueueItem(evaluation_result=item.evaluation_result, actions=kept)
                )

    def next_kind(self) -> Optional[type]:
        """Highest-priority action kind present, or None when nothing is drainable."""
        for kind in DRAIN_PRIORITY:
            if self.find(kind) is not None:
                return kind
        return None

    def find(self, kind: type) -> Optional[tuple[ActionsQueueItem, Action]]:
        """First item holding an action of ``kind`` and that action."""
        for item in self._items:
            for action in item.actions:
                if isinstance(action, kind):
                    return item, action
        return None

    def take(self, kind: type) -> tuple[ActionsQueueItem, Action]:
        """Like :meth:`find`, but a missing kind is a structural error."""
        found = self.find(kind)
        if found is None:
            raise MissingActionError(f"No queued action of kind {kind.__name__}")
        return found

    def remove(self, action: Action) -> None:
        """Remove this exact action instance; drop its item if it becomes empty."""
        for index, item in enumerate(self._items):
            for position, candidate in enumerate(item.actions):
                if candidate is action:
                    del item.actions[position]
                    if not item.actions:
                        del self._items[index]
                    return
        raise MissingActionError(f"{type(action).__name__} is not queued")


# ---------------------------------------------------------------------------
# KnockoutList
# ---------------------------------------------------------------------------

class KnockoutList:
    """One entry per flagged question, most recently flagged last."""

    def __init__(self) -> None:
        self._entries: list[Knockout] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Knockout]:
        return iter(self._entries)

    @property
    def entries(self) -> list[Knockout]:
        return list(self._entries)

    @property
    def active(self) -> Optional[Knockout]:
        """The knockout that currently explains the disqualification."""
        return self._entries[-1] if self._entries else None

    def update(self, knockout: Knockout) -> None:
        self._entries = [k for k in self._entries if k.question_id != knockout.question_id]
        if knockout.is_knockout:
            self._entries.append(knockout)
