"""ValueCollector — the "ask" barrier on top of fire-and-forget messaging.

A collector is an ephemeral actor.  On start it sends a ``RequestValue`` to
every target question, then fills one slot per ``ValueReply``.  When every
target has replied, or the timeout fires first, it hands the collected map
to :meth:`ValueCollector.on_collected` and stops itself.  A reply that
arrives after that is dead-lettered by the runtime.

Two specializations exist:

  - ``GroupEvaluator`` (in :mod:`enrollment_workflow.evaluator`) collects
    the answers a group rule references and evaluates the group
  - :class:`FormSyncCollector` collects every answer of a step and returns
    the map to the step, which adopts it as its authoritative values
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

from enrollment_workflow.messages import CollectTimeout, RequestValue, ValueReply, ValuesCollected
from enrollment_workflow.runtime import Actor

logger = logging.getLogger(__name__)


class ValueCollector(Actor):
    """Scatter a value request to ``targets`` and gather the replies.

    Args:
        address: the collector's own address
        parent: address of the actor that spawned it
        targets: question_id → address of every question to ask
        timeout: seconds to wait for all replies (0 waits forever)
        seed: initial slot values; slots not listed start as ""
    """

    def __init__(
        self,
        address: str,
        parent: str,
        *,
        targets: Mapping[str, str],
        timeout: float,
        seed: Optional[Mapping[str, str]] = None,
    ) -> None:
        super().__init__(address, parent)
        self.targets = dict(targets)
        self.values: dict[str, str] = {qid: "" for qid in self.targets}
        self.values.update(seed or {})
        self.pending: set[str] = set(self.targets)
        self._timeout = timeout
        self._timer: Optional[asyncio.TimerHandle] = None

    def handlers(self):
        return {ValueReply: self._on_reply, CollectTimeout: self._on_timeout}

    def on_start(self) -> None:
        if not self.pending:
            self._finish()
            return
        for address in self.targets.values():
            self.send(address, RequestValue(reply_to=self.address))
        if self._timeout > 0:
            self._timer = self.schedule(self._timeout, CollectTimeout())

    @property
    def responses_needed(self) -> int:
        return len(self.pending)

    def _on_reply(self, message: ValueReply) -> None:
        if message.question_id not in self.pending:
            logger.debug("%s: unexpected reply from %s", self.address, message.question_id)
            return
        self.values[message.question_id] = message.value
        self.pending.discard(message.question_id)
        if not self.pending:
            self._finish()

    def _on_timeout(self, message: CollectTimeout) -> None:
        logger.warning(
            "%s timed out after %.2fs waiting for %s",
            self.address,
            self._timeout,
            sorted(self.pending),
        )
        self._timer = None
        self._finish()

    def _finish(self) -> None:
        if self._timer is not None:
            self.system.cancel_timer(self._timer)
            self._timer = None
        missing = tuple(qid for qid in self.targets if qid in self.pending)
        self.on_collected(dict(self.values), missing)
        self.stop()

    def on_collected(self, values: dict[str, str], missing: tuple[str, ...]) -> None:
        raise NotImplementedError


class FormSyncCollector(ValueCollector):
    """Collects every answer of a step and reports the map to the step."""

    def on_collected(self, values: dict[str, str], missing: tuple[str, ...]) -> None:
        self.tell_parent(ValuesCollected(collector=self.address, values=values, missing=missing))
