"""StatusChannel — pub/sub broadcast of global loading/success/error messages.

The orchestrator owns one channel and publishes to it; UI layers and tests
subscribe.  The channel keeps the latest message of each kind so late
observers can read the current state:

    channel = StatusChannel()
    unsubscribe = channel.subscribe(lambda event: print(event.kind, event.message))
    channel.publish_loading("Loading Enrollment")
    channel.loading_message  # "Loading Enrollment"

Success and error messages clear themselves after ``reset_seconds`` when an
event loop is running (0 disables the reset).
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Literal, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

StatusKind = Literal["loading", "success", "error"]


class StatusEvent(BaseModel):
    """One published status change; ``message`` None means cleared."""

    kind: StatusKind
    message: Optional[str] = None
    published_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


Subscriber = Callable[[StatusEvent], None]


class StatusChannel:
    """Broadcasts status events and remembers the current message per kind."""

    def __init__(self, reset_seconds: float = 0) -> None:
        self._reset_seconds = reset_seconds
        self._subscribers: list[Subscriber] = []
        self._current: dict[str, Optional[str]] = {"loading": None, "success": None, "error": None}
        self._resets: dict[str, asyncio.TimerHandle] = {}
        self.history: list[StatusEvent] = []

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        self._subscribers.append(subscriber)

        def _unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def publish(self, kind: StatusKind, message: Optional[str]) -> StatusEvent:
        event = StatusEvent(kind=kind, message=message)
        self._current[kind] = message
        self.history.append(event)
        logger.debug("status %s: %s", kind, message)
        for subscriber in list(self._subscribers):
            subscriber(event)
        if message is not None and kind != "loading":
            self._arm_reset(kind)
        return event

    def publish_loading(self, message: Optional[str]) -> StatusEvent:
        return self.publish("loading", message)

    def publish_success(self, message: str) -> StatusEvent:
        return self.publish("success", message)

    def publish_error(self, message: str) -> StatusEvent:
        return self.publish("error", message)

    def clear_loading(self) -> None:
        if self._current["loading"] is not None:
            self.publish("loading", None)

    def _arm_reset(self, kind: str) -> None:
        if self._reset_seconds <= 0:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        previous = self._resets.pop(kind, None)
        if previous is not None:
            previous.cancel()
        self._resets[kind] = loop.call_later(self._reset_seconds, self._reset, kind)

    def _reset(self, kind: str) -> None:
        self._resets.pop(kind, None)
        if self._current[kind] is not None:
            self.publish(kind, None)  # type: ignore[arg-type]

    def close(self) -> None:
        for handle in self._resets.values():
            handle.cancel()
        self._resets.clear()
        self._subscribers.clear()

    # ------------------------------------------------------------------
    # Current state
    # ------------------------------------------------------------------

    @property
    def loading_message(self) -> Optional[str]:
        return self._current["loading"]

    @property
    def success_message(self) -> Optional[str]:
        return self._current["success"]

    @property
    def error_message(self) -> Optional[str]:
        return self._current["error"]
