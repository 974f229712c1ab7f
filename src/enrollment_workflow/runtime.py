"""Actor runtime — mailboxes, address routing and quiescence on asyncio.

Every actor owns an ``asyncio.Queue`` mailbox drained by a single task, so an
actor processes one message to completion before the next and never shares
mutable state with another actor.  Actors find each other through the
:class:`ActorSystem` address table; parents and siblings are referenced by
address, never by object.

Addresses are hierarchical (``step:S1/question:N1/evaluator:1``).  Stopping
an address also stops every actor registered below it.

Handlers are synchronous.  Anything that waits (HTTP calls, timers) runs
outside the mailbox and posts its outcome back as a message:

    self.run_task(gateway.submit(...),
                  on_success=lambda result: Submitted(result),
                  on_error=lambda exc: Failed(str(exc)))

The system counts outstanding work (queued messages, running background
tasks, armed timers).  :meth:`ActorSystem.settle` waits until that count is
zero and re-raises the first exception a handler raised, so structural
errors are never swallowed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from enrollment_workflow.errors import DuplicateActorError, MissingActorError
from enrollment_workflow.messages import Started

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class Actor:
    """Base class for all actors.

    Subclasses implement :meth:`handlers` (message class → bound method) and
    may override :meth:`on_start` / :meth:`on_stop`.  Messages of a class
    without a handler are dropped with a debug log, the same way a state
    machine ignores events its current state does not accept.
    """

    def __init__(self, address: str, parent: Optional[str] = None) -> None:
        self.address = address
        self.parent = parent
        self._system: Optional[ActorSystem] = None
        self._mailbox: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._stopped = False
        self._dispatch: dict[type, Handler] = {}

    # ------------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------------

    def handlers(self) -> dict[type, Handler]:
        return {}

    def on_start(self) -> None:
        """Runs as the first message in the actor's mailbox."""

    def on_stop(self) -> None:
        """Runs once when the actor is removed from the system."""

    @property
    def system(self) -> ActorSystem:
        if self._system is None:
            raise RuntimeError(f"Actor {self.address!r} is not attached to a system")
        return self._system

    @property
    def stopped(self) -> bool:
        return self._stopped

    def _handle(self, message: Any) -> None:
        if isinstance(message, Started):
            self._dispatch = self.handlers()
            self.on_start()
            return
        handler = self._dispatch.get(type(message))
        if handler is None:
            logger.debug("%s ignored %s", self.address, type(message).__name__)
            return
        handler(message)

    # ------------------------------------------------------------------
    # Messaging helpers
    # ------------------------------------------------------------------

    def send(self, to: str, message: Any) -> None:
        """Deliver to a registered actor; a missing address is fatal."""
        self.system.send(to, message)

    def reply(self, to: str, message: Any) -> None:
        """Deliver to a possibly finished ephemeral actor (dead-letter if gone)."""
        self.system.send(to, message, strict=False)

    def tell_parent(self, message: Any) -> None:
        if self.parent is None:
            raise MissingActorError(f"{self.address}/..")
        self.system.send(self.parent, message)

    def spawn(self, actor: Actor) -> str:
        return self.system.spawn(actor)

    def stop(self) -> None:
        self.system.stop(self.address)

    def run_task(
        self,
        coro: Awaitable[Any],
        *,
        on_success: Callable[[Any], Any],
        on_error: Callable[[Exception], Any],
    ) -> asyncio.Task:
        return self.system.run_task(self.address, coro, on_success=on_success, on_error=on_error)

    def schedule(self, delay: float, message: Any) -> asyncio.TimerHandle:
        return self.system.schedule(self.address, delay, message)


class ActorSystem:
    """Address table, mailbox loops and outstanding-work accounting."""

    def __init__(self) -> None:
        self._actors: dict[str, Actor] = {}
        self._pending = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._failure: Optional[BaseException] = None
        self._timers: dict[asyncio.TimerHandle, str] = {}
        self._tasks: dict[asyncio.Future, str] = {}

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def spawn(self, actor: Actor) -> str:
        """Register an actor and start its mailbox loop."""
        if actor.address in self._actors:
            raise DuplicateActorError(actor.address)
        actor._system = self
        self._actors[actor.address] = actor
        actor._task = asyncio.get_running_loop().create_task(
            self._run(actor), name=f"actor:{actor.address}"
        )
        self._enqueue(actor, Started())
        logger.debug("spawned %s", actor.address)
        return actor.address

    def get(self, address: str) -> Actor:
        actor = self._actors.get(address)
        if actor is None:
            raise MissingActorError(address)
        return actor

    def find(self, address: str) -> Optional[Actor]:
        return self._actors.get(address)

    def __contains__(self, address: str) -> bool:
        return address in self._actors

    @property
    def addresses(self) -> list[str]:
        return list(self._actors)

    def stop(self, address: str) -> None:
        """Remove an actor and all actors below it; pending mail is discarded."""
        prefix = address + "/"
        doomed = [a for a in self._actors if a == address or a.startswith(prefix)]
        # Deepest first so children stop before their parents
        for addr in sorted(doomed, key=len, reverse=True):
            actor = self._actors.pop(addr)
            actor._stopped = True
            self._cancel_timers(addr)
            self._cancel_tasks(addr)
            self._drain(actor._mailbox)
            try:
                actor.on_stop()
            finally:
                if actor._task is not None and actor._task is not asyncio.current_task():
                    actor._task.cancel()
            logger.debug("stopped %s", addr)

    def _drain(self, mailbox: asyncio.Queue) -> None:
        while not mailbox.empty():
            mailbox.get_nowait()
            self._complete()

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def send(self, to: str, message: Any, *, strict: bool = True) -> None:
        actor = self._actors.get(to)
        if actor is None:
            if strict:
                raise MissingActorError(to)
            logger.debug("dead letter to %s: %s", to, type(message).__name__)
            return
        self._enqueue(actor, message)

    def _enqueue(self, actor: Actor, message: Any) -> None:
        self._add_pending()
        actor._mailbox.put_nowait(message)

    async def _run(self, actor: Actor) -> None:
        mailbox = actor._mailbox
        try:
            while not actor._stopped:
                message = await mailbox.get()
                try:
                    actor._handle(message)
                except Exception as exc:
                    logger.exception("actor %s crashed on %s", actor.address, type(message).__name__)
                    self._record_failure(exc)
                finally:
                    self._complete()
        finally:
            # Mail left behind by a stopped actor will never be processed
            self._drain(mailbox)

    # ------------------------------------------------------------------
    # Background work
    # ------------------------------------------------------------------

    def run_task(
        self,
        owner: str,
        coro: Awaitable[Any],
        *,
        on_success: Callable[[Any], Any],
        on_error: Callable[[Exception], Any],
    ) -> asyncio.Task:
        """Run ``coro`` outside the owner's mailbox and post its outcome back.

        The task is cancelled if the owner stops before it finishes.
        """
        self._add_pending()
        task = asyncio.ensure_future(coro)
        self._tasks[task] = owner

        def _done(t: asyncio.Task) -> None:
            self._tasks.pop(t, None)
            try:
                if t.cancelled():
                    return
                exc = t.exception()
                if exc is None:
                    message = on_success(t.result())
                elif isinstance(exc, Exception):
                    message = on_error(exc)
                else:
                    raise exc
                self.send(owner, message, strict=False)
            except Exception as exc:
                logger.exception("completion handler for %s failed", owner)
                self._record_failure(exc)
            finally:
                self._complete()

        task.add_done_callback(_done)
        return task

    def schedule(self, owner: str, delay: float, message: Any) -> asyncio.TimerHandle:
        """Post ``message`` to ``owner`` after ``delay`` seconds."""
        self._add_pending()
        handle: asyncio.TimerHandle

        def _fire() -> None:
            if self._timers.pop(handle, None) is None:
                return
            try:
                self.send(owner, message, strict=False)
            finally:
                self._complete()

        handle = asyncio.get_running_loop().call_later(delay, _fire)
        self._timers[handle] = owner
        return handle

    def cancel_timer(self, handle: asyncio.TimerHandle) -> None:
        if self._timers.pop(handle, None) is not None:
            handle.cancel()
            self._complete()

    def _cancel_timers(self, owner: str) -> None:
        for handle in [h for h, o in self._timers.items() if o == owner]:
            self.cancel_timer(handle)

    def _cancel_tasks(self, owner: str) -> None:
        for task in [t for t, o in self._tasks.items() if o == owner]:
            task.cancel()

    # ------------------------------------------------------------------
    # Quiescence
    # ------------------------------------------------------------------

    def _add_pending(self) -> None:
        self._pending += 1
        self._idle.clear()

    def _complete(self) -> None:
        self._pending -= 1
        if self._pending <= 0:
            self._pending = 0
            self._idle.set()

    def _record_failure(self, exc: BaseException) -> None:
        if self._failure is None:
            self._failure = exc
        self._idle.set()

    @property
    def is_idle(self) -> bool:
        return self._pending == 0

    async def settle(self, timeout: Optional[float] = None) -> None:
        """Wait until no message, task or timer is outstanding.

        Raises the first exception raised by an actor handler since the last
        call, so structural errors surface to the caller.
        """
        await asyncio.wait_for(self._wait_idle(), timeout)
        if self._failure is not None:
            failure, self._failure = self._failure, None
            raise failure

    async def _wait_idle(self) -> None:
        while True:
            await self._idle.wait()
            if self._pending == 0 or self._failure is not None:
                return
            self._idle.clear()

    async def shutdown(self) -> None:
        """Stop every actor and cancel armed timers."""
        for address in sorted(self._actors, key=len):
            if address in self._actors:
                self.stop(address)
        await asyncio.sleep(0)
