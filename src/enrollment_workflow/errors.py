"""Exception hierarchy for the workflow runtime.

Errors fall in three groups:

  - Local data-source failures are absorbed by the question actor and never
    surface here.
  - Submission failures become a named error state on the step (see
    ``StepActor.submit_error``); they are not raised.
  - Structural violations (a missing actor address, an action variant a
    queue item was expected to hold, an unsupported comparison) are raised
    as the exceptions below and propagate out of ``ActorSystem.settle()``.
"""


class WorkflowError(Exception):
    """Base class for all workflow runtime errors."""


class MissingActorError(WorkflowError, LookupError):
    """A message was addressed to an actor that is not registered."""

    def __init__(self, address: str) -> None:
        super().__init__(f"No actor registered at address {address!r}")
        self.address = address


class DuplicateActorError(WorkflowError):
    """An actor was spawned at an address that is already taken."""

    def __init__(self, address: str) -> None:
        super().__init__(f"An actor is already registered at address {address!r}")
        self.address = address


class MissingActionError(WorkflowError):
    """A queue item expected to contain an action of some kind does not."""


class UnsupportedComparisonError(WorkflowError, ValueError):
    """A comparison type/operator combination cannot be evaluated."""


class WorkflowNotLoadedError(WorkflowError):
    """An operation needs workflow data that has not been received yet."""


def describe_error(exc: BaseException) -> str:
    """Message suitable for a user-facing error state."""
    return str(exc) or type(exc).__name__
