"""WorkflowSession — async facade over the actor system for one application.

This is the main entry point for callers.  It owns the ActorSystem, spawns
the orchestrator and turns method calls into messages, waiting for the
system to settle before returning:

    async with WorkflowSession(gateway=api, fetcher=api) as session:
        await session.load("APP-123")
        await session.answer("S1", "q1-node", "yes")
        await session.submit("S1")
        session.snapshot().current_step_id

Structural errors raised by any actor surface from these awaits.  Loading
failures are published on the status channel and re-raised.
"""

from __future__ import annotations

import logging
from typing import Optional

from enrollment_workflow.cache import QueryCache
from enrollment_workflow.config import WorkflowSettings, load_settings
from enrollment_workflow.constants import (
    APPLICATION_CACHE_KEY,
    LOADING_ENROLLMENT_MESSAGE,
    WORKFLOW_CACHE_KEY,
)
from enrollment_workflow.errors import WorkflowError, WorkflowNotLoadedError, describe_error
from enrollment_workflow.interfaces import DataSourceFetcher, WorkflowGateway
from enrollment_workflow.messages import (
    Back,
    EvaluateRules,
    GoToStep,
    ReceiveWorkflowData,
    RefetchWorkflow,
    Retry,
    Submit,
    UpdateValue,
)
from enrollment_workflow.models.runtime import QuestionDetails, WorkflowSnapshot
from enrollment_workflow.models.workflow import Application, Workflow
from enrollment_workflow.question import QuestionActor
from enrollment_workflow.runtime import ActorSystem
from enrollment_workflow.services import WorkflowServices
from enrollment_workflow.status import StatusChannel
from enrollment_workflow.step import StepActor
from enrollment_workflow.workflow import WAITING_FOR_DATA, WorkflowOrchestrator

logger = logging.getLogger(__name__)


class WorkflowSession:
    """Drives one workflow session end to end."""

    def __init__(
        self,
        gateway: Optional[WorkflowGateway] = None,
        *,
        fetcher: Optional[DataSourceFetcher] = None,
        settings: Optional[WorkflowSettings] = None,
        cache: Optional[QueryCache] = None,
        status: Optional[StatusChannel] = None,
    ) -> None:
        settings = settings or load_settings()
        self.services = WorkflowServices(
            settings=settings,
            gateway=gateway,
            fetcher=fetcher,
            cache=cache or QueryCache(),
        )
        self.status = status or StatusChannel(settings.status_reset_seconds)
        self.system: Optional[ActorSystem] = None
        self.orchestrator: Optional[WorkflowOrchestrator] = None
        self.application_key: Optional[str] = None

    async def __aenter__(self) -> WorkflowSession:
        await self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self.system is not None:
            return
        self.system = ActorSystem()
        self.orchestrator = WorkflowOrchestrator(self.services, status=self.status)
        self.system.spawn(self.orchestrator)
        await self.system.settle()

    async def close(self) -> None:
        if self.system is not None:
            await self.system.shutdown()
        self.status.close()
        self.system = None
        self.orchestrator = None

    async def settle(self, timeout: Optional[float] = None) -> None:
        await self._require_system().settle(timeout)

    def _require_system(self) -> ActorSystem:
        if self.system is None:
            raise WorkflowError("Session is not started; use 'async with' or call start()")
        return self.system

    def _require_unloaded(self) -> None:
        if self.orchestrator is not None and self.orchestrator.state != WAITING_FOR_DATA:
            raise WorkflowError("A workflow is already loaded; use refetch() to reload it")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self, application_key: str) -> WorkflowSnapshot:
        """Fetch the application and its workflow, then spawn the steps."""
        gateway = self.services.gateway
        if gateway is None:
            raise WorkflowError("Loading by application key needs a workflow gateway")
        self._require_unloaded()
        cache = self.services.cache
        self.application_key = application_key
        self.status.publish_loading(LOADING_ENROLLMENT_MESSAGE)
        try:
            application: Application = await cache.fetch(
                (APPLICATION_CACHE_KEY, application_key),
                lambda: gateway.fetch_application(application_key),
            )
            workflow: Workflow = await cache.fetch(
                (WORKFLOW_CACHE_KEY, application.workflow_id, application_key),
                lambda: gateway.fetch_workflow(application.workflow_id, application_key),
            )
        except Exception as exc:
            logger.warning("loading application %s failed: %s", application_key, exc)
            self.status.clear_loading()
            self.status.publish_error(describe_error(exc))
            raise
        return await self.load_workflow(workflow, application)

    async def load_workflow(
        self, workflow: Workflow, application: Optional[Application] = None
    ) -> WorkflowSnapshot:
        """Hand already-fetched workflow data to the orchestrator."""
        await self.start()
        self._require_unloaded()
        if application is not None:
            self.application_key = application.application_key
        self._require_system().send(
            self.orchestrator.address, ReceiveWorkflowData(workflow=workflow, application=application)
        )
        await self.settle()
        return self.snapshot()

    async def refetch(self) -> Optional[WorkflowSnapshot]:
        """Forget cached data, tear the steps down and load again."""
        system = self._require_system()
        cache = self.services.cache
        if self.application_key is not None:
            cache.invalidate((APPLICATION_CACHE_KEY, self.application_key))
            application = self.orchestrator.application
            if application is not None:
                cache.invalidate(
                    (WORKFLOW_CACHE_KEY, application.workflow_id, self.application_key)
                )
        system.send(self.orchestrator.address, RefetchWorkflow())
        await self.settle()
        if self.application_key is None or self.services.gateway is None:
            return None
        return await self.load(self.application_key)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def step(self, step_id: str) -> StepActor:
        if self.orchestrator is None or not self.orchestrator.step_addresses:
            raise WorkflowNotLoadedError("No workflow data has been received")
        return self._require_system().get(self.orchestrator.step_address(step_id))

    def question(self, step_id: str, node_id: str) -> QuestionActor:
        step = self.step(step_id)
        return self._require_system().get(step.child_address(node_id))

    @property
    def current_step_id(self) -> Optional[str]:
        return self.orchestrator.current_step_id if self.orchestrator else None

    def snapshot(self) -> WorkflowSnapshot:
        if self.orchestrator is None:
            raise WorkflowError("Session is not started")
        return self.orchestrator.snapshot()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def answer(self, step_id: str, node_id: str, value: str, *, evaluate: bool = True) -> None:
        """Set a question's value and, by default, run its rules."""
        question = self.question(step_id, node_id)
        system = self._require_system()
        system.send(question.address, UpdateValue(value=value))
        if evaluate:
            system.send(question.address, EvaluateRules())
        await self.settle()

    async def evaluate(self, step_id: str, node_id: str) -> None:
        question = self.question(step_id, node_id)
        self._require_system().send(question.address, EvaluateRules())
        await self.settle()

    async def submit(
        self,
        step_id: str,
        values: Optional[dict[str, str]] = None,
        step_summary: Optional[list[QuestionDetails]] = None,
    ) -> None:
        step = self.step(step_id)
        self._require_system().send(
            step.address, Submit(values=values, step_summary=list(step_summary or []))
        )
        await self.settle()

    async def retry(self, step_id: str) -> None:
        self._require_system().send(self.step(step_id).address, Retry())
        await self.settle()

    async def back(self, step_id: str) -> None:
        self._require_system().send(self.step(step_id).address, Back())
        await self.settle()

    async def go_to_step(self, step_id: str) -> None:
        self._require_system().send(self.orchestrator.address, GoToStep(step_id=step_id))
        await self.settle()
