"""WorkflowOrchestrator tests: loading, navigation, refetch and status."""

import pytest

from enrollment_workflow.constants import ENROLLMENT_LOADED_MESSAGE
from enrollment_workflow.errors import MissingActorError, WorkflowError
from enrollment_workflow.messages import (
    GoToStep,
    ReceiveStepSummary,
    ReceiveWorkflowData,
    RefetchWorkflow,
    StatusUpdate,
    StepCancelled,
)
from enrollment_workflow.models import Application, QuestionDetails
from enrollment_workflow.step import StepActor
from enrollment_workflow.workflow import DATA_LOADED, WAITING_FOR_DATA, WorkflowOrchestrator

from helpers.builders import page, question, workflow


def _two_pages():
    return workflow(
        page("S1", question("n1", "q1"), next_step_id="S2"),
        page("S2", question("n2", "q2"), passes=True),
    )


async def _load(system, services, wf=None, application=None) -> WorkflowOrchestrator:
    orchestrator = WorkflowOrchestrator(services)
    system.spawn(orchestrator)
    system.send(orchestrator.address, ReceiveWorkflowData(workflow=wf or _two_pages(), application=application))
    await system.settle()
    return orchestrator


class TestLoading:

    @pytest.mark.asyncio
    async def test_steps_spawned_and_first_step_current(self, system, services):
        orchestrator = await _load(system, services)
        assert orchestrator.state == DATA_LOADED
        assert orchestrator.current_step_id == "S1"
        assert orchestrator.step_addresses == {"S1": "workflow/step:S1", "S2": "workflow/step:S2"}
        assert isinstance(system.get("workflow/step:S2"), StepActor)
        assert "workflow/step:S1/question:n1" in system

    @pytest.mark.asyncio
    async def test_success_status_published(self, system, services):
        orchestrator = await _load(system, services)
        assert orchestrator.status.success_message == ENROLLMENT_LOADED_MESSAGE

    @pytest.mark.asyncio
    async def test_application_fields_reach_steps(self, system, services):
        application = Application(application_key="APP-7", workflow_id="wf-test", confirmation_id="C-1")
        await _load(system, services, application=application)
        step = system.get("workflow/step:S2")
        assert step.application_key == "APP-7"
        assert step.application_submitted is True

    @pytest.mark.asyncio
    async def test_missing_first_step_raises(self, system, services):
        wf = workflow(page("S1"), first_step_id="nope")
        orchestrator = WorkflowOrchestrator(services)
        system.spawn(orchestrator)
        system.send(orchestrator.address, ReceiveWorkflowData(workflow=wf))
        with pytest.raises(WorkflowError, match="nope"):
            await system.settle()
        assert orchestrator.state == WAITING_FOR_DATA

    @pytest.mark.asyncio
    async def test_second_workflow_ignored_while_loaded(self, system, services):
        orchestrator = await _load(system, services)
        system.send(orchestrator.address, ReceiveWorkflowData(workflow=workflow(page("Other"))))
        await system.settle()
        assert list(orchestrator.step_addresses) == ["S1", "S2"]


class TestNavigation:

    @pytest.mark.asyncio
    async def test_go_to_step(self, system, services):
        orchestrator = await _load(system, services)
        system.send(orchestrator.address, GoToStep(step_id="S2"))
        await system.settle()
        assert orchestrator.current_step_id == "S2"

    @pytest.mark.asyncio
    async def test_empty_step_id_keeps_current(self, system, services):
        orchestrator = await _load(system, services)
        system.send(orchestrator.address, GoToStep(step_id=""))
        await system.settle()
        assert orchestrator.current_step_id == "S1"

    @pytest.mark.asyncio
    async def test_unknown_step_raises(self, system, services):
        orchestrator = await _load(system, services)
        system.send(orchestrator.address, GoToStep(step_id="S9"))
        with pytest.raises(MissingActorError):
            await system.settle()

    @pytest.mark.asyncio
    async def test_step_summary_stored(self, system, services):
        orchestrator = await _load(system, services)
        summary = [QuestionDetails(question_id="q1", question="Q", answer="yes")]
        system.send(orchestrator.address, ReceiveStepSummary(step_id="S1", step_summary=summary))
        await system.settle()
        assert orchestrator.summaries == {"S1": summary}
        assert orchestrator.snapshot().summaries["S1"] == summary


class TestRefetchAndStatus:

    @pytest.mark.asyncio
    async def test_refetch_tears_steps_down(self, system, services):
        orchestrator = await _load(system, services)
        system.send(orchestrator.address, RefetchWorkflow())
        await system.settle()
        assert orchestrator.state == WAITING_FOR_DATA
        assert orchestrator.current_step_id is None
        assert system.addresses == ["workflow"]

        system.send(orchestrator.address, ReceiveWorkflowData(workflow=_two_pages()))
        await system.settle()
        assert orchestrator.state == DATA_LOADED

    @pytest.mark.asyncio
    async def test_status_updates_are_published(self, system, services):
        orchestrator = await _load(system, services)
        system.send(orchestrator.address, StatusUpdate(kind="error", message="Network down"))
        await system.settle()
        assert orchestrator.status.error_message == "Network down"

    @pytest.mark.asyncio
    async def test_step_cancelled_records_knockout(self, system, services):
        orchestrator = await _load(system, services)
        system.send(orchestrator.address, StepCancelled(step_id="S1", message="Not eligible"))
        await system.settle()
        snapshot = orchestrator.snapshot()
        assert snapshot.knockout_message == "Not eligible"
        assert orchestrator.cancelled_step_id == "S1"
        assert orchestrator.status.error_message == "Not eligible"
