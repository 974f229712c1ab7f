"""WorkflowSession tests against the sample workflow in ``workflows/``.

The gateway and fetcher are in-memory fakes; every call goes through the real
actor system, so these double as end-to-end walkthroughs of the sample.
"""

import pytest

from enrollment_api.errors import NotFoundError
from enrollment_workflow.cache import QueryCache
from enrollment_workflow.constants import (
    APPLICATION_SUBMITTED_MESSAGE,
    ENROLLMENT_LOADED_MESSAGE,
    LOADING_ENROLLMENT_MESSAGE,
)
from enrollment_workflow.errors import WorkflowError, WorkflowNotLoadedError
from enrollment_workflow.session import WorkflowSession
from enrollment_workflow.status import StatusChannel

from helpers.fakes import FakeFetcher, FakeGateway

APPLICATION_KEY = "APP-100"


def _session(gateway, settings, fetcher=None) -> WorkflowSession:
    return WorkflowSession(
        gateway,
        fetcher=fetcher or FakeFetcher(),
        settings=settings,
        cache=QueryCache(),
        status=StatusChannel(),
    )


async def _complete_eligibility(session):
    await session.answer("eligibility", "has-medicare-node", "yes")
    await session.answer("eligibility", "medicare-number-node", "1EG4TE5MK72")
    await session.answer("eligibility", "esrd-node", "no")
    await session.submit("eligibility")


# =====================================================================
# Loading
# =====================================================================


class TestLoading:

    @pytest.mark.asyncio
    async def test_load_spawns_workflow(self, sample_workflow, settings):
        gateway = FakeGateway(sample_workflow)
        async with _session(gateway, settings) as session:
            snapshot = await session.load(APPLICATION_KEY)

            assert snapshot.workflow_id == "wf-sample-enrollment"
            assert snapshot.step_ids == ["eligibility", "contact", "review"]
            assert session.current_step_id == "eligibility"
            gateway.fetch_application.assert_awaited_once_with(APPLICATION_KEY)
            gateway.fetch_workflow.assert_awaited_once_with("wf-sample-enrollment", APPLICATION_KEY)

    @pytest.mark.asyncio
    async def test_status_messages_during_load(self, sample_workflow, settings):
        gateway = FakeGateway(sample_workflow)
        async with _session(gateway, settings) as session:
            events = []
            session.status.subscribe(events.append)
            await session.load(APPLICATION_KEY)

            assert [(e.kind, e.message) for e in events] == [
                ("loading", LOADING_ENROLLMENT_MESSAGE),
                ("loading", None),
                ("success", ENROLLMENT_LOADED_MESSAGE),
            ]

    @pytest.mark.asyncio
    async def test_load_failure_is_published_and_raised(self, sample_workflow, settings):
        gateway = FakeGateway(sample_workflow)
        gateway.fetch_application.side_effect = NotFoundError("Application not found", 404)
        async with _session(gateway, settings) as session:
            with pytest.raises(NotFoundError):
                await session.load(APPLICATION_KEY)
            assert session.status.error_message == "Application not found"
            assert session.status.loading_message is None

    @pytest.mark.asyncio
    async def test_load_without_gateway_raises(self, settings):
        async with WorkflowSession(settings=settings) as session:
            with pytest.raises(WorkflowError):
                await session.load(APPLICATION_KEY)

    @pytest.mark.asyncio
    async def test_step_lookup_before_load_raises(self, settings):
        async with WorkflowSession(settings=settings) as session:
            with pytest.raises(WorkflowNotLoadedError):
                session.step("eligibility")

    @pytest.mark.asyncio
    async def test_refetch_goes_back_to_gateway(self, sample_workflow, settings):
        gateway = FakeGateway(sample_workflow)
        async with _session(gateway, settings) as session:
            await session.load(APPLICATION_KEY)
            await session.answer("eligibility", "has-medicare-node", "yes")

            snapshot = await session.refetch()
            assert gateway.fetch_application.await_count == 2
            assert gateway.fetch_workflow.await_count == 2
            assert snapshot.current_step_id == "eligibility"
            # Fresh actors: the earlier answer is gone
            assert session.question("eligibility", "has-medicare-node").value == ""

    @pytest.mark.asyncio
    async def test_second_load_is_rejected(self, sample_workflow, settings):
        gateway = FakeGateway(sample_workflow)
        async with _session(gateway, settings) as session:
            await session.load(APPLICATION_KEY)

            with pytest.raises(WorkflowError, match="already loaded"):
                await session.load("APP-OTHER")
            with pytest.raises(WorkflowError, match="already loaded"):
                await session.load_workflow(sample_workflow)

            assert session.application_key == APPLICATION_KEY, "a rejected load must keep the loaded key"
            gateway.fetch_application.assert_awaited_once_with(APPLICATION_KEY)

            await session.refetch()
            assert gateway.fetch_application.await_args_list[-1].args == (APPLICATION_KEY,)


# =====================================================================
# Walkthrough of the sample workflow
# =====================================================================


class TestSampleWalkthrough:

    @pytest.mark.asyncio
    async def test_group_rule_shows_medicare_number(self, sample_workflow, settings):
        async with _session(FakeGateway(sample_workflow), settings) as session:
            await session.load(APPLICATION_KEY)
            assert not session.question("eligibility", "medicare-number-node").is_visible

            await session.answer("eligibility", "has-medicare-node", "yes")
            assert session.question("eligibility", "medicare-number-node").is_visible

            await session.answer("eligibility", "has-medicare-node", "no")
            assert not session.question("eligibility", "medicare-number-node").is_visible

    @pytest.mark.asyncio
    async def test_contact_page_prefetches_counties(self, sample_workflow, settings):
        fetcher = FakeFetcher()
        async with _session(FakeGateway(sample_workflow), settings, fetcher) as session:
            await session.load(APPLICATION_KEY)
            county = session.question("contact", "county-node")
            assert [o.value for o in county.options] == ["12086", "12011"]
            assert fetcher.requested_values == ["FL"]

    @pytest.mark.asyncio
    async def test_full_walkthrough_submits_application(self, sample_workflow, settings):
        gateway = FakeGateway(sample_workflow)
        async with _session(gateway, settings) as session:
            await session.load(APPLICATION_KEY)

            await _complete_eligibility(session)
            assert session.current_step_id == "contact"

            await session.answer("contact", "state-node", "TX")
            await session.answer("contact", "county-node", "48201")
            await session.answer("contact", "wants-texts-node", "yes")
            assert session.question("contact", "mobile-node").is_required
            await session.answer("contact", "mobile-node", "555-0100")
            await session.submit("contact")
            assert session.current_step_id == "review"

            await session.submit("review")
            gateway.submit_application.assert_awaited_once_with(APPLICATION_KEY)
            assert session.step("review").confirmation_id == "CONF-001"
            assert session.status.success_message == APPLICATION_SUBMITTED_MESSAGE

            assert len(gateway.saved) == 2
            contact = {r.question_id: r for r in gateway.saved[1].question_step_responses}
            assert contact["state"].response_value == "TX"
            assert contact["state"].response_source == 1, "Changed pre-populated answer is agent-entered"
            assert contact["county"].response_value == "48201"

            snapshot = session.snapshot()
            assert set(snapshot.summaries) == {"eligibility", "contact", "review"}

    @pytest.mark.asyncio
    async def test_knockout_cancels_step(self, sample_workflow, settings):
        gateway = FakeGateway(sample_workflow)
        async with _session(gateway, settings) as session:
            await session.load(APPLICATION_KEY)
            await session.answer("eligibility", "has-medicare-node", "yes")
            await session.answer("eligibility", "esrd-node", "yes")
            await session.submit("eligibility")

            assert session.step("eligibility").is_cancelled
            assert session.snapshot().knockout_message == "Applicants with ESRD cannot enroll in this plan."
            assert session.current_step_id == "eligibility"
            assert len(gateway.saved) == 1, "Knocked-out answers are still saved"

    @pytest.mark.asyncio
    async def test_failed_save_then_retry(self, sample_workflow, settings):
        gateway = FakeGateway(sample_workflow)
        gateway.send_workflow_responses.side_effect = [RuntimeError("Network down"), None]
        async with _session(gateway, settings) as session:
            await session.load(APPLICATION_KEY)
            await _complete_eligibility(session)
            assert session.step("eligibility").submit_error == "Network down"
            assert session.status.error_message == "Network down"
            assert session.current_step_id == "eligibility"

            await session.retry("eligibility")
            assert session.current_step_id == "contact"

    @pytest.mark.asyncio
    async def test_back_then_go_to_step(self, sample_workflow, settings):
        gateway = FakeGateway(sample_workflow)
        gateway.send_workflow_responses.side_effect = RuntimeError("Network down")
        async with _session(gateway, settings) as session:
            await session.load(APPLICATION_KEY)
            await _complete_eligibility(session)
            await session.back("eligibility")
            assert session.step("eligibility").form_state == "idle"

            await session.go_to_step("review")
            assert session.current_step_id == "review"
