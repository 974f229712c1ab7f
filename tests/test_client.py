"""EnrollmentApiClient tests over ``httpx.MockTransport``.

The transport handler plays the back end: it checks the request it receives
and returns a canned response, so no network is involved.
"""

import json

import httpx
import pytest

from enrollment_api.client import EnrollmentApiClient
from enrollment_api.config import ApiSettings, load_api_settings
from enrollment_api.errors import (
    ApiError,
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from enrollment_workflow.models import QuestionStepResponse, WorkflowResponsesBody

SETTINGS = ApiSettings(base_url="http://enrollment.test", timeout_seconds=5)

WORKFLOW_JSON = {
    "id": "wf-1",
    "name": "Test",
    "firstStepId": "S1",
    "steps": [{"id": "S1", "stepType": "group", "subSteps": []}],
}


def _client(handler) -> EnrollmentApiClient:
    return EnrollmentApiClient(SETTINGS, transport=httpx.MockTransport(handler))


class TestGatewayEndpoints:

    @pytest.mark.asyncio
    async def test_fetch_application(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, json={"applicationKey": "APP-1", "workflowId": "wf-1", "confirmationId": None}
            )

        async with _client(handler) as api:
            application = await api.fetch_application("APP-1")

        assert application.workflow_id == "wf-1"
        assert not application.is_submitted
        assert seen[0].url.path == "/api/Applications/APP-1"
        assert seen[0].headers["Accept"] == "application/json"
        assert "Authorization" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_fetch_workflow_passes_application_key(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=WORKFLOW_JSON)

        async with _client(handler) as api:
            workflow = await api.fetch_workflow("wf-1", "APP-1")

        assert workflow.first_step_id == "S1"
        assert seen[0].url.path == "/api/workflows/wf-1"
        assert seen[0].url.params["applicationKey"] == "APP-1"

    @pytest.mark.asyncio
    async def test_send_workflow_responses_posts_camel_case(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        body = WorkflowResponsesBody(
            workflow_id="wf-1",
            question_step_responses=[
                QuestionStepResponse(
                    step_id="S1",
                    question_id="q1",
                    data_type=1,
                    response_date="2026-01-01T00:00:00+00:00",
                    response_value="yes",
                    response_source=1,
                )
            ],
        )
        async with _client(handler) as api:
            assert await api.send_workflow_responses("APP-1", body) is None

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/api/Applications/APP-1/workflowresponses"
        payload = json.loads(request.content)
        assert payload["workflowId"] == "wf-1"
        assert payload["questionStepResponses"][0]["responseValue"] == "yes"

    @pytest.mark.asyncio
    async def test_submit_application_returns_confirmation(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"confirmationId": "CONF-42"})

        async with _client(handler) as api:
            assert await api.submit_application("APP-1") == "CONF-42"
        assert json.loads(seen[0].content) == {"applicationKey": "APP-1"}


class TestDataSource:

    @pytest.mark.asyncio
    async def test_fetch_records(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.host == "counties.test"
            assert request.url.params["state"] == "TX"
            return httpx.Response(200, json=[{"code": "48201", "name": "Harris"}])

        async with _client(handler) as api:
            records = await api.fetch_records("https://counties.test/api/counties", {"state": "TX"})
        assert records == [{"code": "48201", "name": "Harris"}]

    @pytest.mark.asyncio
    async def test_no_content_is_empty_list(self):
        async with _client(lambda request: httpx.Response(204)) as api:
            assert await api.fetch_records("/api/counties", {"state": "TX"}) == []

    @pytest.mark.asyncio
    async def test_non_list_body_is_an_error(self):
        async with _client(lambda request: httpx.Response(200, json={"oops": True})) as api:
            with pytest.raises(ApiError):
                await api.fetch_records("/api/counties", {"state": "TX"})


class TestErrorMapping:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, body, error, message",
        [
            (401, None, UnauthorizedError, "Unauthorized"),
            (400, {"title": "Invalid workflow"}, BadRequestError, "Invalid workflow"),
            (403, {"message": "Agent not appointed"}, ForbiddenError, "Agent not appointed"),
            (404, {"title": "Application not found"}, NotFoundError, "Application not found"),
            (500, {"detail": "boom"}, ApiError, "Request failed with status 500"),
        ],
    )
    async def test_status_classification(self, status, body, error, message):
        def handler(request: httpx.Request) -> httpx.Response:
            if body is None:
                return httpx.Response(status)
            return httpx.Response(status, json=body)

        async with _client(handler) as api:
            with pytest.raises(error) as exc_info:
                await api.fetch_application("APP-1")
        assert str(exc_info.value) == message
        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_missing_problem_title_uses_default(self):
        async with _client(lambda request: httpx.Response(404, text="")) as api:
            with pytest.raises(NotFoundError, match="Not found"):
                await api.fetch_application("APP-1")

    @pytest.mark.asyncio
    async def test_no_content_application_is_an_error(self):
        async with _client(lambda request: httpx.Response(204)) as api:
            with pytest.raises(ApiError):
                await api.fetch_application("APP-1")


class TestSettings:

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("ENROLLMENT_API_URL", "https://api.example.test/")
        monkeypatch.setenv("ENROLLMENT_API_TIMEOUT_SECONDS", "12.5")
        settings = load_api_settings()
        assert settings.base_url == "https://api.example.test"
        assert settings.timeout_seconds == 12.5
