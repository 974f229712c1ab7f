"""EnrollmentApiClient — async HTTP client for the enrollment back end.

Implements both collaborator interfaces of the workflow runtime:

  - :class:`~enrollment_workflow.interfaces.WorkflowGateway`
      GET  {base}/api/Applications/{key}
      GET  {base}/api/workflows/{workflowId}?applicationKey={key}
      POST {base}/api/Applications/{key}/workflowresponses
      POST {base}/api/Applications/submit            body {applicationKey}
  - :class:`~enrollment_workflow.interfaces.DataSourceFetcher`
      GET  {data source url}?{name}={value}...

Usage::

    async with EnrollmentApiClient(load_api_settings()) as api:
        application = await api.fetch_application("APP-123")
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from enrollment_api.config import ApiSettings, load_api_settings
from enrollment_api.errors import ApiError, decode_response
from enrollment_workflow.interfaces import DataSourceFetcher, WorkflowGateway
from enrollment_workflow.models.workflow import Application, Workflow, WorkflowResponsesBody

logger = logging.getLogger(__name__)


class EnrollmentApiClient(WorkflowGateway, DataSourceFetcher):
    """httpx-backed gateway; pass ``transport`` to stub the network in tests."""

    def __init__(
        self,
        settings: Optional[ApiSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or load_api_settings()
        self._client = httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=self.settings.timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> EnrollmentApiClient:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        logger.debug("%s %s", method, url)
        response = await self._client.request(method, url, **kwargs)
        return decode_response(response)

    # ------------------------------------------------------------------
    # WorkflowGateway
    # ------------------------------------------------------------------

    async def fetch_application(self, application_key: str) -> Application:
        data = await self._request("GET", f"/api/Applications/{application_key}")
        if data is None:
            raise ApiError(f"Application {application_key} returned no content", 204)
        return Application.model_validate(data)

    async def fetch_workflow(self, workflow_id: str, application_key: str) -> Workflow:
        data = await self._request(
            "GET",
            f"/api/workflows/{workflow_id}",
            params={"applicationKey": application_key},
        )
        if data is None:
            raise ApiError(f"Workflow {workflow_id} returned no content", 204)
        return Workflow.model_validate(data)

    async def send_workflow_responses(
        self, application_key: str, body: WorkflowResponsesBody
    ) -> None:
        await self._request(
            "POST",
            f"/api/Applications/{application_key}/workflowresponses",
            json=body.model_dump(by_alias=True),
        )

    async def submit_application(self, application_key: str) -> Optional[str]:
        data = await self._request(
            "POST", "/api/Applications/submit", json={"applicationKey": application_key}
        )
        if isinstance(data, dict):
            return data.get("confirmationId")
        if isinstance(data, str):
            return data
        return None

    # ------------------------------------------------------------------
    # DataSourceFetcher
    # ------------------------------------------------------------------

    async def fetch_records(self, url: str, params: dict[str, str]) -> list[dict[str, Any]]:
        data = await self._request("GET", url, params=params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ApiError(f"Data source {url} did not return a list", None, data)
        return data
