"""Abstract interfaces for the collaborators the workflow runtime calls into.

These ABCs define the contract that transport implementations must fulfil.
The SDK's own HTTP implementation lives in ``enrollment_api``; tests supply
in-memory fakes.

Typical integration flow::

    async with EnrollmentApiClient(load_api_settings()) as api:
        async with WorkflowSession(gateway=api, fetcher=api) as session:
            await session.load("APP-123")
            await session.answer("S1", "Q1-node", "yes")
            await session.submit("S1")
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from enrollment_workflow.models.workflow import Application, Workflow, WorkflowResponsesBody


class WorkflowGateway(ABC):
    """Back-end operations used by the orchestrator and the step actors."""

    @abstractmethod
    async def fetch_application(self, application_key: str) -> Application:
        """Load enrollment metadata for an application.

        Parameters
        ----------
        application_key:
            Key identifying the enrollment application.

        Returns
        -------
        Application
            Metadata including the ``workflow_id`` to load and the
            ``confirmation_id`` of a previous final submission, if any.
        """
        ...

    @abstractmethod
    async def fetch_workflow(self, workflow_id: str, application_key: str) -> Workflow:
        """Load the authored workflow for an application.

        Parameters
        ----------
        workflow_id:
            Workflow identifier taken from the application.
        application_key:
            Key of the application; the back end uses it to pre-populate
            answers it already knows.

        Returns
        -------
        Workflow
            The validated workflow definition.
        """
        ...

    @abstractmethod
    async def send_workflow_responses(
        self, application_key: str, body: WorkflowResponsesBody
    ) -> None:
        """Save the answers of one step.

        Parameters
        ----------
        application_key:
            Key of the application the answers belong to.
        body:
            The responses payload built by
            :func:`enrollment_workflow.responses.build_workflow_responses`.
        """
        ...

    @abstractmethod
    async def submit_application(self, application_key: str) -> Optional[str]:
        """Submit the whole application.

        Returns
        -------
        str | None
            The confirmation id issued by the back end.
        """
        ...


class DataSourceFetcher(ABC):
    """Loads the records behind a multipleChoice question's remote options."""

    @abstractmethod
    async def fetch_records(self, url: str, params: dict[str, str]) -> list[dict[str, Any]]:
        """GET ``url`` with ``params`` and return the decoded list of records.

        Parameters
        ----------
        url:
            Data-source URL as authored in the workflow.
        params:
            One query parameter per configured dependency.

        Returns
        -------
        list[dict]
            Raw records; the question reduces them to value/label pairs.
        """
        ...
