"""Collaborators handed down from the session to the orchestrator and steps."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from enrollment_workflow.cache import QueryCache
from enrollment_workflow.config import WorkflowSettings
from enrollment_workflow.interfaces import DataSourceFetcher, WorkflowGateway


@dataclass
class WorkflowServices:
    """Everything an actor may call outside its mailbox."""

    settings: WorkflowSettings = field(default_factory=WorkflowSettings)
    gateway: Optional[WorkflowGateway] = None
    fetcher: Optional[DataSourceFetcher] = None
    cache: QueryCache = field(default_factory=QueryCache)
