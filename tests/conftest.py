import pytest

from enrollment_workflow.cache import QueryCache
from enrollment_workflow.config import WorkflowSettings
from enrollment_workflow.loader import default_workflow_dir, load_workflow_file
from enrollment_workflow.runtime import ActorSystem
from enrollment_workflow.services import WorkflowServices

from helpers.fakes import FakeFetcher, FakeGateway


@pytest.fixture
def settings():
    """Short barrier timeout and no status auto-reset, so tests stay fast and stable."""
    return WorkflowSettings(ask_timeout_seconds=0.05, status_reset_seconds=0)

@pytest.fixture
def system():
    return ActorSystem()

@pytest.fixture
def gateway():
    return FakeGateway()

@pytest.fixture
def fetcher():
    return FakeFetcher()

@pytest.fixture
def services(settings, gateway, fetcher):
    return WorkflowServices(settings=settings, gateway=gateway, fetcher=fetcher, cache=QueryCache())

@pytest.fixture(scope="session")
def sample_workflow():
    return load_workflow_file(default_workflow_dir() / "sample_enrollment.yaml")
