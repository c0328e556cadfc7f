import pytest

from mcp_server.services.query_executor import QueryExecutor
from tests._support.fake_gateway import FakeManager, canned_results, make_settings


@pytest.fixture
def fake_manager():
    """Manager with canned results for every statement kind the tools issue."""
    return FakeManager(make_settings(), results=canned_results())


@pytest.fixture
def executor(fake_manager):
    """Query executor bound to the fake manager."""
    return QueryExecutor(fake_manager)
