"""Shared fixtures for the Jira relay tests."""

from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
import respx
from fastapi.testclient import TestClient

from jira_relay.integrations.jira_client import JiraClient
from jira_relay.main import create_app
from jira_relay.models.config import Settings
from jira_relay.services.issue_service import IssueService

BASE_URL = "https://example.atlassian.net"
AUTH = "Basic ZGV2QGV4YW1wbGUuY29tOnRva2Vu"
ISSUE_KEY = "PROJ-1"
MAX_UPLOAD_SIZE = 1024


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def settings(upload_dir: Path) -> Settings:
    return Settings(
        jira_base_url=BASE_URL,
        upload_dir=upload_dir,
        max_upload_size=MAX_UPLOAD_SIZE,
    )


@pytest.fixture
def jira_mock() -> Iterator[respx.MockRouter]:
    """Mock the Jira site; unmatched requests fail the test."""
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as mock:
        yield mock


@pytest.fixture
def client(settings: Settings, jira_mock: respx.MockRouter) -> Iterator[TestClient]:
    """Test client for the gateway with Jira mocked out."""
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
async def jira_client() -> AsyncIterator[JiraClient]:
    jira = JiraClient(base_url=BASE_URL)
    yield jira
    await jira.close()


@pytest.fixture
def issue_service(jira_client: JiraClient, upload_dir: Path) -> IssueService:
    return IssueService(jira=jira_client, upload_dir=upload_dir, max_upload_size=MAX_UPLOAD_SIZE)
