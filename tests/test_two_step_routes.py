"""Route tests for operations that chain dependent Jira calls."""

import json

import httpx
from fastapi.testclient import TestClient
from respx import MockRouter

from tests.conftest import AUTH, ISSUE_KEY

SEARCH_PATH = "/rest/api/3/user/search"
ISSUE_PATH = f"/rest/api/3/issue/{ISSUE_KEY}"
NOTIFY_PATH = f"/rest/api/3/issue/{ISSUE_KEY}/notify"
COMMENT_PATH = f"/rest/api/3/issue/{ISSUE_KEY}/comment"
SERVICE_DESK_PATH = "/rest/servicedeskapi/servicedesk/HELP"
CUSTOMER_REQUEST_PATH = "/rest/servicedeskapi/request"

DIRECTORY = {
    "dev@example.com": [{"accountId": "acc-dev", "emailAddress": "dev@example.com"}],
    "ops@example.com": [{"accountId": "acc-ops", "emailAddress": "ops@example.com"}],
}


def search_directory(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=DIRECTORY.get(request.url.params["query"], []))


# Update reporter

def test_update_reporter_resolves_then_updates(client: TestClient, jira_mock: MockRouter) -> None:
    search = jira_mock.get(SEARCH_PATH).mock(side_effect=search_directory)
    update = jira_mock.put(ISSUE_PATH).mock(return_value=httpx.Response(204))

    response = client.post(
        "/update-issue-reporter",
        json={"authHeader": AUTH, "issueKey": ISSUE_KEY, "email": "dev@example.com"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "accountId": "acc-dev"}
    assert search.calls.last.request.url.params["query"] == "dev@example.com"
    assert json.loads(update.calls.last.request.content) == {
        "fields": {"reporter": {"accountId": "acc-dev"}}
    }


def test_update_reporter_without_match_never_updates(client: TestClient, jira_mock: MockRouter) -> None:
    jira_mock.get(SEARCH_PATH).mock(return_value=httpx.Response(200, json=[]))
    update = jira_mock.put(ISSUE_PATH).mock(return_value=httpx.Response(204))

    response = client.post(
        "/update-issue-reporter",
        json={"authHeader": AUTH, "issueKey": ISSUE_KEY, "email": "ghost@example.com"},
    )

    assert 400 <= response.status_code < 500
    assert "ghost@example.com" in response.json()["error"]
    assert not update.called


def test_update_reporter_with_ambiguous_match_never_updates(
    client: TestClient, jira_mock: MockRouter
) -> None:
    jira_mock.get(SEARCH_PATH).mock(
        return_value=httpx.Response(200, json=[{"accountId": "a"}, {"accountId": "b"}])
    )
    update = jira_mock.put(ISSUE_PATH).mock(return_value=httpx.Response(204))

    response = client.post(
        "/update-issue-reporter",
        json={"authHeader": AUTH, "issueKey": ISSUE_KEY, "email": "dev@example.com"},
    )

    assert response.status_code == 400
    assert not update.called


def test_update_reporter_requires_email(client: TestClient, jira_mock: MockRouter) -> None:
    response = client.post("/update-issue-reporter", json={"authHeader": AUTH, "issueKey": ISSUE_KEY})

    assert response.status_code == 400
    assert response.json() == {"error": "email is required"}
    assert len(jira_mock.calls) == 0


def test_update_reporter_relays_update_rejection(client: TestClient, jira_mock: MockRouter) -> None:
    jira_mock.get(SEARCH_PATH).mock(side_effect=search_directory)
    error = {"errors": {"reporter": "Field 'reporter' cannot be set."}}
    jira_mock.put(ISSUE_PATH).mock(return_value=httpx.Response(400, json=error))

    response = client.post(
        "/update-issue-reporter",
        json={"authHeader": AUTH, "issueKey": ISSUE_KEY, "email": "dev@example.com"},
    )

    assert response.status_code == 400
    assert response.json() == error


# Send notification

def notification(**overrides) -> dict:
    body = {
        "authHeader": AUTH,
        "issueKey": ISSUE_KEY,
        "subject": "Deploy finished",
        "message": "Version 2.1 is live",
        "notifyReporter": True,
        "notifyAssignee": False,
        "emails": [],
    }
    body.update(overrides)
    return body


def test_notification_builds_recipients_and_records_comment(
    client: TestClient, jira_mock: MockRouter
) -> None:
    jira_mock.get(SEARCH_PATH).mock(side_effect=search_directory)
    notify = jira_mock.post(NOTIFY_PATH).mock(return_value=httpx.Response(204))
    comment = jira_mock.post(COMMENT_PATH).mock(return_value=httpx.Response(201, json={"id": "1"}))

    response = client.post(
        "/send-notification",
        json=notification(emails=["ops@example.com", "ghost@example.com", "dev@example.com"]),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["recipients"]["users"] == ["acc-ops", "acc-dev"]
    assert body["unresolvedEmails"] == ["ghost@example.com"]
    assert "warning" not in body

    sent = json.loads(notify.calls.last.request.content)
    assert sent["subject"] == "Deploy finished"
    assert sent["textBody"] == "Version 2.1 is live"
    assert sent["to"] == {
        "reporter": True,
        "assignee": False,
        "users": [{"accountId": "acc-ops"}, {"accountId": "acc-dev"}],
    }
    assert comment.called


def test_notification_comment_failure_is_a_warning(client: TestClient, jira_mock: MockRouter) -> None:
    jira_mock.post(NOTIFY_PATH).mock(return_value=httpx.Response(204))
    jira_mock.post(COMMENT_PATH).mock(return_value=httpx.Response(500, text="boom"))

    response = client.post("/send-notification", json=notification())

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert "warning" in body


def test_notification_comment_transport_error_is_a_warning(
    client: TestClient, jira_mock: MockRouter
) -> None:
    jira_mock.post(NOTIFY_PATH).mock(return_value=httpx.Response(204))
    jira_mock.post(COMMENT_PATH).mock(side_effect=httpx.ConnectError("reset"))

    response = client.post("/send-notification", json=notification())

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert "reset" in response.json()["warning"]


def test_notification_failure_skips_comment(client: TestClient, jira_mock: MockRouter) -> None:
    error = {"errorMessages": ["No recipients were defined for notification."]}
    jira_mock.post(NOTIFY_PATH).mock(return_value=httpx.Response(400, json=error))
    comment = jira_mock.post(COMMENT_PATH).mock(return_value=httpx.Response(201, json={}))

    response = client.post("/send-notification", json=notification())

    assert response.status_code == 400
    assert response.json() == error
    assert not comment.called


def test_notification_without_recipients_is_rejected(client: TestClient, jira_mock: MockRouter) -> None:
    jira_mock.get(SEARCH_PATH).mock(return_value=httpx.Response(200, json=[]))
    notify = jira_mock.post(NOTIFY_PATH).mock(return_value=httpx.Response(204))

    response = client.post(
        "/send-notification",
        json=notification(notifyReporter=False, emails=["ghost@example.com"]),
    )

    assert response.status_code == 400
    assert not notify.called


# Create issue

def test_service_desk_lookup_precedes_request_creation(client: TestClient, jira_mock: MockRouter) -> None:
    jira_mock.get(SERVICE_DESK_PATH).mock(
        return_value=httpx.Response(200, json={"id": 7, "projectKey": "HELP", "projectName": "Help"})
    )
    create = jira_mock.post(CUSTOMER_REQUEST_PATH).mock(
        return_value=httpx.Response(201, json={"issueKey": "HELP-12"})
    )

    response = client.post(
        "/create-issue",
        json={
            "authHeader": AUTH,
            "projectKey": "HELP",
            "projectType": "servicedesk",
            "requestTypeId": "25",
            "summary": "Printer jammed",
            "description": "Third floor",
        },
    )

    assert response.status_code == 201
    assert response.json() == {"issueKey": "HELP-12"}
    paths = [call.request.url.path for call in jira_mock.calls]
    assert paths == [SERVICE_DESK_PATH, CUSTOMER_REQUEST_PATH]
    assert json.loads(create.calls.last.request.content) == {
        "serviceDeskId": "7",
        "requestTypeId": "25",
        "requestFieldValues": {"summary": "Printer jammed", "description": "Third floor"},
    }


def test_service_desk_lookup_failure_prevents_creation(client: TestClient, jira_mock: MockRouter) -> None:
    jira_mock.get(SERVICE_DESK_PATH).mock(return_value=httpx.Response(404, json={"errorMessage": "nope"}))
    create = jira_mock.post(CUSTOMER_REQUEST_PATH).mock(return_value=httpx.Response(201, json={}))

    response = client.post(
        "/create-issue",
        json={
            "authHeader": AUTH,
            "projectKey": "HELP",
            "projectType": "servicedesk",
            "requestTypeId": "25",
            "summary": "Printer jammed",
        },
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Service desk not found"}
    assert not create.called


def test_numeric_service_desk_ids_are_accepted(client: TestClient, jira_mock: MockRouter) -> None:
    jira_mock.get(SERVICE_DESK_PATH).mock(
        return_value=httpx.Response(200, json={"id": 7, "projectId": 10001, "projectKey": "HELP"})
    )
    create = jira_mock.post(CUSTOMER_REQUEST_PATH).mock(
        return_value=httpx.Response(201, json={"issueKey": "HELP-13"})
    )

    response = client.post(
        "/create-issue",
        json={
            "authHeader": AUTH,
            "projectKey": "HELP",
            "projectType": "servicedesk",
            "requestTypeId": "25",
            "summary": "Printer jammed",
        },
    )

    assert response.status_code == 201
    assert json.loads(create.calls.last.request.content)["serviceDeskId"] == "7"


def test_unreadable_service_desk_prevents_creation(client: TestClient, jira_mock: MockRouter) -> None:
    jira_mock.get(SERVICE_DESK_PATH).mock(
        return_value=httpx.Response(200, json={"id": 7, "projectKey": ["HELP"]})
    )
    create = jira_mock.post(CUSTOMER_REQUEST_PATH).mock(return_value=httpx.Response(201, json={}))

    response = client.post(
        "/create-issue",
        json={
            "authHeader": AUTH,
            "projectKey": "HELP",
            "projectType": "servicedesk",
            "requestTypeId": "25",
            "summary": "Printer jammed",
        },
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Service desk not found"}
    assert not create.called


def test_standard_issue_uses_field_shape(client: TestClient, jira_mock: MockRouter) -> None:
    create = jira_mock.post("/rest/api/3/issue").mock(
        return_value=httpx.Response(201, json={"id": "10010", "key": "PROJ-9"})
    )

    response = client.post(
        "/create-issue",
        json={
            "authHeader": AUTH,
            "projectKey": "PROJ",
            "projectType": "software",
            "issueType": "Bug",
            "summary": "Login fails",
            "description": "Stack trace attached",
        },
    )

    assert response.status_code == 201
    assert response.json()["key"] == "PROJ-9"
    assert json.loads(create.calls.last.request.content) == {
        "fields": {
            "project": {"key": "PROJ"},
            "summary": "Login fails",
            "description": {
                "type": "doc",
                "version": 1,
                "content": [
                    {"type": "paragraph", "content": [{"type": "text", "text": "Stack trace attached"}]}
                ],
            },
            "issuetype": {"name": "Bug"},
        }
    }
