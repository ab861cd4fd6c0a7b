"""Gateway operations built on top of the Jira client."""

import os
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles
import httpx
from pydantic import ValidationError

from jira_relay.integrations.jira_client import JiraClient
from jira_relay.models.jira import (
    SERVICE_DESK_PROJECT_TYPE,
    AccountLookup,
    CustomerRequestPayload,
    IssuePayload,
    IssuePeople,
    JiraUser,
    NotificationPayload,
    NotificationRecipients,
    RemoteResult,
    ServiceDesk,
)
from jira_relay.models.requests import CreateIssueRequest, SendNotificationRequest
from jira_relay.utils.errors import GatewayError, error_body, parse_json_body
from jira_relay.utils.logger import get_logger

logger = get_logger(__name__)

PEOPLE_FIELDS = ("reporter", "assignee", "creator", "summary")
UPLOAD_CHUNK_SIZE = 64 * 1024


def relay(response: httpx.Response) -> RemoteResult:
    """Turn a Jira response into a result carrying its status and body.

    A non-empty success body that is not JSON is not usable, so it is
    reported as failed with the text wrapped into an error object.
    """
    if not response.is_success:
        return RemoteResult(
            success=False,
            status_code=response.status_code,
            data=error_body(response)
        )

    data = parse_json_body(response)
    if data is None and response.content:
        logger.warning(f"Jira answered {response.status_code} with a non-JSON body")
        return RemoteResult(
            success=False,
            status_code=response.status_code,
            data={"error": response.text}
        )
    return RemoteResult(success=True, status_code=response.status_code, data=data)


def failure(status_code: int, error: str) -> RemoteResult:
    return RemoteResult(success=False, status_code=status_code, data={"error": error})


class IssueService:
    """Operations exposed by the gateway.

    Each method performs at most two dependent Jira calls (plus one lookup per
    notification recipient) and returns a RemoteResult. Nothing is retried.
    """

    def __init__(self, jira: JiraClient, upload_dir: Path, max_upload_size: int):
        self.jira = jira
        self.upload_dir = Path(upload_dir)
        self.max_upload_size = max_upload_size

    async def add_comment(self, auth_header: str, issue_key: str, comment: str) -> RemoteResult:
        return relay(await self.jira.add_comment(auth_header, issue_key, comment))

    async def list_attachments(self, auth_header: str, issue_key: str) -> RemoteResult:
        """Return the issue's attachment array, or an empty list when absent."""
        result = relay(await self.jira.get_issue(auth_header, issue_key, fields=["attachment"]))
        if not result.success:
            return result

        issue = result.data or {}
        attachments = (issue.get("fields") or {}).get("attachment") or []
        return RemoteResult(success=True, status_code=200, data=attachments)

    async def get_issue_people(self, auth_header: str, issue_key: str) -> RemoteResult:
        result = relay(await self.jira.get_issue(auth_header, issue_key, fields=PEOPLE_FIELDS))
        if not result.success:
            return result

        people = IssuePeople.from_issue(result.data or {})
        return RemoteResult(
            success=True,
            status_code=200,
            data=people.model_dump(by_alias=True)
        )

    async def resolve_account_id(self, auth_header: str, email: str) -> AccountLookup:
        """
        Resolve an email address to exactly one Jira account id.

        Several matches are narrowed to those whose email address equals the
        query; more than one remaining match is ambiguous.

        Args:
            auth_header: Caller's credential header
            email: Email address to search for

        Returns:
            AccountLookup, successful only for a single match
        """
        result = relay(await self.jira.search_users(auth_header, email))
        if not result.success:
            return AccountLookup(success=False, status_code=result.status_code, error=result.data)

        found = result.data if isinstance(result.data, list) else []
        users = [JiraUser.model_validate(u) for u in found]
        users = [u for u in users if u.account_id]
        if len(users) > 1:
            exact = [u for u in users if (u.email_address or "").lower() == email.lower()]
            users = exact or users

        if not users:
            return AccountLookup(
                success=False,
                status_code=404,
                error={"error": f"No user found for email {email}"}
            )
        if len(users) > 1:
            return AccountLookup(
                success=False,
                status_code=400,
                error={"error": f"Multiple users match email {email}"}
            )
        return AccountLookup(success=True, account_id=users[0].account_id)

    async def update_reporter(self, auth_header: str, issue_key: str, email: str) -> RemoteResult:
        lookup = await self.resolve_account_id(auth_header, email)
        if not lookup.success:
            logger.info(f"Reporter lookup failed for {issue_key}: {lookup.error}")
            return RemoteResult(success=False, status_code=lookup.status_code, data=lookup.error)
        return await self._apply_reporter(auth_header, issue_key, lookup)

    async def _apply_reporter(
        self,
        auth_header: str,
        issue_key: str,
        lookup: AccountLookup
    ) -> RemoteResult:
        response = await self.jira.update_issue_fields(
            auth_header,
            issue_key,
            {"reporter": {"accountId": lookup.account_id}}
        )
        if not response.is_success:
            return relay(response)
        return RemoteResult(
            success=True,
            status_code=200,
            data={"success": True, "accountId": lookup.account_id}
        )

    async def send_notification(
        self,
        auth_header: str,
        request: SendNotificationRequest
    ) -> RemoteResult:
        """
        Send an issue notification and record it as a comment.

        Recipient emails are resolved one at a time, in input order; emails
        that do not resolve to a single account are skipped. The follow-up
        comment is best effort: its failure becomes a warning on an otherwise
        successful result.
        """
        users: List[Dict[str, str]] = []
        unresolved: List[str] = []
        for email in request.emails:
            lookup = await self.resolve_account_id(auth_header, email)
            if lookup.success:
                users.append({"accountId": lookup.account_id})
            else:
                unresolved.append(email)

        recipients = NotificationRecipients(
            reporter=request.notify_reporter,
            assignee=request.notify_assignee,
            users=users
        )
        if recipients.is_empty:
            return failure(400, "No notification recipients")

        payload = NotificationPayload(
            subject=request.subject,
            text_body=request.message,
            to=recipients
        )
        response = await self.jira.notify(auth_header, request.issue_key, payload)
        if not response.is_success:
            return relay(response)

        data: Dict[str, Any] = {
            "success": True,
            "recipients": {
                "reporter": recipients.reporter,
                "assignee": recipients.assignee,
                "users": [u["accountId"] for u in users]
            },
            "unresolvedEmails": unresolved
        }
        warning = await self._record_notification(auth_header, request)
        if warning:
            data["warning"] = warning
        return RemoteResult(success=True, status_code=200, data=data)

    async def _record_notification(
        self,
        auth_header: str,
        request: SendNotificationRequest
    ) -> Optional[str]:
        """Add the audit comment; return a warning instead of failing."""
        text = f"Notification sent: {request.subject}\n\n{request.message}"
        try:
            response = await self.jira.add_comment(auth_header, request.issue_key, text)
        except httpx.HTTPError as e:
            logger.warning(f"Notification comment on {request.issue_key} failed: {e}")
            return f"Notification sent but comment was not recorded: {e}"

        if not response.is_success:
            logger.warning(
                f"Notification comment on {request.issue_key} rejected: {response.status_code}"
            )
            return f"Notification sent but comment was not recorded (status {response.status_code})"
        return None

    async def execute_transition(
        self,
        auth_header: str,
        issue_key: str,
        transition_id: str
    ) -> RemoteResult:
        response = await self.jira.transition_issue(auth_header, issue_key, transition_id)
        if response.is_success or response.status_code == 204:
            return RemoteResult(success=True, status_code=200, data={"success": True})
        return relay(response)

    async def resolve_service_desk(self, auth_header: str, project_key: str) -> Optional[ServiceDesk]:
        response = await self.jira.get_service_desk(auth_header, project_key)
        if not response.is_success:
            logger.info(f"Service desk lookup for {project_key} failed: {response.status_code}")
            return None
        data = parse_json_body(response)
        if not isinstance(data, dict) or data.get("id") is None:
            return None
        try:
            return ServiceDesk.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Unreadable service desk for {project_key}: {e}")
            return None

    async def create_issue(self, auth_header: str, request: CreateIssueRequest) -> RemoteResult:
        """Create a customer request in a service desk, or a standard issue."""
        if request.project_type == SERVICE_DESK_PROJECT_TYPE:
            service_desk = await self.resolve_service_desk(auth_header, request.project_key)
            if service_desk is None:
                return failure(400, "Service desk not found")

            payload = CustomerRequestPayload.build(
                service_desk_id=service_desk.id,
                request_type_id=request.request_type_id,
                summary=request.summary,
                description=request.description
            )
            return relay(await self.jira.create_customer_request(auth_header, payload))

        payload = IssuePayload.build(
            project_key=request.project_key,
            summary=request.summary,
            description=request.description,
            issue_type=request.issue_type or "Task"
        )
        return relay(await self.jira.create_issue(auth_header, payload))

    async def add_attachment(self, auth_header: str, issue_key: str, upload: Any) -> RemoteResult:
        """
        Spool an uploaded file to disk and re-send it to Jira.

        The temporary file is removed on every exit path.

        Args:
            auth_header: Caller's credential header
            issue_key: Jira issue key
            upload: Uploaded file (filename, content_type and async read())

        Returns:
            Result relaying Jira's response
        """
        filename = upload.filename or "attachment"
        path = self._temp_path()
        try:
            await self._spool(upload, path)
            return relay(await self.jira.upload_attachment(
                auth_header,
                issue_key,
                str(path),
                filename,
                upload.content_type
            ))
        finally:
            self._discard(path)

    def _temp_path(self) -> Path:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        return self.upload_dir / f"upload-{uuid.uuid4().hex}"

    async def _spool(self, upload: Any, path: Path) -> None:
        size = 0
        async with aiofiles.open(path, 'wb') as f:
            while True:
                chunk = await upload.read(UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > self.max_upload_size:
                    raise GatewayError.message(
                        413,
                        f"File exceeds maximum size of {self.max_upload_size} bytes"
                    )
                await f.write(chunk)

    def _discard(self, path: Path) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to remove temporary upload {path}: {e}")
